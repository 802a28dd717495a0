# File: backlink_scout/utils.py
"""backlink_scout.utils: small URL and collection helpers shared by the pipeline stages."""

from __future__ import annotations

import time
from typing import Collection, Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from backlink_scout.logger import logger

__all__: Sequence[str] = (
    "extract_hostname",
    "with_cache_buster",
    "remove_duplicates",
    "flatten",
)


def extract_hostname(url: str) -> str:
    """Return the lowercase hostname of *url* without port."""
    return (urlsplit(url).hostname or "").lower()


def with_cache_buster(url: str, now_ms: Optional[int] = None) -> str:
    """Append a ``t=<milliseconds>`` query parameter so caches cannot answer."""
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    sep = "&" if urlsplit(url).query else "?"
    return f"{url}{sep}t={stamp}"


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Remove duplicate URLs, keeping first-seen order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique


def flatten(lists: Iterable[Iterable[str]]) -> List[str]:
    return [item for sub in lists for item in sub]
