# backlink_scout/crawler/link_extractor.py
"""
Link extraction utilities for BacklinkScout.

Two flavours share the same BeautifulSoup walk:

* :func:`extract_external_links` – absolute links pointing *away* from the
  crawled host, used on search result pages during backlink discovery.
* :func:`extract_internal_links` – same-host links of a landing page, used by
  the internal health audit.
"""
from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Sequence
from urllib.parse import urldefrag, urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = (
    "SEARCH_ENGINE_NAMES",
    "extract_external_links",
    "extract_internal_links",
    "iter_hrefs",
)

#: Search engine brands. A host with any of these as a dot-separated label
#: (``yahoo.co.jp``, ``lh3.googleusercontent.com``, ``yandex.net``) is the
#: engine itself, its CDN or a redirect hop, and never counts as a source.
SEARCH_ENGINE_NAMES: frozenset[str] = frozenset(
    {
        "google",
        "googleusercontent",
        "googleapis",
        "gstatic",
        "bing",
        "bingj",
        "yahoo",
        "yimg",
        "duckduckgo",
        "baidu",
        "bdstatic",
        "yandex",
    }
)

#: Hosts under a search engine domain that are content in their own right.
_CONTENT_HOSTS: frozenset[str] = frozenset({"play.google.com"})

_SKIPPED_PREFIXES = ("#", "mailto:", "tel:", "javascript:")


def iter_hrefs(html: str) -> Iterator[str]:
    """Yield stripped, non-empty ``href`` values of every ``<a>`` in *html*."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if raw:
            yield raw


def is_search_engine_host(host: str, names: Iterable[str] = SEARCH_ENGINE_NAMES) -> bool:
    """True when a label of *host* is a search engine brand.

    Whole labels are compared, so ``notgoogle.com`` is kept while
    ``www.google.de`` and ``bing.net`` are not.
    """
    host = host.lower()
    if host in _CONTENT_HOSTS:
        return False
    brands = names if isinstance(names, (set, frozenset)) else frozenset(names)
    return any(label in brands for label in host.split("."))


def _absolute_http_url(href: str) -> Optional[str]:
    if href.startswith("//"):
        return "https:" + href
    scheme = href.split(":", 1)[0].lower() if ":" in href else ""
    if scheme in ("http", "https"):
        return href
    return None


def extract_external_links(
    html: str,
    own_host: str,
    *,
    engine_names: Iterable[str] = SEARCH_ENGINE_NAMES,
) -> List[str]:
    """
    Return distinct absolute http(s) URLs from *html* that leave *own_host*.

    Relative hrefs are skipped. A link is dropped when its hostname contains
    *own_host* as a substring or belongs to a search engine. Malformed hrefs
    are skipped silently. The list keeps first-seen order.
    """
    own = own_host.lower().split(":", 1)[0]
    engines = frozenset(engine_names)
    seen: dict[str, None] = {}
    for href in iter_hrefs(html):
        url = _absolute_http_url(href)
        if url is None:
            continue
        try:
            host = urlsplit(url).hostname
        except ValueError:
            continue
        if not host:
            continue
        if own and own in host:
            continue
        if is_search_engine_host(host, engines):
            continue
        seen.setdefault(url, None)
    return list(seen)


def extract_internal_links(html: str, page_url: str) -> List[str]:
    """
    Return distinct same-host URLs linked from *html*, resolved against *page_url*.

    Fragment-only, ``mailto:``, ``tel:`` and ``javascript:`` hrefs are ignored;
    fragments are dropped before deduplication.
    """
    base_host = urlsplit(page_url).hostname
    seen: dict[str, None] = {}
    for href in iter_hrefs(html):
        if href.lower().startswith(_SKIPPED_PREFIXES):
            continue
        try:
            absolute, _ = urldefrag(urljoin(page_url, href))
            parsed = urlsplit(absolute)
        except ValueError:
            continue
        if parsed.scheme in ("http", "https") and parsed.hostname == base_host:
            seen.setdefault(absolute, None)
    return list(seen)
