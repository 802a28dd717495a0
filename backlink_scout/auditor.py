# File: backlink_scout/auditor.py
"""backlink_scout.auditor: reachability check of the links on a verified site's landing page."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Protocol, Sequence

from aiohttp import ClientError, ClientResponseError

from backlink_scout.config import ScoutConfig
from backlink_scout.crawler.fetcher import get_or_raise_5xx
from backlink_scout.crawler.link_extractor import extract_internal_links
from backlink_scout.crawler.models import TIMEOUT_MARKER, InternalLinkRecord, LinkStatus, PageData
from backlink_scout.errors import UpstreamSourceFailure
from backlink_scout.executor import ThrottledExecutor
from backlink_scout.logger import logger
from backlink_scout.progress import ProgressReporter

__all__: Sequence[str] = ("InternalHealthAuditor",)


class _Getter(Protocol):
    async def get(self, url: str, *, timeout: float | None = None,
                  max_redirects: int | None = None) -> PageData: ...


class InternalHealthAuditor:
    """Fetches the landing page once, then probes up to ``max_internal_links`` same-host links."""

    def __init__(
        self,
        fetcher: _Getter,
        config: ScoutConfig,
        *,
        executor: Optional[ThrottledExecutor] = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.executor = executor or ThrottledExecutor.from_config(
            config, limit=config.audit_concurrency
        )

    async def collect_links(self, origin_url: str) -> List[str]:
        page = await self.executor.retry(lambda: get_or_raise_5xx(self.fetcher, origin_url))
        if not page.ok:
            raise UpstreamSourceFailure(f"landing page returned HTTP {page.status}")
        links = extract_internal_links(page.content, page.final_url or origin_url)
        return links[: self.config.max_internal_links]

    async def probe(self, url: str) -> InternalLinkRecord:
        """GET *url*; 2xx–3xx is OK, anything else (or no answer) is BROKEN."""
        try:
            page = await self.fetcher.get(
                url,
                timeout=self.config.audit_timeout,
                max_redirects=self.config.audit_max_redirects,
            )
        except ClientResponseError as exc:
            return InternalLinkRecord(url, LinkStatus.BROKEN, exc.status or TIMEOUT_MARKER)
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.debug("Probe %s failed: %s", url, exc or type(exc).__name__)
            return InternalLinkRecord(url, LinkStatus.BROKEN, TIMEOUT_MARKER)
        if page.ok:
            return InternalLinkRecord(url, LinkStatus.OK, page.status)
        return InternalLinkRecord(url, LinkStatus.BROKEN, page.status)

    async def audit(
        self, origin_url: str, progress: Optional[ProgressReporter] = None
    ) -> List[InternalLinkRecord]:
        """Return one record per discovered link, in discovery order."""
        progress = progress or ProgressReporter()
        logger.info("Checking internal health for %s", origin_url)
        try:
            links = await self.collect_links(origin_url)
        except Exception as exc:
            logger.warning("Internal scan error: %s", exc or type(exc).__name__)
            return []
        logger.info("Found %d internal links to check", len(links))

        outcomes = await self.executor.run([lambda u=link: self.probe(u) for link in links])
        records: List[InternalLinkRecord] = []
        for link, outcome in zip(links, outcomes):
            if outcome.fulfilled:
                records.append(outcome.value)
            else:
                logger.warning("Probe %s crashed: %s", link, outcome.reason)
                records.append(InternalLinkRecord(link, LinkStatus.BROKEN, TIMEOUT_MARKER))

        broken = sum(1 for r in records if r.broken)
        logger.info("Checked %d links (%d broken)", len(records), broken)
        progress.emit("internal", len(records))
        return records
