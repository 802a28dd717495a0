# File: backlink_scout/engine.py
"""backlink_scout.engine: top-level orchestration of one verification and crawl request."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backlink_scout.aggregator import CrawlReport, aggregate_results
from backlink_scout.auditor import InternalHealthAuditor
from backlink_scout.config import ScoutConfig
from backlink_scout.crawler.browser import BrowserSession
from backlink_scout.crawler.fetcher import Fetcher, open_session
from backlink_scout.discovery import BacklinkDiscovery
from backlink_scout.domain import normalize_domain
from backlink_scout.errors import FatalOrchestratorError, InvalidInputError, ScoutError
from backlink_scout.logger import logger
from backlink_scout.progress import ProgressReporter, ProgressSink
from backlink_scout.verifier import (
    OwnershipVerifier,
    SessionFactory,
    VerificationOutcome,
    validate_token,
)

__all__ = ["CrawlResult", "Engine", "run_crawl"]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class CrawlResult:
    """Structured answer handed back to the caller; never an exception."""

    success: bool
    is_verified: bool = False
    url: Optional[str] = None
    report: Optional[CrawlReport] = None
    timestamp: str = field(default_factory=_now)
    error: Optional[str] = None
    error_type: Optional[str] = None
    verification: Optional[VerificationOutcome] = None

    @classmethod
    def failure(cls, exc: BaseException) -> CrawlResult:
        kind = type(exc).__name__ if isinstance(exc, ScoutError) else FatalOrchestratorError.__name__
        return cls(success=False, error=str(exc) or type(exc).__name__, error_type=kind)

    @property
    def stats(self) -> Dict[str, int]:
        if self.report is None:
            return {"externalLinks": 0, "internalLinks": 0, "brokenLinks": 0}
        return self.report.stats

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "isVerified": False,
                "error": self.error,
                "errorType": self.error_type,
                "report": {"external": [], "internal": []},
                "timestamp": self.timestamp,
            }
        report = self.report.to_dict() if self.report else {"external": [], "internal": []}
        return {
            "success": True,
            "isVerified": self.is_verified,
            "url": self.url,
            "report": report,
            "stats": self.stats,
            "timestamp": self.timestamp,
        }


class Engine:
    """Normalize → verify (resolving the origin) → discover + audit → report.

    Every failure ends as a :class:`CrawlResult`; nothing escapes :meth:`run`.
    """

    def __init__(
        self,
        config: ScoutConfig,
        *,
        fetcher: Optional[Fetcher] = None,
        session_factory: SessionFactory = BrowserSession,
    ) -> None:
        self.config = config
        self._fetcher = fetcher
        self._session_factory = session_factory

    async def run(
        self, url_input: str, token: str, on_progress: Optional[ProgressSink] = None
    ) -> CrawlResult:
        progress = ProgressReporter(on_progress)
        try:
            domain = normalize_domain(url_input)
            token = validate_token(token, self.config.min_token_length)
        except InvalidInputError as exc:
            logger.error("Rejected input: %s", exc)
            progress.emit("error", str(exc))
            return CrawlResult.failure(exc)

        logger.info("Normalized domain: %s", domain)
        try:
            if self._fetcher is not None:
                return await self._crawl(self._fetcher, domain, token, progress)
            async with open_session(self.config) as session:
                return await self._crawl(Fetcher(session, self.config), domain, token, progress)
        except Exception as exc:
            logger.exception("Fatal error while processing %s", domain)
            progress.emit("error", str(exc) or type(exc).__name__)
            return CrawlResult.failure(exc)

    async def _crawl(
        self, fetcher: Fetcher, domain: str, token: str, progress: ProgressReporter
    ) -> CrawlResult:
        verifier = OwnershipVerifier(
            fetcher, self.config, session_factory=self._session_factory, progress=progress
        )
        outcome = await verifier.verify(domain, token)
        origin = outcome.origin.url
        if not outcome.verified:
            logger.info("%s not verified (%s path)", domain, outcome.path.value)
            return CrawlResult(
                success=True,
                is_verified=False,
                url=origin,
                report=aggregate_results(origin),
                verification=outcome,
            )

        logger.info("Verification passed, starting crawl of %s", origin)
        discovery = BacklinkDiscovery(fetcher, self.config)
        auditor = InternalHealthAuditor(fetcher, self.config)
        progress.emit("crawl", "backlinks")
        progress.emit("crawl", "internal")
        sources, internal = await asyncio.gather(
            discovery.discover(domain.split(":", 1)[0], progress),
            auditor.audit(origin, progress),
        )

        progress.emit("crawl", "processing")
        report = aggregate_results(origin, sources, internal)
        logger.info(
            "Crawl complete: %d backlinks, %d internal links (%d broken)",
            *report.stats.values(),
        )
        progress.emit("complete", report)
        return CrawlResult(
            success=True, is_verified=True, url=origin, report=report, verification=outcome
        )


async def run_crawl(
    cfg: ScoutConfig, url: str, token: str, on_progress: Optional[ProgressSink] = None
) -> CrawlResult:
    """Run the whole pipeline with live HTTP and a real browser session."""
    return await Engine(cfg).run(url, token, on_progress)
