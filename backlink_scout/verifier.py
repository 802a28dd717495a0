# File: backlink_scout/verifier.py
"""backlink_scout.verifier: proof that the requester controls a domain.

State machine::

    Start → OriginResolved → RenderAttempted → RenderVerified
                                             ↘ RenderFailed → [FallbackAttempted → FallbackVerified | FallbackFailed]
                                                            → Done

The rendered check sees meta tags injected by JavaScript. The plain HTTP
fallback runs only when the browser could not connect at all; a page that
rendered fine but lacks the tag is final.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Pattern, Protocol, Sequence, Tuple

from aiohttp import ClientError
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from backlink_scout.config import ScoutConfig
from backlink_scout.crawler.browser import BrowserSession, NavigationResult
from backlink_scout.crawler.models import PageData, ResolvedOrigin
from backlink_scout.domain import OriginResolver
from backlink_scout.errors import FallbackFailure, InvalidInputError, RenderFailure
from backlink_scout.logger import logger
from backlink_scout.progress import ProgressReporter
from backlink_scout.utils import with_cache_buster

__all__: Sequence[str] = (
    "VerifyState",
    "VerificationPath",
    "VerificationOutcome",
    "validate_token",
    "token_patterns",
    "find_verification_token",
    "OwnershipVerifier",
)

_CONNECTION_MARKERS = ("net::", "ERR_CONNECTION", "Navigation timeout", "HTTP FAILED", "Timeout")


class VerifyState(str, Enum):
    START = "Start"
    ORIGIN_RESOLVED = "OriginResolved"
    RENDER_ATTEMPTED = "RenderAttempted"
    RENDER_VERIFIED = "RenderVerified"
    RENDER_FAILED = "RenderFailed"
    FALLBACK_ATTEMPTED = "FallbackAttempted"
    FALLBACK_VERIFIED = "FallbackVerified"
    FALLBACK_FAILED = "FallbackFailed"
    DONE = "Done"


class VerificationPath(str, Enum):
    RENDERED = "rendered"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    """Terminal result of one verification attempt."""

    verified: bool
    origin: ResolvedOrigin
    path: VerificationPath
    found_token: Optional[str] = None
    trail: Tuple[VerifyState, ...] = ()


class _RenderSession(Protocol):
    async def __aenter__(self) -> "_RenderSession": ...
    async def __aexit__(self, exc_type, exc, tb) -> None: ...
    async def navigate(self, url: str) -> Optional[NavigationResult]: ...
    async def content(self) -> str: ...


class _Fetcher(Protocol):
    async def head(self, url: str, *, timeout: float | None = None,
                   max_redirects: int | None = None) -> PageData: ...
    async def get(self, url: str, *, timeout: float | None = None,
                  max_redirects: int | None = None) -> PageData: ...


SessionFactory = Callable[[ScoutConfig], _RenderSession]


def validate_token(token: object, min_length: int = 10) -> str:
    """Shape check only: a string of at least *min_length* characters once trimmed."""
    if not isinstance(token, str) or len(token.strip()) < min_length:
        raise InvalidInputError("Invalid verification token")
    return token.strip()


def token_patterns(tag_name: str) -> Tuple[Pattern[str], ...]:
    """Ordered meta-tag patterns for *tag_name*, tolerant of attribute order."""
    name = re.escape(tag_name)
    return (
        re.compile(rf"""<meta[^>]*name=['"]{name}['"][^>]*content=['"]([^'"]+)['"]""", re.IGNORECASE),
        re.compile(rf"""<meta[^>]*content=['"]([^'"]+)['"][^>]*name=['"]{name}['"]""", re.IGNORECASE),
        re.compile(rf"""<meta[^>]+{name}[^>]+content=['"]([^'"]+)['"]""", re.IGNORECASE),
    )


def find_verification_token(html: str, tag_name: str) -> Optional[str]:
    """Return the ``content`` of the first matching verification tag, or None."""
    for pattern in token_patterns(tag_name):
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


def _token_matches(found: Optional[str], expected: str) -> bool:
    return found is not None and found.strip() == expected.strip()


def _is_connection_error(exc: BaseException) -> bool:
    if isinstance(exc, (PlaywrightTimeout, asyncio.TimeoutError)):
        return True
    message = str(exc)
    return any(marker in message for marker in _CONNECTION_MARKERS)


def _mask(token: str) -> str:
    return token[:4] + "…" if len(token) > 4 else "…"


class OwnershipVerifier:
    """Resolve the origin, render it, fall back to plain HTTP on connection failures."""

    def __init__(
        self,
        fetcher: _Fetcher,
        config: ScoutConfig,
        *,
        resolver: Optional[OriginResolver] = None,
        session_factory: SessionFactory = BrowserSession,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.resolver = resolver or OriginResolver(fetcher, config)
        self.session_factory = session_factory
        self.progress = progress or ProgressReporter()

    async def verify(self, domain: str, token: str) -> VerificationOutcome:
        """Run the state machine for *domain*.

        Resolver errors propagate; render and fallback failures end in a
        NotVerified outcome.
        """
        expected = validate_token(token, self.config.min_token_length)
        trail: List[VerifyState] = [VerifyState.START]
        logger.info("Verification started for %s (token %s)", domain, _mask(expected))

        origin = await self.resolver.resolve(domain)
        trail.append(VerifyState.ORIGIN_RESOLVED)
        self.progress.emit("resolve", origin.url)

        trail.append(VerifyState.RENDER_ATTEMPTED)
        try:
            html = await self._render(origin)
        except RenderFailure as exc:
            trail.append(VerifyState.RENDER_FAILED)
            logger.warning("Render failed for %s: %s", origin.url, exc)
            if exc.connection_level:
                return await self._fallback(origin, expected, trail)
            self.progress.emit("verification", "error")
            return self._done(False, origin, VerificationPath.RENDERED, None, trail)

        found = find_verification_token(html, self.config.verify_tag)
        logger.info("Verification check: found %s", "tag" if found else "NOT FOUND")
        if _token_matches(found, expected):
            trail.append(VerifyState.RENDER_VERIFIED)
            self.progress.emit("verification", "success")
            return self._done(True, origin, VerificationPath.RENDERED, found, trail)

        trail.append(VerifyState.RENDER_FAILED)
        self.progress.emit("verification", "failed")
        return self._done(False, origin, VerificationPath.RENDERED, found, trail)

    async def _render(self, origin: ResolvedOrigin) -> str:
        self.progress.emit("verification", "launching")
        try:
            async with self.session_factory(self.config) as session:
                self.progress.emit("verification", "fetching")
                try:
                    result = await session.navigate(with_cache_buster(origin.url))
                except Exception as exc:
                    logger.warning("Direct navigation failed (%s), retrying without query params", exc)
                    result = await session.navigate(origin.url)
                if result is None:
                    raise RenderFailure("HTTP FAILED", connection_level=True)
                if not result.ok:
                    raise RenderFailure(f"HTTP {result.status}")
                # deferred scripts may inject the tag after DOM-ready
                await asyncio.sleep(self.config.settle_delay)
                return await session.content()
        except RenderFailure:
            raise
        except (PlaywrightError, asyncio.TimeoutError, OSError) as exc:
            raise RenderFailure(
                str(exc) or type(exc).__name__, connection_level=_is_connection_error(exc)
            ) from exc

    async def _fallback(
        self, origin: ResolvedOrigin, expected: str, trail: List[VerifyState]
    ) -> VerificationOutcome:
        trail.append(VerifyState.FALLBACK_ATTEMPTED)
        self.progress.emit("verification", "fallback")
        logger.info("Trying plain HTTP fallback verification for %s", origin.url)
        found: Optional[str] = None
        try:
            try:
                page = await self.fetcher.get(origin.url, timeout=self.config.fallback_timeout)
            except (ClientError, asyncio.TimeoutError) as exc:
                raise FallbackFailure(str(exc) or type(exc).__name__) from exc
            if not page.ok:
                raise FallbackFailure(f"HTTP {page.status}")
            found = find_verification_token(page.content, self.config.verify_tag)
            if not _token_matches(found, expected):
                raise FallbackFailure("verification tag missing or mismatched")
        except FallbackFailure as exc:
            logger.warning("Fallback verification failed: %s", exc)
            trail.append(VerifyState.FALLBACK_FAILED)
            self.progress.emit("verification", "error")
            return self._done(False, origin, VerificationPath.FALLBACK, found, trail)

        logger.info("Verification successful via fallback")
        trail.append(VerifyState.FALLBACK_VERIFIED)
        self.progress.emit("verification", "success")
        return self._done(True, origin, VerificationPath.FALLBACK, found, trail)

    @staticmethod
    def _done(
        verified: bool,
        origin: ResolvedOrigin,
        path: VerificationPath,
        found: Optional[str],
        trail: List[VerifyState],
    ) -> VerificationOutcome:
        trail.append(VerifyState.DONE)
        return VerificationOutcome(verified, origin, path, found, tuple(trail))
