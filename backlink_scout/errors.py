# File: backlink_scout/errors.py
"""backlink_scout.errors: exception taxonomy shared by all pipeline stages."""

from __future__ import annotations


class ScoutError(Exception):
    """Base class for every error raised by BacklinkScout."""


class InvalidInputError(ScoutError, ValueError):
    """Malformed domain or verification token. No crawl is attempted."""


class ResolutionFailure(ScoutError):
    """No origin variant answered the probe."""


class RenderFailure(ScoutError):
    """The rendering session could not inspect the page.

    ``connection_level`` is True for timeouts, DNS/connection errors and
    navigations that produced no response at all; only those trigger the
    plain HTTP fallback.
    """

    def __init__(self, message: str, *, connection_level: bool = False) -> None:
        super().__init__(message)
        self.connection_level = connection_level


class FallbackFailure(ScoutError):
    """The non-rendered fallback fetch failed."""


class UpstreamSourceFailure(ScoutError):
    """One search surface or one probe failed; always isolated to its task."""


class FatalOrchestratorError(ScoutError):
    """Unexpected failure caught at the top of the orchestrator."""


__all__ = [
    "ScoutError",
    "InvalidInputError",
    "ResolutionFailure",
    "RenderFailure",
    "FallbackFailure",
    "UpstreamSourceFailure",
    "FatalOrchestratorError",
]
