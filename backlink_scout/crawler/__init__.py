"""backlink_scout.crawler: HTTP fetching, link extraction and shared data models."""

from .fetcher import Fetcher, open_session
from .link_extractor import extract_external_links, extract_internal_links
from .models import (
    BacklinkRecord,
    BacklinkStatus,
    Classification,
    InternalLinkRecord,
    LinkStatus,
    PageData,
    ResolvedOrigin,
    TIMEOUT_MARKER,
)

__all__ = [
    "Fetcher",
    "open_session",
    "extract_external_links",
    "extract_internal_links",
    "BacklinkRecord",
    "BacklinkStatus",
    "Classification",
    "InternalLinkRecord",
    "LinkStatus",
    "PageData",
    "ResolvedOrigin",
    "TIMEOUT_MARKER",
]
