# File: backlink_scout/aggregator.py
"""backlink_scout.aggregator: assembly of the final crawl report."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from backlink_scout.classifier import classify_source
from backlink_scout.crawler.models import BacklinkRecord, InternalLinkRecord


@dataclass(frozen=True, slots=True)
class CrawlReport:
    """Backlinks and internal link health of one verified origin. Never mutated after assembly."""

    origin: str
    backlinks: Tuple[BacklinkRecord, ...] = field(default_factory=tuple)
    internal_links: Tuple[InternalLinkRecord, ...] = field(default_factory=tuple)

    @property
    def broken_links(self) -> Tuple[InternalLinkRecord, ...]:
        return tuple(r for r in self.internal_links if r.broken)

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "externalLinks": len(self.backlinks),
            "internalLinks": len(self.internal_links),
            "brokenLinks": len(self.broken_links),
        }

    @property
    def estimated_value(self) -> int:
        return sum(b.value for b in self.backlinks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": self.origin,
            "external": [b.to_dict() for b in self.backlinks],
            "internal": [r.to_dict() for r in self.internal_links],
        }

    def json(self, *, pretty: bool = False) -> str:
        """JSON representation of the report."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def classify_sources(sources: Iterable[str]) -> Tuple[BacklinkRecord, ...]:
    """Attach category, authority and value to every discovered source URL."""
    records = []
    for source in sources:
        meta = classify_source(source)
        records.append(BacklinkRecord(source, meta.category, meta.authority, meta.value))
    return tuple(records)


def aggregate_results(
    origin: str,
    sources: Iterable[str] = (),
    internal: Iterable[InternalLinkRecord] = (),
) -> CrawlReport:
    """Build the CrawlReport from real discovery and audit data only."""
    return CrawlReport(
        origin=origin,
        backlinks=classify_sources(sources),
        internal_links=tuple(internal),
    )


__all__ = ["CrawlReport", "classify_sources", "aggregate_results"]
