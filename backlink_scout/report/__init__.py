"""backlink_scout.report: writing crawl results for the CLI and other callers."""

from __future__ import annotations

from .json_report import render_json

__all__ = ["render_json"]
