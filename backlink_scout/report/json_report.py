# backlink_scout/report/json_report.py

"""
JSON output for BacklinkScout.

Serializes a CrawlResult into a file.
"""
from __future__ import annotations

import json
from pathlib import Path

from backlink_scout.engine import CrawlResult


def render_json(result: CrawlResult, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *result* as JSON at *output_path*.

    :param result: CrawlResult returned by the engine
    :param output_path: target JSON file
    :return: Path of the written file

    Example:
    ```python
    from backlink_scout.report.json_report import render_json
    report_path = render_json(result, 'reports/example.com.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
