# File: backlink_scout/progress.py
"""backlink_scout.progress: delivery of ``(stage, payload)`` progress events to a caller sink."""

from __future__ import annotations

from typing import Any, Callable, Optional

from backlink_scout.logger import logger

ProgressSink = Callable[[str, Any], None]


class ProgressReporter:
    """Wraps an optional caller sink.

    The sink runs inline; an exception raised by it is logged and dropped so
    that UI feedback can never break a crawl.
    """

    def __init__(self, sink: Optional[ProgressSink] = None) -> None:
        self._sink = sink

    def emit(self, stage: str, payload: Any = None) -> None:
        logger.debug("Progress: %s %s", stage, payload if not hasattr(payload, "to_dict") else "")
        if self._sink is None:
            return
        try:
            self._sink(stage, payload)
        except Exception as exc:
            logger.warning("Progress sink failed on %r: %s", stage, exc)


__all__ = ["ProgressSink", "ProgressReporter"]
