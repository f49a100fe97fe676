"""Run metrics for merges, scoring and insight mining.

Timers keep running aggregates rather than every sample, so the auto-sync
daemon can hold one collector for its whole lifetime.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


@dataclass
class _TimerStats:
    count: int = 0
    total: float = 0.0
    max: float = 0.0

    def add(self, duration: float) -> None:
        self.count += 1
        self.total += duration
        self.max = max(self.max, duration)

    def as_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "total": round(self.total, 6),
            "avg": round(self.total / self.count, 6),
            "max": round(self.max, 6),
        }


class Metrics:
    """Named counters (merge_runs, conflicts_detected, ...) and timers."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._timers: dict[str, _TimerStats] = {}

    def counter(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def count(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Time the enclosed block, recording it even when the block raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._timers.setdefault(name, _TimerStats()).add(time.perf_counter() - start)

    @property
    def empty(self) -> bool:
        return not self._counters and not self._timers

    def summary(self) -> dict[str, Any]:
        return {
            "counters": dict(self._counters),
            "timers": {name: stats.as_dict() for name, stats in self._timers.items()},
        }

    def reset(self):
        self._counters.clear()
        self._timers.clear()


metrics = Metrics()


def log_run_summary():
    """Log what this run recorded; commands that touched no engine log nothing."""
    if metrics.empty:
        return
    logger.info("run_summary", **metrics.summary())
