"""
Metrics Collector

Counts what happened during one trade: ticks seen, order updates,
placements, cancels issued and failed, API errors.
"""

from collections import Counter


class MetricsCollector:
    """Simple in-process counters, snapshotted at the end of a run."""

    def __init__(self):
        self.counters: Counter = Counter()

    def increment(self, name: str, value: int = 1):
        self.counters[name] += value

    def get(self, name: str) -> int:
        return self.counters.get(name, 0)

    def snapshot(self) -> dict:
        return dict(self.counters)
