"""
Time-series data models: polling samples and chart points.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from oemonitor.models.keys import EntityKey, SeriesKey

logger = logging.getLogger(__name__)

__all__ = ["Point", "Sample"]


class Point(NamedTuple):
    """One (timestamp, value) pair. Timestamps are UNIX milliseconds."""

    timestamp: int
    value: float


@dataclass
class Sample:
    """One timestamped polling snapshot.

    `metrics` maps scalar metric names to values. `entities` maps a metric
    name to per-entity values, e.g. ``{"sessionMemory": {EntityKey(...): 1024}}``.
    Values are left as the poller received them; the aggregator decides what
    counts as an observation.
    """

    timestamp: int
    metrics: Mapping[str, Any] = field(default_factory=dict)
    entities: Mapping[str, Mapping[EntityKey, Any]] = field(default_factory=dict)

    def observations(self) -> dict[SeriesKey, Any]:
        """Flatten scalar and entity metrics into one mapping keyed by SeriesKey.

        Metric names that cannot form a key (empty or not a string) are
        skipped with a warning; the rest of the sample is kept.
        """
        flat: dict[SeriesKey, Any] = {}
        for name, value in self.metrics.items():
            if _usable_name(name):
                flat[SeriesKey(metric=name)] = value
        for metric, per_entity in self.entities.items():
            if not _usable_name(metric):
                continue
            for entity, value in per_entity.items():
                flat[SeriesKey(metric=metric, entity=entity)] = value
        return flat


def _usable_name(name: Any) -> bool:
    if isinstance(name, str) and name:
        return True
    logger.warning(f"Skipping metric without a usable name: {name!r}")
    return False
