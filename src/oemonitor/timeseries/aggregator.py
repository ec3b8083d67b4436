"""
MetricsTimeSeriesAggregator - bounded metric histories for charting.

The aggregator receives one Sample per poll tick from the polling collaborator
and keeps a bounded History per SeriesKey. Readers get two derived views of a
history: the gauge series (values as sampled) and the rate series (non-negative
deltas between consecutive counter values).

The aggregator performs no I/O, holds no locks and never raises on malformed
values: callers run ``ingest`` sequentially from one poller and may read from
any number of renderers between polls.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from oemonitor.models.keys import SeriesKey, SeriesKeyLike
from oemonitor.models.series import Point, Sample
from oemonitor.timeseries.derive import gauge_points, mean_interval, rate_points
from oemonitor.timeseries.history import History, Observation

__all__ = ["DEFAULT_CAPACITY", "DEFAULT_INTERVAL_MS", "MetricsTimeSeriesAggregator"]

DEFAULT_CAPACITY = 500
DEFAULT_INTERVAL_MS = 10_000

_MISSING = object()


def _as_observation(value: Any) -> float | None:
    if value is _MISSING or value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class MetricsTimeSeriesAggregator:
    """Per-key bounded histories with gauge and rate views.

    Keys move from unseen to tracked on their first ingest and back to unseen
    only through ``reset``.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        default_interval_ms: float = DEFAULT_INTERVAL_MS,
        scope_id: str | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            capacity: Maximum number of points kept per series key
            default_interval_ms: Interval reported while a key has too few points
            scope_id: Application or agent currently being monitored
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._default_interval_ms = default_interval_ms
        self._scope_id = scope_id
        self._histories: dict[SeriesKey, History] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def scope_id(self) -> str | None:
        return self._scope_id

    @property
    def default_interval_ms(self) -> float:
        return self._default_interval_ms

    @default_interval_ms.setter
    def default_interval_ms(self, value: float) -> None:
        self._default_interval_ms = value

    def ingest(self, sample: Sample, keys: Iterable[SeriesKeyLike] | None = None) -> None:
        """Append one point per key for this poll tick.

        Every key present in the sample is appended, onboarding new keys.
        Expected keys absent from the sample are appended as polls without a
        usable value, provided they are already tracked; unseen keys are never
        materialized that way. Non-numeric values are kept as polls without a
        usable value.

        Args:
            sample: Polling snapshot
            keys: Keys the caller expected at this tick. None expects every
                tracked key, so a metric missing from this sample leaves a gap.
        """
        observed = sample.observations()
        expected: dict[SeriesKey, None] = dict.fromkeys(observed)
        if keys is None:
            expected.update(dict.fromkeys(self._histories))
        else:
            for key in keys:
                try:
                    expected.setdefault(SeriesKey.of(key), None)
                except ValueError:
                    # An unusable name can never be tracked
                    continue

        for key in expected:
            value = observed.get(key, _MISSING)
            history = self._histories.get(key)
            if history is None:
                if value is _MISSING:
                    continue
                history = History(self._capacity)
                self._histories[key] = history
            history.append(sample.timestamp, _as_observation(value))

    def _lookup(self, key: SeriesKeyLike) -> History | None:
        try:
            return self._histories.get(SeriesKey.of(key))
        except ValueError:
            # A name that cannot be a key was never ingested
            return None

    def observations(self, key: SeriesKeyLike) -> tuple[Observation, ...]:
        """Raw observations of a key, including polls without a usable value."""
        history = self._lookup(key)
        return history.snapshot() if history is not None else ()

    def gauge_series(self, key: SeriesKeyLike) -> list[Point]:
        """Sampled values of a key, oldest first. Empty for an unseen key."""
        return gauge_points(self.observations(key))

    def rate_series(self, key: SeriesKeyLike) -> list[Point]:
        """Non-negative deltas of a cumulative counter, oldest first. Empty for an unseen key."""
        return rate_points(self.observations(key))

    def inferred_interval_millis(self, key: SeriesKeyLike | None = None, default: float | None = None) -> float:
        """Mean gap between consecutive polls.

        Args:
            key: Series key to inspect. None pools every tracked key, the way a
                chart spanning many lines sizes its axis.
            default: Value returned while fewer than two points are available;
                falls back to the configured poll interval.

        Returns:
            Interval in milliseconds
        """
        fallback = self._default_interval_ms if default is None else default
        if key is not None:
            interval = mean_interval([obs.timestamp for obs in self.observations(key)])
            return fallback if interval is None else interval

        total_span = 0
        total_gaps = 0
        for history in self._histories.values():
            if len(history) < 2:
                continue
            entries = history.snapshot()
            total_span += entries[-1].timestamp - entries[0].timestamp
            total_gaps += len(entries) - 1
        if total_gaps == 0:
            return fallback
        return total_span / total_gaps

    def reset(self, scope_id: str | None = None) -> None:
        """Discard every history and start monitoring ``scope_id``."""
        self._histories.clear()
        self._scope_id = scope_id

    def keys(self, metric: str | None = None) -> list[SeriesKey]:
        """Tracked keys in onboarding order, optionally limited to one metric."""
        if metric is None:
            return list(self._histories)
        return [key for key in self._histories if key.metric == metric]

    def latest(self, key: SeriesKeyLike) -> Observation | None:
        history = self._lookup(key)
        return history.latest() if history is not None else None

    def latest_timestamp(self) -> int | None:
        """Timestamp of the newest point across all keys."""
        newest = [h.latest() for h in self._histories.values()]
        stamps = [obs.timestamp for obs in newest if obs is not None]
        return max(stamps) if stamps else None

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (SeriesKey, str)):
            return False
        return self._lookup(key) is not None

    def __len__(self) -> int:
        return len(self._histories)
