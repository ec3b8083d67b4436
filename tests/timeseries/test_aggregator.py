"""Tests for MetricsTimeSeriesAggregator."""

from __future__ import annotations

import logging

import pytest

from oemonitor.models import EntityKey, Point, Sample, SeriesKey
from oemonitor.timeseries import MetricsTimeSeriesAggregator


def ingest_values(aggregator: MetricsTimeSeriesAggregator, metric: str, values: list, start: int = 0, step: int = 1000) -> None:
    """Ingest one scalar value per tick."""
    for i, value in enumerate(values):
        aggregator.ingest(Sample(timestamp=start + i * step, metrics={metric: value}))


class TestCapacity:
    """Tests for bounded histories."""

    def test_history_never_exceeds_capacity(self) -> None:
        """Test that a key never holds more than capacity points."""
        agg = MetricsTimeSeriesAggregator(capacity=5)
        for i in range(12):
            agg.ingest(Sample(timestamp=i * 1000, metrics={"requests": i}))
            assert len(agg.gauge_series("requests")) <= 5

    def test_oldest_points_are_evicted_first(self) -> None:
        """Test FIFO eviction once capacity is exceeded."""
        agg = MetricsTimeSeriesAggregator(capacity=3)
        ingest_values(agg, "requests", [1, 2, 3, 4, 5])

        series = agg.gauge_series("requests")

        assert [p.value for p in series] == [3.0, 4.0, 5.0]
        assert [p.timestamp for p in series] == [2000, 3000, 4000]

    def test_capacity_must_be_positive(self) -> None:
        """Test that a zero capacity is rejected."""
        with pytest.raises(ValueError):
            MetricsTimeSeriesAggregator(capacity=0)

    def test_capacity_applies_per_key(self) -> None:
        """Test that each key gets its own bounded history."""
        agg = MetricsTimeSeriesAggregator(capacity=2)
        for i in range(4):
            agg.ingest(Sample(timestamp=i, metrics={"reads": i, "writes": i * 2}))

        assert len(agg.gauge_series("reads")) == 2
        assert len(agg.gauge_series("writes")) == 2


class TestRateSeries:
    """Tests for rate derivation."""

    def test_monotonic_counter(self) -> None:
        """Test deltas of a monotonically increasing counter."""
        agg = MetricsTimeSeriesAggregator()
        ingest_values(agg, "requests", [10, 15, 15, 22])

        assert [p.value for p in agg.rate_series("requests")] == [0.0, 5.0, 0.0, 7.0]

    def test_rate_points_align_with_gauge_timestamps(self) -> None:
        """Test that the first rate point sits at the first gauge timestamp."""
        agg = MetricsTimeSeriesAggregator()
        ingest_values(agg, "requests", [10, 15, 15, 22], start=5000)

        rate_stamps = [p.timestamp for p in agg.rate_series("requests")]
        gauge_stamps = [p.timestamp for p in agg.gauge_series("requests")]
        assert rate_stamps == gauge_stamps

    def test_counter_reset_is_clamped(self) -> None:
        """Test that a counter going down yields 0, not a negative rate."""
        agg = MetricsTimeSeriesAggregator()
        ingest_values(agg, "requests", [100, 40])

        assert [p.value for p in agg.rate_series("requests")] == [0.0, 0.0]

    def test_rates_are_never_negative(self) -> None:
        """Test non-negativity over an erratic counter."""
        agg = MetricsTimeSeriesAggregator()
        ingest_values(agg, "reads", [5, 3, 9, 1, 1, 50, 0, 2])

        assert all(p.value >= 0 for p in agg.rate_series("reads"))

    def test_read_is_idempotent(self) -> None:
        """Test that reading twice without ingest gives identical sequences."""
        agg = MetricsTimeSeriesAggregator()
        ingest_values(agg, "writes", [1, 4, 9])

        first = agg.rate_series("writes")
        second = agg.rate_series("writes")

        assert first == second
        assert first is not second


class TestUnseenKeys:
    """Tests for reads of keys that were never ingested."""

    def test_gauge_series_of_unseen_key_is_empty(self) -> None:
        agg = MetricsTimeSeriesAggregator()
        assert agg.gauge_series("never-ingested") == []

    def test_rate_series_of_unseen_key_is_empty(self) -> None:
        agg = MetricsTimeSeriesAggregator()
        assert agg.rate_series("never-ingested") == []

    def test_unparsable_key_reads_as_unseen(self) -> None:
        """Test that a name which cannot be a key does not raise on read."""
        agg = MetricsTimeSeriesAggregator()
        assert agg.gauge_series("") == []
        assert "" not in agg


class TestReset:
    """Tests for reset()."""

    def test_reset_clears_all_keys(self) -> None:
        """Test that reset discards every history."""
        agg = MetricsTimeSeriesAggregator(scope_id="oepas1")
        entity = EntityKey(entity_id="agent1", sub_entity_id="7")
        agg.ingest(Sample(timestamp=0, metrics={"requests": 1, "reads": 2}, entities={"sessionMemory": {entity: 10}}))

        agg.reset("oepas2")

        assert agg.gauge_series("requests") == []
        assert agg.gauge_series("reads") == []
        assert agg.gauge_series(SeriesKey(metric="sessionMemory", entity=entity)) == []
        assert len(agg) == 0
        assert agg.scope_id == "oepas2"

    def test_keys_are_onboarded_again_after_reset(self) -> None:
        """Test the unseen -> tracked transition after a reset."""
        agg = MetricsTimeSeriesAggregator()
        ingest_values(agg, "requests", [1, 2])
        agg.reset()
        agg.ingest(Sample(timestamp=9000, metrics={"requests": 5}))

        assert agg.gauge_series("requests") == [Point(9000, 5.0)]


class TestInferredInterval:
    """Tests for inferred_interval_millis()."""

    def test_mean_gap(self) -> None:
        """Test the mean of consecutive gaps."""
        agg = MetricsTimeSeriesAggregator()
        for t in (0, 1000, 3000):
            agg.ingest(Sample(timestamp=t, metrics={"requests": 1}))

        assert agg.inferred_interval_millis("requests") == 1500

    def test_fallback_without_points(self) -> None:
        """Test the default for an unseen key."""
        agg = MetricsTimeSeriesAggregator(default_interval_ms=10_000)

        assert agg.inferred_interval_millis("requests") == 10_000
        assert agg.inferred_interval_millis("requests", default=2500) == 2500

    def test_fallback_with_one_point(self) -> None:
        """Test the default when a single point cannot define an interval."""
        agg = MetricsTimeSeriesAggregator(default_interval_ms=5000)
        agg.ingest(Sample(timestamp=1000, metrics={"requests": 1}))

        interval = agg.inferred_interval_millis("requests")

        assert interval == 5000
        assert interval != 0

    def test_pooled_interval_across_keys(self) -> None:
        """Test that key=None pools the gaps of every history."""
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"a": 1, "b": 1}))
        agg.ingest(Sample(timestamp=1000, metrics={"a": 1}), keys=["a"])
        agg.ingest(Sample(timestamp=4000, metrics={"a": 1, "b": 1}))

        # a: span 4000 over 2 gaps, b: span 4000 over 1 gap
        assert agg.inferred_interval_millis() == pytest.approx(8000 / 3)


class TestMissingValues:
    """Tests for polls without a usable value."""

    def test_expected_key_missing_from_sample_skips_rate_pair(self) -> None:
        """Test that a missing metric produces no rate point for its pair."""
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"requests": 10}), keys=["requests"])
        agg.ingest(Sample(timestamp=1000, metrics={}), keys=["requests"])
        agg.ingest(Sample(timestamp=2000, metrics={"requests": 14}), keys=["requests"])

        rates = agg.rate_series("requests")

        assert [p.timestamp for p in rates] == [0]
        assert [p.value for p in agg.gauge_series("requests")] == [10.0, 0.0, 14.0]

    def test_zero_observation_emits_rate_point(self) -> None:
        """Test that a real 0 is an observation, unlike a missing value."""
        agg = MetricsTimeSeriesAggregator()
        ingest_values(agg, "requests", [0, 0])

        assert agg.rate_series("requests") == [Point(0, 0.0), Point(1000, 0.0)]

    def test_tracked_key_missing_from_sample_leaves_gap(self) -> None:
        """Test that without explicit keys every tracked key is expected."""
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"requests": 10}))
        agg.ingest(Sample(timestamp=1, metrics={}))
        agg.ingest(Sample(timestamp=2, metrics={"requests": 30}))

        assert agg.rate_series("requests") == [Point(0, 0.0)]
        assert agg.gauge_series("requests") == [Point(0, 10.0), Point(1, 0.0), Point(2, 30.0)]

    def test_explicit_keys_limit_gaps(self) -> None:
        """Test that a tracked key left out of explicit keys gets no point."""
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"requests": 10, "reads": 1}))
        agg.ingest(Sample(timestamp=1000, metrics={"reads": 2}), keys=["reads"])

        assert len(agg.gauge_series("requests")) == 1
        assert len(agg.gauge_series("reads")) == 2

    def test_expected_keys_never_onboard_unseen_keys(self) -> None:
        """Test that listing a never-observed key does not create a history."""
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"requests": 1}), keys=["requests", "reads"])

        assert "reads" not in agg
        assert agg.keys() == [SeriesKey(metric="requests")]

    @pytest.mark.parametrize("value", ["n/a", None, float("nan"), float("inf"), True, {"x": 1}])
    def test_malformed_values_read_as_zero_gauge(self, value) -> None:
        """Test that malformed values never raise and read as 0."""
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"requests": value}))

        assert agg.gauge_series("requests") == [Point(0, 0.0)]
        assert agg.rate_series("requests") == []

    def test_numeric_strings_are_accepted(self) -> None:
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"requests": " 42 "}))

        assert agg.gauge_series("requests") == [Point(0, 42.0)]


class TestMetricNames:
    """Tests for unusual metric names."""

    def test_name_with_separators_is_onboarded(self) -> None:
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=0, metrics={"agent:1 memory": 5, "requests": 1}))

        assert agg.gauge_series("agent:1 memory") == [Point(0, 5.0)]
        assert agg.gauge_series("requests") == [Point(0, 1.0)]

    def test_unusable_names_are_skipped(self, oemonitor_caplog) -> None:
        """Test that an empty name drops only that value, never the tick."""
        agg = MetricsTimeSeriesAggregator()
        entity = EntityKey(entity_id="agent1", sub_entity_id="7")

        with oemonitor_caplog.at_level(logging.WARNING, logger="oemonitor.models.series"):
            agg.ingest(
                Sample(timestamp=0, metrics={"": 3, "requests": 1}, entities={"": {entity: 4}}),
                keys=["", "requests"],
            )

        assert agg.keys() == [SeriesKey(metric="requests")]
        assert "Skipping metric without a usable name" in oemonitor_caplog.text


class TestEntityKeys:
    """Tests for per-entity series."""

    def test_entity_series_are_independent(self) -> None:
        """Test that two sessions of one metric get separate histories."""
        agg = MetricsTimeSeriesAggregator()
        s7 = EntityKey(entity_id="agent1", sub_entity_id="7")
        s8 = EntityKey(entity_id="agent1", sub_entity_id="8")
        agg.ingest(Sample(timestamp=0, entities={"sessionMemory": {s7: 100, s8: 200}}))
        agg.ingest(Sample(timestamp=1000, entities={"sessionMemory": {s7: 150}}))

        assert [p.value for p in agg.gauge_series(SeriesKey(metric="sessionMemory", entity=s7))] == [100.0, 150.0]
        assert [p.value for p in agg.gauge_series(SeriesKey(metric="sessionMemory", entity=s8))] == [200.0, 0.0]
        assert agg.rate_series(SeriesKey(metric="sessionMemory", entity=s8)) == [Point(0, 0.0)]
        assert len(agg.keys("sessionMemory")) == 2

    def test_duplicate_timestamps_are_appended(self) -> None:
        agg = MetricsTimeSeriesAggregator()
        agg.ingest(Sample(timestamp=1000, metrics={"requests": 1}))
        agg.ingest(Sample(timestamp=1000, metrics={"requests": 2}))

        assert agg.gauge_series("requests") == [Point(1000, 1.0), Point(1000, 2.0)]

    def test_latest_timestamp(self) -> None:
        agg = MetricsTimeSeriesAggregator()
        assert agg.latest_timestamp() is None
        ingest_values(agg, "requests", [1, 2, 3], start=1000)

        assert agg.latest_timestamp() == 3000
        assert agg.latest("requests") is not None
