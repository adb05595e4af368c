"""Tests for dayparts module."""

from __future__ import annotations

import pytest
from conftest import make_tx

from tma_insights.config import Config
from tma_insights.dayparts import (
    DAYPART_ORDER,
    DaypartBucket,
    classify_daypart_by_hour,
    classify_dayparts,
    score_tone_from_abs_diff,
)
from tma_insights.models import DatasetSnapshot


class TestClassifyDaypartByHour:
    """Tests for the hour -> daypart mapping."""

    @pytest.mark.parametrize(
        ("hour", "expected"),
        [
            (0, "night"),
            (5, "night"),
            (6, "morning"),
            (11, "morning"),
            (12, "afternoon"),
            (17, "afternoon"),
            (18, "evening"),
            (23, "evening"),
            (None, "unknown"),
        ],
    )
    def test_boundaries(self, hour: int | None, expected: str) -> None:
        """Bucket ranges are half-open: the boundary hour belongs to the later bucket."""
        assert classify_daypart_by_hour(hour) == expected


class TestScoreTone:
    """Tests for tone scoring."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "good"), (60, "good"), (61, "warn"), (180, "warn"), (181, "bad"), (-200, "bad")],
    )
    def test_thresholds(self, seconds: float, expected: str) -> None:
        assert score_tone_from_abs_diff(seconds) == expected


class TestDaypartBucket:
    """Tests for bucket accumulation."""

    def test_add_accumulates(self) -> None:
        bucket = DaypartBucket("morning")
        bucket.add(make_tx(-30, time_spent=570))
        bucket.add(make_tx(90, time_spent=690))
        bucket.add(make_tx(None, time_spent=600))

        assert bucket.count == 3
        assert bucket.sum_spent == 1860
        assert bucket.sum_diff == 60
        assert bucket.under_count == 2
        assert bucket.avg_spent == 620
        assert bucket.avg_diff == 20
        assert bucket.pct_under == 67
        assert bucket.tone == "good"

    def test_labels(self) -> None:
        bucket = DaypartBucket("night")

        assert bucket.label == "Madrugada"
        assert bucket.range_label == "00–06"

    def test_empty_bucket_averages_are_zero(self) -> None:
        bucket = DaypartBucket("evening")

        assert bucket.avg_spent == 0
        assert bucket.avg_diff == 0
        assert bucket.pct_under == 0

    def test_to_dict(self) -> None:
        bucket = DaypartBucket("afternoon")
        bucket.add(make_tx(200, time_spent=800))

        data = bucket.to_dict()

        assert data["label"] == "Tarde"
        assert data["range"] == "12–18"
        assert data["tone"] == "bad"
        assert data["pctUnder"] == 0


class TestClassifyDayparts:
    """Tests for classify_dayparts()."""

    def test_buckets_in_display_order(self) -> None:
        """Verifies only non-empty buckets appear, in morning..unknown order.

        Business context:
        The report table reads top to bottom like a day. Empty periods are
        noise and are left out.

        Arrangement:
        Transactions at 21:00, 03:00, 09:00 and one without a timestamp,
        listed in that (non-chronological) order.

        Action:
        Classify the transactions.

        Assertion Strategy:
        Validates bucket keys follow DAYPART_ORDER and skip afternoon.
        """
        summary = classify_dayparts(
            [
                make_tx(0, timestamp="2026-10-17T21:00:00"),
                make_tx(0, timestamp="2026-10-17T03:00:00"),
                make_tx(0, timestamp="2026-10-17T09:00:00"),
                make_tx(0, timestamp="not a date"),
            ]
        )

        assert [b.key for b in summary.buckets] == ["morning", "evening", "night", "unknown"]

    def test_counts_sum_to_transaction_count(self, sample_snapshot: DatasetSnapshot) -> None:
        summary = classify_dayparts(sample_snapshot.transactions)

        assert summary.total_count == len(sample_snapshot.transactions)
        assert sum(b.count for b in summary.buckets) == 5

    def test_unparseable_timestamps_go_to_unknown(self) -> None:
        summary = classify_dayparts([make_tx(0, timestamp=""), make_tx(0, timestamp="???")])

        assert [b.key for b in summary.buckets] == ["unknown"]
        assert summary.buckets[0].count == 2
        assert not summary.has_contrast

    def test_best_and_worst_by_average_time_spent(self) -> None:
        summary = classify_dayparts(
            [
                make_tx(0, time_spent=300, timestamp="2026-10-17T09:00:00"),
                make_tx(0, time_spent=900, timestamp="2026-10-17T14:00:00"),
                make_tx(0, time_spent=600, timestamp="2026-10-17T19:00:00"),
            ]
        )

        assert summary.has_contrast
        assert summary.best is not None and summary.best.key == "morning"
        assert summary.worst is not None and summary.worst.key == "afternoon"
        assert summary.to_dict()["best"] == "morning"
        assert summary.to_dict()["worst"] == "afternoon"

    def test_ties_keep_earlier_bucket(self) -> None:
        summary = classify_dayparts(
            [
                make_tx(0, time_spent=600, timestamp="2026-10-17T09:00:00"),
                make_tx(0, time_spent=600, timestamp="2026-10-17T14:00:00"),
            ]
        )

        assert summary.best is not None and summary.best.key == "morning"
        assert summary.worst is not None and summary.worst.key == "morning"
        assert not summary.has_contrast
        assert summary.to_dict()["best"] is None

    def test_single_bucket_has_no_contrast(self) -> None:
        summary = classify_dayparts([make_tx(0, timestamp="2026-10-17T09:00:00")])
        assert not summary.has_contrast

    def test_empty_input(self) -> None:
        summary = classify_dayparts([])

        assert summary.is_empty
        assert summary.best is None
        assert summary.to_dict() == {"buckets": [], "best": None, "worst": None}

    def test_aware_timestamps_use_report_timezone(self) -> None:
        """Verifies aware timestamps are bucketed by the configured zone's hour."""
        Config.set_test_overrides(timezone="America/Sao_Paulo")

        # 14:00Z is 11:00 in Sao Paulo
        summary = classify_dayparts([make_tx(0, timestamp="2026-10-17T14:00:00Z")])

        assert summary.buckets[0].key == "morning"

    def test_timestamps_beyond_datetime_range_go_to_unknown(self) -> None:
        Config.set_test_overrides(timezone="America/Sao_Paulo")

        summary = classify_dayparts(
            [
                make_tx(0, timestamp="0001-01-01T00:00:00Z"),
                make_tx(0, timestamp="9999-12-31T23:00:00-05:00"),
            ]
        )

        assert [b.key for b in summary.buckets] == ["unknown"]
        assert summary.buckets[0].count == 2

    def test_order_constant(self) -> None:
        assert DAYPART_ORDER == ("morning", "afternoon", "evening", "night", "unknown")
