"""
Unit tests for progress statistics and unit conversion.

Everything here is pure, so tests pass explicit `now` values instead of
freezing the clock.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from coachdesk.core.progress import (
    LengthUnit,
    Sample,
    StrengthSet,
    WeightUnit,
    best_estimated_1rm,
    convert_length,
    convert_weight,
    epley_1rm,
    goal_progress,
    goal_progress_for,
    linear_trend_per_week,
    median,
    parse_weight_unit,
    samples_in_window,
    summarize,
    to_kg,
    to_lb,
    window_average,
    window_start,
)


def series(*pairs) -> list[Sample]:
    return [Sample(value=v, timestamp=t) for v, t in pairs]


# ---------------------------------------------------------------------------
# Basic statistics
# ---------------------------------------------------------------------------

class TestMedian:

    def test_empty_is_none(self):
        assert median([]) is None

    def test_odd_count(self):
        assert median([1, 3, 2]) == 2

    def test_even_count_averages_middle_pair(self):
        assert median([1, 2, 3, 4]) == 2.5

    def test_single_value(self):
        assert median([80.4]) == 80.4


class TestTrend:
    """Least-squares slope, reported per week."""

    def test_fewer_than_two_points_is_flat(self):
        assert linear_trend_per_week([]) == 0.0
        assert linear_trend_per_week(series((80, date(2025, 1, 1)))) == 0.0

    def test_one_kg_over_one_week(self):
        samples = series((81, date(2025, 1, 1)), (80, date(2025, 1, 8)))
        assert linear_trend_per_week(samples) == pytest.approx(-1.0)

    def test_input_order_does_not_matter(self):
        samples = series((80, date(2025, 1, 8)), (81, date(2025, 1, 1)))
        assert linear_trend_per_week(samples) == pytest.approx(-1.0)

    def test_same_instant_is_flat(self):
        moment = datetime(2025, 1, 1, 7, 0)
        assert linear_trend_per_week(series((80, moment), (82, moment))) == 0.0

    def test_steady_gain(self):
        start = date(2025, 3, 1)
        samples = series(*[(60 + 0.1 * d, start + timedelta(days=d)) for d in range(28)])
        assert linear_trend_per_week(samples) == pytest.approx(0.7)

    def test_wall_clock_week_across_dst_change(self):
        # Naive datetimes are wall-clock; one calendar week is one week
        samples = series(
            (70, datetime(2025, 3, 27, 8, 0)),
            (71, datetime(2025, 4, 3, 8, 0)),
        )
        assert linear_trend_per_week(samples) == pytest.approx(1.0)

    def test_date_mixed_with_aware_datetime(self):
        samples = series(
            (80, date(2025, 6, 1)),
            (79, datetime(2025, 6, 8, tzinfo=timezone.utc)),
        )
        assert linear_trend_per_week(samples) == pytest.approx(-1.0)

    def test_naive_datetime_read_in_the_aware_zone(self):
        tz = timezone(timedelta(hours=2))
        samples = series(
            (79, datetime(2025, 6, 8, 7, 0, tzinfo=tz)),
            (80, datetime(2025, 6, 1, 7, 0)),
        )
        assert linear_trend_per_week(samples) == pytest.approx(-1.0)


# ---------------------------------------------------------------------------
# Rolling windows
# ---------------------------------------------------------------------------

class TestWindows:
    """"Last N days" means today plus the N - 1 days before it."""

    NOW = datetime(2025, 6, 10, 18, 30)

    def test_window_starts_at_local_midnight(self):
        assert window_start(7, self.NOW) == datetime(2025, 6, 4, 0, 0)
        assert window_start(1, self.NOW) == datetime(2025, 6, 10, 0, 0)

    def test_boundaries_are_inclusive(self):
        samples = series(
            (1, datetime(2025, 6, 3, 23, 59)),   # day before window
            (2, datetime(2025, 6, 4, 0, 0)),     # first instant
            (3, self.NOW),                       # exactly now
            (4, datetime(2025, 6, 10, 19, 0)),   # later today, after now
        )
        assert [s.value for s in samples_in_window(samples, 7, self.NOW)] == [2, 3]

    def test_dates_count_as_midnight(self):
        samples = series((5, date(2025, 6, 4)), (6, date(2025, 6, 3)))
        assert [s.value for s in samples_in_window(samples, 7, self.NOW)] == [5]

    def test_non_positive_window_is_empty(self):
        samples = series((5, date(2025, 6, 10)))
        assert samples_in_window(samples, 0, self.NOW) == []
        assert samples_in_window(samples, -3, self.NOW) == []

    def test_window_average(self):
        samples = series(
            (80, date(2025, 5, 1)),
            (79, date(2025, 6, 8)),
            (78, date(2025, 6, 10)),
        )
        assert window_average(samples, 7, self.NOW) == pytest.approx(78.5)
        assert window_average(samples, 30, self.NOW) == pytest.approx(78.5)
        assert window_average(samples, 60, self.NOW) == pytest.approx(79.0)

    def test_empty_window_average_is_none(self):
        assert window_average(series((80, date(2025, 1, 1))), 7, self.NOW) is None

    def test_timezone_aware_samples(self):
        tz = timezone(timedelta(hours=2))
        now = datetime(2025, 6, 10, 12, 0, tzinfo=tz)
        samples = series(
            (1, datetime(2025, 6, 4, 0, 0, tzinfo=tz)),
            (2, datetime(2025, 6, 3, 23, 0, tzinfo=tz)),
        )
        assert [s.value for s in samples_in_window(samples, 7, now)] == [1]

    def test_aware_now_with_date_samples(self):
        tz = timezone(timedelta(hours=2))
        now = datetime(2025, 6, 10, 12, 0, tzinfo=tz)
        samples = series((80, date(2025, 6, 9)), (81, date(2025, 6, 3)))
        assert [s.value for s in samples_in_window(samples, 7, now)] == [80]

    def test_naive_now_with_aware_samples(self):
        tz = timezone(timedelta(hours=2))
        samples = series(
            (1, datetime(2025, 6, 10, 11, 0, tzinfo=tz)),
            (2, datetime(2025, 6, 10, 13, 0, tzinfo=tz)),
        )
        now = datetime(2025, 6, 10, 12, 0)
        assert [s.value for s in samples_in_window(samples, 1, now)] == [1]


# ---------------------------------------------------------------------------
# Goals and strength
# ---------------------------------------------------------------------------

class TestGoalProgress:

    def test_halfway(self):
        assert goal_progress(90, 85, 80) == pytest.approx(50.0)

    def test_clamped_to_hundred(self):
        assert goal_progress(90, 75, 80) == 100.0

    def test_moving_away_still_counts_distance(self):
        # Progress measures distance moved, not direction
        assert goal_progress(90, 92, 80) == pytest.approx(20.0)

    def test_start_equal_to_goal_is_finite(self):
        result = goal_progress(80, 80.5, 80)
        assert result == pytest.approx(50.0)
        assert goal_progress(80, 80, 80) == 0.0

    def test_from_samples_uses_first_and_last_by_time(self):
        samples = series((85, date(2025, 1, 15)), (90, date(2025, 1, 1)))
        assert goal_progress_for(samples, 80) == pytest.approx(50.0)

    def test_from_no_samples_is_none(self):
        assert goal_progress_for([], 80) is None


class TestOneRepMax:

    def test_epley(self):
        assert epley_1rm(100, 5) == pytest.approx(116.6667, rel=1e-4)

    def test_reps_clamped_high(self):
        assert epley_1rm(100, 40) == epley_1rm(100, 30)

    def test_reps_clamped_low(self):
        assert epley_1rm(100, 0) == epley_1rm(100, 1)

    def test_best_of_sets(self):
        sets = [StrengthSet(100, 5), StrengthSet(110, 1), StrengthSet(90, 10)]
        assert best_estimated_1rm(sets) == pytest.approx(120.0)

    def test_no_sets(self):
        assert best_estimated_1rm([]) is None


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

class TestUnits:

    @pytest.mark.parametrize("x", [0.0, 1.0, 154.3, 400.25])
    def test_pound_round_trip(self, x):
        assert to_lb(to_kg(x, "lb")) == pytest.approx(x)

    def test_known_conversions(self):
        assert to_kg(1, WeightUnit.LB) == pytest.approx(0.45359237)
        assert convert_weight(100, "kg", "lb") == pytest.approx(220.462, rel=1e-5)
        assert convert_length(10, LengthUnit.IN, LengthUnit.CM) == pytest.approx(25.4)
        assert convert_length(25.4, "cm", "in") == pytest.approx(10.0)

    def test_same_unit_is_identity(self):
        assert convert_weight(72.5, "kg", "kg") == 72.5

    def test_unit_parsing_is_case_insensitive(self):
        assert parse_weight_unit(" LB ") is WeightUnit.LB

    def test_unknown_unit_raises(self):
        with pytest.raises(ValueError):
            to_kg(10, "stone")


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

class TestSummarize:

    NOW = datetime(2025, 6, 10, 20, 0)

    def test_empty_series(self):
        summary = summarize([], goal=70, now=self.NOW)
        assert summary.count == 0
        assert summary.start is None
        assert summary.latest is None
        assert summary.change is None
        assert summary.median is None
        assert summary.average_7d is None
        assert summary.trend_per_week == 0.0
        assert summary.goal == 70
        assert summary.goal_progress is None

    def test_full_summary(self):
        samples = series(
            (80, date(2025, 6, 3)),
            (78, date(2025, 6, 10)),
            (79, date(2025, 6, 6)),
        )
        summary = summarize(samples, goal=76, now=self.NOW)
        assert summary.count == 3
        assert summary.start == 80
        assert summary.latest == 78
        assert summary.change == -2
        assert summary.median == 79
        assert summary.average_7d == pytest.approx(78.5)
        assert summary.average_30d == pytest.approx(79.0)
        # Days 0, 3, 7 against 80, 79, 78: slope -21/74 per day
        assert summary.trend_per_week == pytest.approx(-147 / 74)
        assert summary.goal_progress == pytest.approx(50.0)

    def test_mixed_timestamps_share_one_clock(self):
        tz = timezone(timedelta(hours=2))
        samples = series(
            (78, datetime(2025, 6, 2, 23, 30, tzinfo=timezone.utc)),  # 6-3 01:30 at +02
            (80, date(2025, 6, 3)),                                   # 6-3 00:00 at +02
            (79, datetime(2025, 6, 6, 9, 0)),
        )
        summary = summarize(samples, goal=76, now=datetime(2025, 6, 10, 20, 0, tzinfo=tz))
        assert summary.count == 3
        assert summary.start == 80
        assert summary.latest == 79
        assert summary.average_7d == pytest.approx(79.0)
        assert summary.goal_progress == pytest.approx(25.0)

    def test_no_goal(self):
        summary = summarize(series((80, date(2025, 6, 10))), now=self.NOW)
        assert summary.goal is None
        assert summary.goal_progress is None
