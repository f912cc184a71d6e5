"""
Progress statistics for the trainee dashboard.

Every function here is pure and total over finite numbers. Where there is
not enough data to say anything, we return a sentinel (None, or a flat 0.0
trend) instead of raising, because "no data yet" is the normal state for a
new trainee, not an error. Callers must drop NaN/infinite readings first.

Samples may arrive in any order. Anything that depends on time sorts the
working set by timestamp first.

Timestamps may be dates, naive datetimes or aware datetimes, mixed freely.
When everything is naive we compare on the wall clock. Once anything is
aware, dates and naive datetimes are read as wall time in that zone (the
zone of an aware `now` wins), so one calculation always uses one clock.
"""

from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional, Sequence

from .models import ProgressSummary, Sample, StrengthSet


MS_PER_DAY = 24 * 60 * 60 * 1000
MS_PER_WEEK = 7 * MS_PER_DAY

EPLEY_MIN_REPS = 1
EPLEY_MAX_REPS = 30

_NAIVE_EPOCH = datetime(1970, 1, 1)
_AWARE_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _clock(samples: Sequence[Sample], now: Optional[datetime] = None) -> Optional[tzinfo]:
    """
    The zone every moment in one calculation is compared in.

    None when everything is naive, so the wall clock is used throughout.
    Otherwise the zone of an aware `now`, or of the first aware sample.
    """
    if now is not None and now.tzinfo is not None:
        return now.tzinfo
    for sample in samples:
        if sample.moment.tzinfo is not None:
            return sample.moment.tzinfo
    return None


def _on_clock(moment: datetime, zone: Optional[tzinfo]) -> datetime:
    # Dates and naive datetimes are wall time in `zone`
    if zone is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=zone)


def sort_samples(samples: Iterable[Sample]) -> list[Sample]:
    """Oldest first. Never trust insertion order."""
    samples = list(samples)
    zone = _clock(samples)
    return sorted(samples, key=lambda s: _on_clock(s.moment, zone))


def to_millis(moment: datetime) -> float:
    """
    Milliseconds since the epoch.

    Naive datetimes are measured on the wall clock so that two readings
    seven calendar days apart are exactly one week apart, DST or not.
    """
    epoch = _NAIVE_EPOCH if moment.tzinfo is None else _AWARE_EPOCH
    return (moment - epoch).total_seconds() * 1000


# ---------------------------------------------------------------------------
# Basic statistics
# ---------------------------------------------------------------------------

def median(values: Iterable[float]) -> Optional[float]:
    """Middle value, or the mean of the two middle values. None when empty."""
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return None
    mid = n // 2
    if n % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def mean(values: Iterable[float]) -> Optional[float]:
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


def linear_trend_per_week(samples: Iterable[Sample]) -> float:
    """
    Least-squares slope of value over time, in units per week.

    Fewer than two samples (or all at the same instant) give a flat 0.0.
    """
    points = sort_samples(samples)
    if len(points) < 2:
        return 0.0

    zone = _clock(points)
    origin = to_millis(_on_clock(points[0].moment, zone))
    xs = [to_millis(_on_clock(p.moment, zone)) - origin for p in points]
    ys = [p.value for p in points]

    x_mean = sum(xs) / len(xs)
    y_mean = sum(ys) / len(ys)

    denominator = sum((x - x_mean) ** 2 for x in xs)
    if denominator == 0:
        return 0.0

    numerator = sum((x - x_mean) * (y - y_mean) for x, y in zip(xs, ys))
    return numerator / denominator * MS_PER_WEEK


# ---------------------------------------------------------------------------
# Rolling windows
# ---------------------------------------------------------------------------

def window_start(days: int, now: datetime) -> datetime:
    """Local midnight (days - 1) calendar days before `now`."""
    first_day = now.date() - timedelta(days=days - 1)
    return datetime.combine(first_day, time.min, tzinfo=now.tzinfo)


def _default_now(samples: Sequence[Sample]) -> datetime:
    for sample in samples:
        if sample.moment.tzinfo is not None:
            return datetime.now(sample.moment.tzinfo)
    return datetime.now()


def samples_in_window(
    samples: Iterable[Sample],
    days: int,
    now: Optional[datetime] = None,
) -> list[Sample]:
    """
    Samples from the last `days` calendar days, oldest first.

    "Last 7 days" means today plus the six days before it, starting at
    local midnight, up to and including `now`.
    """
    if days < 1:
        return []
    points = sort_samples(samples)
    zone = _clock(points, now)
    if now is None:
        now = _default_now(points)
    now = _on_clock(now, zone)
    start = window_start(days, now)
    return [p for p in points if start <= _on_clock(p.moment, zone) <= now]


def window_average(
    samples: Iterable[Sample],
    days: int,
    now: Optional[datetime] = None,
) -> Optional[float]:
    return mean(p.value for p in samples_in_window(samples, days, now))


# ---------------------------------------------------------------------------
# Goals and strength
# ---------------------------------------------------------------------------

def goal_progress(start: float, current: float, goal: float) -> float:
    """
    Percentage of the way from `start` to `goal`, clamped to 0-100.

    When start already equals the goal the distance is taken as 1 so the
    result stays finite.
    """
    distance = abs(start - goal) or 1
    return clamp(abs(start - current) / distance, 0, 1) * 100


def goal_progress_for(samples: Iterable[Sample], goal: float) -> Optional[float]:
    """Goal progress from the earliest sample to the latest one."""
    points = sort_samples(samples)
    if not points:
        return None
    return goal_progress(points[0].value, points[-1].value, goal)


def epley_1rm(weight: float, reps: float) -> float:
    """Estimated one-rep max. Reps are clamped into [1, 30]."""
    reps = clamp(reps, EPLEY_MIN_REPS, EPLEY_MAX_REPS)
    return weight * (1 + reps / 30)


def best_estimated_1rm(sets: Iterable[StrengthSet]) -> Optional[float]:
    estimates = [epley_1rm(s.weight, s.reps) for s in sets]
    if not estimates:
        return None
    return max(estimates)


# ---------------------------------------------------------------------------
# Dashboard summary
# ---------------------------------------------------------------------------

def summarize(
    samples: Iterable[Sample],
    goal: Optional[float] = None,
    now: Optional[datetime] = None,
) -> ProgressSummary:
    """Everything the progress card shows for one series."""
    points = sort_samples(samples)
    if now is None:
        now = _default_now(points)

    start = points[0].value if points else None
    latest = points[-1].value if points else None

    return ProgressSummary(
        count=len(points),
        start=start,
        latest=latest,
        change=latest - start if points else None,
        median=median(p.value for p in points),
        average_7d=window_average(points, 7, now),
        average_30d=window_average(points, 30, now),
        trend_per_week=linear_trend_per_week(points),
        goal=goal,
        goal_progress=goal_progress_for(points, goal) if goal is not None else None,
    )
