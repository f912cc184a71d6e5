"""
Value types for progress tracking.

Samples are values: a weigh-in or a tape measurement never changes once
logged. New entries extend the set; statistics are recomputed from it.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Optional, Union


class WeightUnit(Enum):
    KG = "kg"
    LB = "lb"


class LengthUnit(Enum):
    CM = "cm"
    IN = "in"


class ProgressKind(Enum):
    """What a logged progress entry measures."""
    WEIGHT = "weight"
    MEASUREMENT = "measurement"
    STRENGTH = "strength"
    HABIT = "habit"
    PHOTO = "photo"


When = Union[date, datetime]


def as_datetime(when: When) -> datetime:
    """Calendar dates count as local midnight."""
    if isinstance(when, datetime):
        return when
    return datetime.combine(when, time.min)


@dataclass(frozen=True)
class Sample:
    """A single numeric reading: body weight, a measurement, a habit count."""
    value: float
    timestamp: When
    note: Optional[str] = None

    @property
    def moment(self) -> datetime:
        return as_datetime(self.timestamp)


@dataclass(frozen=True)
class StrengthSet:
    """One working set of a lift."""
    weight: float
    reps: int
    timestamp: Optional[When] = None


@dataclass(frozen=True)
class ProgressSummary:
    """
    Dashboard statistics for one series of samples.

    Optional fields are None when the series is too short to say
    anything; trend_per_week is 0.0 in that case.
    """
    count: int
    start: Optional[float]
    latest: Optional[float]
    change: Optional[float]
    median: Optional[float]
    average_7d: Optional[float]
    average_30d: Optional[float]
    trend_per_week: float
    goal: Optional[float] = None
    goal_progress: Optional[float] = None
