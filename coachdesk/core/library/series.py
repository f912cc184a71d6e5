"""
Turn logged progress entries into metric series.

Entries may be logged in mixed units (a trainee switching scales from lb
to kg). Series are converted to one display unit before any statistic is
computed; values keep full precision.
"""

from typing import Iterable, Optional, Union

from ..progress.models import LengthUnit, ProgressKind, Sample, StrengthSet, WeightUnit
from ..progress.units import convert_length, convert_weight
from .models import ProgressEntry


def weight_series(
    entries: Iterable[ProgressEntry],
    unit: Union[str, WeightUnit],
    default_unit: Union[str, WeightUnit] = WeightUnit.KG,
) -> list[Sample]:
    return [
        Sample(
            value=convert_weight(e.value, e.unit or default_unit, unit),
            timestamp=e.recorded_on,
            note=e.note,
        )
        for e in entries
        if e.kind is ProgressKind.WEIGHT and e.value is not None
    ]


def measurement_series(
    entries: Iterable[ProgressEntry],
    unit: Union[str, LengthUnit],
    label: Optional[str] = None,
) -> list[Sample]:
    """Measurements in `unit`, optionally only one body site (e.g. "waist")."""
    return [
        Sample(
            value=convert_length(e.value, e.unit or LengthUnit.CM, unit),
            timestamp=e.recorded_on,
            note=e.note,
        )
        for e in entries
        if e.kind is ProgressKind.MEASUREMENT
        and e.value is not None
        and (label is None or e.label == label)
    ]


def strength_sets(
    entries: Iterable[ProgressEntry],
    unit: Union[str, WeightUnit],
    label: Optional[str] = None,
    default_unit: Union[str, WeightUnit] = WeightUnit.KG,
) -> list[StrengthSet]:
    return [
        StrengthSet(
            weight=convert_weight(e.value, e.unit or default_unit, unit),
            reps=e.reps,
            timestamp=e.recorded_on,
        )
        for e in entries
        if e.kind is ProgressKind.STRENGTH
        and e.value is not None
        and (label is None or e.label == label)
    ]


def habit_series(entries: Iterable[ProgressEntry], label: Optional[str] = None) -> list[Sample]:
    """Habit counts (glasses of water, steps) as plain samples."""
    return [
        Sample(value=e.value, timestamp=e.recorded_on, note=e.note)
        for e in entries
        if e.kind is ProgressKind.HABIT
        and e.value is not None
        and (label is None or e.label == label)
    ]
