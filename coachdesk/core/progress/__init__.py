"""
Progress metrics: unit conversion and dashboard statistics.

Pure functions only. Nothing here touches storage; repositories hand in
samples and get numbers back.
"""

from .models import (
    LengthUnit,
    ProgressKind,
    ProgressSummary,
    Sample,
    StrengthSet,
    WeightUnit,
)
from .stats import (
    best_estimated_1rm,
    epley_1rm,
    goal_progress,
    goal_progress_for,
    linear_trend_per_week,
    median,
    samples_in_window,
    summarize,
    window_average,
    window_start,
)
from .units import (
    convert_length,
    convert_weight,
    parse_length_unit,
    parse_weight_unit,
    round_for_display,
    to_cm,
    to_in,
    to_kg,
    to_lb,
)

__all__ = [
    "LengthUnit",
    "ProgressKind",
    "ProgressSummary",
    "Sample",
    "StrengthSet",
    "WeightUnit",
    "best_estimated_1rm",
    "convert_length",
    "convert_weight",
    "epley_1rm",
    "goal_progress",
    "goal_progress_for",
    "linear_trend_per_week",
    "median",
    "parse_length_unit",
    "parse_weight_unit",
    "round_for_display",
    "samples_in_window",
    "summarize",
    "to_cm",
    "to_in",
    "to_kg",
    "to_lb",
    "window_average",
    "window_start",
]
