"""
Weight and length unit conversion.

Values are stored at full precision in the unit they were logged in;
rounding happens only when a number is shown.
"""

from typing import Union

from .models import LengthUnit, WeightUnit


KG_PER_LB = 0.45359237
CM_PER_IN = 2.54


def parse_weight_unit(unit: Union[str, WeightUnit]) -> WeightUnit:
    """Accept 'kg'/'lb' (any case) or the enum. Raises ValueError otherwise."""
    if isinstance(unit, WeightUnit):
        return unit
    return WeightUnit(unit.strip().lower())


def parse_length_unit(unit: Union[str, LengthUnit]) -> LengthUnit:
    """Accept 'cm'/'in' (any case) or the enum. Raises ValueError otherwise."""
    if isinstance(unit, LengthUnit):
        return unit
    return LengthUnit(unit.strip().lower())


def to_kg(value: float, unit: Union[str, WeightUnit]) -> float:
    """Convert a weight in `unit` to kilograms."""
    if parse_weight_unit(unit) is WeightUnit.LB:
        return value * KG_PER_LB
    return value


def to_lb(kg: float) -> float:
    """Convert kilograms to pounds."""
    return kg / KG_PER_LB


def convert_weight(
    value: float,
    from_unit: Union[str, WeightUnit],
    to_unit: Union[str, WeightUnit],
) -> float:
    kg = to_kg(value, from_unit)
    if parse_weight_unit(to_unit) is WeightUnit.LB:
        return to_lb(kg)
    return kg


def to_cm(value: float, unit: Union[str, LengthUnit]) -> float:
    """Convert a length in `unit` to centimetres."""
    if parse_length_unit(unit) is LengthUnit.IN:
        return value * CM_PER_IN
    return value


def to_in(cm: float) -> float:
    """Convert centimetres to inches."""
    return cm / CM_PER_IN


def convert_length(
    value: float,
    from_unit: Union[str, LengthUnit],
    to_unit: Union[str, LengthUnit],
) -> float:
    cm = to_cm(value, from_unit)
    if parse_length_unit(to_unit) is LengthUnit.IN:
        return to_in(cm)
    return cm


def round_for_display(value: float, digits: int = 1) -> float:
    return round(value, digits)
