"""Row value helpers shared by the repositories."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import TypeAdapter

# PostgREST trims trailing zeros from fractional seconds ("10:00:00.12345"),
# which datetime.fromisoformat only accepts from Python 3.11.
_TIMESTAMP = TypeAdapter(datetime)
_DATE = TypeAdapter(date)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return _TIMESTAMP.validate_python(value)


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return _DATE.validate_python(str(value)[:10])
