"""
Repositories for daily plans and per-day coach notes.

Both are keyed by (trainee_id, date) and written with upsert, so saving
the same day twice overwrites rather than duplicates.
"""

import logging
from datetime import date

from ...core.library.models import DailyPlan
from ..database.client import TableGateway
from ._rows import parse_date

logger = logging.getLogger(__name__)

PLANS = "daily_plans"
NOTES = "notes"

_DAY_KEY = ("trainee_id", "date")


class DailyPlanRepository:
    """Program, meal and coach note for one trainee on one day."""

    def __init__(self, gateway: TableGateway) -> None:
        self._db = gateway

    def get(self, trainee_id: str, day: date) -> DailyPlan:
        """The stored plan, or an empty one when nothing is planned yet."""
        rows = self._db.select(
            PLANS, filters={"trainee_id": trainee_id, "date": day.isoformat()}, limit=1
        )
        if not rows:
            return DailyPlan.empty(trainee_id, day)

        row = rows[0]
        return DailyPlan(
            trainee_id=str(row["trainee_id"]),
            date=parse_date(row["date"]),
            coach_note=row.get("coach_note") or "",
            program=row.get("program") or "",
            meal=row.get("meal") or "",
        )

    def upsert(self, plan: DailyPlan) -> DailyPlan:
        self._db.upsert(PLANS, {
            "trainee_id": plan.trainee_id,
            "date": plan.date.isoformat(),
            "coach_note": plan.coach_note,
            "program": plan.program,
            "meal": plan.meal,
        }, on_conflict=_DAY_KEY)

        logger.info(
            "Saved daily plan",
            extra={"trainee_id": plan.trainee_id, "date": plan.date.isoformat()}
        )
        return plan


class NotesRepository:
    """
    Free-text notes per day, loaded as a whole calendar.

    load() returns {"2025-12-08": "text", ...} which is what the calendar
    view needs to mark days that have notes.
    """

    def __init__(self, gateway: TableGateway) -> None:
        self._db = gateway

    def load(self, trainee_id: str) -> dict[str, str]:
        rows = self._db.select(NOTES, filters={"trainee_id": trainee_id}, order_by="date")
        return {parse_date(row["date"]).isoformat(): row.get("note") or "" for row in rows}

    def save(self, trainee_id: str, day: date, note: str) -> None:
        self._db.upsert(NOTES, {
            "trainee_id": trainee_id,
            "date": day.isoformat(),
            "note": note,
        }, on_conflict=_DAY_KEY)
        logger.debug("Saved note", extra={"trainee_id": trainee_id, "date": day.isoformat()})
