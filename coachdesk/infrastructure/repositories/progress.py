"""
Repository for logged progress entries.

Entries are append-only: a weigh-in is never edited, a corrected one is
logged again. Lists come back oldest first by recorded day.
"""

import logging
from typing import Optional

from ...core.library.models import ProgressEntry
from ...core.progress.models import ProgressKind
from ..database.client import Row, TableGateway
from ._rows import parse_date, parse_timestamp

logger = logging.getLogger(__name__)

TABLE = "progress_entries"


class ProgressRepository:

    def __init__(self, gateway: TableGateway) -> None:
        self._db = gateway

    def add(self, entry: ProgressEntry) -> ProgressEntry:
        row = {
            "trainee_id": entry.trainee_id,
            "kind": entry.kind.value,
            "recorded_on": entry.recorded_on.isoformat(),
            "value": entry.value,
            "unit": entry.unit,
            "reps": entry.reps,
            "label": entry.label,
            "note": entry.note,
            "photo_url": entry.photo_url,
        }
        if entry.id:
            row["id"] = entry.id

        stored = self._to_entry(self._db.insert(TABLE, row))
        logger.info(
            "Logged progress entry",
            extra={"trainee_id": stored.trainee_id, "kind": stored.kind.value}
        )
        return stored

    def list(
        self,
        trainee_id: str,
        kind: Optional[ProgressKind] = None,
        label: Optional[str] = None,
    ) -> list[ProgressEntry]:
        filters = {"trainee_id": trainee_id}
        if kind is not None:
            filters["kind"] = kind.value
        if label is not None:
            filters["label"] = label
        rows = self._db.select(TABLE, filters=filters, order_by="recorded_on")
        return [self._to_entry(row) for row in rows]

    @staticmethod
    def _to_entry(row: Row) -> ProgressEntry:
        value = row.get("value")
        return ProgressEntry(
            id=str(row["id"]),
            trainee_id=str(row["trainee_id"]),
            kind=ProgressKind(row["kind"]),
            recorded_on=parse_date(row["recorded_on"]),
            value=float(value) if value is not None else None,
            unit=row.get("unit"),
            reps=row.get("reps"),
            label=row.get("label"),
            note=row.get("note"),
            photo_url=row.get("photo_url"),
            created_at=parse_timestamp(row.get("created_at")),
        )
