"""
Table gateway for the hosted database.

Rows live in Supabase (Postgres behind PostgREST). Repositories never talk
to the Supabase client directly; they go through TableGateway, which covers
the handful of operations the app needs: equality-filtered select, insert,
upsert, update and delete.

Mock mode keeps tables in memory, enabling local development and API
tests without a Supabase project.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = dict[str, Any]

# Postgres error code for unique_violation
_UNIQUE_VIOLATION = "23505"


class DatabaseError(Exception):
    """Raised when a database operation fails."""
    pass


class DuplicateRecordError(DatabaseError):
    """Raised when a write collides with a unique constraint."""
    pass


class RecordNotFoundError(DatabaseError):
    """Raised when a requested row doesn't exist."""
    pass


@dataclass
class SupabaseConfig:
    """Configuration for the Supabase connection."""
    url: str
    key: str


class TableGateway(Protocol):
    """
    Protocol for table operations.

    Using a protocol means repositories can be tested against the
    in-memory gateway and we could move off Supabase without touching them.
    """

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        ...

    def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it as stored (with id and created_at)."""
        ...

    def upsert(self, table: str, row: Row, on_conflict: tuple[str, ...]) -> Row:
        """Insert or update the row matching `on_conflict` columns."""
        ...

    def update(self, table: str, filters: Filters, patch: Row) -> list[Row]:
        """Update matching rows and return them."""
        ...

    def delete(self, table: str, filters: Filters) -> int:
        """Delete matching rows. Returns count deleted."""
        ...


class SupabaseTableGateway:
    """
    TableGateway backed by supabase-py.

    Each call builds a PostgREST query and executes it immediately.
    PostgREST errors are translated into our DatabaseError hierarchy so
    the rest of the app never imports postgrest.
    """

    def __init__(self, config: SupabaseConfig) -> None:
        """
        Create the Supabase client.

        We import supabase here (not at module level) because mock mode
        doesn't need it.
        """
        try:
            from supabase import create_client
        except ImportError:
            raise ImportError(
                "supabase is required for database access. Install with: pip install supabase"
            )

        self._client = create_client(config.url, config.key)

        logger.info(
            "Initialized Supabase table gateway",
            extra={"url": config.url}
        )

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        query = self._client.table(table).select("*")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        return self._execute(query, "select", table)

    def insert(self, table: str, row: Row) -> Row:
        rows = self._execute(self._client.table(table).insert(row), "insert", table)
        return rows[0]

    def upsert(self, table: str, row: Row, on_conflict: tuple[str, ...]) -> Row:
        query = self._client.table(table).upsert(row, on_conflict=",".join(on_conflict))
        rows = self._execute(query, "upsert", table)
        return rows[0]

    def update(self, table: str, filters: Filters, patch: Row) -> list[Row]:
        query = self._client.table(table).update(patch)
        for column, value in filters.items():
            query = query.eq(column, value)
        return self._execute(query, "update", table)

    def delete(self, table: str, filters: Filters) -> int:
        query = self._client.table(table).delete()
        for column, value in filters.items():
            query = query.eq(column, value)
        return len(self._execute(query, "delete", table))

    def _execute(self, query, operation: str, table: str) -> list[Row]:
        try:
            response = query.execute()
        except Exception as e:
            code = getattr(e, "code", None)
            logger.error(
                "Supabase query failed",
                extra={"operation": operation, "table": table, "code": code, "error": str(e)}
            )
            if code == _UNIQUE_VIOLATION:
                raise DuplicateRecordError(f"Duplicate {table} record: {e}")
            raise DatabaseError(f"{operation} on {table} failed: {e}")
        return list(response.data or [])


# ---------------------------------------------------------------------------
# Mock Gateway for Local Development
# ---------------------------------------------------------------------------

# Unique column sets per table, mirroring the Supabase schema
DEFAULT_UNIQUE_KEYS: dict[str, list[tuple[str, ...]]] = {
    "trainees": [("email",)],
    "exercises": [("slug",)],
    "recipes": [("slug",)],
    "daily_plans": [("trainee_id", "date")],
    "notes": [("trainee_id", "date")],
}


class InMemoryTableGateway:
    """
    In-memory tables for local development and tests.

    Rows are stored per table in insertion order: {table: {id: row}}.
    Inserts get a UUID id and a strictly increasing created_at, so
    ordering by created_at is deterministic even for rows created in
    the same microsecond.

    Not suitable for production, but perfect for:
    - Local development
    - Unit tests
    - CI/CD environments
    """

    def __init__(self, unique_keys: Optional[dict[str, list[tuple[str, ...]]]] = None) -> None:
        self._tables: dict[str, dict[str, Row]] = {}
        self._unique_keys = DEFAULT_UNIQUE_KEYS if unique_keys is None else unique_keys
        self._last_created: Optional[datetime] = None
        logger.info("Initialized in-memory table gateway")

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        rows = [dict(r) for r in self._matching(table, filters or {})]
        if order_by:
            rows.sort(
                key=lambda r: (
                    r.get(order_by) is None,
                    r.get(order_by) if r.get(order_by) is not None else "",
                ),
                reverse=descending,
            )
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table: str, row: Row) -> Row:
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", self._next_created_at())
        self._check_unique(table, stored)
        self._table(table)[stored["id"]] = stored

        logger.debug("Mock insert", extra={"table": table, "id": stored["id"]})
        return dict(stored)

    def upsert(self, table: str, row: Row, on_conflict: tuple[str, ...]) -> Row:
        key = {column: row.get(column) for column in on_conflict}
        existing = self._matching(table, key)
        if not existing:
            return self.insert(table, row)

        target = existing[0]
        merged = {**target, **row, "id": target["id"], "created_at": target["created_at"]}
        self._check_unique(table, merged, ignore_id=target["id"])
        self._table(table)[target["id"]] = merged

        logger.debug("Mock upsert", extra={"table": table, "id": target["id"]})
        return dict(merged)

    def update(self, table: str, filters: Filters, patch: Row) -> list[Row]:
        updated = []
        for row in self._matching(table, filters):
            merged = {**row, **patch}
            self._check_unique(table, merged, ignore_id=row["id"])
            self._table(table)[row["id"]] = merged
            updated.append(dict(merged))
        return updated

    def delete(self, table: str, filters: Filters) -> int:
        doomed = [row["id"] for row in self._matching(table, filters)]
        for row_id in doomed:
            del self._table(table)[row_id]
        return len(doomed)

    # Helper methods for testing
    def _clear(self) -> None:
        """Clear all tables (for test cleanup)."""
        self._tables.clear()

    def _table(self, table: str) -> dict[str, Row]:
        return self._tables.setdefault(table, {})

    def _matching(self, table: str, filters: Filters) -> list[Row]:
        return [
            row for row in self._table(table).values()
            if all(row.get(column) == value for column, value in filters.items())
        ]

    def _check_unique(self, table: str, row: Row, ignore_id: Optional[str] = None) -> None:
        for columns in self._unique_keys.get(table, []):
            values = tuple(row.get(c) for c in columns)
            if any(v is None for v in values):
                continue  # NULLs never collide, as in Postgres
            for other in self._table(table).values():
                if other["id"] in (row.get("id"), ignore_id):
                    continue
                if tuple(other.get(c) for c in columns) == values:
                    raise DuplicateRecordError(
                        f"Duplicate {table} record for {', '.join(columns)}"
                    )

    def _next_created_at(self) -> str:
        now = datetime.now(timezone.utc)
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now.isoformat()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_table_gateway(
    config: Optional[SupabaseConfig] = None,
    mock_mode: bool = False,
) -> TableGateway:
    """
    Create a table gateway based on configuration.

    Args:
        config: Supabase configuration (required if not mock_mode)
        mock_mode: If True, return in-memory gateway for testing

    Returns:
        TableGateway implementation (Supabase or in-memory)
    """
    if mock_mode:
        return InMemoryTableGateway()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return SupabaseTableGateway(config)
