"""
Hosted database integration (Supabase) with an in-memory mock mode.
"""

from .client import (
    DatabaseError,
    DuplicateRecordError,
    InMemoryTableGateway,
    RecordNotFoundError,
    SupabaseConfig,
    SupabaseTableGateway,
    TableGateway,
    create_table_gateway,
)

__all__ = [
    "DatabaseError",
    "DuplicateRecordError",
    "InMemoryTableGateway",
    "RecordNotFoundError",
    "SupabaseConfig",
    "SupabaseTableGateway",
    "TableGateway",
    "create_table_gateway",
]
