"""
FastAPI dependency injection.

Dependencies provide instances of repositories, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is centralized

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..infrastructure.database.client import SupabaseConfig, TableGateway, create_table_gateway
from ..infrastructure.repositories import (
    DailyPlanRepository,
    ExerciseRepository,
    NotesRepository,
    ProgressRepository,
    RecipeRepository,
    TraineeRepository,
)
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Global mock instances (shared across requests so data persists in dev)
_mock_gateway = None
_mock_storage_client = None
_gateway = None


def reset_mock_backends() -> None:
    """Drop shared mock state (for tests)."""
    global _mock_gateway, _mock_storage_client, _gateway
    _mock_gateway = None
    _mock_storage_client = None
    _gateway = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    The API key identifies the calling frontend, not the trainee.
    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

def get_table_gateway(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TableGateway:
    """
    Provide the table gateway.

    The Supabase client is an HTTP client with no per-request connection
    to manage, so one gateway is reused for the process. In mock mode the
    shared in-memory gateway keeps data between requests.
    """
    global _mock_gateway, _gateway

    if settings.database_mock_mode:
        if _mock_gateway is None:
            _mock_gateway = create_table_gateway(mock_mode=True)
            logger.info("Created shared in-memory table gateway")
        return _mock_gateway

    if _gateway is None:
        _gateway = create_table_gateway(
            config=SupabaseConfig(url=settings.supabase_url, key=settings.supabase_key)
        )
    return _gateway


GatewayDep = Annotated[TableGateway, Depends(get_table_gateway)]


def get_trainee_repository(gateway: GatewayDep) -> TraineeRepository:
    return TraineeRepository(gateway)


def get_exercise_repository(gateway: GatewayDep) -> ExerciseRepository:
    return ExerciseRepository(gateway)


def get_recipe_repository(gateway: GatewayDep) -> RecipeRepository:
    return RecipeRepository(gateway)


def get_daily_plan_repository(gateway: GatewayDep) -> DailyPlanRepository:
    return DailyPlanRepository(gateway)


def get_notes_repository(gateway: GatewayDep) -> NotesRepository:
    return NotesRepository(gateway)


def get_progress_repository(gateway: GatewayDep) -> ProgressRepository:
    return ProgressRepository(gateway)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide storage client for media uploads.

    Returns either the S3 client or the mock client based on settings.
    In mock mode, we reuse the same client across requests so that
    uploaded media persists during the session.
    """
    global _mock_storage_client

    if settings.storage_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(mock_mode=True)
            logger.info("Created shared mock storage client for session")
        return _mock_storage_client

    config = StorageConfig(
        access_key_id=settings.storage_access_key_id,
        secret_access_key=settings.storage_secret_access_key,
        endpoint_url=settings.storage_endpoint,
        public_base_url=settings.storage_public_base,
        region=settings.storage_region,
    )
    client = create_storage_client(config=config)
    logger.debug("Created S3 storage client")
    return client


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedClient = Annotated[str, Depends(verify_api_key)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
TraineeRepositoryDep = Annotated[TraineeRepository, Depends(get_trainee_repository)]
ExerciseRepositoryDep = Annotated[ExerciseRepository, Depends(get_exercise_repository)]
RecipeRepositoryDep = Annotated[RecipeRepository, Depends(get_recipe_repository)]
DailyPlanRepositoryDep = Annotated[DailyPlanRepository, Depends(get_daily_plan_repository)]
NotesRepositoryDep = Annotated[NotesRepository, Depends(get_notes_repository)]
ProgressRepositoryDep = Annotated[ProgressRepository, Depends(get_progress_repository)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
