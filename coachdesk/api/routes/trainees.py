"""
Trainee account endpoints.

Registration and login for trainees, plus the trainer's client list.
"""

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ...core.library.models import Trainee
from ...infrastructure.database.client import DuplicateRecordError, RecordNotFoundError
from ...infrastructure.repositories import AuthenticationError
from ..dependencies import AuthenticatedClient, TraineeRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=200)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=200)


class TraineeResponse(BaseModel):
    """A trainee as shown to clients. Never includes the password hash."""
    id: str
    full_name: str
    email: str | None = None
    created_at: str | None = Field(None, description="ISO timestamp")

    @classmethod
    def from_trainee(cls, trainee: Trainee) -> "TraineeResponse":
        return cls(
            id=trainee.id,
            full_name=trainee.full_name,
            email=trainee.email,
            created_at=trainee.created_at.isoformat() if trainee.created_at else None,
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/register",
    response_model=TraineeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a trainee",
)
async def register_trainee(
    request: RegisterRequest,
    api_key: AuthenticatedClient,
    repository: TraineeRepositoryDep,
) -> TraineeResponse:
    if not request.full_name.strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Name is required")
    try:
        trainee = repository.register(request.full_name, request.email, request.password)
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A trainee with this email already exists",
        )
    return TraineeResponse.from_trainee(trainee)


@router.post(
    "/login",
    response_model=TraineeResponse,
    status_code=status.HTTP_200_OK,
    summary="Trainee login",
)
async def login_trainee(
    request: LoginRequest,
    api_key: AuthenticatedClient,
    repository: TraineeRepositoryDep,
) -> TraineeResponse:
    try:
        trainee = repository.authenticate(request.email, request.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return TraineeResponse.from_trainee(trainee)


@router.get(
    "",
    response_model=list[TraineeResponse],
    summary="List trainees",
    description="All trainees, oldest registration first. Used by the trainer dashboard.",
)
async def list_trainees(
    api_key: AuthenticatedClient,
    repository: TraineeRepositoryDep,
) -> list[TraineeResponse]:
    return [TraineeResponse.from_trainee(t) for t in repository.list()]


@router.get(
    "/{trainee_id}",
    response_model=TraineeResponse,
    summary="Get a trainee",
)
async def get_trainee(
    trainee_id: str,
    api_key: AuthenticatedClient,
    repository: TraineeRepositoryDep,
) -> TraineeResponse:
    try:
        return TraineeResponse.from_trainee(repository.get(trainee_id))
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trainee not found")
