"""
Exercise library endpoints.

Exercises are listed newest first and addressed by slug for reading,
by id for edits. Descriptions are Markdown and returned both raw and
rendered.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from ...core.library.models import Exercise
from ...core.markdown import render
from ...infrastructure.database.client import DuplicateRecordError, RecordNotFoundError
from ...infrastructure.storage.client import StorageError, exercise_video_path, guess_content_type
from ..dependencies import (
    AuthenticatedClient,
    ExerciseRepositoryDep,
    SettingsDep,
    StorageClientDep,
)
from ..uploads import read_upload, storage_failure

logger = logging.getLogger(__name__)

router = APIRouter()


class ExerciseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    muscle_group: Optional[str] = Field(None, max_length=100)
    equipment: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=50_000)


class ExercisePatch(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=200, pattern=r"^[a-z0-9-]+$")
    muscle_group: Optional[str] = Field(None, max_length=100)
    equipment: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=50_000)
    video_url: Optional[str] = Field(None, max_length=2_000)


class ExerciseResponse(BaseModel):
    id: str
    title: str
    slug: str
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None
    description: Optional[str] = None
    description_html: str = ""
    video_url: Optional[str] = None

    @classmethod
    def from_exercise(cls, exercise: Exercise) -> "ExerciseResponse":
        return cls(
            id=exercise.id,
            title=exercise.title,
            slug=exercise.slug,
            muscle_group=exercise.muscle_group,
            equipment=exercise.equipment,
            description=exercise.description,
            description_html=render(exercise.description),
            video_url=exercise.video_url,
        )


@router.get("", response_model=list[ExerciseResponse], summary="List exercises")
async def list_exercises(
    api_key: AuthenticatedClient,
    repository: ExerciseRepositoryDep,
) -> list[ExerciseResponse]:
    return [ExerciseResponse.from_exercise(e) for e in repository.list()]


@router.post(
    "",
    response_model=ExerciseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an exercise",
)
async def create_exercise(
    request: ExerciseCreate,
    api_key: AuthenticatedClient,
    repository: ExerciseRepositoryDep,
) -> ExerciseResponse:
    try:
        exercise = repository.create(
            request.title,
            muscle_group=request.muscle_group,
            equipment=request.equipment,
            description=request.description,
        )
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An exercise with this title already exists",
        )
    return ExerciseResponse.from_exercise(exercise)


@router.get("/{slug}", response_model=ExerciseResponse, summary="Get an exercise by slug")
async def get_exercise(
    slug: str,
    api_key: AuthenticatedClient,
    repository: ExerciseRepositoryDep,
) -> ExerciseResponse:
    try:
        return ExerciseResponse.from_exercise(repository.get_by_slug(slug))
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")


@router.patch("/{exercise_id}", response_model=ExerciseResponse, summary="Edit an exercise")
async def update_exercise(
    exercise_id: str,
    request: ExercisePatch,
    api_key: AuthenticatedClient,
    repository: ExerciseRepositoryDep,
) -> ExerciseResponse:
    patch: dict[str, Any] = request.model_dump(exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Nothing to update")
    try:
        return ExerciseResponse.from_exercise(repository.update(exercise_id, patch))
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")
    except DuplicateRecordError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already in use")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.post(
    "/{exercise_id}/video",
    response_model=ExerciseResponse,
    summary="Upload a demonstration video",
    description="Stores the video in object storage and links it to the exercise.",
)
async def upload_exercise_video(
    exercise_id: str,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    repository: ExerciseRepositoryDep,
    storage: StorageClientDep,
    file: UploadFile = File(...),
) -> ExerciseResponse:
    try:
        repository.get(exercise_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")

    data = await read_upload(file, settings.max_upload_size_bytes, "video/")
    filename = file.filename or "video.mp4"
    path = exercise_video_path(exercise_id, filename)
    bucket = settings.exercise_videos_bucket

    logger.info(
        "Uploading exercise video",
        extra={"exercise_id": exercise_id, "size_bytes": len(data)}
    )
    try:
        await storage.upload(bucket, path, data, file.content_type or guess_content_type(filename, "video/mp4"))
    except StorageError as e:
        raise storage_failure(e, "upload exercise video")

    return ExerciseResponse.from_exercise(
        repository.set_video_url(exercise_id, storage.public_url(bucket, path))
    )
