"""
Progress tracking API endpoints.

Two groups of endpoints:
- Calculators (/progress/...): stateless statistics over numbers the
  client sends. Used by the dashboard for "what if" views.
- Trainee progress (/trainees/{id}/progress): log entries, list them,
  and get the dashboard summary computed from stored entries.

All statistics come from core.progress; this module only converts
between HTTP shapes and domain values.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, Field, field_validator

from ...core.library.models import ProgressEntry
from ...core.library.series import habit_series, measurement_series, strength_sets, weight_series
from ...core.progress import (
    LengthUnit,
    ProgressKind,
    ProgressSummary,
    Sample,
    WeightUnit,
    best_estimated_1rm,
    convert_length,
    convert_weight,
    epley_1rm,
    round_for_display,
    summarize,
)
from ...infrastructure.database.client import RecordNotFoundError
from ...infrastructure.storage.client import StorageError, guess_content_type, progress_photo_path
from ..dependencies import (
    AuthenticatedClient,
    ProgressRepositoryDep,
    SettingsDep,
    StorageClientDep,
    TraineeRepositoryDep,
)
from ..uploads import read_upload, storage_failure

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class SampleIn(BaseModel):
    value: float = Field(allow_inf_nan=False)
    timestamp: datetime | date
    note: Optional[str] = None


class SummaryRequest(BaseModel):
    """Samples in any order plus an optional goal, all in one unit."""
    samples: list[SampleIn] = Field(max_length=10_000)
    goal: Optional[float] = Field(None, allow_inf_nan=False)
    unit: str = Field("kg", description="Unit of the samples, echoed back")
    now: Optional[datetime] = Field(None, description="Reference time for rolling windows")


class SummaryResponse(BaseModel):
    unit: str
    count: int
    start: Optional[float] = None
    latest: Optional[float] = None
    change: Optional[float] = None
    median: Optional[float] = None
    average_7d: Optional[float] = None
    average_30d: Optional[float] = None
    trend_per_week: float = 0.0
    goal: Optional[float] = None
    goal_progress: Optional[float] = Field(None, description="Percent of the way to the goal, 0-100")

    @classmethod
    def build(cls, summary: ProgressSummary, unit: str) -> "SummaryResponse":
        return cls(
            unit=unit,
            count=summary.count,
            start=summary.start,
            latest=summary.latest,
            change=summary.change,
            median=summary.median,
            average_7d=summary.average_7d,
            average_30d=summary.average_30d,
            trend_per_week=summary.trend_per_week,
            goal=summary.goal,
            goal_progress=summary.goal_progress,
        )


class OneRepMaxRequest(BaseModel):
    weight: float = Field(ge=0, allow_inf_nan=False)
    reps: int = Field(description="Clamped into 1-30 before estimating")
    unit: WeightUnit = WeightUnit.KG


class OneRepMaxResponse(BaseModel):
    estimated_1rm: float
    unit: WeightUnit


class ConvertRequest(BaseModel):
    value: float = Field(allow_inf_nan=False)
    from_unit: str
    to_unit: str


class ConvertResponse(BaseModel):
    value: float
    unit: str
    display: float = Field(description="Value rounded to one decimal for display")


class ProgressEntryIn(BaseModel):
    kind: ProgressKind
    recorded_on: date
    value: float = Field(allow_inf_nan=False)
    unit: Optional[str] = None
    reps: Optional[int] = Field(None, ge=1)
    label: Optional[str] = Field(None, max_length=100)
    note: Optional[str] = Field(None, max_length=2000)

    @field_validator("kind")
    @classmethod
    def no_photo_without_upload(cls, kind: ProgressKind) -> ProgressKind:
        if kind is ProgressKind.PHOTO:
            raise ValueError("Photos are logged through the photo upload endpoint")
        return kind


class ProgressEntryOut(BaseModel):
    id: str
    kind: ProgressKind
    recorded_on: date
    value: Optional[float] = None
    unit: Optional[str] = None
    reps: Optional[int] = None
    label: Optional[str] = None
    note: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: ProgressEntry) -> "ProgressEntryOut":
        return cls(
            id=entry.id,
            kind=entry.kind,
            recorded_on=entry.recorded_on,
            value=entry.value,
            unit=entry.unit,
            reps=entry.reps,
            label=entry.label,
            note=entry.note,
            photo_url=entry.photo_url,
        )


class StrengthSummaryResponse(BaseModel):
    label: Optional[str]
    unit: WeightUnit
    set_count: int
    best_estimated_1rm: Optional[float]


# ---------------------------------------------------------------------------
# Calculators
# ---------------------------------------------------------------------------

def _naive_utc(when: datetime | date) -> datetime | date:
    # Clients mix "2025-01-02" and "2025-01-02T07:30:00Z"; compare on one clock
    if isinstance(when, datetime) and when.tzinfo is not None:
        return when.astimezone(timezone.utc).replace(tzinfo=None)
    return when


@router.post(
    "/progress/summary",
    response_model=SummaryResponse,
    summary="Summarize a series of samples",
)
async def summarize_samples(request: SummaryRequest, api_key: AuthenticatedClient) -> SummaryResponse:
    samples = [Sample(s.value, _naive_utc(s.timestamp), s.note) for s in request.samples]
    now = _naive_utc(request.now) if request.now is not None else None
    summary = summarize(samples, goal=request.goal, now=now)
    return SummaryResponse.build(summary, request.unit)


@router.post(
    "/progress/one-rep-max",
    response_model=OneRepMaxResponse,
    summary="Estimate a one-rep max (Epley)",
)
async def one_rep_max(request: OneRepMaxRequest, api_key: AuthenticatedClient) -> OneRepMaxResponse:
    return OneRepMaxResponse(
        estimated_1rm=epley_1rm(request.weight, request.reps),
        unit=request.unit,
    )


@router.post(
    "/progress/convert",
    response_model=ConvertResponse,
    summary="Convert between kg/lb or cm/in",
)
async def convert_units(request: ConvertRequest, api_key: AuthenticatedClient) -> ConvertResponse:
    source = request.from_unit.strip().lower()
    target = request.to_unit.strip().lower()
    weights = {u.value for u in WeightUnit}
    lengths = {u.value for u in LengthUnit}

    if source in weights and target in weights:
        value = convert_weight(request.value, source, target)
    elif source in lengths and target in lengths:
        value = convert_length(request.value, source, target)
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Cannot convert {request.from_unit!r} to {request.to_unit!r}",
        )
    return ConvertResponse(value=value, unit=target, display=round_for_display(value))


# ---------------------------------------------------------------------------
# Trainee progress
# ---------------------------------------------------------------------------

def _require_trainee(trainees: TraineeRepositoryDep, trainee_id: str) -> None:
    try:
        trainees.get(trainee_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trainee not found")


@router.post(
    "/trainees/{trainee_id}/progress",
    response_model=ProgressEntryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Log a progress entry",
)
async def log_progress(
    trainee_id: str,
    request: ProgressEntryIn,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    trainees: TraineeRepositoryDep,
    repository: ProgressRepositoryDep,
) -> ProgressEntryOut:
    _require_trainee(trainees, trainee_id)

    unit = request.unit
    try:
        if request.kind in (ProgressKind.WEIGHT, ProgressKind.STRENGTH):
            unit = WeightUnit((unit or settings.default_weight_unit).lower()).value
        elif request.kind is ProgressKind.MEASUREMENT:
            unit = LengthUnit((unit or LengthUnit.CM.value).lower()).value
        entry = ProgressEntry(
            id="",
            trainee_id=trainee_id,
            kind=request.kind,
            recorded_on=request.recorded_on,
            value=request.value,
            unit=unit,
            reps=request.reps,
            label=request.label,
            note=request.note,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return ProgressEntryOut.from_entry(repository.add(entry))


@router.get(
    "/trainees/{trainee_id}/progress",
    response_model=list[ProgressEntryOut],
    summary="List progress entries, oldest first",
)
async def list_progress(
    trainee_id: str,
    api_key: AuthenticatedClient,
    trainees: TraineeRepositoryDep,
    repository: ProgressRepositoryDep,
    kind: Optional[ProgressKind] = None,
    label: Optional[str] = None,
) -> list[ProgressEntryOut]:
    _require_trainee(trainees, trainee_id)
    return [ProgressEntryOut.from_entry(e) for e in repository.list(trainee_id, kind, label)]


@router.get(
    "/trainees/{trainee_id}/progress/summary",
    response_model=SummaryResponse,
    summary="Dashboard summary for one series",
)
async def progress_summary(
    trainee_id: str,
    api_key: AuthenticatedClient,
    trainees: TraineeRepositoryDep,
    repository: ProgressRepositoryDep,
    settings: SettingsDep,
    kind: ProgressKind = ProgressKind.WEIGHT,
    label: Optional[str] = None,
    unit: Optional[str] = None,
    goal: Optional[float] = None,
) -> SummaryResponse:
    """
    Summary of weight, a measurement site, or a habit.

    Entries are converted to `unit` (default: kg for weight, cm for
    measurements) before any statistic is computed.
    """
    _require_trainee(trainees, trainee_id)
    entries = repository.list(trainee_id, kind, label)

    try:
        if kind is ProgressKind.WEIGHT:
            unit = WeightUnit((unit or settings.default_weight_unit).lower()).value
            samples = weight_series(entries, unit)
        elif kind is ProgressKind.MEASUREMENT:
            unit = LengthUnit((unit or LengthUnit.CM.value).lower()).value
            samples = measurement_series(entries, unit, label)
        elif kind is ProgressKind.HABIT:
            samples = habit_series(entries, label)
            unit = unit or "count"
        else:
            raise ValueError(f"No numeric summary for {kind.value} entries")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return SummaryResponse.build(summarize(samples, goal=goal), unit)


@router.get(
    "/trainees/{trainee_id}/progress/strength",
    response_model=StrengthSummaryResponse,
    summary="Best estimated one-rep max for a lift",
)
async def strength_summary(
    trainee_id: str,
    api_key: AuthenticatedClient,
    trainees: TraineeRepositoryDep,
    repository: ProgressRepositoryDep,
    label: Optional[str] = None,
    unit: WeightUnit = WeightUnit.KG,
) -> StrengthSummaryResponse:
    _require_trainee(trainees, trainee_id)
    sets = strength_sets(repository.list(trainee_id, ProgressKind.STRENGTH, label), unit, label)
    return StrengthSummaryResponse(
        label=label,
        unit=unit,
        set_count=len(sets),
        best_estimated_1rm=best_estimated_1rm(sets),
    )


@router.post(
    "/trainees/{trainee_id}/progress/photos",
    response_model=ProgressEntryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a progress photo",
)
async def upload_progress_photo(
    trainee_id: str,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    trainees: TraineeRepositoryDep,
    repository: ProgressRepositoryDep,
    storage: StorageClientDep,
    file: UploadFile = File(...),
    recorded_on: date = Form(...),
    note: Optional[str] = Form(None),
) -> ProgressEntryOut:
    _require_trainee(trainees, trainee_id)
    data = await read_upload(file, settings.max_upload_size_bytes, "image/")

    filename = file.filename or "photo.jpg"
    path = progress_photo_path(trainee_id, filename)
    bucket = settings.progress_photos_bucket
    try:
        await storage.upload(bucket, path, data, file.content_type or guess_content_type(filename, "image/jpeg"))
    except StorageError as e:
        raise storage_failure(e, "upload progress photo")

    entry = repository.add(ProgressEntry(
        id="",
        trainee_id=trainee_id,
        kind=ProgressKind.PHOTO,
        recorded_on=recorded_on,
        note=note,
        photo_url=storage.public_url(bucket, path),
    ))
    return ProgressEntryOut.from_entry(entry)
