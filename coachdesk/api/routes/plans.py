"""
Daily plan and coach note endpoints.

The trainee's "Today" page shows the coach note, program and meal for
the selected calendar day. Notes are loaded for the whole calendar at
once so days with notes can be marked.

Plan fields are Markdown; responses include the rendered HTML next to
the source so the client never renders user text itself.
"""

import logging
from datetime import date

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ...core.library.models import DailyPlan
from ...core.markdown import render
from ...infrastructure.database.client import RecordNotFoundError
from ..dependencies import (
    AuthenticatedClient,
    DailyPlanRepositoryDep,
    NotesRepositoryDep,
    TraineeRepositoryDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_TEXT_LIMIT = 20_000


class DailyPlanRequest(BaseModel):
    coach_note: str = Field("", max_length=_TEXT_LIMIT)
    program: str = Field("", max_length=_TEXT_LIMIT)
    meal: str = Field("", max_length=_TEXT_LIMIT)


class DailyPlanResponse(BaseModel):
    trainee_id: str
    date: date
    coach_note: str
    program: str
    meal: str
    coach_note_html: str
    program_html: str
    meal_html: str

    @classmethod
    def from_plan(cls, plan: DailyPlan) -> "DailyPlanResponse":
        return cls(
            trainee_id=plan.trainee_id,
            date=plan.date,
            coach_note=plan.coach_note,
            program=plan.program,
            meal=plan.meal,
            coach_note_html=render(plan.coach_note),
            program_html=render(plan.program),
            meal_html=render(plan.meal),
        )


class NoteRequest(BaseModel):
    note: str = Field(max_length=_TEXT_LIMIT)


class NotesResponse(BaseModel):
    trainee_id: str
    notes: dict[str, str] = Field(description="ISO date -> note text")


def _require_trainee(trainees: TraineeRepositoryDep, trainee_id: str) -> None:
    try:
        trainees.get(trainee_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trainee not found")


@router.get(
    "/{trainee_id}/plans/{day}",
    response_model=DailyPlanResponse,
    summary="Get the plan for a day",
    description="Returns an empty plan when the coach hasn't planned the day yet.",
)
async def get_daily_plan(
    trainee_id: str,
    day: date,
    api_key: AuthenticatedClient,
    trainees: TraineeRepositoryDep,
    plans: DailyPlanRepositoryDep,
) -> DailyPlanResponse:
    _require_trainee(trainees, trainee_id)
    return DailyPlanResponse.from_plan(plans.get(trainee_id, day))


@router.put(
    "/{trainee_id}/plans/{day}",
    response_model=DailyPlanResponse,
    summary="Save the plan for a day",
)
async def put_daily_plan(
    trainee_id: str,
    day: date,
    request: DailyPlanRequest,
    api_key: AuthenticatedClient,
    trainees: TraineeRepositoryDep,
    plans: DailyPlanRepositoryDep,
) -> DailyPlanResponse:
    _require_trainee(trainees, trainee_id)
    plan = plans.upsert(DailyPlan(
        trainee_id=trainee_id,
        date=day,
        coach_note=request.coach_note,
        program=request.program,
        meal=request.meal,
    ))
    return DailyPlanResponse.from_plan(plan)


@router.get(
    "/{trainee_id}/notes",
    response_model=NotesResponse,
    summary="Load all notes for a trainee",
)
async def get_notes(
    trainee_id: str,
    api_key: AuthenticatedClient,
    trainees: TraineeRepositoryDep,
    notes: NotesRepositoryDep,
) -> NotesResponse:
    _require_trainee(trainees, trainee_id)
    return NotesResponse(trainee_id=trainee_id, notes=notes.load(trainee_id))


@router.put(
    "/{trainee_id}/notes/{day}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Save the note for a day",
)
async def put_note(
    trainee_id: str,
    day: date,
    request: NoteRequest,
    api_key: AuthenticatedClient,
    trainees: TraineeRepositoryDep,
    notes: NotesRepositoryDep,
) -> None:
    _require_trainee(trainees, trainee_id)
    notes.save(trainee_id, day, request.note)
