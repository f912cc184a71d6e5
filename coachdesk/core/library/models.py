"""
Domain models for the coaching library.

These models represent the core business concepts: trainees, the
exercise and recipe libraries, daily plans and logged progress. They have
no dependencies on the database, storage or HTTP layers. Repositories
translate them to and from rows.
"""

import re
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..progress.models import ProgressKind


_SLUG_RUN_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """'Greek Yogurt Bowl!' -> 'greek-yogurt-bowl'"""
    return _SLUG_RUN_RE.sub("-", title.strip().lower()).strip("-")


def slug_or_fallback(title: str, prefix: str) -> str:
    """
    Slug for a title, or `{prefix}-{epoch ms}` when the title has no
    usable characters (e.g. only emoji or punctuation).
    """
    return slugify(title) or f"{prefix}-{int(time.time() * 1000)}"


@dataclass
class Trainee:
    """
    A person being coached.

    password_hash holds a salted hash, never the plaintext.
    """
    id: str
    full_name: str
    email: Optional[str] = None
    password_hash: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.full_name.strip():
            raise ValueError("Trainee name cannot be empty")


@dataclass
class Exercise:
    """An entry in the exercise library, optionally with a demo video."""
    id: str
    title: str
    slug: str
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None
    description: Optional[str] = None  # Markdown
    video_url: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError("Exercise title cannot be empty")


@dataclass
class Recipe:
    """
    A recipe in the nutrition library.

    The description is a single Markdown document holding ingredients,
    steps and free notes; see core.markdown.split_recipe_sections.
    """
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError("Recipe title cannot be empty")


@dataclass(frozen=True)
class RecipeImage:
    """An image in a recipe's album."""
    path: str
    public_url: str


@dataclass
class DailyPlan:
    """What the coach has planned for a trainee on one calendar day."""
    trainee_id: str
    date: date
    coach_note: str = ""
    program: str = ""
    meal: str = ""

    @classmethod
    def empty(cls, trainee_id: str, day: date) -> "DailyPlan":
        return cls(trainee_id=trainee_id, date=day)

    @property
    def is_empty(self) -> bool:
        return not (self.coach_note or self.program or self.meal)


@dataclass
class ProgressEntry:
    """
    One logged progress reading.

    Weight and measurement entries carry a unit; strength entries carry
    reps alongside the load; photo entries carry a URL and no value.
    """
    id: str
    trainee_id: str
    kind: ProgressKind
    recorded_on: date
    value: Optional[float] = None
    unit: Optional[str] = None
    reps: Optional[int] = None
    label: Optional[str] = None  # e.g. "waist", "bench press", "water"
    note: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.kind is ProgressKind.PHOTO:
            if not self.photo_url:
                raise ValueError("Photo entries need a photo_url")
        elif self.value is None:
            raise ValueError(f"{self.kind.value} entries need a value")
        if self.kind is ProgressKind.STRENGTH and not self.reps:
            raise ValueError("Strength entries need reps")
