"""
Coaching library domain: trainees, exercises, recipes, plans and progress entries.
"""

from .models import (
    DailyPlan,
    Exercise,
    ProgressEntry,
    Recipe,
    RecipeImage,
    Trainee,
    slug_or_fallback,
    slugify,
)

__all__ = [
    "DailyPlan",
    "Exercise",
    "ProgressEntry",
    "Recipe",
    "RecipeImage",
    "Trainee",
    "slug_or_fallback",
    "slugify",
]
