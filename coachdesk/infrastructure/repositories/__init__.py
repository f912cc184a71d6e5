"""
Repository pattern implementations over the table gateway.

Repositories translate between domain models and database rows.
"""

from .library import ExerciseRepository, RecipeRepository
from .plans import DailyPlanRepository, NotesRepository
from .progress import ProgressRepository
from .trainees import AuthenticationError, TraineeRepository, hash_password, verify_password

__all__ = [
    "AuthenticationError",
    "DailyPlanRepository",
    "ExerciseRepository",
    "NotesRepository",
    "ProgressRepository",
    "RecipeRepository",
    "TraineeRepository",
    "hash_password",
    "verify_password",
]
