"""
Repositories for the exercise and recipe libraries.

Both libraries are addressed by slug in URLs and by id for edits. Slugs
are generated from the title on create; a UNIQUE constraint on slug means
two items with the same title collide and the second create fails with
DuplicateRecordError.
"""

import logging
from typing import Any, Optional

from ...core.library.models import Exercise, Recipe, slug_or_fallback
from ..database.client import RecordNotFoundError, Row, TableGateway
from ._rows import parse_timestamp

logger = logging.getLogger(__name__)

EXERCISES = "exercises"
RECIPES = "recipes"

EXERCISE_PATCH_FIELDS = frozenset(
    {"title", "slug", "muscle_group", "equipment", "description", "video_url"}
)
RECIPE_PATCH_FIELDS = frozenset({"title", "slug", "description", "image_url"})


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


def _clean_patch(patch: dict[str, Any], allowed: frozenset) -> dict[str, Any]:
    unknown = set(patch) - allowed
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    return dict(patch)


class ExerciseRepository:
    """Exercise library persistence."""

    def __init__(self, gateway: TableGateway) -> None:
        self._db = gateway

    def list(self) -> list[Exercise]:
        """Newest first."""
        rows = self._db.select(EXERCISES, order_by="created_at", descending=True)
        return [self._to_exercise(row) for row in rows]

    def get(self, exercise_id: str) -> Exercise:
        rows = self._db.select(EXERCISES, filters={"id": exercise_id}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Exercise {exercise_id} not found")
        return self._to_exercise(rows[0])

    def get_by_slug(self, slug: str) -> Exercise:
        rows = self._db.select(EXERCISES, filters={"slug": slug}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Exercise '{slug}' not found")
        return self._to_exercise(rows[0])

    def create(
        self,
        title: str,
        muscle_group: Optional[str] = None,
        equipment: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Exercise:
        row = self._db.insert(EXERCISES, {
            "title": title.strip(),
            "slug": slug_or_fallback(title, "ex"),
            "muscle_group": _blank_to_none(muscle_group),
            "equipment": _blank_to_none(equipment),
            "description": _blank_to_none(description),
            "video_url": None,
        })
        exercise = self._to_exercise(row)
        logger.info("Created exercise", extra={"exercise_id": exercise.id, "slug": exercise.slug})
        return exercise

    def update(self, exercise_id: str, patch: dict[str, Any]) -> Exercise:
        rows = self._db.update(
            EXERCISES, {"id": exercise_id}, _clean_patch(patch, EXERCISE_PATCH_FIELDS)
        )
        if not rows:
            raise RecordNotFoundError(f"Exercise {exercise_id} not found")
        return self._to_exercise(rows[0])

    def set_video_url(self, exercise_id: str, url: str) -> Exercise:
        return self.update(exercise_id, {"video_url": url})

    @staticmethod
    def _to_exercise(row: Row) -> Exercise:
        return Exercise(
            id=str(row["id"]),
            title=row["title"],
            slug=row["slug"],
            muscle_group=row.get("muscle_group"),
            equipment=row.get("equipment"),
            description=row.get("description"),
            video_url=row.get("video_url"),
            created_at=parse_timestamp(row.get("created_at")),
        )


class RecipeRepository:
    """Recipe library persistence."""

    def __init__(self, gateway: TableGateway) -> None:
        self._db = gateway

    def list(self) -> list[Recipe]:
        """Newest first."""
        rows = self._db.select(RECIPES, order_by="created_at", descending=True)
        return [self._to_recipe(row) for row in rows]

    def get(self, recipe_id: str) -> Recipe:
        rows = self._db.select(RECIPES, filters={"id": recipe_id}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Recipe {recipe_id} not found")
        return self._to_recipe(rows[0])

    def get_by_slug(self, slug: str) -> Recipe:
        rows = self._db.select(RECIPES, filters={"slug": slug}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Recipe '{slug}' not found")
        return self._to_recipe(rows[0])

    def create(self, title: str, description: Optional[str] = None) -> Recipe:
        row = self._db.insert(RECIPES, {
            "title": title.strip(),
            "slug": slug_or_fallback(title, "rcp"),
            "description": _blank_to_none(description),
            "image_url": None,
        })
        recipe = self._to_recipe(row)
        logger.info("Created recipe", extra={"recipe_id": recipe.id, "slug": recipe.slug})
        return recipe

    def update(self, recipe_id: str, patch: dict[str, Any]) -> Recipe:
        rows = self._db.update(
            RECIPES, {"id": recipe_id}, _clean_patch(patch, RECIPE_PATCH_FIELDS)
        )
        if not rows:
            raise RecordNotFoundError(f"Recipe {recipe_id} not found")
        return self._to_recipe(rows[0])

    def set_image_url(self, recipe_id: str, url: str) -> Recipe:
        return self.update(recipe_id, {"image_url": url})

    def delete(self, recipe_id: str) -> None:
        if not self._db.delete(RECIPES, {"id": recipe_id}):
            raise RecordNotFoundError(f"Recipe {recipe_id} not found")
        logger.info("Deleted recipe", extra={"recipe_id": recipe_id})

    @staticmethod
    def _to_recipe(row: Row) -> Recipe:
        return Recipe(
            id=str(row["id"]),
            title=row["title"],
            slug=row["slug"],
            description=row.get("description"),
            image_url=row.get("image_url"),
            created_at=parse_timestamp(row.get("created_at")),
        )
