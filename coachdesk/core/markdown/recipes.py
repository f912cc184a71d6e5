"""
Recipe-specific helpers over Markdown descriptions.

Trainers write a recipe as one Markdown document. The recipe page shows
ingredients and steps in their own panels, so we split the document by
headings and pull out any embedded image URLs for the gallery.
"""

import re
from dataclasses import dataclass
from typing import Optional


_ANY_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")
_INGREDIENTS_RE = re.compile(r"^ingredients?\b")
_STEPS_RE = re.compile(r"^(steps|directions?|method)\b")
_IMAGE_URL_RE = re.compile(r"!\[[^\]]*\]\(([^)\s]+)(?:\s+\"[^\"]+\")?\)")
_GALLERY_URL_RE = re.compile(r"^(https?:|data:)", re.IGNORECASE)


@dataclass(frozen=True)
class RecipeSections:
    """A recipe description split into its display panels."""
    ingredients: Optional[str]
    steps: Optional[str]
    rest: str


def split_recipe_sections(text: str) -> RecipeSections:
    """
    Bucket lines under ingredients/steps headings.

    The recognised heading lines themselves are dropped; any other heading
    switches back to the general bucket and stays in it.
    """
    buckets: dict[str, list[str]] = {"ingredients": [], "steps": [], "rest": []}
    current = "rest"

    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        heading = _ANY_HEADING_RE.match(line.strip())
        if heading:
            title = heading.group(2).strip().lower()
            if _INGREDIENTS_RE.match(title):
                current = "ingredients"
                continue
            if _STEPS_RE.match(title):
                current = "steps"
                continue
            current = "rest"
        buckets[current].append(line)

    ingredients = "\n".join(buckets["ingredients"]).strip()
    steps = "\n".join(buckets["steps"]).strip()
    return RecipeSections(
        ingredients=ingredients or None,
        steps=steps or None,
        rest="\n".join(buckets["rest"]).strip(),
    )


def extract_image_urls(text: str) -> list[str]:
    """Image URLs from ![alt](url) syntax, keeping only web and data URLs."""
    return [
        url for url in _IMAGE_URL_RE.findall(text)
        if _GALLERY_URL_RE.match(url)
    ]
