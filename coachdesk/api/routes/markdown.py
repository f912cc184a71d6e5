"""
Markdown preview endpoints.

The editor calls these to preview notes, plans and recipe descriptions
exactly as trainees will see them.
"""

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from ...core.markdown import extract_image_urls, render, split_recipe_sections
from ..dependencies import AuthenticatedClient

logger = logging.getLogger(__name__)

router = APIRouter()


class RenderRequest(BaseModel):
    text: str = Field(description="Markdown source", max_length=100_000)
    allow_images: bool = Field(True, description="Render ![alt](url) as <img>")


class RenderResponse(BaseModel):
    html: str = Field(description="Escaped HTML, safe to embed as-is")


class RecipeSectionsRequest(BaseModel):
    text: str = Field(description="Recipe description in Markdown", max_length=100_000)


class RecipeSectionsResponse(BaseModel):
    ingredients_html: str | None = None
    steps_html: str | None = None
    rest_html: str = ""
    image_urls: list[str] = []


@router.post(
    "/render",
    response_model=RenderResponse,
    status_code=status.HTTP_200_OK,
    summary="Render Markdown",
)
async def render_markdown(request: RenderRequest, api_key: AuthenticatedClient) -> RenderResponse:
    return RenderResponse(html=render(request.text, allow_images=request.allow_images))


@router.post(
    "/recipe-sections",
    response_model=RecipeSectionsResponse,
    status_code=status.HTTP_200_OK,
    summary="Split and render a recipe description",
)
async def render_recipe_sections(
    request: RecipeSectionsRequest,
    api_key: AuthenticatedClient,
) -> RecipeSectionsResponse:
    return recipe_sections_response(request.text)


def recipe_sections_response(text: str) -> RecipeSectionsResponse:
    sections = split_recipe_sections(text)
    return RecipeSectionsResponse(
        ingredients_html=render(sections.ingredients) if sections.ingredients else None,
        steps_html=render(sections.steps) if sections.steps else None,
        rest_html=render(sections.rest),
        image_urls=extract_image_urls(text),
    )
