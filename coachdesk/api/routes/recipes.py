"""
Recipe library endpoints.

A recipe's detail view splits its Markdown description into
ingredients, steps and everything else, and builds a gallery from three
sources in this order: album images in storage, the cover image, then
images embedded in the description. Duplicates keep their first position.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field

from ...core.library.models import Recipe, RecipeImage
from ...core.markdown import extract_image_urls
from ...infrastructure.database.client import DuplicateRecordError, RecordNotFoundError
from ...infrastructure.storage.client import (
    InvalidMediaPathError,
    StorageClient,
    StorageError,
    ensure_album_path,
    guess_content_type,
    recipe_album_path,
    recipe_album_prefix,
    recipe_image_path,
)
from ..dependencies import (
    AuthenticatedClient,
    RecipeRepositoryDep,
    SettingsDep,
    StorageClientDep,
)
from ..uploads import read_upload, storage_failure
from .markdown import RecipeSectionsResponse, recipe_sections_response

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class RecipeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=50_000)


class RecipePatch(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=200, pattern=r"^[a-z0-9-]+$")
    description: Optional[str] = Field(None, max_length=50_000)
    image_url: Optional[str] = Field(None, max_length=2_000)


class RecipeResponse(BaseModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeResponse":
        return cls(
            id=recipe.id,
            title=recipe.title,
            slug=recipe.slug,
            description=recipe.description,
            image_url=recipe.image_url,
        )


class AlbumImage(BaseModel):
    path: str
    public_url: str

    @classmethod
    def from_image(cls, image: RecipeImage) -> "AlbumImage":
        return cls(path=image.path, public_url=image.public_url)


class RecipeDetailResponse(RecipeResponse):
    sections: RecipeSectionsResponse
    gallery: list[str] = Field(default_factory=list, description="Image URLs, album first")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")


def _require_recipe(repository: RecipeRepositoryDep, recipe_id: str) -> Recipe:
    try:
        return repository.get(recipe_id)
    except RecordNotFoundError:
        raise _not_found()


async def _album(storage: StorageClient, bucket: str, recipe_id: str) -> list[RecipeImage]:
    paths = await storage.list_paths(bucket, recipe_album_prefix(recipe_id))
    return [RecipeImage(path=p, public_url=storage.public_url(bucket, p)) for p in paths]


def build_gallery(album_urls: list[str], cover: Optional[str], description: Optional[str]) -> list[str]:
    candidates = [*album_urls, cover, *extract_image_urls(description or "")]
    seen: set[str] = set()
    gallery = []
    for url in candidates:
        if url and url not in seen:
            seen.add(url)
            gallery.append(url)
    return gallery


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[RecipeResponse], summary="List recipes")
async def list_recipes(
    api_key: AuthenticatedClient,
    repository: RecipeRepositoryDep,
) -> list[RecipeResponse]:
    return [RecipeResponse.from_recipe(r) for r in repository.list()]


@router.post(
    "",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a recipe",
)
async def create_recipe(
    request: RecipeCreate,
    api_key: AuthenticatedClient,
    repository: RecipeRepositoryDep,
) -> RecipeResponse:
    try:
        recipe = repository.create(request.title, description=request.description)
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A recipe with this title already exists",
        )
    return RecipeResponse.from_recipe(recipe)


@router.get(
    "/{slug}",
    response_model=RecipeDetailResponse,
    summary="Get a recipe by slug",
    description="Includes the rendered description sections and the image gallery.",
)
async def get_recipe(
    slug: str,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    repository: RecipeRepositoryDep,
    storage: StorageClientDep,
) -> RecipeDetailResponse:
    try:
        recipe = repository.get_by_slug(slug)
    except RecordNotFoundError:
        raise _not_found()

    try:
        album = await _album(storage, settings.recipe_images_bucket, recipe.id)
    except StorageError as e:
        # The recipe is still readable without its album
        logger.warning("Could not list recipe album", extra={"recipe_id": recipe.id, "error": str(e)})
        album = []

    return RecipeDetailResponse(
        **RecipeResponse.from_recipe(recipe).model_dump(),
        sections=recipe_sections_response(recipe.description or ""),
        gallery=build_gallery([a.public_url for a in album], recipe.image_url, recipe.description),
    )


@router.patch("/{recipe_id}", response_model=RecipeResponse, summary="Edit a recipe")
async def update_recipe(
    recipe_id: str,
    request: RecipePatch,
    api_key: AuthenticatedClient,
    repository: RecipeRepositoryDep,
) -> RecipeResponse:
    patch: dict[str, Any] = request.model_dump(exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Nothing to update")
    try:
        return RecipeResponse.from_recipe(repository.update(recipe_id, patch))
    except RecordNotFoundError:
        raise _not_found()
    except DuplicateRecordError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already in use")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a recipe")
async def delete_recipe(
    recipe_id: str,
    api_key: AuthenticatedClient,
    repository: RecipeRepositoryDep,
) -> None:
    try:
        repository.delete(recipe_id)
    except RecordNotFoundError:
        raise _not_found()


@router.post("/{recipe_id}/image", response_model=RecipeResponse, summary="Upload the cover image")
async def upload_recipe_image(
    recipe_id: str,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    repository: RecipeRepositoryDep,
    storage: StorageClientDep,
    file: UploadFile = File(...),
) -> RecipeResponse:
    _require_recipe(repository, recipe_id)
    data = await read_upload(file, settings.max_upload_size_bytes, "image/")
    filename = file.filename or "image.png"
    path = recipe_image_path(recipe_id, filename)
    bucket = settings.recipe_images_bucket
    try:
        await storage.upload(bucket, path, data, file.content_type or guess_content_type(filename, "image/png"))
    except StorageError as e:
        raise storage_failure(e, "upload recipe image")
    return RecipeResponse.from_recipe(repository.set_image_url(recipe_id, storage.public_url(bucket, path)))


@router.get("/{recipe_id}/album", response_model=list[AlbumImage], summary="List album images")
async def list_album(
    recipe_id: str,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    repository: RecipeRepositoryDep,
    storage: StorageClientDep,
) -> list[AlbumImage]:
    _require_recipe(repository, recipe_id)
    try:
        album = await _album(storage, settings.recipe_images_bucket, recipe_id)
    except StorageError as e:
        raise storage_failure(e, "list recipe album")
    return [AlbumImage.from_image(image) for image in album]


@router.post(
    "/{recipe_id}/album",
    response_model=list[AlbumImage],
    status_code=status.HTTP_201_CREATED,
    summary="Add images to the album",
)
async def upload_album_images(
    recipe_id: str,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    repository: RecipeRepositoryDep,
    storage: StorageClientDep,
    files: list[UploadFile] = File(...),
) -> list[AlbumImage]:
    _require_recipe(repository, recipe_id)
    bucket = settings.recipe_images_bucket

    # Validate everything before writing anything
    payloads = [
        (f, await read_upload(f, settings.max_upload_size_bytes, "image/"))
        for f in files
    ]

    uploaded = []
    for file, data in payloads:
        filename = file.filename or "image.png"
        path = recipe_album_path(recipe_id, filename)
        try:
            await storage.upload(bucket, path, data, file.content_type or guess_content_type(filename, "image/png"))
        except StorageError as e:
            raise storage_failure(e, "upload album image")
        uploaded.append(AlbumImage(path=path, public_url=storage.public_url(bucket, path)))

    logger.info("Uploaded album images", extra={"recipe_id": recipe_id, "count": len(uploaded)})
    return uploaded


@router.delete(
    "/{recipe_id}/album",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove an album image",
)
async def delete_album_image(
    recipe_id: str,
    api_key: AuthenticatedClient,
    settings: SettingsDep,
    storage: StorageClientDep,
    path: str = Query(..., description="Object path as returned by the album listing"),
) -> None:
    try:
        ensure_album_path(recipe_id, path)
    except InvalidMediaPathError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    try:
        await storage.delete(settings.recipe_images_bucket, [path])
    except StorageError as e:
        raise storage_failure(e, "delete album image")
