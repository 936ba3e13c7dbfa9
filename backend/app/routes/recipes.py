"""
RecipeShare Backend — Recipe Route Handlers
============================================

What:  Community feed and recipe CRUD.
Who:   The frontend's recipes page, detail page, create and edit forms.

Access:
    GET  (feed, detail)        anonymous allowed
    POST / PATCH / DELETE      signed in; edit and delete only by the author

Caching:
    Feed and detail change whenever someone edits or rates, so they are
    never cached by shared caches.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import database_errors, get_db_session
from app.dependencies import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.recipe import (
    Difficulty,
    RecipeCreate,
    RecipeFilter,
    RecipeListResponse,
    RecipeQuery,
    RecipeResponse,
    RecipeSort,
    RecipeUpdate,
)
from app.services.file_service import file_service
from app.services.recipe_service import recipe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Recipes"])


def recipe_query(
    search: Optional[str] = Query(
        default=None, max_length=200,
        description="Case-insensitive match on title, description or any ingredient",
    ),
    filter: RecipeFilter = Query(
        default="all",
        description="Preset: all, easy, medium, hard, quick (prep ≤ 30 min), mine",
    ),
    difficulty: Optional[Difficulty] = Query(default=None),
    category_id: Optional[UUID] = Query(default=None),
    sort: RecipeSort = Query(
        default="newest",
        description="newest, oldest, title, prep_time, difficulty or rating",
    ),
    limit: int = Query(default=24, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> RecipeQuery:
    """Feed options shared by /api/recipes and /api/me/favorites."""
    return RecipeQuery(
        search=search,
        filter=filter,
        difficulty=difficulty,
        category_id=category_id,
        sort=sort,
        limit=limit,
        offset=offset,
    )


async def _release_after_commit(db: AsyncSession, image_url: Optional[str]) -> None:
    """
    Commit now, then delete the image file the edit or delete let go of.

    If the commit fails the recipe still points at its image, so the file
    must survive; get_db_session's own commit afterwards is a no-op.
    """
    if image_url is None:
        return
    with database_errors("Could not save your changes. Please try again."):
        await db.commit()
    await file_service.cleanup_url(image_url)


@router.get(
    "/recipes",
    response_model=RecipeListResponse,
    responses={401: {"description": "filter=mine without signing in", "model": ErrorResponse}},
    summary="Browse the community recipe feed",
)
async def list_recipes(
    response: Response,
    params: RecipeQuery = Depends(recipe_query),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeListResponse:
    result = await recipe_service.list_recipes(db, params, user=user)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["Cache-Control"] = "no-store"
    return result


@router.post(
    "/recipes",
    status_code=201,
    response_model=RecipeResponse,
    responses={
        400: {"description": "Missing title, ingredients or instructions", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Share a new recipe",
)
async def create_recipe(
    body: RecipeCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    return await recipe_service.create_recipe(db, user, body)


@router.get(
    "/recipes/{recipe_id}",
    response_model=RecipeResponse,
    responses={404: {"description": "Recipe not found", "model": ErrorResponse}},
    summary="Get one recipe",
)
async def get_recipe(
    recipe_id: UUID,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    result = await recipe_service.get_recipe(db, recipe_id)
    response.headers["Cache-Control"] = "no-store"
    return result


@router.patch(
    "/recipes/{recipe_id}",
    response_model=RecipeResponse,
    responses={
        400: {"description": "Invalid changes", "model": ErrorResponse},
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
    },
    summary="Edit my recipe",
)
async def update_recipe(
    recipe_id: UUID,
    body: RecipeUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    recipe, released_image = await recipe_service.update_recipe(db, user, recipe_id, body)
    await _release_after_commit(db, released_image)
    return recipe


@router.delete(
    "/recipes/{recipe_id}",
    response_model=MessageResponse,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
    },
    summary="Delete my recipe",
)
async def delete_recipe(
    recipe_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    released_image = await recipe_service.delete_recipe(db, user, recipe_id)
    await _release_after_commit(db, released_image)
    return MessageResponse(message="Recipe deleted.")
