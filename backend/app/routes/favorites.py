"""
RecipeShare Backend — Favorite Route Handlers

    GET    /api/recipes/{id}/favorite  → is it one of mine?
    PUT    /api/recipes/{id}/favorite  → add (idempotent)
    DELETE /api/recipes/{id}/favorite  → remove (idempotent)
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.favorite import FavoriteStatus
from app.services.favorite_service import favorite_service

router = APIRouter(prefix="/api/recipes", tags=["Favorites"])


@router.get("/{recipe_id}/favorite", response_model=FavoriteStatus, summary="Favorite status")
async def get_favorite_status(
    recipe_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteStatus:
    is_favorited = await favorite_service.is_favorited(db, user, recipe_id)
    return FavoriteStatus(recipe_id=recipe_id, is_favorited=is_favorited)


@router.put(
    "/{recipe_id}/favorite",
    response_model=FavoriteStatus,
    responses={404: {"description": "Recipe not found", "model": ErrorResponse}},
    summary="Add to favorites",
)
async def add_favorite(
    recipe_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteStatus:
    await favorite_service.add_favorite(db, user, recipe_id)
    return FavoriteStatus(recipe_id=recipe_id, is_favorited=True)


@router.delete("/{recipe_id}/favorite", response_model=FavoriteStatus, summary="Remove from favorites")
async def remove_favorite(
    recipe_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteStatus:
    await favorite_service.remove_favorite(db, user, recipe_id)
    return FavoriteStatus(recipe_id=recipe_id, is_favorited=False)
