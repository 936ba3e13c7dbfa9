"""
RecipeShare Backend — "Me" Route Handlers
==========================================

What:  Everything scoped to the signed-in user: own recipes, favorites,
       reviews written and received, dashboard counts.
Who:   The frontend's My Recipes, Favorites, My Reviews, Recipe Reviews and
       Dashboard pages.

All endpoints require a bearer token and are marked private, no-store.
"""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.routes.recipes import recipe_query
from app.schemas.dashboard import DashboardResponse
from app.schemas.favorite import FavoriteListResponse
from app.schemas.rating import ReviewListResponse
from app.schemas.recipe import RecipeQuery, RecipeResponse
from app.services.dashboard_service import dashboard_service
from app.services.favorite_service import favorite_service
from app.services.rating_service import rating_service
from app.services.recipe_service import recipe_service

router = APIRouter(prefix="/api/me", tags=["Me"])

_PRIVATE = "private, no-store"


@router.get("/recipes", response_model=List[RecipeResponse], summary="My recipes")
async def my_recipes(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[RecipeResponse]:
    recipes = await recipe_service.list_user_recipes(db, user)
    response.headers["X-Total-Count"] = str(len(recipes))
    response.headers["Cache-Control"] = _PRIVATE
    return recipes


@router.get("/favorites", response_model=FavoriteListResponse, summary="My favorite recipes")
async def my_favorites(
    response: Response,
    params: RecipeQuery = Depends(recipe_query),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteListResponse:
    result = await favorite_service.list_favorites(db, user, params)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["Cache-Control"] = _PRIVATE
    return result


@router.get("/reviews", response_model=ReviewListResponse, summary="Reviews I wrote")
async def my_reviews(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewListResponse:
    result = await rating_service.list_my_reviews(db, user)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["Cache-Control"] = _PRIVATE
    return result


@router.get("/reviews/received", response_model=ReviewListResponse, summary="Reviews of my recipes")
async def reviews_received(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewListResponse:
    result = await rating_service.list_received_reviews(db, user)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["Cache-Control"] = _PRIVATE
    return result


@router.get("/dashboard", response_model=DashboardResponse, summary="My dashboard numbers")
async def my_dashboard(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DashboardResponse:
    response.headers["Cache-Control"] = _PRIVATE
    return await dashboard_service.get_dashboard(db, user)
