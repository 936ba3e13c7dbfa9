"""
RecipeShare Backend — Rating & Review Route Handlers
=====================================================

    GET /api/recipes/{id}/ratings   → all ratings + summary (+ caller's own)
    GET /api/recipes/{id}/rating    → caller's rating (null if none)
    PUT /api/recipes/{id}/rating    → create or replace caller's rating
    GET /api/reviews                → community review feed

PUT answers 201 for a first rating and 200 for an update.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.rating import (
    RatingSubmit,
    RatingSubmitResponse,
    RecipeRatingsResponse,
    ReviewListResponse,
    RatingResponse,
)
from app.services.rating_service import build_rating_response, rating_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Ratings"])


@router.get(
    "/recipes/{recipe_id}/ratings",
    response_model=RecipeRatingsResponse,
    responses={404: {"description": "Recipe not found", "model": ErrorResponse}},
    summary="Ratings and reviews of a recipe",
)
async def list_recipe_ratings(
    recipe_id: UUID,
    response: Response,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeRatingsResponse:
    result = await rating_service.list_recipe_ratings(db, recipe_id, user=user)
    response.headers["X-Total-Count"] = str(result.summary.total_ratings)
    return result


@router.get(
    "/recipes/{recipe_id}/rating",
    response_model=Optional[RatingResponse],
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="My rating of a recipe",
)
async def get_my_rating(
    recipe_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[RatingResponse]:
    rating = await rating_service.get_user_rating(db, user, recipe_id)
    return build_rating_response(rating) if rating else None


@router.put(
    "/recipes/{recipe_id}/rating",
    response_model=RatingSubmitResponse,
    responses={
        201: {"description": "First rating saved", "model": RatingSubmitResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
    },
    summary="Rate and review a recipe",
)
async def submit_rating(
    recipe_id: UUID,
    body: RatingSubmit,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RatingSubmitResponse:
    rating, created, summary = await rating_service.submit_rating(
        db, user, recipe_id, rating=body.rating, review=body.review
    )
    if created:
        response.status_code = 201
    return RatingSubmitResponse(
        created=created,
        message="Rating submitted successfully!" if created else "Rating updated successfully!",
        rating=build_rating_response(rating),
        summary=summary,
    )


@router.get("/reviews", response_model=ReviewListResponse, summary="Community review feed")
async def list_reviews(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> ReviewListResponse:
    result = await rating_service.list_reviews(db)
    response.headers["X-Total-Count"] = str(result.total_count)
    return result
