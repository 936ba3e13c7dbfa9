"""
RecipeShare Backend — Profile Route Handlers

    GET /api/profile             → own profile (created on first access)
    PUT /api/profile             → edit own profile
    GET /api/profiles/{user_id}  → anyone's public profile
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.profile import ProfileResponse, ProfileUpdate
from app.services.profile_service import profile_service

router = APIRouter(prefix="/api", tags=["Profiles"])


@router.get("/profile", response_model=ProfileResponse, summary="Get my profile")
async def get_my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.get_or_create_profile(db, user)
    return ProfileResponse.model_validate(profile)


@router.put(
    "/profile",
    response_model=ProfileResponse,
    responses={409: {"description": "Username taken", "model": ErrorResponse}},
    summary="Update my profile",
)
async def update_my_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.update_profile(db, user, body)
    return ProfileResponse.model_validate(profile)


@router.get(
    "/profiles/{user_id}",
    response_model=ProfileResponse,
    responses={404: {"description": "No such profile", "model": ErrorResponse}},
    summary="Get a user's public profile",
)
async def get_profile(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.get_profile(db, user_id)
    return ProfileResponse.model_validate(profile)
