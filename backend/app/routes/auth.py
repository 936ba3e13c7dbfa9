"""
RecipeShare Backend — Auth Route Handlers
==========================================

What:  Sign up, sign in, sign out, and "who am I".
Who:   The frontend's auth modal and its auth context (on page load).

Rate limiting:
    signup and signin share the stricter auth bucket in RateLimitMiddleware.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_bearer_token, get_current_user
from app.models.user import User
from app.schemas.auth import SessionResponse, SignInRequest, SignUpRequest, UserResponse
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _session_response(user: User, session) -> SessionResponse:
    return SessionResponse(
        access_token=session.token,
        expires_at=session.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/signup",
    status_code=201,
    response_model=SessionResponse,
    responses={
        400: {"description": "Password too short", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def sign_up(
    body: SignUpRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    """Registers the account, creates its profile, and returns a session token."""
    user, session = await auth_service.sign_up(
        db, email=body.email, password=body.password, full_name=body.full_name
    )
    return _session_response(user, session)


@router.post(
    "/signin",
    response_model=SessionResponse,
    responses={
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def sign_in(
    body: SignInRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    user, session = await auth_service.sign_in(db, email=body.email, password=body.password)
    return _session_response(user, session)


@router.post(
    "/signout",
    response_model=MessageResponse,
    responses={401: {"description": "No bearer token", "model": ErrorResponse}},
    summary="End the current session",
)
async def sign_out(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.sign_out(db, token)
    return MessageResponse(message="Signed out.")


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="The signed-in account",
)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)
