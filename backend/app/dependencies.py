"""
RecipeShare Backend — Request Dependencies
===========================================

What:  FastAPI dependencies that turn `Authorization: Bearer <token>` into a
       User.
How:   HTTPBearer(auto_error=False) extracts the token without failing, so
       a missing header can be reported through our own 401 body (and so
       public endpoints can accept anonymous callers).

    get_current_user   → User, or AuthenticationError (401)
    get_optional_user  → User or None; a bad token is still a 401
    get_bearer_token   → the raw token (sign-out)
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import AuthenticationError
from app.models.user import User
from app.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False, description="Session token from sign-in")


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await auth_service.resolve_session(db, token)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    return await auth_service.resolve_session(db, credentials.credentials)
