"""
RecipeShare Backend — Profile Service
======================================

What:  Read, lazily create, and edit user profiles.
Who:   Profile routes, AuthService (profile at sign-up), DashboardService.

Lazy creation:
    Accounts predating profiles (or whose profile row was removed) get one
    the first time they ask for it: username from the email's local part,
    made unique with a numeric suffix if needed.
"""

import logging
import re
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import database_errors
from app.exceptions import ConflictError, NotFoundError
from app.models.base import utcnow
from app.models.profile import Profile
from app.models.user import User
from app.schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)

_USERNAME_INVALID_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def default_username(email: str) -> str:
    """Local part of the email with unsupported characters removed, or 'user'."""
    local_part = email.split("@", 1)[0]
    cleaned = _USERNAME_INVALID_CHARS.sub("", local_part)[:40]
    return cleaned or "user"


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim; blank becomes None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class ProfileService:

    async def _username_taken(
        self, db: AsyncSession, username: str, exclude_id: Optional[UUID] = None
    ) -> bool:
        query = select(Profile.id).where(Profile.username == username)
        if exclude_id is not None:
            query = query.where(Profile.id != exclude_id)
        result = await db.execute(query)
        return result.scalar_one_or_none() is not None

    async def _available_username(self, db: AsyncSession, base: str) -> str:
        candidate = base
        suffix = 1
        while await self._username_taken(db, candidate):
            suffix += 1
            candidate = f"{base}{suffix}"
        return candidate

    async def create_profile(
        self, db: AsyncSession, user: User, full_name: Optional[str] = None
    ) -> Profile:
        username = await self._available_username(db, default_username(user.email))
        profile = Profile(
            id=user.id,
            username=username,
            full_name=clean_text(full_name),
            bio=None,
        )
        db.add(profile)
        await db.flush()
        logger.info("Profile created for user %s (username=%s)", user.id, username)
        return profile

    async def get_or_create_profile(self, db: AsyncSession, user: User) -> Profile:
        """The caller's own profile, created on first access."""
        with database_errors("Could not load your profile. Please try again.", user_id=str(user.id)):
            result = await db.execute(select(Profile).where(Profile.id == user.id))
            profile = result.scalar_one_or_none()
            if profile is None:
                profile = await self.create_profile(db, user)
            return profile

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> Profile:
        """Any user's public profile."""
        with database_errors("Could not load the profile. Please try again.", user_id=str(user_id)):
            result = await db.execute(select(Profile).where(Profile.id == user_id))
            profile = result.scalar_one_or_none()

        if profile is None:
            raise NotFoundError(resource="profile", resource_id=str(user_id))
        return profile

    async def update_profile(self, db: AsyncSession, user: User, data: ProfileUpdate) -> Profile:
        """
        Apply the fields present in `data`.

        Text is trimmed and blank values are stored as NULL. A username
        already used by someone else raises ConflictError.
        """
        profile = await self.get_or_create_profile(db, user)
        changes = data.model_dump(exclude_unset=True)

        with database_errors("Could not update your profile. Please try again.", user_id=str(user.id)):
            if "username" in changes:
                username = clean_text(changes["username"])
                if username and await self._username_taken(db, username, exclude_id=user.id):
                    raise ConflictError(
                        message=f"The username '{username}' is already taken.",
                        field="username",
                    )
                profile.username = username

            for field in ("full_name", "bio", "avatar_url"):
                if field in changes:
                    setattr(profile, field, clean_text(changes[field]))

            profile.updated_at = utcnow()
            try:
                await db.flush()
            except IntegrityError as e:
                # Lost a race for the same username
                raise ConflictError(
                    message="That username is already taken.",
                    field="username",
                ) from e

        logger.info("Profile updated for user %s: %s", user.id, sorted(changes))
        return profile


profile_service = ProfileService()
