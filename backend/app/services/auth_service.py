"""
RecipeShare Backend — Authentication Service
=============================================

What:  Email/password accounts and bearer-token sessions.
How:   Passwords are hashed with bcrypt (in a worker thread, the hash is
       deliberately slow). Sessions are random URL-safe tokens stored in
       `auth_sessions` with an expiry; signing out deletes the row.
Who:   Auth routes (sign up / in / out) and the get_current_user dependency
       (resolve_session) used by every authenticated endpoint.

Session Lifecycle:
    sign_up / sign_in ──▶ token issued (expires after SESSION_TTL_HOURS)
    each request      ──▶ resolve_session(token) → User
    expired token     ──▶ row deleted (own transaction), 401
    sign_out          ──▶ row deleted (idempotent)
"""

import asyncio
import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple

import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session_factory, database_errors
from app.exceptions import AuthenticationError, ConflictError, ValidationError
from app.models.base import utcnow
from app.models.user import AuthSession, User
from app.services.profile_service import profile_service

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.error("Stored password hash is not a valid bcrypt hash")
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """
    Account and session operations.

    Error Handling:
        Bad credentials → AuthenticationError (same message whether the email
        is unknown or the password is wrong). Duplicate email → ConflictError.
        Database failures → DatabaseError via database_errors().
    """

    async def _create_session(self, db: AsyncSession, user: User) -> AuthSession:
        session = AuthSession(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            expires_at=utcnow() + timedelta(hours=settings.session_ttl_hours),
        )
        session.user = user
        db.add(session)
        await db.flush()
        return session

    async def sign_up(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> Tuple[User, AuthSession]:
        """
        Register an account, create its profile, and sign it in.

        Raises:
            ValidationError: password shorter than settings.password_min_length
            ConflictError:   email already registered
        """
        email = normalize_email(email)
        if len(password) < settings.password_min_length:
            raise ValidationError(
                message=f"Password must be at least {settings.password_min_length} characters long.",
                field="password",
            )

        with database_errors("Could not create your account. Please try again."):
            existing = await db.execute(select(User.id).where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(
                    message="An account with this email already exists.",
                    field="email",
                )

            password_hash = await asyncio.to_thread(hash_password, password)
            user = User(email=email, password_hash=password_hash)
            db.add(user)
            try:
                await db.flush()
            except IntegrityError as e:
                raise ConflictError(
                    message="An account with this email already exists.",
                    field="email",
                ) from e

            await profile_service.create_profile(db, user, full_name=full_name)
            session = await self._create_session(db, user)

        logger.info("User signed up: %s", user.id)
        return user, session

    async def sign_in(self, db: AsyncSession, email: str, password: str) -> Tuple[User, AuthSession]:
        """Verify credentials and open a new session."""
        email = normalize_email(email)

        with database_errors("Could not sign you in. Please try again."):
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()

            if user is None or not await asyncio.to_thread(
                verify_password, password, user.password_hash
            ):
                logger.info("Failed sign-in attempt for %s", email)
                raise AuthenticationError(message="Invalid email or password.")

            session = await self._create_session(db, user)

        logger.info("User signed in: %s", user.id)
        return user, session

    async def sign_out(self, db: AsyncSession, token: str) -> None:
        """Delete the session; unknown tokens are ignored."""
        with database_errors("Could not sign you out. Please try again."):
            await db.execute(delete(AuthSession).where(AuthSession.token == token))

    async def resolve_session(self, db: AsyncSession, token: str) -> User:
        """
        Return the user behind a bearer token.

        Raises AuthenticationError for unknown tokens and for expired
        sessions (which are deleted on the way out).
        """
        with database_errors("Could not verify your session. Please try again."):
            result = await db.execute(select(AuthSession).where(AuthSession.token == token))
            session = result.scalar_one_or_none()

            if session is None:
                raise AuthenticationError(message="Invalid session. Please sign in again.")

        if session.expires_at <= utcnow():
            await self._discard_session(token)
            raise AuthenticationError(message="Your session has expired. Please sign in again.")

        return session.user

    async def _discard_session(self, token: str) -> None:
        """
        Delete an expired session in its own transaction.

        The request's session is rolled back when the 401 propagates, so the
        delete cannot ride on it.
        """
        try:
            async with async_session_factory() as cleanup:
                await cleanup.execute(delete(AuthSession).where(AuthSession.token == token))
                await cleanup.commit()
            logger.info("Expired session removed")
        except SQLAlchemyError as e:
            # The caller still gets the 401; the row is retried on next use
            logger.warning("Could not remove expired session: %s", str(e))


auth_service = AuthService()
