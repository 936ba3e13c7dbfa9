"""
RecipeShare Backend — Account and Session Models
=================================================

What:  `users` (credentials) and `auth_sessions` (opaque bearer tokens).
How:   Passwords are stored as bcrypt hashes only. A session row maps a
       random URL-safe token to a user until expires_at.
Who:   AuthService writes both tables; the auth dependency reads sessions.

Query Patterns:
    - Sign in:        SELECT ... FROM users WHERE email = :email (unique index)
    - Resolve token:  SELECT ... FROM auth_sessions WHERE token = :token (PK)
    - Sign out:       DELETE FROM auth_sessions WHERE token = :token
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.base import CreatedAtMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    """A registered account. Emails are stored lower-cased."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class AuthSession(CreatedAtMixin, Base):
    """
    A signed-in session.

    Lifecycle:
        1. Created by sign-up / sign-in
        2. Looked up on every authenticated request
        3. Deleted by sign-out, or lazily when found expired
    """

    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    user: Mapped[User] = relationship(User, lazy="joined")

    __table_args__ = (
        Index("idx_auth_sessions_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<AuthSession(user_id={self.user_id}, expires_at='{self.expires_at}')>"
