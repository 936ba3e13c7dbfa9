"""
RecipeShare Backend — Profile Model
====================================

What:  Public-facing details of a user (`profiles` table).
How:   The primary key IS the user id (one profile per user). Rows are
       created at sign-up, or lazily the first time a user opens their
       profile if an older account has none.
Who:   ProfileService (read/write); recipe and rating queries join it to
       show author / reviewer names.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import TimestampMixin


class Profile(TimestampMixin, Base):
    """A user's display name, bio and avatar URL."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    username: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Plain URL; avatars are not uploaded to our storage.
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or "Anonymous"

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, username='{self.username}')>"
