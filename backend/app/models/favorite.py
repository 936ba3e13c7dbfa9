"""
RecipeShare Backend — Favorite Model
=====================================

What:  Membership of a recipe in a user's favorites. No attributes beyond
       the pair and when it was added.
"""

import uuid

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import CreatedAtMixin, UUIDPrimaryKeyMixin


class RecipeFavorite(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "recipe_favorites"

    recipe_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("recipe_id", "user_id", name="uq_recipe_favorites_recipe_user"),
        Index("idx_recipe_favorites_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<RecipeFavorite(recipe_id={self.recipe_id}, user_id={self.user_id})>"
