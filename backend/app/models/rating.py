"""
RecipeShare Backend — Rating Model
===================================

What:  A user's 1–5 star score for a recipe, with an optional written review.
How:   UNIQUE (recipe_id, user_id) makes "one rating per user per recipe"
       a database invariant; RatingService upserts against it.
"""

import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, SmallInteger, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.base import TimestampMixin, UUIDPrimaryKeyMixin
from app.models.profile import Profile

if TYPE_CHECKING:
    from app.models.recipe import Recipe

MIN_RATING = 1
MAX_RATING = 5


class RecipeRating(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "recipe_ratings"

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
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    review: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    reviewer: Mapped[Optional[Profile]] = relationship(
        Profile,
        primaryjoin="foreign(RecipeRating.user_id) == Profile.id",
        viewonly=True,
        lazy="joined",
    )
    # Only loaded explicitly (contains_eager in the review feeds)
    recipe: Mapped["Recipe"] = relationship("Recipe", lazy="raise")

    __table_args__ = (
        UniqueConstraint("recipe_id", "user_id", name="uq_recipe_ratings_recipe_user"),
        CheckConstraint(
            f"rating BETWEEN {MIN_RATING} AND {MAX_RATING}",
            name="ck_recipe_ratings_rating",
        ),
        Index("idx_recipe_ratings_user_id", "user_id"),
        Index("idx_recipe_ratings_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<RecipeRating(recipe_id={self.recipe_id}, user_id={self.user_id}, rating={self.rating})>"
