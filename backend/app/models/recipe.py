"""
RecipeShare Backend — Recipe Model
===================================

What:  ORM model for the `recipes` table, the center of the data model.
How:   Ingredients and instructions are ordered PostgreSQL TEXT[] arrays;
       the array position is the display order. Category and author are
       eager-loaded (joined) because every recipe response shows them.
Who:   RecipeService (CRUD, feed), FavoriteService and RatingService (joins).

Table Design:
    - user_id → users.id ON DELETE CASCADE (an account takes its recipes with it)
    - category_id → categories.id ON DELETE SET NULL (recipes survive taxonomy edits)
    - difficulty constrained to Easy / Medium / Hard (or NULL)
    - ratings and favorites reference recipes ON DELETE CASCADE, so deleting
      a recipe removes its reviews and favorite marks in the same statement

Query Patterns:
    - Community feed: ORDER BY created_at DESC → idx_recipes_created_at
    - "My recipes":   WHERE user_id = :uid    → idx_recipes_user_id
    - Category filter: WHERE category_id = :cid → idx_recipes_category_id
"""

import uuid
from typing import List, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.base import TimestampMixin, UUIDPrimaryKeyMixin
from app.models.category import Category
from app.models.profile import Profile

DIFFICULTIES = ("Easy", "Medium", "Hard")


class Recipe(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A shared recipe."""

    __tablename__ = "recipes"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ingredients: Mapped[List[str]] = mapped_column(ARRAY(Text), nullable=False, default=list)
    instructions: Mapped[List[str]] = mapped_column(ARRAY(Text), nullable=False, default=list)

    # Minutes
    prep_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cook_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    servings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    difficulty: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    category: Mapped[Optional[Category]] = relationship(Category, lazy="joined")
    # No FK from recipes to profiles: both point at users.id.
    author: Mapped[Optional[Profile]] = relationship(
        Profile,
        primaryjoin="foreign(Recipe.user_id) == Profile.id",
        viewonly=True,
        lazy="joined",
    )

    __table_args__ = (
        CheckConstraint(
            "difficulty IS NULL OR difficulty IN ('Easy', 'Medium', 'Hard')",
            name="ck_recipes_difficulty",
        ),
        CheckConstraint("prep_time IS NULL OR prep_time >= 0", name="ck_recipes_prep_time"),
        CheckConstraint("cook_time IS NULL OR cook_time >= 0", name="ck_recipes_cook_time"),
        CheckConstraint("servings IS NULL OR servings >= 1", name="ck_recipes_servings"),
        Index("idx_recipes_created_at", "created_at"),
        Index("idx_recipes_user_id", "user_id"),
        Index("idx_recipes_category_id", "category_id"),
    )

    @property
    def total_time(self) -> Optional[int]:
        if self.prep_time is None and self.cook_time is None:
            return None
        return (self.prep_time or 0) + (self.cook_time or 0)

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title='{self.title}')>"
