"""
RecipeShare Backend — Favorite Schemas
"""

import uuid
from typing import List

from pydantic import BaseModel

from app.schemas.recipe import RecipeResponse


class FavoriteStatus(BaseModel):
    recipe_id: uuid.UUID
    is_favorited: bool


class FavoriteCounts(BaseModel):
    """Quick-stat tiles on the favorites page, over all favorites (unfiltered)."""
    total: int
    easy: int
    quick: int
    mine: int


class FavoriteListResponse(BaseModel):
    recipes: List[RecipeResponse]
    total_count: int
    counts: FavoriteCounts
