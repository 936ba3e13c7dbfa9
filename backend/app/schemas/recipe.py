"""
RecipeShare Backend — Recipe Schemas
=====================================

What:  API contracts for creating, editing, listing and viewing recipes.
How:   Request models check types and ranges (FastAPI answers 422);
       RecipeService applies the business rules on top (trimmed title,
       blank ingredient/instruction lines dropped, at least one of each)
       and answers 400 when they fail.

Feed options:
    sort:   newest | oldest | title | prep_time | difficulty | rating
    filter: all | easy | medium | hard | quick | mine
            quick = prep time of 30 minutes or less (unknown prep time counts as 0)
            mine  = recipes written by the signed-in user
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.category import CategorySummary
from app.schemas.profile import AuthorSummary

Difficulty = Literal["Easy", "Medium", "Hard"]
RecipeSort = Literal["newest", "oldest", "title", "prep_time", "difficulty", "rating"]
RecipeFilter = Literal["all", "easy", "medium", "hard", "quick", "mine"]

# One week, in minutes
MAX_MINUTES = 7 * 24 * 60


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeCreate(BaseModel):
    """
    Body of POST /api/recipes.

    Ingredients and instructions are ordered lists; the editor may send
    blank rows (an "add ingredient" click that was never filled in),
    which are dropped before saving.
    """
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    ingredients: List[str] = Field(default_factory=list, max_length=100)
    instructions: List[str] = Field(default_factory=list, max_length=100)
    prep_time: Optional[int] = Field(default=None, ge=0, le=MAX_MINUTES)
    cook_time: Optional[int] = Field(default=None, ge=0, le=MAX_MINUTES)
    servings: Optional[int] = Field(default=None, ge=1, le=100)
    difficulty: Optional[Difficulty] = None
    image_url: Optional[str] = Field(default=None, max_length=2048)
    category_id: Optional[uuid.UUID] = None


class RecipeUpdate(BaseModel):
    """
    Body of PATCH /api/recipes/{id}.

    Only fields present in the request are changed. Sending null clears an
    optional field; title, ingredients and instructions cannot be cleared.
    """
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    ingredients: Optional[List[str]] = Field(default=None, max_length=100)
    instructions: Optional[List[str]] = Field(default=None, max_length=100)
    prep_time: Optional[int] = Field(default=None, ge=0, le=MAX_MINUTES)
    cook_time: Optional[int] = Field(default=None, ge=0, le=MAX_MINUTES)
    servings: Optional[int] = Field(default=None, ge=1, le=100)
    difficulty: Optional[Difficulty] = None
    image_url: Optional[str] = Field(default=None, max_length=2048)
    category_id: Optional[uuid.UUID] = None


class RecipeQuery(BaseModel):
    """Validated feed / favorites listing options."""
    search: Optional[str] = Field(default=None, max_length=200)
    filter: RecipeFilter = "all"
    difficulty: Optional[Difficulty] = None
    category_id: Optional[uuid.UUID] = None
    sort: RecipeSort = "newest"
    limit: int = Field(default=24, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeListItem(BaseModel):
    """Card-sized recipe for feeds and grids (no ingredient/instruction lists)."""
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    image_url: Optional[str] = None
    user_id: uuid.UUID
    category: Optional[CategorySummary] = None
    author: Optional[AuthorSummary] = None
    created_at: datetime
    average_rating: float = Field(default=0.0, description="Mean score, one decimal; 0 when unrated")
    total_ratings: int = Field(default=0)


class RecipeResponse(RecipeListItem):
    """Full recipe for the detail and edit pages."""
    ingredients: List[str]
    instructions: List[str]
    total_time: Optional[int] = Field(default=None, description="prep_time + cook_time")
    updated_at: datetime


class RecipeListResponse(BaseModel):
    recipes: List[RecipeListItem]
    total_count: int = Field(description="Recipes matching the filters, across all pages")
    limit: int
    offset: int
    has_more: bool
