"""
RecipeShare Backend — Rating & Review Schemas
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.profile import AuthorSummary


class RatingSubmit(BaseModel):
    """Body of PUT /api/recipes/{id}/rating: creates or replaces the caller's rating."""
    # Strict: "4" and 4.0 are rejected, only a JSON integer is a score
    rating: int = Field(ge=1, le=5, strict=True, description="Star score, 1 to 5")
    review: Optional[str] = Field(default=None, max_length=5000)


class RatingResponse(BaseModel):
    id: uuid.UUID
    recipe_id: uuid.UUID
    user_id: uuid.UUID
    rating: int
    review: Optional[str] = None
    reviewer: Optional[AuthorSummary] = None
    created_at: datetime
    updated_at: datetime


class StarBucket(BaseModel):
    stars: int
    count: int
    percentage: float = Field(description="Share of all ratings, 0-100")


class RatingSummary(BaseModel):
    """
    Aggregate of a recipe's ratings.

    Invariants: average = sum / total (one decimal, 0 when total == 0);
    histogram lists stars 5..1 and its counts sum to total.
    """
    average_rating: float
    total_ratings: int
    histogram: List[StarBucket]


class RecipeRatingsResponse(BaseModel):
    summary: RatingSummary
    ratings: List[RatingResponse]
    user_rating: Optional[RatingResponse] = Field(
        default=None, description="The signed-in caller's own rating, if any"
    )


class RatingSubmitResponse(BaseModel):
    created: bool = Field(description="True for a first rating, False when an existing one was updated")
    message: str
    rating: RatingResponse
    summary: RatingSummary


class ReviewedRecipe(BaseModel):
    id: uuid.UUID
    title: str
    image_url: Optional[str] = None


class ReviewFeedItem(RatingResponse):
    """A rating together with the recipe it is about (review feeds)."""
    recipe: ReviewedRecipe


class ReviewListResponse(BaseModel):
    reviews: List[ReviewFeedItem]
    total_count: int
