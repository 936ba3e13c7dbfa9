"""
RecipeShare Backend — Rating & Review Service
==============================================

What:  Star ratings (1–5) with optional written reviews, their per-recipe
       summary, and the review feeds (community, mine, on my recipes).
How:   One row per (recipe, user), guaranteed by a unique constraint.
       submit_rating() updates the caller's existing row or inserts a new one
       and reports which happened.
Who:   Rating routes, review routes, "me" routes, DashboardService.

Summary Math:
    average   = sum / n, rounded to one decimal (0 when n == 0)
    histogram = stars 5..1, each {count, percentage of n}; counts sum to n
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from app.database import database_errors
from app.exceptions import ConflictError, ValidationError
from app.models.base import utcnow
from app.models.rating import MAX_RATING, MIN_RATING, RecipeRating
from app.models.recipe import Recipe
from app.models.user import User
from app.schemas.profile import AuthorSummary
from app.schemas.rating import (
    RatingResponse,
    RatingSummary,
    RecipeRatingsResponse,
    ReviewedRecipe,
    ReviewFeedItem,
    ReviewListResponse,
    StarBucket,
)
from app.services.profile_service import clean_text
from app.services.recipe_service import recipe_service

logger = logging.getLogger(__name__)


def summarize_ratings(scores: Iterable[int]) -> RatingSummary:
    """Average (one decimal) and a 5..1 star histogram for a list of scores."""
    scores = list(scores)
    total = len(scores)
    counts = Counter(scores)

    average = round(sum(scores) / total, 1) if total else 0.0
    histogram = [
        StarBucket(
            stars=stars,
            count=counts.get(stars, 0),
            percentage=round(counts.get(stars, 0) / total * 100, 1) if total else 0.0,
        )
        for stars in range(MAX_RATING, MIN_RATING - 1, -1)
    ]
    return RatingSummary(average_rating=average, total_ratings=total, histogram=histogram)


def build_rating_response(rating: RecipeRating) -> RatingResponse:
    return RatingResponse(
        id=rating.id,
        recipe_id=rating.recipe_id,
        user_id=rating.user_id,
        rating=rating.rating,
        review=rating.review,
        reviewer=AuthorSummary.model_validate(rating.reviewer) if rating.reviewer else None,
        created_at=rating.created_at,
        updated_at=rating.updated_at,
    )


def build_feed_item(rating: RecipeRating, recipe: Recipe) -> ReviewFeedItem:
    return ReviewFeedItem(
        **build_rating_response(rating).model_dump(),
        recipe=ReviewedRecipe(id=recipe.id, title=recipe.title, image_url=recipe.image_url),
    )


class RatingService:

    async def _find(self, db: AsyncSession, user_id: UUID, recipe_id: UUID) -> Optional[RecipeRating]:
        result = await db.execute(
            select(RecipeRating).where(
                RecipeRating.recipe_id == recipe_id,
                RecipeRating.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def _scores(self, db: AsyncSession, recipe_id: UUID) -> List[int]:
        result = await db.execute(
            select(RecipeRating.rating).where(RecipeRating.recipe_id == recipe_id)
        )
        return list(result.scalars().all())

    async def submit_rating(
        self,
        db: AsyncSession,
        user: User,
        recipe_id: UUID,
        rating: int,
        review: Optional[str] = None,
    ) -> Tuple[RecipeRating, bool, RatingSummary]:
        """
        Create or replace the caller's rating of a recipe.

        Returns (rating row, created?, updated summary).

        Raises:
            ValidationError: score outside 1–5
            NotFoundError:   unknown recipe
        """
        if isinstance(rating, bool) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                message=f"Rating must be a whole number from {MIN_RATING} to {MAX_RATING}.",
                field="rating",
            )

        await recipe_service.get_recipe_model(db, recipe_id)
        review = clean_text(review)

        with database_errors("Could not save your rating. Please try again.", recipe_id=str(recipe_id)):
            existing = await self._find(db, user.id, recipe_id)
            if existing is not None:
                existing.rating = rating
                existing.review = review
                existing.updated_at = utcnow()
                row, created = existing, False
            else:
                row = RecipeRating(recipe_id=recipe_id, user_id=user.id, rating=rating, review=review)
                db.add(row)
                created = True

            try:
                await db.flush()
            except IntegrityError as e:
                # Two submissions from the same user raced each other
                raise ConflictError(
                    message="Your rating was just saved from another request. Please reload.",
                    context={"recipe_id": str(recipe_id)},
                ) from e

            # Reviewer profile for the response
            await db.refresh(row, attribute_names=["reviewer"])
            summary = summarize_ratings(await self._scores(db, recipe_id))

        logger.info(
            "Rating %s: recipe=%s user=%s score=%d",
            "created" if created else "updated", recipe_id, user.id, rating,
        )
        return row, created, summary

    async def get_user_rating(
        self, db: AsyncSession, user: User, recipe_id: UUID
    ) -> Optional[RecipeRating]:
        """The caller's rating of the recipe, or None."""
        with database_errors("Could not load your rating. Please try again.", recipe_id=str(recipe_id)):
            return await self._find(db, user.id, recipe_id)

    async def list_recipe_ratings(
        self, db: AsyncSession, recipe_id: UUID, user: Optional[User] = None
    ) -> RecipeRatingsResponse:
        """All ratings of a recipe, newest first, with the summary and the caller's own."""
        await recipe_service.get_recipe_model(db, recipe_id)

        with database_errors("Could not load ratings. Please try again.", recipe_id=str(recipe_id)):
            result = await db.execute(
                select(RecipeRating)
                .where(RecipeRating.recipe_id == recipe_id)
                .order_by(RecipeRating.created_at.desc(), RecipeRating.id.asc())
            )
            ratings = list(result.scalars().all())

        own = None
        if user is not None:
            own = next((r for r in ratings if r.user_id == user.id), None)

        return RecipeRatingsResponse(
            summary=summarize_ratings(r.rating for r in ratings),
            ratings=[build_rating_response(r) for r in ratings],
            user_rating=build_rating_response(own) if own else None,
        )

    # ── Review Feeds ──────────────────────────────────────────────────────

    async def _review_feed(self, db: AsyncSession, *conditions, message: str) -> ReviewListResponse:
        query = (
            select(RecipeRating)
            .join(Recipe, Recipe.id == RecipeRating.recipe_id)
            .options(contains_eager(RecipeRating.recipe))
            .where(*conditions)
            .order_by(RecipeRating.created_at.desc(), RecipeRating.id.asc())
        )
        with database_errors(message):
            result = await db.execute(query)
            ratings = list(result.scalars().unique().all())

        reviews = [build_feed_item(r, r.recipe) for r in ratings]
        return ReviewListResponse(reviews=reviews, total_count=len(reviews))

    async def list_reviews(self, db: AsyncSession) -> ReviewListResponse:
        """Community feed: every rating, newest first, with its recipe."""
        return await self._review_feed(db, message="Could not load reviews. Please try again.")

    async def list_my_reviews(self, db: AsyncSession, user: User) -> ReviewListResponse:
        """Ratings the caller has written."""
        return await self._review_feed(
            db,
            RecipeRating.user_id == user.id,
            message="Could not load your reviews. Please try again.",
        )

    async def list_received_reviews(self, db: AsyncSession, user: User) -> ReviewListResponse:
        """Ratings other people (or the caller) left on the caller's recipes."""
        return await self._review_feed(
            db,
            Recipe.user_id == user.id,
            message="Could not load reviews of your recipes. Please try again.",
        )

    # ── Counts ────────────────────────────────────────────────────────────

    async def count_written(self, db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(
            select(func.count(RecipeRating.id)).where(RecipeRating.user_id == user_id)
        )
        return result.scalar_one()

    async def count_received(self, db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(
            select(func.count(RecipeRating.id))
            .join(Recipe, Recipe.id == RecipeRating.recipe_id)
            .where(Recipe.user_id == user_id)
        )
        return result.scalar_one()


rating_service = RatingService()
