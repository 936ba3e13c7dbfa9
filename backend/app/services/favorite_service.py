"""
RecipeShare Backend — Favorite Service
=======================================

What:  Marks recipes as a user's favorites and lists them.
How:   Add and remove are idempotent: favoriting twice keeps one row,
       removing a non-favorite is a no-op. The favorites list accepts the
       same search / preset filter / sort options as the community feed
       and also reports unfiltered counts for the page's stat tiles.
Who:   Favorite routes, "me" routes, DashboardService.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import database_errors
from app.models.favorite import RecipeFavorite
from app.models.recipe import Recipe
from app.models.user import User
from app.schemas.favorite import FavoriteCounts, FavoriteListResponse
from app.schemas.recipe import RecipeQuery
from app.services.recipe_service import (
    QUICK_PREP_MINUTES,
    build_recipe_response,
    filter_conditions,
    rating_stats_subquery,
    recipe_service,
    recipes_with_stats,
    sort_clauses,
)

logger = logging.getLogger(__name__)


class FavoriteService:

    async def is_favorited(self, db: AsyncSession, user: User, recipe_id: UUID) -> bool:
        with database_errors("Could not check your favorites. Please try again.", recipe_id=str(recipe_id)):
            result = await db.execute(
                select(RecipeFavorite.id).where(
                    RecipeFavorite.recipe_id == recipe_id,
                    RecipeFavorite.user_id == user.id,
                )
            )
            return result.scalar_one_or_none() is not None

    async def add_favorite(self, db: AsyncSession, user: User, recipe_id: UUID) -> None:
        """Favorite a recipe. NotFoundError for an unknown recipe; repeats are no-ops."""
        await recipe_service.get_recipe_model(db, recipe_id)

        statement = (
            insert(RecipeFavorite)
            .values(recipe_id=recipe_id, user_id=user.id)
            .on_conflict_do_nothing(constraint="uq_recipe_favorites_recipe_user")
        )
        with database_errors("Could not add the favorite. Please try again.", recipe_id=str(recipe_id)):
            await db.execute(statement)

        logger.info("Favorite added: recipe=%s user=%s", recipe_id, user.id)

    async def remove_favorite(self, db: AsyncSession, user: User, recipe_id: UUID) -> None:
        with database_errors("Could not remove the favorite. Please try again.", recipe_id=str(recipe_id)):
            await db.execute(
                delete(RecipeFavorite).where(
                    RecipeFavorite.recipe_id == recipe_id,
                    RecipeFavorite.user_id == user.id,
                )
            )

        logger.info("Favorite removed: recipe=%s user=%s", recipe_id, user.id)

    async def count_favorites(self, db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(
            select(func.count(RecipeFavorite.id)).where(RecipeFavorite.user_id == user_id)
        )
        return result.scalar_one()

    async def _counts(self, db: AsyncSession, user: User) -> FavoriteCounts:
        query = (
            select(
                func.count(Recipe.id),
                func.count(Recipe.id).filter(Recipe.difficulty == "Easy"),
                func.count(Recipe.id).filter(func.coalesce(Recipe.prep_time, 0) <= QUICK_PREP_MINUTES),
                func.count(Recipe.id).filter(Recipe.user_id == user.id),
            )
            .join(RecipeFavorite, RecipeFavorite.recipe_id == Recipe.id)
            .where(RecipeFavorite.user_id == user.id)
        )
        total, easy, quick, mine = (await db.execute(query)).one()
        return FavoriteCounts(total=total, easy=easy, quick=quick, mine=mine)

    async def list_favorites(
        self, db: AsyncSession, user: User, params: RecipeQuery
    ) -> FavoriteListResponse:
        """
        The caller's favorite recipes.

        Filters and sort work as on the feed (`mine` = favorites the caller
        wrote). total_count is the filtered count; counts are over all
        favorites.
        """
        conditions = [RecipeFavorite.user_id == user.id, *filter_conditions(params, user.id)]
        stats = rating_stats_subquery()

        query = (
            recipes_with_stats(stats)
            .join(RecipeFavorite, RecipeFavorite.recipe_id == Recipe.id)
            .where(*conditions)
            .order_by(*sort_clauses(params.sort, stats))
            .limit(params.limit)
            .offset(params.offset)
        )
        count_query = (
            select(func.count(Recipe.id))
            .join(RecipeFavorite, RecipeFavorite.recipe_id == Recipe.id)
            .where(*conditions)
        )

        with database_errors("Could not load your favorites. Please try again.", user_id=str(user.id)):
            total_count = (await db.execute(count_query)).scalar_one()
            rows = (await db.execute(query)).all()
            counts = await self._counts(db, user)

        return FavoriteListResponse(
            recipes=[build_recipe_response(recipe, average, total) for recipe, average, total in rows],
            total_count=total_count,
            counts=counts,
        )


favorite_service = FavoriteService()
