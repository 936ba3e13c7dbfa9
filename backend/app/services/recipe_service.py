"""
RecipeShare Backend — Recipe Service
=====================================

What:  Create, read, edit and delete recipes; the community feed and the
       caller's own recipe list.
How:   Every read joins a per-recipe rating aggregate (average, count) so
       cards and detail pages carry their score without a second query.
       Feed search / filter / sort run in SQL and are paginated with
       offset + limit.
Who:   Recipe routes, "me" routes, FavoriteService (shares the query
       helpers below).

Feed Query (simplified):
    SELECT recipes.*, coalesce(stats.avg, 0), coalesce(stats.n, 0)
    FROM recipes
    LEFT JOIN (SELECT recipe_id, avg(rating), count(*) FROM recipe_ratings
               GROUP BY recipe_id) AS stats ON stats.recipe_id = recipes.id
    WHERE <search> AND <filter> AND <difficulty> AND <category>
    ORDER BY <sort>, recipes.id
    LIMIT :limit OFFSET :offset

Ownership:
    Only the author may edit or delete a recipe (403 otherwise). Deleting a
    recipe cascades to its ratings and favorites in the database.

Images:
    A recipe may point at an external URL or at a file its author uploaded;
    another user's stored file is rejected. Edit and delete return the
    image URL they released when the recipe owner uploaded it and no other
    recipe still shows it. The route deletes that file after the commit.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import database_errors
from app.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.base import utcnow
from app.models.rating import RecipeRating
from app.models.recipe import Recipe
from app.models.user import User
from app.schemas.category import CategorySummary
from app.schemas.profile import AuthorSummary
from app.schemas.recipe import (
    RecipeCreate,
    RecipeListItem,
    RecipeListResponse,
    RecipeQuery,
    RecipeResponse,
    RecipeUpdate,
)
from app.services.category_service import category_service
from app.services.file_service import file_service
from app.services.profile_service import clean_text

logger = logging.getLogger(__name__)

# "Quick" preset: prep time at most this many minutes
QUICK_PREP_MINUTES = 30

_DIFFICULTY_RANK = case(
    (Recipe.difficulty == "Easy", 1),
    (Recipe.difficulty == "Medium", 2),
    (Recipe.difficulty == "Hard", 3),
    else_=0,
)


# ── Normalization ─────────────────────────────────────────────────────────

def clean_steps(items: Optional[List[str]]) -> List[str]:
    """Trim every entry and drop the blank ones, keeping order."""
    if not items:
        return []
    return [item.strip() for item in items if item and item.strip()]


def _require_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError(message="Recipe title is required.", field="title")
    return cleaned


def _require_steps(items: Optional[List[str]], field: str, label: str) -> List[str]:
    cleaned = clean_steps(items)
    if not cleaned:
        raise ValidationError(message=f"Add at least one {label}.", field=field)
    return cleaned


def _require_own_image(image_url: Optional[str], user: User) -> Optional[str]:
    """External links pass; a stored file must have been uploaded by `user`."""
    cleaned = clean_text(image_url)
    if file_service.relative_path_from_url(cleaned) is None:
        return cleaned
    if file_service.owner_of_url(cleaned) != user.id:
        raise ValidationError(
            message="Use an image you uploaded or a link to an external image.",
            field="image_url",
        )
    return cleaned


# ── Query Helpers ─────────────────────────────────────────────────────────

def rating_stats_subquery():
    """Per-recipe average score and rating count."""
    return (
        select(
            RecipeRating.recipe_id.label("recipe_id"),
            func.avg(RecipeRating.rating).label("average_rating"),
            func.count(RecipeRating.id).label("total_ratings"),
        )
        .group_by(RecipeRating.recipe_id)
        .subquery("rating_stats")
    )


def recipes_with_stats(stats) -> Select:
    """SELECT recipe, average, count with unrated recipes reported as 0 / 0."""
    return select(
        Recipe,
        func.coalesce(stats.c.average_rating, 0).label("average_rating"),
        func.coalesce(stats.c.total_ratings, 0).label("total_ratings"),
    ).outerjoin(stats, stats.c.recipe_id == Recipe.id)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def filter_conditions(params: RecipeQuery, user_id: Optional[UUID]) -> List[Any]:
    """
    WHERE clauses for the search / preset filter / difficulty / category options.

    The `mine` preset needs a signed-in user.
    """
    conditions: List[Any] = []

    search = (params.search or "").strip()
    if search:
        pattern = f"%{_escape_like(search)}%"
        conditions.append(
            or_(
                Recipe.title.ilike(pattern, escape="\\"),
                Recipe.description.ilike(pattern, escape="\\"),
                func.array_to_string(Recipe.ingredients, " ").ilike(pattern, escape="\\"),
            )
        )

    preset = params.filter
    if preset in ("easy", "medium", "hard"):
        conditions.append(Recipe.difficulty == preset.capitalize())
    elif preset == "quick":
        conditions.append(func.coalesce(Recipe.prep_time, 0) <= QUICK_PREP_MINUTES)
    elif preset == "mine":
        if user_id is None:
            raise AuthenticationError(message="Sign in to see your own recipes.")
        conditions.append(Recipe.user_id == user_id)

    if params.difficulty:
        conditions.append(Recipe.difficulty == params.difficulty)

    if params.category_id:
        conditions.append(Recipe.category_id == params.category_id)

    return conditions


def sort_clauses(sort: str, stats) -> List[Any]:
    """ORDER BY for a feed sort option; recipe id last so pages are stable."""
    if sort == "oldest":
        order = [Recipe.created_at.asc()]
    elif sort == "title":
        order = [func.lower(Recipe.title).asc()]
    elif sort == "prep_time":
        order = [func.coalesce(Recipe.prep_time, 0).asc(), Recipe.created_at.desc()]
    elif sort == "difficulty":
        order = [_DIFFICULTY_RANK.asc(), Recipe.created_at.desc()]
    elif sort == "rating":
        order = [
            func.coalesce(stats.c.average_rating, 0).desc(),
            func.coalesce(stats.c.total_ratings, 0).desc(),
            Recipe.created_at.desc(),
        ]
    else:
        order = [Recipe.created_at.desc()]
    return order + [Recipe.id.asc()]


# ── Response Builders ─────────────────────────────────────────────────────

def _card_fields(recipe: Recipe, average: Any, total: Any) -> Dict[str, Any]:
    return {
        "id": recipe.id,
        "title": recipe.title,
        "description": recipe.description,
        "prep_time": recipe.prep_time,
        "cook_time": recipe.cook_time,
        "servings": recipe.servings,
        "difficulty": recipe.difficulty,
        "image_url": recipe.image_url,
        "user_id": recipe.user_id,
        "category": CategorySummary.model_validate(recipe.category) if recipe.category else None,
        "author": AuthorSummary.model_validate(recipe.author) if recipe.author else None,
        "created_at": recipe.created_at,
        "average_rating": round(float(average or 0), 1),
        "total_ratings": int(total or 0),
    }


def build_list_item(recipe: Recipe, average: Any = 0, total: Any = 0) -> RecipeListItem:
    return RecipeListItem(**_card_fields(recipe, average, total))


def build_recipe_response(recipe: Recipe, average: Any = 0, total: Any = 0) -> RecipeResponse:
    return RecipeResponse(
        **_card_fields(recipe, average, total),
        ingredients=list(recipe.ingredients or []),
        instructions=list(recipe.instructions or []),
        total_time=recipe.total_time,
        updated_at=recipe.updated_at,
    )


class RecipeService:
    """
    Recipe CRUD and feed.

    Error Handling:
        Unknown recipe → NotFoundError. Non-author edit/delete →
        PermissionDeniedError. Business-rule failures (blank title, no
        ingredients, unknown category) → ValidationError. Database
        failures → DatabaseError.
    """

    async def _fetch_with_stats(
        self, db: AsyncSession, recipe_id: UUID
    ) -> Tuple[Recipe, Any, Any]:
        stats = rating_stats_subquery()
        query = (
            recipes_with_stats(stats)
            .where(Recipe.id == recipe_id)
            # Reload relationships after an edit in the same session
            .execution_options(populate_existing=True)
        )
        with database_errors("Could not load the recipe. Please try again.", recipe_id=str(recipe_id)):
            result = await db.execute(query)
            row = result.first()

        if row is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        return row[0], row[1], row[2]

    async def get_recipe_model(self, db: AsyncSession, recipe_id: UUID) -> Recipe:
        """The bare ORM row (no stats), or NotFoundError."""
        with database_errors("Could not load the recipe. Please try again.", recipe_id=str(recipe_id)):
            recipe = await db.get(Recipe, recipe_id)

        if recipe is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        return recipe

    async def _get_owned(self, db: AsyncSession, user: User, recipe_id: UUID) -> Recipe:
        recipe = await self.get_recipe_model(db, recipe_id)
        if recipe.user_id != user.id:
            logger.warning("User %s tried to modify recipe %s owned by %s", user.id, recipe_id, recipe.user_id)
            raise PermissionDeniedError(
                message="You can only edit or delete your own recipes.",
                context={"recipe_id": str(recipe_id)},
            )
        return recipe

    # ── Single Recipe ─────────────────────────────────────────────────────

    async def get_recipe(self, db: AsyncSession, recipe_id: UUID) -> RecipeResponse:
        """Detail view with category, author and rating summary."""
        recipe, average, total = await self._fetch_with_stats(db, recipe_id)
        return build_recipe_response(recipe, average, total)

    async def create_recipe(self, db: AsyncSession, user: User, data: RecipeCreate) -> RecipeResponse:
        """
        Save a new recipe authored by `user`.

        Title is trimmed and required. Blank ingredient and instruction lines
        are dropped; at least one of each must remain.
        """
        title = _require_title(data.title)
        ingredients = _require_steps(data.ingredients, "ingredients", "ingredient")
        instructions = _require_steps(data.instructions, "instructions", "instruction step")
        image_url = _require_own_image(data.image_url, user)

        if data.category_id is not None:
            await category_service.ensure_exists(db, data.category_id)

        recipe = Recipe(
            title=title,
            description=clean_text(data.description),
            ingredients=ingredients,
            instructions=instructions,
            prep_time=data.prep_time,
            cook_time=data.cook_time,
            servings=data.servings,
            difficulty=data.difficulty,
            image_url=image_url,
            category_id=data.category_id,
            user_id=user.id,
        )

        with database_errors("Could not save your recipe. Please try again.", user_id=str(user.id)):
            db.add(recipe)
            await db.flush()

        logger.info("Recipe created: %s by user %s", recipe.id, user.id)
        return await self.get_recipe(db, recipe.id)

    async def update_recipe(
        self, db: AsyncSession, user: User, recipe_id: UUID, data: RecipeUpdate
    ) -> Tuple[RecipeResponse, Optional[str]]:
        """
        Apply the fields present in `data` to the caller's own recipe.

        Same normalization as create. Returns (updated recipe, released
        image URL or None); the caller deletes the released file once the
        transaction has committed.
        """
        recipe = await self._get_owned(db, user, recipe_id)
        changes = data.model_dump(exclude_unset=True)
        old_image_url = recipe.image_url

        if "title" in changes:
            recipe.title = _require_title(changes["title"])
        if "ingredients" in changes:
            recipe.ingredients = _require_steps(changes["ingredients"], "ingredients", "ingredient")
        if "instructions" in changes:
            recipe.instructions = _require_steps(
                changes["instructions"], "instructions", "instruction step"
            )
        if "description" in changes:
            recipe.description = clean_text(changes["description"])
        if "image_url" in changes:
            recipe.image_url = _require_own_image(changes["image_url"], user)
        if "category_id" in changes:
            if changes["category_id"] is not None:
                await category_service.ensure_exists(db, changes["category_id"])
            recipe.category_id = changes["category_id"]

        for field in ("prep_time", "cook_time", "servings", "difficulty"):
            if field in changes:
                setattr(recipe, field, changes[field])

        recipe.updated_at = utcnow()

        with database_errors("Could not update your recipe. Please try again.", recipe_id=str(recipe_id)):
            await db.flush()

        released = None
        if old_image_url and old_image_url != recipe.image_url:
            released = await self._releasable_image(db, recipe, old_image_url)

        logger.info("Recipe updated: %s fields=%s", recipe_id, sorted(changes))
        return await self.get_recipe(db, recipe_id), released

    async def delete_recipe(self, db: AsyncSession, user: User, recipe_id: UUID) -> Optional[str]:
        """
        Delete the caller's own recipe; its ratings and favorites go with it.

        Returns the released image URL (see update_recipe) or None.
        """
        recipe = await self._get_owned(db, user, recipe_id)
        image_url = recipe.image_url

        with database_errors("Could not delete your recipe. Please try again.", recipe_id=str(recipe_id)):
            await db.delete(recipe)
            await db.flush()

        released = await self._releasable_image(db, recipe, image_url) if image_url else None
        logger.info("Recipe deleted: %s by user %s", recipe_id, user.id)
        return released

    async def _releasable_image(self, db: AsyncSession, recipe: Recipe, image_url: str) -> Optional[str]:
        """
        `image_url` if the recipe's author uploaded it and no other recipe
        shows it, else None. External links are never released.
        """
        if file_service.owner_of_url(image_url) != recipe.user_id:
            return None

        with database_errors("Could not check image usage. Please try again.", recipe_id=str(recipe.id)):
            result = await db.execute(
                select(func.count(Recipe.id)).where(
                    Recipe.image_url == image_url,
                    Recipe.id != recipe.id,
                )
            )
            still_used = result.scalar_one()

        if still_used:
            logger.info("Image %s kept: used by %d other recipe(s)", image_url, still_used)
            return None
        return image_url

    # ── Listings ──────────────────────────────────────────────────────────

    async def list_recipes(
        self, db: AsyncSession, params: RecipeQuery, user: Optional[User] = None
    ) -> RecipeListResponse:
        """
        Community feed: search, preset filter, difficulty, category, sort,
        offset/limit. total_count covers every matching recipe, not just
        the page.
        """
        user_id = user.id if user else None
        conditions = filter_conditions(params, user_id)
        stats = rating_stats_subquery()

        query = (
            recipes_with_stats(stats)
            .where(*conditions)
            .order_by(*sort_clauses(params.sort, stats))
            .limit(params.limit)
            .offset(params.offset)
        )
        count_query = select(func.count(Recipe.id)).where(*conditions)

        with database_errors("Could not load recipes. Please try again."):
            total_count = (await db.execute(count_query)).scalar_one()
            rows = (await db.execute(query)).all()

        recipes = [build_list_item(recipe, average, total) for recipe, average, total in rows]
        logger.debug("Feed query returned %d of %d recipes", len(recipes), total_count)

        return RecipeListResponse(
            recipes=recipes,
            total_count=total_count,
            limit=params.limit,
            offset=params.offset,
            has_more=params.offset + len(recipes) < total_count,
        )

    async def list_user_recipes(self, db: AsyncSession, user: User) -> List[RecipeResponse]:
        """The caller's recipes, newest first."""
        stats = rating_stats_subquery()
        query = (
            recipes_with_stats(stats)
            .where(Recipe.user_id == user.id)
            .order_by(Recipe.created_at.desc(), Recipe.id.asc())
        )
        with database_errors("Could not load your recipes. Please try again.", user_id=str(user.id)):
            rows = (await db.execute(query)).all()

        return [build_recipe_response(recipe, average, total) for recipe, average, total in rows]

    async def count_user_recipes(self, db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(select(func.count(Recipe.id)).where(Recipe.user_id == user_id))
        return result.scalar_one()


recipe_service = RecipeService()
