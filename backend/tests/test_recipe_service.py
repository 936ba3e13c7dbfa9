"""
RecipeShare Backend — Recipe Service Unit Tests
================================================

What:  Normalization rules, ownership checks, feed query construction and
       response building.
How:   Mocked AsyncSession. Feed SQL is compiled with the PostgreSQL
       dialect and inspected, which checks filter/sort translation without
       a database.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from app.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.recipe import Recipe
from app.schemas.recipe import RecipeCreate, RecipeQuery, RecipeUpdate
from app.services.file_service import file_service
from app.services.recipe_service import (
    build_recipe_response,
    clean_steps,
    filter_conditions,
    rating_stats_subquery,
    recipe_service,
    recipes_with_stats,
    sort_clauses,
)


def compile_sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect())).lower()


def feed_sql(params: RecipeQuery, user_id=None) -> str:
    stats = rating_stats_subquery()
    statement = (
        recipes_with_stats(stats)
        .where(*filter_conditions(params, user_id))
        .order_by(*sort_clauses(params.sort, stats))
    )
    return compile_sql(statement)


class TestNormalization:

    def test_clean_steps_drops_blank_lines_and_keeps_order(self):
        assert clean_steps(["  2 eggs ", "", "   ", "flour"]) == ["2 eggs", "flour"]

    def test_clean_steps_empty(self):
        assert clean_steps(None) == []
        assert clean_steps([]) == []


class TestCreateRecipe:

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, mock_db_session, user):
        data = RecipeCreate(title="   ", ingredients=["egg"], instructions=["cook"])
        with pytest.raises(ValidationError, match="title is required"):
            await recipe_service.create_recipe(mock_db_session, user, data)

    @pytest.mark.asyncio
    async def test_only_blank_ingredients_rejected(self, mock_db_session, user):
        data = RecipeCreate(title="Toast", ingredients=["", "  "], instructions=["toast it"])
        with pytest.raises(ValidationError, match="at least one ingredient"):
            await recipe_service.create_recipe(mock_db_session, user, data)

    @pytest.mark.asyncio
    async def test_missing_instructions_rejected(self, mock_db_session, user):
        data = RecipeCreate(title="Toast", ingredients=["bread"], instructions=[])
        with pytest.raises(ValidationError, match="instruction"):
            await recipe_service.create_recipe(mock_db_session, user, data)

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, mock_db_session, make_result, user):
        mock_db_session.execute.return_value = make_result(scalar=None)
        data = RecipeCreate(title="Toast", ingredients=["bread"], instructions=["toast"], category_id=uuid4())

        with pytest.raises(ValidationError, match="category does not exist"):
            await recipe_service.create_recipe(mock_db_session, user, data)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_saves_normalized_recipe(self, mock_db_session, user):
        data = RecipeCreate(
            title="  Toast  ",
            description="   ",
            ingredients=["bread", "", " butter "],
            instructions=["toast", "  "],
            prep_time=2,
            difficulty="Easy",
        )

        with patch.object(recipe_service, "get_recipe", new_callable=AsyncMock) as get_recipe:
            await recipe_service.create_recipe(mock_db_session, user, data)

        saved = mock_db_session.add.call_args[0][0]
        assert isinstance(saved, Recipe)
        assert saved.title == "Toast"
        assert saved.description is None
        assert saved.ingredients == ["bread", "butter"]
        assert saved.instructions == ["toast"]
        assert saved.user_id == user.id
        get_recipe.assert_awaited_once()


class TestOwnership:

    @pytest.mark.asyncio
    async def test_update_by_non_author_forbidden(self, mock_db_session, make_recipe, other_user):
        mock_db_session.get.return_value = make_recipe()

        with pytest.raises(PermissionDeniedError):
            await recipe_service.update_recipe(
                mock_db_session, other_user, uuid4(), RecipeUpdate(title="Mine now")
            )

    @pytest.mark.asyncio
    async def test_update_missing_recipe(self, mock_db_session, user):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await recipe_service.update_recipe(mock_db_session, user, uuid4(), RecipeUpdate(title="x"))

    @pytest.mark.asyncio
    async def test_update_applies_only_sent_fields(self, mock_db_session, make_recipe, user):
        recipe = make_recipe(servings=4)
        mock_db_session.get.return_value = recipe

        with patch.object(recipe_service, "get_recipe", new_callable=AsyncMock):
            await recipe_service.update_recipe(
                mock_db_session, user, recipe.id,
                RecipeUpdate(ingredients=["3 eggs", " "], prep_time=None),
            )

        assert recipe.ingredients == ["3 eggs"]
        assert recipe.prep_time is None
        assert recipe.servings == 4
        assert recipe.title == "Pancakes"

    @pytest.mark.asyncio
    async def test_update_cannot_empty_instructions(self, mock_db_session, make_recipe, user):
        mock_db_session.get.return_value = make_recipe()

        with pytest.raises(ValidationError):
            await recipe_service.update_recipe(
                mock_db_session, user, uuid4(), RecipeUpdate(instructions=[""])
            )

    @pytest.mark.asyncio
    async def test_replacing_uploaded_image_releases_old_file(self, mock_db_session, make_result, make_recipe, user):
        old_url = f"/api/files/recipe-images/{user.id}/2024/01/01/old.jpg"
        recipe = make_recipe(image_url=old_url)
        mock_db_session.get.return_value = recipe
        mock_db_session.execute.return_value = make_result(scalar=0)

        with patch.object(recipe_service, "get_recipe", new_callable=AsyncMock), \
             patch("app.services.recipe_service.file_service.cleanup_url", new_callable=AsyncMock) as cleanup:
            _, released = await recipe_service.update_recipe(
                mock_db_session, user, recipe.id,
                RecipeUpdate(image_url=f"/api/files/recipe-images/{user.id}/2024/01/02/new.jpg"),
            )

        assert released == old_url
        # Files are removed by the route, after the commit
        cleanup.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_by_author(self, mock_db_session, make_recipe, user):
        recipe = make_recipe(image_url="https://example.com/cake.jpg")
        mock_db_session.get.return_value = recipe

        released = await recipe_service.delete_recipe(mock_db_session, user, recipe.id)

        mock_db_session.delete.assert_awaited_once_with(recipe)
        assert released is None

    @pytest.mark.asyncio
    async def test_delete_by_non_author_forbidden(self, mock_db_session, make_recipe, other_user):
        mock_db_session.get.return_value = make_recipe()

        with pytest.raises(PermissionDeniedError):
            await recipe_service.delete_recipe(mock_db_session, other_user, uuid4())
        mock_db_session.delete.assert_not_called()


class TestImageOwnership:

    @pytest.mark.asyncio
    async def test_create_with_someone_elses_upload_rejected(self, mock_db_session, user, other_user):
        data = RecipeCreate(
            title="Toast", ingredients=["bread"], instructions=["toast"],
            image_url=f"/api/files/recipe-images/{other_user.id}/2024/01/01/cake.jpg",
        )

        with pytest.raises(ValidationError, match="image you uploaded"):
            await recipe_service.create_recipe(mock_db_session, user, data)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_with_ownerless_stored_path_rejected(self, mock_db_session, user):
        data = RecipeCreate(
            title="Toast", ingredients=["bread"], instructions=["toast"],
            image_url="/api/files/recipe-images/2024/01/01/cake.jpg",
        )

        with pytest.raises(ValidationError):
            await recipe_service.create_recipe(mock_db_session, user, data)

    @pytest.mark.asyncio
    async def test_external_and_own_images_accepted(self, mock_db_session, user):
        for url in ("https://images.example.com/cake.jpg", f"/api/files/recipe-images/{user.id}/2024/01/01/cake.jpg"):
            data = RecipeCreate(title="Toast", ingredients=["bread"], instructions=["toast"], image_url=url)
            with patch.object(recipe_service, "get_recipe", new_callable=AsyncMock):
                await recipe_service.create_recipe(mock_db_session, user, data)
            assert mock_db_session.add.call_args[0][0].image_url == url

    @pytest.mark.asyncio
    async def test_update_to_someone_elses_upload_rejected(self, mock_db_session, make_recipe, user, other_user):
        recipe = make_recipe()
        mock_db_session.get.return_value = recipe

        with pytest.raises(ValidationError, match="image you uploaded"):
            await recipe_service.update_recipe(
                mock_db_session, user, recipe.id,
                RecipeUpdate(image_url=f"/api/files/recipe-images/{other_user.id}/2024/01/01/cake.jpg"),
            )

    @pytest.mark.asyncio
    async def test_deleting_recipe_never_releases_another_users_file(
        self, mock_db_session, make_recipe, user, other_user, sample_image_bytes
    ):
        with patch.object(file_service, "validate_mime_type", return_value="image/jpeg"):
            relative_path, url, _ = await file_service.store_image(
                "cake.jpg", sample_image_bytes, owner_id=user.id
            )
        # A row that points at the victim's file, e.g. written before uploads carried an owner
        borrowed = make_recipe(user_id=other_user.id, image_url=url)
        mock_db_session.get.return_value = borrowed

        released = await recipe_service.delete_recipe(mock_db_session, other_user, borrowed.id)

        assert released is None
        assert (file_service.storage_root / relative_path).is_file()

    @pytest.mark.asyncio
    async def test_image_shared_by_another_recipe_is_kept(self, mock_db_session, make_result, make_recipe, user):
        recipe = make_recipe(image_url=f"/api/files/recipe-images/{user.id}/2024/01/01/cake.jpg")
        mock_db_session.get.return_value = recipe
        mock_db_session.execute.return_value = make_result(scalar=1)

        assert await recipe_service.delete_recipe(mock_db_session, user, recipe.id) is None

    @pytest.mark.asyncio
    async def test_own_unshared_image_is_released(self, mock_db_session, make_result, make_recipe, user):
        url = f"/api/files/recipe-images/{user.id}/2024/01/01/cake.jpg"
        recipe = make_recipe(image_url=url)
        mock_db_session.get.return_value = recipe
        mock_db_session.execute.return_value = make_result(scalar=0)

        assert await recipe_service.delete_recipe(mock_db_session, user, recipe.id) == url

        sql = compile_sql(mock_db_session.execute.call_args[0][0])
        assert "recipes.image_url =" in sql
        assert "recipes.id !=" in sql


class TestFeedQuery:

    def test_search_covers_title_description_and_ingredients(self):
        sql = feed_sql(RecipeQuery(search="Egg"))
        assert "recipes.title ilike" in sql
        assert "recipes.description ilike" in sql
        assert "array_to_string(recipes.ingredients" in sql

    def test_quick_treats_missing_prep_time_as_zero(self):
        sql = feed_sql(RecipeQuery(filter="quick"))
        assert "coalesce(recipes.prep_time" in sql

    def test_difficulty_preset(self):
        conditions = filter_conditions(RecipeQuery(filter="hard"), None)
        assert len(conditions) == 1
        assert conditions[0].right.value == "Hard"

    def test_mine_requires_signed_in_user(self):
        with pytest.raises(AuthenticationError):
            filter_conditions(RecipeQuery(filter="mine"), None)

    def test_mine_filters_by_author(self):
        sql = feed_sql(RecipeQuery(filter="mine"), user_id=uuid4())
        assert "recipes.user_id =" in sql

    def test_all_adds_no_conditions(self):
        assert filter_conditions(RecipeQuery(), None) == []

    def test_difficulty_sort_puts_unknown_first(self):
        sql = feed_sql(RecipeQuery(sort="difficulty"))
        assert "case when" in sql
        assert "else" in sql

    def test_rating_sort_highest_first(self):
        sql = feed_sql(RecipeQuery(sort="rating"))
        order_by = sql.split("order by", 1)[1]
        assert "average_rating" in order_by
        assert "desc" in order_by

    def test_every_sort_ends_with_id_tiebreak(self):
        for sort in ("newest", "oldest", "title", "prep_time", "difficulty", "rating"):
            sql = feed_sql(RecipeQuery(sort=sort))
            assert sql.rstrip().endswith("recipes.id asc")

    @pytest.mark.asyncio
    async def test_list_recipes_paginates(self, mock_db_session, make_result, make_recipe):
        recipes = [make_recipe(title=f"Dish {i}") for i in range(2)]
        mock_db_session.execute.side_effect = [
            make_result(scalar=5),
            make_result(rows=[(recipes[0], 4.25, 4), (recipes[1], 0, 0)]),
        ]

        result = await recipe_service.list_recipes(mock_db_session, RecipeQuery(limit=2, offset=2))

        assert result.total_count == 5
        assert result.has_more is True
        assert [r.title for r in result.recipes] == ["Dish 0", "Dish 1"]
        assert result.recipes[0].average_rating == 4.2
        assert result.recipes[0].total_ratings == 4
        assert result.recipes[1].average_rating == 0.0


class TestResponses:

    def test_detail_response_includes_total_time(self, make_recipe):
        response = build_recipe_response(make_recipe(prep_time=10, cook_time=None), 3.666, 3)
        assert response.total_time == 10
        assert response.average_rating == 3.7
        assert response.ingredients == ["2 eggs", "1 cup flour"]

    def test_total_time_unknown_when_both_missing(self, make_recipe):
        response = build_recipe_response(make_recipe(prep_time=None, cook_time=None))
        assert response.total_time is None

    @pytest.mark.asyncio
    async def test_get_recipe_not_found(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(rows=[])

        with pytest.raises(NotFoundError):
            await recipe_service.get_recipe(mock_db_session, uuid4())
