"""
RecipeShare Backend — Category Service Unit Tests
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from app.exceptions import ValidationError
from app.models.category import Category
from app.services.category_service import category_service


def _sql(mock_db_session) -> str:
    statement = mock_db_session.execute.call_args[0][0]
    return str(statement.compile(dialect=postgresql.dialect())).lower()


class TestCategories:

    @pytest.mark.asyncio
    async def test_list_alphabetical(self, mock_db_session, make_result, category):
        now = datetime.now(timezone.utc)
        breakfast = Category(id=uuid4(), name="Breakfast", emoji="🍳", created_at=now, updated_at=now)
        mock_db_session.execute.return_value = make_result(scalars=[breakfast, category])

        result = await category_service.list_categories(mock_db_session)

        assert [c.name for c in result] == ["Breakfast", "Desserts"]
        assert "order by categories.name" in _sql(mock_db_session)

    @pytest.mark.asyncio
    async def test_count(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=8)

        assert await category_service.count_categories(mock_db_session) == 8
        assert "from categories" in _sql(mock_db_session)

    @pytest.mark.asyncio
    async def test_ensure_exists_passes_for_known_category(self, mock_db_session, make_result, category):
        mock_db_session.execute.return_value = make_result(scalar=category.id)

        await category_service.ensure_exists(mock_db_session, category.id)

    @pytest.mark.asyncio
    async def test_ensure_exists_rejects_unknown_category(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(ValidationError) as exc_info:
            await category_service.ensure_exists(mock_db_session, uuid4())
        assert exc_info.value.field == "category_id"
