"""
RecipeShare Backend — Category Service
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import database_errors
from app.exceptions import ValidationError
from app.models.category import Category

logger = logging.getLogger(__name__)


class CategoryService:

    async def list_categories(self, db: AsyncSession) -> List[Category]:
        """All categories, alphabetical."""
        with database_errors("Could not load categories. Please try again."):
            result = await db.execute(select(Category).order_by(Category.name))
            return list(result.scalars().all())

    async def count_categories(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(Category))
        return result.scalar_one()

    async def ensure_exists(self, db: AsyncSession, category_id: UUID) -> None:
        """Reject a recipe's category_id that does not match a category."""
        with database_errors("Could not check the category. Please try again."):
            result = await db.execute(select(Category.id).where(Category.id == category_id))
            found = result.scalar_one_or_none()

        if found is None:
            raise ValidationError(
                message="The selected category does not exist.",
                field="category_id",
                context={"category_id": str(category_id)},
            )


category_service = CategoryService()
