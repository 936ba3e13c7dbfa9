"""
RecipeShare Backend — Dashboard Service

What:  The signed-in landing page's numbers: own recipes, favorites,
       reviews received on own recipes, reviews written.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.database import database_errors
from app.models.user import User
from app.schemas.dashboard import DashboardResponse
from app.schemas.profile import ProfileResponse
from app.services.favorite_service import favorite_service
from app.services.profile_service import profile_service
from app.services.rating_service import rating_service
from app.services.recipe_service import recipe_service

logger = logging.getLogger(__name__)


class DashboardService:

    async def get_dashboard(self, db: AsyncSession, user: User) -> DashboardResponse:
        profile = await profile_service.get_or_create_profile(db, user)

        with database_errors("Could not load your dashboard. Please try again.", user_id=str(user.id)):
            recipes_count = await recipe_service.count_user_recipes(db, user.id)
            favorites_count = await favorite_service.count_favorites(db, user.id)
            received = await rating_service.count_received(db, user.id)
            written = await rating_service.count_written(db, user.id)

        return DashboardResponse(
            profile=ProfileResponse.model_validate(profile),
            recipes_count=recipes_count,
            favorites_count=favorites_count,
            reviews_received_count=received,
            reviews_written_count=written,
        )


dashboard_service = DashboardService()
