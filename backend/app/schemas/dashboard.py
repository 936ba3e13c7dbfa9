"""
RecipeShare Backend — Dashboard Schema
"""

from pydantic import BaseModel, Field

from app.schemas.profile import ProfileResponse


class DashboardResponse(BaseModel):
    profile: ProfileResponse
    recipes_count: int
    favorites_count: int
    reviews_received_count: int = Field(description="Ratings other users left on my recipes")
    reviews_written_count: int
