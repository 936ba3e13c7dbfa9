"""
RecipeShare Backend — Upload Schemas
"""

from pydantic import BaseModel, Field


class ImageUploadResponse(BaseModel):
    """
    Returned by POST /api/uploads/images.

    `url` is what the client stores in a recipe's image_url.
    """
    url: str = Field(description="Public URL of the stored image")
    path: str = Field(description="Path relative to the storage root")
    content_type: str
    size: int = Field(description="Size in bytes")
