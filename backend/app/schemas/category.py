"""
RecipeShare Backend — Category Schemas
"""

import uuid
from typing import Optional

from pydantic import BaseModel


class CategorySummary(BaseModel):
    """Category badge embedded in recipe payloads."""
    id: uuid.UUID
    name: str
    emoji: Optional[str] = None

    model_config = {"from_attributes": True}


class CategoryResponse(CategorySummary):
    description: Optional[str] = None
