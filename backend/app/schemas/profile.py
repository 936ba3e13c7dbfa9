"""
RecipeShare Backend — Profile Schemas
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProfileResponse(BaseModel):
    id: uuid.UUID
    username: Optional[str] = None
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthorSummary(BaseModel):
    """Who wrote a recipe or a review, as shown next to it."""
    id: uuid.UUID
    username: Optional[str] = None
    full_name: Optional[str] = None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """
    Editable profile fields.

    Omitted fields are left unchanged; blank strings clear the field.
    """
    username: Optional[str] = Field(default=None, max_length=50)
    full_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=2000)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        stripped = v.strip()
        if stripped and not all(ch.isalnum() or ch in "._-" for ch in stripped):
            raise ValueError("Username may only contain letters, digits, '.', '_' and '-'")
        return v
