"""
RecipeShare Backend — Auth Schemas
===================================

What:  Request/response contracts for sign-up, sign-in and the current user.
How:   Emails are validated by pydantic's EmailStr (email-validator);
       password length policy is enforced in AuthService against settings.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    email: EmailStr = Field(description="Account email (case-insensitive)")
    password: str = Field(min_length=1, max_length=128, description="Account password")
    full_name: Optional[str] = Field(default=None, max_length=100)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    """
    Returned by sign-up and sign-in.

    The client sends access_token back as `Authorization: Bearer <token>`
    until expires_at, or until it calls /api/auth/signout.
    """
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse
