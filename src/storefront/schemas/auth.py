"""Pydantic schemas for registration, login, and token exchange.

Learn: Token payloads use camelCase on the wire (accessToken,
refreshToken) to stay compatible with existing storefront clients.
populate_by_name lets Python code build them with snake_case names.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    model_config = {"populate_by_name": True}


class RefreshRequest(BaseModel):
    # Optional so a missing field is a 400 from the route, not a 422
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    model_config = {"populate_by_name": True}


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(TokenResponse):
    user: UserRead


class MessageResponse(BaseModel):
    success: bool = True
    message: str
