"""
Schools24 Backend — Auth Schemas
==================================

Request bodies for login/registration/profile update, the user view
returned to clients (never includes password_hash), and the decoded
token claims.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.user import ROLES


class TokenClaims(BaseModel):
    """Claims carried inside every access and refresh token."""
    user_id: str
    email: str
    role: str
    iat: int
    nbf: int
    exp: int


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    role: str
    phone: Optional[str] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in ROLES:
            raise ValueError(f"role must be one of: {', '.join(ROLES)}")
        return v


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2)
    phone: Optional[str] = None
    profile_picture_url: Optional[str] = None


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    role: str
    full_name: str
    phone: Optional[str] = None
    profile_picture_url: Optional[str] = None
    is_active: bool
    email_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserEnvelope(BaseModel):
    user: UserResponse


class AuthResponse(BaseModel):
    """
    Returned by login and register.

    expires_in is the access token lifetime in seconds
    (JWT_EXPIRATION_HOURS × 3600).
    """
    user: UserResponse
    access_token: str
    refresh_token: str
    expires_in: int
