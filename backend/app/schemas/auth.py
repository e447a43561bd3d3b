"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import List, Optional
from backend.app.models.enums import UserRole


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Used by POST /auth/register (managers only).
    Default role is operator.
    """
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    role: UserRole = Field(default=UserRole.OPERATOR, description="User role (defaults to operator)")


class UserLogin(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint. Email matching is case-insensitive.
    """
    email: str = Field(..., min_length=1, description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class PasswordChange(BaseModel):
    """Schema for POST /auth/change-password (camelCase on the wire)."""
    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=6)


class UserSummary(BaseModel):
    """User fields embedded in login and registration responses."""
    id: int
    email: str
    name: str
    role: UserRole

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    """
    Schema for user information response.

    Used by GET /auth/me and GET /auth/users.
    """
    created_at: datetime


class LoginResponse(BaseModel):
    """
    Schema for a successful login.

    The token is opaque to the client and expires 8 hours after issue.
    """
    success: bool = True
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserSummary


class CurrentUserResponse(BaseModel):
    success: bool = True
    user: UserResponse


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user: UserSummary


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserResponse]


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
