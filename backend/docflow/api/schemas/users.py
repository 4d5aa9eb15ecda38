"""Request and response schemas for auth and user routes."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docflow.models.user import UserRole


class RegisterRequest(BaseModel):
    """Account registration."""
    email: str = Field(
        ...,
        max_length=255,
        description="Login email address",
        examples=["jane@example.com"],
    )
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class UpdateRolesRequest(BaseModel):
    """Roles to add to a user."""
    roles: List[UserRole] = Field(..., min_length=1, examples=[["editor"]])


class UserResponse(BaseModel):
    """Public user fields (never the password hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    roles: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
