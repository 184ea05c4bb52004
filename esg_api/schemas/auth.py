"""Auth schemas: CurrentUser, registration, login, profile, permissions."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from esg_api.models.enums import UserRole


class CurrentUser(BaseModel):
    """Lightweight user context resolved from the bearer token + DB lookup."""

    user_id: uuid.UUID
    email: str
    name: str
    role: UserRole
    organization: str

    @property
    def is_administrator(self) -> bool:
        return self.role == UserRole.ADMINISTRATOR


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    organization: str
    is_active: bool
    last_login_at: datetime | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    role: UserRole = UserRole.ESG_ANALYST
    organization: str = Field(..., min_length=2, max_length=200)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    organization: str | None = Field(None, min_length=2, max_length=200)


class PermissionMatrixResponse(BaseModel):
    role: UserRole
    permissions: dict[str, list[str]]  # resource -> actions
