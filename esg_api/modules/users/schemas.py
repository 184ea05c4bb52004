"""User management schemas."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from esg_api.models.enums import UserRole
from esg_api.schemas.auth import UserResponse


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    role: UserRole = UserRole.ESG_ANALYST
    organization: str = Field(..., min_length=2, max_length=200)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class UserUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    role: UserRole | None = None
    organization: str | None = Field(None, min_length=2, max_length=200)
    is_active: bool | None = None
    password: str | None = Field(None, min_length=8, max_length=100)


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
