"""Pydantic schemas for users and administration payloads."""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class UserRole(str, Enum):
    """Coarse-grained role; ADMIN unlocks the admin-only views and actions."""

    USER = "USER"
    ADMIN = "ADMIN"


class User(BaseModel):
    """Canonical user record consumed by views and cached in the session."""

    id: int | str = 0
    username: str = ""
    email: str = ""
    role: UserRole = UserRole.USER
    enabled: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class CreateUserRequest(BaseModel):
    """Validated body for POST /admin/users.

    Username and email are trimmed; the password is sent exactly as typed.
    """

    username: TrimmedStr
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.USER

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("role", mode="before")
    @classmethod
    def _upper_role(cls, v: object) -> object:
        return v.strip().upper() if isinstance(v, str) else v


class UpdateUserStatusRequest(BaseModel):
    """Body for PUT /admin/users/{id}/status.

    The backend names the flag ``active`` while the User model calls the same
    concept ``enabled``.
    """

    active: bool
