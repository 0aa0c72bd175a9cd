"""User models.

Roles are held as a set of capability tags so one person can be both
handler and approver. Authorization checks test membership.
"""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .base import Role


def _parse_roles(value: Any) -> set[Role]:
    if value is None:
        return set()
    if isinstance(value, str):
        value = value.strip()
        # Legacy rows store a JSON array, older ones a single role string
        if value.startswith("["):
            value = json.loads(value)
        else:
            value = [value] if value else []
    return {Role.parse(v) for v in value}


class User(BaseModel):
    """A person who authors, approves or administers reports."""

    id: str
    username: str
    first_name: str | None = None
    last_name: str | None = None
    roles: set[Role] = Field(default_factory=set)
    approval_level: int | None = Field(default=None, ge=1)
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @field_validator("roles", mode="before")
    @classmethod
    def _normalize_roles(cls, value: Any) -> set[Role]:
        return _parse_roles(value)

    @field_serializer("roles")
    def _serialize_roles(self, roles: set[Role]) -> list[str]:
        return sorted(r.value for r in roles)

    @property
    def display_name(self) -> str:
        """Family name first, falling back to the username."""
        if self.last_name and self.first_name:
            return f"{self.last_name} {self.first_name}"
        return self.last_name or self.first_name or self.username

    def has_role(self, role: Role | str) -> bool:
        """Check if user holds a specific role."""
        return Role.parse(role) in self.roles

    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    def is_approver(self) -> bool:
        return Role.APPROVER in self.roles

    def is_handler(self) -> bool:
        return Role.HANDLER in self.roles

    def summary(self) -> "UserSummary":
        return UserSummary(
            id=self.id,
            username=self.username,
            display_name=self.display_name,
            approval_level=self.approval_level,
        )


class UserSummary(BaseModel):
    """Compact user reference embedded in report views."""

    id: str
    username: str
    display_name: str
    approval_level: int | None = None


# =============================================================================
# API Request/Response Models
# =============================================================================


class CreateUserRequest(BaseModel):
    """Request to create a user."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    roles: set[Role] = Field(default_factory=lambda: {Role.HANDLER})
    approval_level: int | None = Field(default=None, ge=1)

    @field_validator("roles", mode="before")
    @classmethod
    def _normalize_roles(cls, value: Any) -> set[Role]:
        return _parse_roles(value)


class UpdateUserRequest(BaseModel):
    """Partial update of a user's profile or roles."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    roles: set[Role] | None = None
    approval_level: int | None = Field(default=None, ge=1)
    is_active: bool | None = None

    @field_validator("roles", mode="before")
    @classmethod
    def _normalize_roles(cls, value: Any) -> set[Role] | None:
        if value is None:
            return None
        return _parse_roles(value)


class ChangePasswordRequest(BaseModel):
    """Request to change the current user's password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class UserResponse(BaseModel):
    """User details for API responses (never includes the password hash)."""

    id: str
    username: str
    first_name: str | None
    last_name: str | None
    display_name: str
    roles: list[str]
    approval_level: int | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            display_name=user.display_name,
            roles=sorted(r.value for r in user.roles),
            approval_level=user.approval_level,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
