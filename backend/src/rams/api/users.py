"""API endpoints for user administration."""

from fastapi import APIRouter, Query

from ..models import CreateUserRequest, Role, UpdateUserRequest, UserResponse
from .auth import AdminUser, CurrentUser
from .deps import Users

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(
    user: CurrentUser,
    users: Users,
    role: Role | None = Query(default=None, description="Only users holding this role"),
) -> list[UserResponse]:
    """List users, e.g. ``?role=approver`` for the approver dropdown."""
    found = await users.list_users(role=role, include_inactive=user.is_admin())
    return [UserResponse.from_user(u) for u in found]


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(request: CreateUserRequest, admin: AdminUser, users: Users) -> UserResponse:
    return UserResponse.from_user(await users.create_user(request))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, user: CurrentUser, users: Users) -> UserResponse:
    return UserResponse.from_user(await users.get_user(user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    admin: AdminUser,
    users: Users,
) -> UserResponse:
    """Update a user's profile, roles or active flag."""
    return UserResponse.from_user(await users.update_user(user_id, request))


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: str, admin: AdminUser, users: Users) -> None:
    """Delete a user no report refers to."""
    await users.delete_user(user_id)
