"""Authentication and authorization for RAMS.

Provides JWT bearer authentication and role-based access control. The
token only carries the user id; roles and the active flag are read
from the database on every request so revocations apply immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from ..config import get_settings
from ..errors import AuthenticationError, ForbiddenError, NotFoundError
from ..models import ChangePasswordRequest, Role, User, UserResponse
from .deps import Users

# Security scheme
security = HTTPBearer(auto_error=False)

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenPayload(BaseModel):
    """JWT token payload."""

    sub: str  # Subject (user ID)
    username: str
    exp: datetime  # Expiration time
    iat: datetime  # Issued at time


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    """Access token issued at login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# =========================
# JWT Functions
# =========================


def create_access_token(user: User) -> str:
    """Create a JWT access token for a user.

    Args:
        user: User to create token for

    Returns:
        Encoded JWT token
    """
    settings = get_settings()

    now = datetime.now(timezone.utc)
    payload = TokenPayload(
        sub=user.id,
        username=user.username,
        exp=now + timedelta(hours=settings.jwt_expiration_hours),
        iat=now,
    )

    return jwt.encode(
        payload.model_dump(),
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> TokenPayload:
    """Decode and validate a JWT access token.

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(f"Invalid token: {e}")


# =========================
# Dependency Injection
# =========================


async def get_current_user(
    users: Users,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    """Get the current authenticated, active user.

    Raises:
        AuthenticationError: If not authenticated or the account is gone or inactive
    """
    if not credentials:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(credentials.credentials)
    try:
        user = await users.get_user(payload.sub)
    except NotFoundError:
        raise AuthenticationError("User no longer exists")
    if not user.is_active:
        raise AuthenticationError("Account is inactive")
    return user


def require_role(*roles: Role):
    """Create a dependency that requires any one of ``roles``.

    Usage:
        @router.post("/users", dependencies=[Depends(require_role(Role.ADMIN))])
        async def create_user():
            ...
    """

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if not any(user.has_role(role) for role in roles):
            names = " or ".join(f"'{role.value}'" for role in roles)
            raise ForbiddenError(f"Role {names} required")
        return user

    return role_checker


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role(Role.ADMIN))]
ReviewerUser = Annotated[User, Depends(require_role(Role.APPROVER, Role.ADMIN))]


# =========================
# Endpoints
# =========================


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, users: Users) -> TokenResponse:
    """Exchange username and password for an access token."""
    user = await users.authenticate(request.username, request.password)
    settings = get_settings()
    return TokenResponse(
        access_token=create_access_token(user),
        expires_in=settings.jwt_expiration_hours * 3600,
        user=UserResponse.from_user(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser) -> UserResponse:
    """Get the authenticated user's profile."""
    return UserResponse.from_user(user)


@router.post("/change-password", status_code=204)
async def change_password(request: ChangePasswordRequest, user: CurrentUser, users: Users) -> None:
    """Change the authenticated user's password."""
    await users.change_password(user.id, request)
