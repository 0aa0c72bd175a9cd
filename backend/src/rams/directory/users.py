"""User directory.

Users are never hard-deleted while reports reference them; deactivate
them instead.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from uuid import uuid4

from sqlalchemy import delete, exists, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import AuthenticationError, ConflictError, NotFoundError
from ..models import (
    ChangePasswordRequest,
    CreateUserRequest,
    Role,
    UpdateUserRequest,
    User,
    utcnow,
)
from ..schema import reports, users
from .security import hash_password, verify_password

logger = logging.getLogger(__name__)


def row_to_user(row: Any) -> User:
    """Convert a ``users`` row to a User (the password hash is dropped)."""
    data = dict(row._mapping)
    data.pop("password_hash", None)
    return User.model_validate(data)


async def load_user(session: AsyncSession, user_id: str) -> User:
    """Load a user by id within an existing session or raise NotFoundError."""
    result = await session.execute(select(users).where(users.c.id == user_id))
    row = result.first()
    if row is None:
        raise NotFoundError("User", user_id)
    return row_to_user(row)


class UserManager:
    """Creates, updates and authenticates users."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_user(self, request: CreateUserRequest) -> User:
        """Create a user.

        Raises:
            ConflictError: If the username is taken.
        """
        now = utcnow()
        user = User(
            id=str(uuid4()),
            username=request.username.strip(),
            first_name=request.first_name,
            last_name=request.last_name,
            roles=request.roles,
            approval_level=request.approval_level,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._get_session() as session:
                await session.execute(
                    insert(users).values(
                        id=user.id,
                        username=user.username,
                        password_hash=hash_password(request.password),
                        first_name=user.first_name,
                        last_name=user.last_name,
                        roles=sorted(r.value for r in user.roles),
                        approval_level=user.approval_level,
                        is_active=user.is_active,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as e:
            raise ConflictError(f"Username already exists: {user.username}") from e

        logger.info(
            f"Created user {user.username}",
            extra={"user_id": user.id, "roles": sorted(r.value for r in user.roles)},
        )
        return user

    async def get_user(self, user_id: str) -> User:
        async with self._get_session() as session:
            return await load_user(session, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        async with self._get_session() as session:
            result = await session.execute(select(users).where(users.c.username == username))
            row = result.first()
            return row_to_user(row) if row else None

    async def list_users(self, role: Role | str | None = None, include_inactive: bool = True) -> list[User]:
        """List users, optionally those holding ``role``.

        Sorted by approval level (unset last), then family name.
        """
        query = select(users)
        if not include_inactive:
            query = query.where(users.c.is_active.is_(True))
        async with self._get_session() as session:
            result = await session.execute(query)
            found = [row_to_user(row) for row in result]

        if role is not None:
            wanted = Role.parse(role)
            found = [u for u in found if wanted in u.roles]

        return sorted(
            found,
            key=lambda u: (
                u.approval_level is None,
                u.approval_level or 0,
                u.last_name or "",
                u.username,
            ),
        )

    async def update_user(self, user_id: str, request: UpdateUserRequest) -> User:
        values = request.model_dump(exclude_unset=True)
        if "roles" in values:
            if values["roles"] is None:
                del values["roles"]
            else:
                values["roles"] = sorted(r.value for r in request.roles)
        async with self._get_session() as session:
            user = await load_user(session, user_id)
            if values:
                values["updated_at"] = utcnow()
                await session.execute(update(users).where(users.c.id == user_id).values(**values))
                user = await load_user(session, user_id)

        logger.info(f"Updated user {user.username}", extra={"user_id": user_id, "fields": sorted(values)})
        return user

    async def delete_user(self, user_id: str) -> None:
        """Delete a user that no report references.

        Raises:
            NotFoundError: If the user does not exist.
            ConflictError: If any report names the user as handler or approver.
        """
        async with self._get_session() as session:
            user = await load_user(session, user_id)
            referenced = await session.execute(
                select(
                    exists().where(
                        or_(reports.c.handler_id == user_id, reports.c.approver_id == user_id)
                    )
                )
            )
            if referenced.scalar():
                raise ConflictError(
                    f"User {user.username} is referenced by reports; deactivate instead"
                )
            await session.execute(delete(users).where(users.c.id == user_id))

        logger.info(f"Deleted user {user.username}", extra={"user_id": user_id})

    async def authenticate(self, username: str, password: str) -> User:
        """Verify credentials of an active user.

        Raises:
            AuthenticationError: On unknown user, wrong password or inactive account.
        """
        async with self._get_session() as session:
            result = await session.execute(select(users).where(users.c.username == username))
            row = result.first()

        if row is None or not verify_password(password, row.password_hash):
            logger.warning("Failed login", extra={"username": username})
            raise AuthenticationError("Invalid username or password")
        user = row_to_user(row)
        if not user.is_active:
            raise AuthenticationError("Account is inactive")
        return user

    async def change_password(self, user_id: str, request: ChangePasswordRequest) -> None:
        async with self._get_session() as session:
            result = await session.execute(
                select(users.c.password_hash).where(users.c.id == user_id)
            )
            current_hash = result.scalar_one_or_none()
            if current_hash is None:
                raise NotFoundError("User", user_id)
            if not verify_password(request.current_password, current_hash):
                raise AuthenticationError("Current password is incorrect")
            await session.execute(
                update(users)
                .where(users.c.id == user_id)
                .values(password_hash=hash_password(request.new_password), updated_at=utcnow())
            )

        logger.info("Password changed", extra={"user_id": user_id})
