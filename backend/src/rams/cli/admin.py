"""CLI commands for database setup and user administration."""

import asyncio
import json
import sys

import click

from ..db import close_all_connections, get_session_factory, init_db
from ..directory import UserManager, seed_demo_data
from ..errors import RamsError
from ..models import CreateUserRequest, Role, UserResponse


@click.command("init-db")
def init_db_command() -> None:
    """Create all missing tables."""

    async def _init() -> None:
        try:
            await init_db()
        finally:
            await close_all_connections()
        click.echo("Database initialized")

    asyncio.run(_init())


@click.command("seed")
def seed_command() -> None:
    """Insert demo users, banks and branches (idempotent)."""

    async def _seed() -> None:
        try:
            await init_db()
            created = await seed_demo_data(get_session_factory())
        finally:
            await close_all_connections()
        click.echo(
            f"Seeded {created['users']} users, {created['institutions']} institutions, "
            f"{created['branches']} branches"
        )

    asyncio.run(_seed())


@click.group("user")
def user_group() -> None:
    """Manage users."""
    pass


@user_group.command("create")
@click.option("--username", "-u", required=True, help="Login name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--first-name", default=None, help="Given name")
@click.option("--last-name", default=None, help="Family name")
@click.option(
    "--role",
    "-r",
    "roles",
    multiple=True,
    type=click.Choice([r.value for r in Role] + ["creator"]),
    default=("handler",),
    show_default=True,
    help="Role to grant (repeatable)",
)
@click.option("--approval-level", type=int, default=None, help="Approver rank (1 = first)")
def create_user(
    username: str,
    password: str,
    first_name: str | None,
    last_name: str | None,
    roles: tuple[str, ...],
    approval_level: int | None,
) -> None:
    """Create a user."""

    async def _create() -> None:
        try:
            manager = UserManager(get_session_factory())
            user = await manager.create_user(
                CreateUserRequest(
                    username=username,
                    password=password,
                    first_name=first_name,
                    last_name=last_name,
                    roles=set(roles),
                    approval_level=approval_level,
                )
            )
        except RamsError as e:
            click.echo(f"Error: {e.message}", err=True)
            sys.exit(1)
        finally:
            await close_all_connections()

        click.echo(f"Created user: {user.username} ({user.id})")
        click.echo(f"  Roles: {', '.join(sorted(r.value for r in user.roles))}")

    asyncio.run(_create())


@user_group.command("list")
@click.option(
    "--role", "-r", type=click.Choice([r.value for r in Role]), help="Only users holding this role"
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_users(role: str | None, as_json: bool) -> None:
    """List users."""

    async def _list() -> None:
        try:
            users = await UserManager(get_session_factory()).list_users(role=role)
        finally:
            await close_all_connections()

        if as_json:
            click.echo(
                json.dumps([UserResponse.from_user(u).model_dump(mode="json") for u in users], indent=2)
            )
            return

        if not users:
            click.echo("No users found")
            return

        click.echo(f"{'Username':<16} {'Name':<24} {'Roles':<24} {'Level':<6} Active")
        click.echo("-" * 80)
        for u in users:
            click.echo(
                f"{u.username:<16} {u.display_name:<24} "
                f"{','.join(sorted(r.value for r in u.roles)):<24} "
                f"{u.approval_level or '':<6} {'yes' if u.is_active else 'no'}"
            )

    asyncio.run(_list())
