"""Command group: user accounts and login-lock bookkeeping."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kizuna.commands._base import KizunaGroup, with_list_options
from kizuna.domain.lifecycle import UserStatus
from kizuna.domain.roles import Role
from kizuna.services.users import UserService

if TYPE_CHECKING:
    from kizuna.commands._context import AppContext

_USER_EXAMPLES = """\
  kizuna user register ana@example.com --first-name Ana --last-name Silva
  kizuna --role admin user register kenji@example.com --role guide
  kizuna user list --role guide
  kizuna user failed-login usr_3f9a0c1d2e4b"""


@click.group(cls=KizunaGroup, examples=_USER_EXAMPLES)
@click.pass_obj
def user(app: AppContext) -> None:
    """Register and manage users."""


@user.command(
    examples="""\
  kizuna user register ana@example.com --first-name Ana
  kizuna --role admin user register kenji@example.com --role guide --status active"""
)
@click.argument("email")
@click.option("--first-name", default="", help="Given name.")
@click.option("--last-name", default="", help="Family name.")
@click.option("--phone", default=None, help="Phone number.")
@click.option(
    "--role",
    "user_role",
    type=click.Choice([r.value for r in Role]),
    default=Role.CUSTOMER.value,
    help="Role of the new user (non-customer roles need admin).",
)
@click.option(
    "--status",
    type=click.Choice([s.value for s in UserStatus]),
    default=None,
    help="Initial status (default pending).",
)
@click.pass_obj
def register(
    app: AppContext,
    email: str,
    first_name: str,
    last_name: str,
    phone: str | None,
    user_role: str,
    status: str | None,
) -> None:
    """Register a new user."""
    fields = {
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "phone": phone,
        "role": user_role,
    }
    if status is not None:
        fields["status"] = status
    app.emit(UserService(app.store).register(fields, actor=app.actor))


@user.command(
    examples="""\
  kizuna user get usr_3f9a0c1d2e4b
  kizuna --json user get usr_3f9a0c1d2e4b --include-deleted"""
)
@click.argument("user_id")
@click.option("--include-deleted", is_flag=True, help="Also find soft-deleted users.")
@click.pass_obj
def get(app: AppContext, user_id: str, include_deleted: bool) -> None:
    """Show one user."""
    app.emit(UserService(app.store).get(user_id, include_deleted=include_deleted))


@user.command(
    "list",
    examples="""\
  kizuna user list
  kizuna user list --role guide --status active
  kizuna -q user list --include-deleted""",
)
@click.option("--role", "user_role", default=None, help="Filter by role.")
@click.option("--status", default=None, help="Filter by status.")
@with_list_options
@click.pass_obj
def list_cmd(
    app: AppContext,
    user_role: str | None,
    status: str | None,
    include_deleted: bool,
    limit: int | None,
    offset: int,
) -> None:
    """List users, newest first."""
    app.emit(
        UserService(app.store).list_items(
            role=user_role,
            status=status,
            include_deleted=include_deleted,
            limit=limit,
            offset=offset,
        )
    )


@user.command(
    "failed-login",
    examples="""\
  kizuna user failed-login usr_3f9a0c1d2e4b""",
)
@click.argument("user_id")
@click.pass_obj
def failed_login(app: AppContext, user_id: str) -> None:
    """Record a failed login (locks the account at the configured limit)."""
    app.emit(UserService(app.store).record_failed_login(user_id))


@user.command(
    examples="""\
  kizuna user login usr_3f9a0c1d2e4b""",
)
@click.argument("user_id")
@click.pass_obj
def login(app: AppContext, user_id: str) -> None:
    """Record a successful login (refused while locked)."""
    app.emit(UserService(app.store).record_login(user_id))


@user.command(
    examples="""\
  kizuna --role admin user delete usr_3f9a0c1d2e4b""",
)
@click.argument("user_id")
@click.pass_obj
def delete(app: AppContext, user_id: str) -> None:
    """Soft-delete a user (admin)."""
    app.emit(UserService(app.store).delete(user_id, actor=app.actor))


@user.command(
    examples="""\
  kizuna --role admin user restore usr_3f9a0c1d2e4b""",
)
@click.argument("user_id")
@click.pass_obj
def restore(app: AppContext, user_id: str) -> None:
    """Restore a soft-deleted user (admin)."""
    app.emit(UserService(app.store).restore(user_id, actor=app.actor))
