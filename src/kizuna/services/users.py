"""UserService — accounts that journeys and bookings reference, plus login lockout.

Authentication itself (passwords, tokens) lives outside this package;
callers report login outcomes through :meth:`UserService.record_failed_login`
and :meth:`UserService.record_login`, which maintain the lock state in
the user's Meta.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from kizuna.domain.entities import User
from kizuna.domain.ids import generate_id
from kizuna.domain.lifecycle import UserStatus
from kizuna.domain.meta import to_iso
from kizuna.domain.patches import UserDraft
from kizuna.domain.roles import Actor, Role
from kizuna.domain.types import is_member
from kizuna.services._helpers import clamp_limit, drop_none
from kizuna.services.base import BaseService, Rejected, guarded
from kizuna.services.result import ErrorCode, ServiceResult
from kizuna.services.telemetry import traced

logger = logging.getLogger(__name__)


def _lock_view(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "login_attempts": user.meta.login_attempts,
        "lock_until": to_iso(user.meta.lock_until),
    }


class UserService(BaseService):
    """Register users, track login failures, and soft-delete accounts."""

    entity = "user"

    @traced
    @guarded
    def register(self, fields: UserDraft | Mapping[str, Any], *, actor: Actor) -> ServiceResult:
        """Create a user. Only admins may register non-customer roles."""
        op = "user.register"
        draft = self._coerce(op, UserDraft, fields)

        email = (draft.email or "").strip().lower()
        if not email or "@" not in email:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "A valid email is required")
        if not is_member(Role, draft.role):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid role: {draft.role!r}")
        if draft.status is not None and not is_member(UserStatus, draft.status):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid status: {draft.status!r}")
        if draft.role != Role.CUSTOMER:
            self._authorize(op, actor, Role.ADMIN)
        if self._store.users.get_by_email(email) is not None:
            raise Rejected(op, ErrorCode.CONFLICT, f"Email already registered: {email}")

        user = User(
            id=generate_id("user"),
            email=email,
            first_name=draft.first_name,
            last_name=draft.last_name,
            phone=draft.phone,
            role=draft.role,
            status=draft.status or UserStatus.PENDING,
        )
        self._persist(self._store.users, user, actor)
        warnings = self._dispatch_event("post_create", user, actor)
        logger.info("Registered user %s as %s", user.id, user.role)
        return ServiceResult(ok=True, op=op, data=user.to_view(), warnings=warnings)

    @traced
    @guarded
    def get(self, user_id: str, *, include_deleted: bool = False) -> ServiceResult:
        op = "user.get"
        user = self._load(op, self._store.users, User, user_id, include_deleted=include_deleted)
        return ServiceResult(ok=True, op=op, data=user.to_view())

    @traced
    @guarded
    def list_items(
        self,
        *,
        role: str | None = None,
        status: str | None = None,
        include_deleted: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> ServiceResult:
        op = "user.list_items"
        filters = drop_none({"role": role, "status": status})
        rows = self._store.users.find(
            filters, include_deleted=include_deleted, limit=clamp_limit(limit), offset=offset
        )
        items = [User.from_row(r).to_view() for r in rows]
        total = self._store.users.count(filters, include_deleted=include_deleted)
        return ServiceResult(
            ok=True, op=op, data={"count": len(items), "total": total, "items": items}
        )

    # ------------------------------------------------------------------
    # Login lockout
    # ------------------------------------------------------------------

    @traced
    @guarded
    def record_failed_login(self, user_id: str) -> ServiceResult:
        """Count a failed login; lock the account once the limit is reached."""
        op = "user.record_failed_login"
        user = self._load(op, self._store.users, User, user_id)
        now = self._now()
        security = self._store.settings.security

        user.meta.increment_login_attempts(
            now,
            max_attempts=security.max_login_attempts,
            lock_for=self._store.settings.lock_duration,
        )
        self._persist(self._store.users, user, Actor.system())

        locked = user.meta.is_locked(now)
        if locked:
            logger.warning("User %s locked until %s", user.id, user.meta.lock_until)
        return ServiceResult(ok=True, op=op, data={**_lock_view(user), "locked": locked})

    @traced
    @guarded
    def record_login(self, user_id: str) -> ServiceResult:
        """Record a successful login; refused while the account is locked."""
        op = "user.record_login"
        user = self._load(op, self._store.users, User, user_id)
        now = self._now()
        if user.meta.is_locked(now):
            raise Rejected(
                op,
                ErrorCode.INVALID_STATE,
                "Account is temporarily locked",
                lock_until=to_iso(user.meta.lock_until),
            )
        user.meta.record_login(now)
        self._persist(self._store.users, user, Actor(id=user.id, role=user.role))
        return ServiceResult(
            ok=True,
            op=op,
            data={**_lock_view(user), "last_login": to_iso(user.meta.last_login)},
        )

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    @traced
    @guarded
    def delete(self, user_id: str, *, actor: Actor) -> ServiceResult:
        """Soft-delete a user; their status becomes ``inactive``."""
        op = "user.delete"
        self._authorize(op, actor, Role.ADMIN)
        user = self._load(op, self._store.users, User, user_id)
        warnings = self._soft_delete(op, self._store.users, user, actor)
        logger.info("Deleted user %s", user.id)
        return ServiceResult(
            ok=True, op=op, data={"id": user.id, "deleted": True}, warnings=warnings
        )

    @traced
    @guarded
    def restore(self, user_id: str, *, actor: Actor) -> ServiceResult:
        """Restore a soft-deleted user; their status returns to ``pending``."""
        op = "user.restore"
        self._authorize(op, actor, Role.ADMIN)
        user = self._load(op, self._store.users, User, user_id, include_deleted=True)
        warnings = self._restore(op, self._store.users, user, actor)
        return ServiceResult(ok=True, op=op, data=user.to_view(), warnings=warnings)
