"""Meta — audit, soft-delete, and login-lock record embedded in every entity.

INVARIANT: ``is_deleted`` implies ``not is_active``.
INVARIANT: ``version`` equals the number of times the entity was saved.

Lock rules for failed logins:
- A lock activates once ``login_attempts`` reaches the limit (default 5).
- It expires when ``now > lock_until``; the next failure after expiry
  restarts the counter at 1.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

MAX_LOGIN_ATTEMPTS = 5
LOCK_DURATION = timedelta(hours=2)

# Columns that store Meta, shared by every entity table.
META_COLUMNS: tuple[str, ...] = (
    "created_at",
    "updated_at",
    "created_by",
    "updated_by",
    "version",
    "is_active",
    "is_deleted",
    "deleted_at",
    "deleted_by",
    "login_attempts",
    "lock_until",
    "last_login",
)

_DATETIME_COLUMNS = frozenset(
    {"created_at", "updated_at", "deleted_at", "lock_until", "last_login"}
)


class MetaStateError(ValueError):
    """Raised when a Meta operation does not apply to the current state."""


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_iso(value: datetime | None) -> str | None:
    """Serialize an aware datetime with fixed precision so stored values sort correctly."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_iso(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class Meta(BaseModel):
    """Audit and soft-delete record owned by its entity."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str | None = None
    updated_by: str | None = None
    version: int = 0
    is_active: bool = True
    is_deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by: str | None = None
    login_attempts: int = 0
    lock_until: datetime | None = None
    last_login: datetime | None = None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def touch(self, actor_id: str | None, now: datetime | None = None) -> None:
        """Record a save: refresh ``updated_at`` and bump ``version``.

        The first touch of an unsaved entity also stamps the creation fields.
        """
        now = now or utc_now()
        if self.version == 0:
            self.created_at = now
            self.created_by = actor_id
        self.updated_at = now
        self.updated_by = actor_id
        self.version += 1

    def soft_delete(self, actor_id: str | None, now: datetime | None = None) -> None:
        if self.is_deleted:
            raise MetaStateError("Entity is already deleted")
        self.is_deleted = True
        self.deleted_at = now or utc_now()
        self.deleted_by = actor_id
        self.is_active = False

    def restore(self) -> None:
        if not self.is_deleted:
            raise MetaStateError("Entity is not deleted")
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        self.is_active = True

    # ------------------------------------------------------------------
    # Login lock
    # ------------------------------------------------------------------

    def is_locked(self, now: datetime | None = None) -> bool:
        now = now or utc_now()
        return self.lock_until is not None and self.lock_until > now

    def increment_login_attempts(
        self,
        now: datetime | None = None,
        *,
        max_attempts: int = MAX_LOGIN_ATTEMPTS,
        lock_for: timedelta = LOCK_DURATION,
    ) -> None:
        """Count a failed login, locking once *max_attempts* is reached."""
        now = now or utc_now()
        if self.lock_until is not None and self.lock_until < now:
            self.login_attempts = 1
            self.lock_until = None
            return

        self.login_attempts += 1
        if self.login_attempts >= max_attempts and not self.is_locked(now):
            self.lock_until = now + lock_for

    def record_login(self, now: datetime | None = None) -> None:
        """Successful login: stamp ``last_login`` and clear the failure counter."""
        self.last_login = now or utc_now()
        self.login_attempts = 0
        self.lock_until = None

    # ------------------------------------------------------------------
    # Persistence mapping
    # ------------------------------------------------------------------

    def to_columns(self) -> dict[str, Any]:
        """Flatten into the shared meta columns of an entity row."""
        data = self.model_dump()
        return {
            col: to_iso(data[col]) if col in _DATETIME_COLUMNS else data[col]
            for col in META_COLUMNS
        }

    @classmethod
    def from_columns(cls, row: dict[str, Any]) -> Meta:
        values: dict[str, Any] = {}
        for col in META_COLUMNS:
            if col not in row or row[col] is None:
                continue
            values[col] = from_iso(row[col]) if col in _DATETIME_COLUMNS else row[col]
        return cls.model_validate(values)
