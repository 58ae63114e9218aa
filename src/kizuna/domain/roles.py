"""Caller roles and the principal (Actor) passed into every service call.

Staff roles inherit downwards: an admin may do anything a manager may,
and a manager anything an agent may. Customers and guides sit outside
that chain.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class Role(StrEnum):
    CUSTOMER = "customer"
    GUIDE = "guide"
    AGENT = "agent"
    MANAGER = "manager"
    ADMIN = "admin"


_STAFF_RANK: dict[str, int] = {
    "agent": 1,
    "manager": 2,
    "admin": 3,
}

STAFF_ROLES: frozenset[str] = frozenset(_STAFF_RANK)


def has_role(role: str, required: str) -> bool:
    """Return True if *role* satisfies *required*.

    Staff roles compare by rank; any other role must match exactly.

    Examples:
        >>> has_role("admin", "agent")
        True
        >>> has_role("guide", "agent")
        False
        >>> has_role("guide", "guide")
        True
    """
    if role == required:
        return True
    if required in _STAFF_RANK and role in _STAFF_RANK:
        return _STAFF_RANK[role] >= _STAFF_RANK[required]
    return False


class Actor(BaseModel):
    """The calling principal: identity plus role.

    ``id`` is None for system actions (CLI maintenance, migrations).
    """

    model_config = {"frozen": True}

    id: str | None = None
    role: Role = Role.ADMIN

    @classmethod
    def system(cls) -> Actor:
        return cls(id=None, role=Role.ADMIN)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def can(self, required: str) -> bool:
        return has_role(self.role, required)
