"""Tests for roles and the Actor principal."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from kizuna.domain.roles import Actor, Role, has_role


class TestHasRole:
    @pytest.mark.parametrize(
        ("role", "required", "expected"),
        [
            ("admin", "agent", True),
            ("admin", "manager", True),
            ("manager", "agent", True),
            ("agent", "manager", False),
            ("manager", "admin", False),
            ("guide", "guide", True),
            ("guide", "agent", False),
            ("admin", "guide", False),
            ("customer", "customer", True),
            ("agent", "customer", False),
        ],
    )
    def test_matrix(self, role: str, required: str, expected: bool) -> None:
        assert has_role(role, required) is expected


class TestActor:
    def test_default_is_admin(self) -> None:
        actor = Actor()
        assert actor.role == Role.ADMIN
        assert actor.id is None

    def test_system(self) -> None:
        assert Actor.system() == Actor(id=None, role=Role.ADMIN)

    def test_is_staff(self) -> None:
        assert Actor(role="agent").is_staff
        assert not Actor(role="guide").is_staff
        assert not Actor(role="customer").is_staff

    def test_can(self) -> None:
        assert Actor(role="manager").can(Role.AGENT)
        assert not Actor(role="customer").can(Role.AGENT)

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Actor(role="owner")

    def test_frozen(self) -> None:
        actor = Actor(id="usr_aaaaaaaaaaaa", role="agent")
        with pytest.raises(ValidationError):
            actor.role = Role.ADMIN  # type: ignore[misc]
