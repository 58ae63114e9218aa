"""Pluggy hook specifications for kizuna entity lifecycle events.

Hooks fire synchronously after the entity row has been saved. ``entity``
is the kind (``provider``, ``journey``, ``booking``, ``user``) and
``actor_id`` is None for system actions.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("kizuna")
hookimpl = pluggy.HookimplMarker("kizuna")


class KizunaHookSpec:
    """Hook specifications for the kizuna plugin system."""

    @hookspec
    def post_create(self, entity: str, entity_id: str, actor_id: str | None) -> None:
        """Called after an entity is created."""

    @hookspec
    def post_update(
        self,
        entity: str,
        entity_id: str,
        fields_changed: list[str],
        actor_id: str | None,
    ) -> None:
        """Called after a field update."""

    @hookspec
    def post_status_change(
        self,
        entity: str,
        entity_id: str,
        old_status: str,
        new_status: str,
        actor_id: str | None,
    ) -> None:
        """Called after a status transition (journeys and bookings)."""

    @hookspec
    def post_delete(self, entity: str, entity_id: str, actor_id: str | None) -> None:
        """Called after a soft delete."""

    @hookspec
    def post_restore(self, entity: str, entity_id: str, actor_id: str | None) -> None:
        """Called after a soft-deleted entity is restored."""
