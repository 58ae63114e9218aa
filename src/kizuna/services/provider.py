"""ProviderService — supplier records, ratings, and provider statistics.

Name uniqueness is case-insensitive and only among non-deleted
providers, so a deleted provider's name can be reused. Deletion is
refused while any active journey still references the provider.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from kizuna.domain.entities import Address, Provider, ProviderCapacity, ProviderContact, Rating
from kizuna.domain.ids import generate_id
from kizuna.domain.lifecycle import ProviderStatus
from kizuna.domain.patches import ProviderDraft, ProviderPatch
from kizuna.domain.roles import Actor, Role
from kizuna.domain.types import ProviderType, is_member
from kizuna.services._helpers import clamp_limit, drop_none
from kizuna.services.aggregation import AggregationService
from kizuna.services.base import BaseService, Rejected, guarded
from kizuna.services.conflicts import ConflictService
from kizuna.services.result import ErrorCode, ServiceResult
from kizuna.services.telemetry import traced

logger = logging.getLogger(__name__)


class ProviderService(BaseService):
    """Create, update, rate, soft-delete, and restore providers."""

    entity = "provider"

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_fields(
        self, op: str, values: Mapping[str, Any], *, own_id: str | None
    ) -> None:
        if "name" in values:
            name = (values["name"] or "").strip()
            if not name:
                raise Rejected(op, ErrorCode.INVALID_INPUT, "Provider name is required")
            if self._store.providers.name_taken(name, exclude_id=own_id):
                raise Rejected(
                    op, ErrorCode.CONFLICT, f"Provider name already exists: {name}", name=name
                )
        if "type" in values and not is_member(ProviderType, values["type"]):
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                f"Invalid provider type: {values['type']!r}",
                allowed=[t.value for t in ProviderType],
            )
        if values.get("status") is not None and not is_member(ProviderStatus, values["status"]):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid status: {values['status']!r}")
        rating = values.get("rating")
        if rating is not None and not 0 <= rating <= 5:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Rating must be between 0 and 5")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    @guarded
    def create(
        self, fields: ProviderDraft | Mapping[str, Any], *, actor: Actor
    ) -> ServiceResult:
        """Create a provider in ``pending`` status unless a status is given."""
        op = "provider.create"
        self._authorize(op, actor, Role.MANAGER)
        draft = self._coerce(op, ProviderDraft, fields)

        if not (draft.name or "").strip():
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Provider name is required")
        if draft.type is None:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Provider type is required")
        values = {
            "name": draft.name,
            "type": draft.type,
            "status": draft.status,
            "rating": draft.rating,
        }
        self._validate_fields(op, values, own_id=None)

        provider = Provider(
            id=generate_id("provider"),
            name=(draft.name or "").strip(),
            legal_name=draft.legal_name,
            description=draft.description,
            type=draft.type,
            status=draft.status or ProviderStatus.PENDING,
            is_verified=draft.is_verified,
            rating=Rating(average=draft.rating or 0.0),
            capacity=ProviderCapacity(max_guests=draft.max_guests),
        )
        if draft.address is not None:
            provider.address = draft.address
        if draft.contact is not None:
            provider.contact = draft.contact

        self._persist(self._store.providers, provider, actor)
        warnings = self._dispatch_event("post_create", provider, actor)
        logger.info("Created provider %s (%s)", provider.id, provider.name)
        return ServiceResult(ok=True, op=op, data=provider.to_view(), warnings=warnings)

    @traced
    @guarded
    def update(
        self,
        provider_id: str,
        patch: ProviderPatch | Mapping[str, Any],
        *,
        actor: Actor,
    ) -> ServiceResult:
        """Apply a partial update; name uniqueness excludes this provider."""
        op = "provider.update"
        self._authorize(op, actor, Role.MANAGER)
        changes = self._coerce(op, ProviderPatch, patch).changes()
        provider = self._load(op, self._store.providers, Provider, provider_id)
        self._validate_fields(op, changes, own_id=provider.id)

        for key, value in changes.items():
            if key == "name":
                provider.name = value.strip()
            elif key == "rating":
                provider.rating.average = value if value is not None else 0.0
            elif key == "max_guests":
                provider.capacity.max_guests = value
            elif key == "status":
                provider.status = ProviderStatus(value or ProviderStatus.PENDING)
            elif key == "is_verified":
                provider.is_verified = bool(value)
            elif key == "address":
                provider.address = value or Address()
            elif key == "contact":
                provider.contact = value or ProviderContact()
            else:
                setattr(provider, key, value)
        self._persist(self._store.providers, provider, actor)

        warnings = self._dispatch_event(
            "post_update", provider, actor, fields_changed=sorted(changes)
        )
        logger.info("Updated provider %s: %s", provider.id, sorted(changes))
        data = {**provider.to_view(), "fields_changed": sorted(changes)}
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    @guarded
    def add_rating(self, provider_id: str, value: int, *, actor: Actor) -> ServiceResult:
        """Record one 1–5 star rating and recompute the average."""
        op = "provider.add_rating"
        provider = self._load(op, self._store.providers, Provider, provider_id)
        try:
            provider.rating.add(value)
        except ValueError as exc:
            raise Rejected(op, ErrorCode.INVALID_INPUT, str(exc)) from exc
        self._persist(self._store.providers, provider, actor)
        warnings = self._dispatch_event("post_update", provider, actor, fields_changed=["rating"])
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": provider.id, "rating": provider.rating.model_dump()},
            warnings=warnings,
        )

    @traced
    @guarded
    def delete(self, provider_id: str, *, actor: Actor) -> ServiceResult:
        """Soft-delete, unless active journeys still reference this provider."""
        op = "provider.delete"
        self._authorize(op, actor, Role.MANAGER)
        provider = self._load(op, self._store.providers, Provider, provider_id)

        active = ConflictService(self._store, clock=self._clock).active_journeys_for_provider(
            provider.id
        )
        if active:
            raise Rejected(
                op,
                ErrorCode.CONFLICT,
                f"Provider has {active} active journeys",
                active_journeys=active,
            )
        warnings = self._soft_delete(op, self._store.providers, provider, actor)
        logger.info("Deleted provider %s", provider.id)
        return ServiceResult(
            ok=True, op=op, data={"id": provider.id, "deleted": True}, warnings=warnings
        )

    @traced
    @guarded
    def restore(self, provider_id: str, *, actor: Actor) -> ServiceResult:
        op = "provider.restore"
        self._authorize(op, actor, Role.MANAGER)
        provider = self._load(
            op, self._store.providers, Provider, provider_id, include_deleted=True
        )
        warnings = self._restore(op, self._store.providers, provider, actor)
        logger.info("Restored provider %s", provider.id)
        return ServiceResult(ok=True, op=op, data=provider.to_view(), warnings=warnings)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    @guarded
    def get(self, provider_id: str, *, include_deleted: bool = False) -> ServiceResult:
        op = "provider.get"
        provider = self._load(
            op, self._store.providers, Provider, provider_id, include_deleted=include_deleted
        )
        return ServiceResult(ok=True, op=op, data=provider.to_view())

    @traced
    @guarded
    def list_items(
        self,
        *,
        type: str | None = None,  # noqa: A002
        status: str | None = None,
        include_deleted: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> ServiceResult:
        """Newest-first page of providers."""
        op = "provider.list_items"
        filters = drop_none({"type": type, "status": status})
        rows = self._store.providers.find(
            filters, include_deleted=include_deleted, limit=clamp_limit(limit), offset=offset
        )
        items = [Provider.from_row(r).to_view() for r in rows]
        total = self._store.providers.count(filters, include_deleted=include_deleted)
        return ServiceResult(
            ok=True, op=op, data={"count": len(items), "total": total, "items": items}
        )

    @traced
    @guarded
    def stats(self, *, actor: Actor) -> ServiceResult:
        op = "provider.stats"
        self._authorize(op, actor, Role.MANAGER)
        data = AggregationService(self._store, clock=self._clock).provider_stats()
        return ServiceResult(ok=True, op=op, data=data)
