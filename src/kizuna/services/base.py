"""BaseService — foundation for all kizuna services.

Every service receives a :class:`Store` at construction time, plus an
optional clock so tests can pin "now". Public methods follow one shape::

    @traced
    @guarded
    def create(self, fields, *, actor: Actor) -> ServiceResult:
        op = "booking.create"
        self._authorize(op, actor, Role.AGENT)
        ...
        return ServiceResult(ok=True, op=op, data=...)

Shared checks (id format, role, entity lookup, draft coercion) raise
:class:`Rejected`; :func:`guarded` turns that, and any SQLAlchemy error,
into a failed ServiceResult so nothing escapes the service boundary.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Concatenate, ParamSpec, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from kizuna.domain.entities import Entity
from kizuna.domain.ids import validate_id
from kizuna.domain.meta import utc_now
from kizuna.domain.roles import Actor
from kizuna.services.result import ErrorCode, ServiceError, ServiceResult

if TYPE_CHECKING:
    from kizuna.infrastructure.repositories import EntityRepository
    from kizuna.infrastructure.store import Store

logger = logging.getLogger(__name__)

_S = TypeVar("_S", bound="BaseService")
_P = ParamSpec("_P")
_M = TypeVar("_M", bound=BaseModel)
_E = TypeVar("_E", bound=Entity)


class Rejected(Exception):  # noqa: N818
    """Internal signal: abort the current operation with a domain error."""

    def __init__(self, op: str, code: str, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.op = op
        self.code = code
        self.message = message
        self.detail = detail

    def to_result(self) -> ServiceResult:
        return ServiceResult(
            ok=False,
            op=self.op,
            error=ServiceError(code=self.code, message=self.message, detail=self.detail),
        )


def guarded(
    func: Callable[Concatenate[_S, _P], ServiceResult],
) -> Callable[Concatenate[_S, _P], ServiceResult]:
    """Convert :class:`Rejected` and storage failures into a failed ServiceResult."""

    @functools.wraps(func)
    def wrapper(self: _S, *args: _P.args, **kwargs: _P.kwargs) -> ServiceResult:
        try:
            return func(self, *args, **kwargs)
        except Rejected as exc:
            return exc.to_result()
        except SQLAlchemyError:
            op = f"{self.entity}.{func.__name__}"
            logger.exception("Storage failure during %s", op)
            return ServiceResult.failure(op, ErrorCode.STORAGE_ERROR, "Storage operation failed")

    return wrapper


class BaseService:
    """Base for service-layer classes.

    Subclasses set :attr:`entity` (used in op names) and implement
    operations against ``self._store`` repositories.
    """

    entity: str = "service"

    def __init__(self, store: Store, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock

    def _now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Guards: raise Rejected
    # ------------------------------------------------------------------

    @staticmethod
    def _check_id(op: str, entity_id: str, kind: str) -> None:
        if not isinstance(entity_id, str) or not validate_id(entity_id, kind):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid {kind} ID: {entity_id!r}")

    @staticmethod
    def _authorize(op: str, actor: Actor, *roles: str) -> None:
        """Require *actor* to satisfy at least one of *roles*."""
        if not any(actor.can(role) for role in roles):
            raise Rejected(
                op,
                ErrorCode.FORBIDDEN,
                f"Role {actor.role!s} may not perform {op}",
                required=list(roles),
            )

    @staticmethod
    def _coerce(op: str, model_cls: type[_M], fields: _M | Mapping[str, Any]) -> _M:
        """Accept a ready draft/patch or build one from a mapping."""
        if isinstance(fields, model_cls):
            return fields
        try:
            return model_cls.model_validate(dict(fields))
        except ValidationError as exc:
            errors = [
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ]
            first = errors[0] if errors else {"field": "?", "message": str(exc)}
            message = f"Invalid input: {first['field']}: {first['message']}"
            raise Rejected(op, ErrorCode.INVALID_INPUT, message, errors=errors) from exc

    def _load(
        self,
        op: str,
        repo: EntityRepository,
        entity_cls: type[_E],
        entity_id: str,
        *,
        include_deleted: bool = False,
    ) -> _E:
        """Validate *entity_id* and fetch the entity, or reject with NOT_FOUND."""
        self._check_id(op, entity_id, entity_cls.kind)
        row = repo.get(entity_id, include_deleted=include_deleted)
        if row is None:
            raise Rejected(
                op, ErrorCode.NOT_FOUND, f"No {entity_cls.kind} found with ID: {entity_id}"
            )
        return entity_cls.from_row(row)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, repo: EntityRepository, entity: Entity, actor: Actor) -> None:
        """Touch Meta (timestamp + version) and save the entity's row."""
        entity.meta.touch(actor.id, self._now())
        repo.save(entity.to_row())

    def _soft_delete(
        self, op: str, repo: EntityRepository, entity: Entity, actor: Actor
    ) -> list[str]:
        if entity.is_deleted:
            raise Rejected(op, ErrorCode.INVALID_STATE, f"{entity.kind} is already deleted")
        entity.soft_delete(actor.id, self._now())
        self._persist(repo, entity, actor)
        return self._dispatch_event("post_delete", entity, actor)

    def _restore(
        self, op: str, repo: EntityRepository, entity: Entity, actor: Actor
    ) -> list[str]:
        if not entity.is_deleted:
            raise Rejected(op, ErrorCode.INVALID_STATE, f"{entity.kind} is not deleted")
        entity.restore()
        self._persist(repo, entity, actor)
        return self._dispatch_event("post_restore", entity, actor)

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def _dispatch_event(
        self, hook_name: str, entity: Entity, actor: Actor, **payload: Any
    ) -> list[str]:
        """Fire a plugin hook for *entity*; returns warnings for the result.

        No-op when the store carries no plugin manager.
        """
        plugins = getattr(self._store, "plugins", None)
        if plugins is None:
            return []
        warning = plugins.dispatch(
            hook_name,
            {"entity": entity.kind, "entity_id": entity.id, "actor_id": actor.id, **payload},
        )
        return [warning] if warning else []
