"""EntityRepository — row-level persistence for one entity table.

Rows go in and out as plain dicts keyed by column name. Every read
applies the soft-delete scope (``is_deleted = false``) unless the caller
passes ``include_deleted=True``.

Filters are ``{"column__lookup": value}`` mappings. Supported lookups:

========== ==========================================
``eq``     equality (the default; ``None`` → IS NULL)
``ne``     inequality (``None`` → IS NOT NULL)
``in``     membership in a list/tuple/set
``gt``     greater than   (``gte``, ``lt``, ``lte``)
``iexact`` case-insensitive string equality
========== ==========================================
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, Select, func, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.sql.schema import Table

Filters = Mapping[str, Any]


def _condition(
    table: Table, key: str, value: Any, *, dialect: str = "sqlite"
) -> ColumnElement[bool]:
    name, _, lookup = key.partition("__")
    try:
        column = table.c[name]
    except KeyError:
        msg = f"Unknown column {name!r} on table {table.name!r}"
        raise ValueError(msg) from None

    lookup = lookup or "eq"
    if lookup == "eq":
        return column.is_(None) if value is None else column == value
    if lookup == "ne":
        return column.is_not(None) if value is None else column != value
    if lookup == "in":
        return column.in_(list(value))
    if lookup == "gt":
        return column > value
    if lookup == "gte":
        return column >= value
    if lookup == "lt":
        return column < value
    if lookup == "lte":
        return column <= value
    if lookup == "iexact":
        # SQLite's lower() folds ASCII only; the engine registers casefold().
        if dialect == "sqlite":
            return func.casefold(column) == str(value).casefold()
        return func.lower(column) == str(value).lower()
    msg = f"Unknown filter lookup {lookup!r} in {key!r}"
    raise ValueError(msg)


class EntityRepository:
    """Encapsulates SQL for a single entity table."""

    def __init__(self, engine: Engine, table: Table) -> None:
        self._engine = engine
        self._table = table

    @property
    def table(self) -> Table:
        return self._table

    # ------------------------------------------------------------------
    # Statement helpers
    # ------------------------------------------------------------------

    def _scoped(
        self,
        stmt: Select[Any],
        filters: Filters | None,
        *,
        include_deleted: bool,
    ) -> Select[Any]:
        if not include_deleted:
            stmt = stmt.where(self._table.c.is_deleted.is_(False))
        dialect = self._engine.dialect.name
        for key, value in (filters or {}).items():
            stmt = stmt.where(_condition(self._table, key, value, dialect=dialect))
        return stmt

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entity_id: str, *, include_deleted: bool = False) -> dict[str, Any] | None:
        """Fetch one row by primary key, or None."""
        stmt = self._scoped(
            select(self._table), {"id": entity_id}, include_deleted=include_deleted
        )
        with self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def find(
        self,
        filters: Filters | None = None,
        *,
        include_deleted: bool = False,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Fetch rows matching *filters*, newest first by default."""
        column = self._table.c[order_by]
        stmt = self._scoped(select(self._table), filters, include_deleted=include_deleted)
        stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        with self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings().all()]

    def exists(self, filters: Filters | None = None, *, include_deleted: bool = False) -> bool:
        stmt = self._scoped(
            select(self._table.c.id), filters, include_deleted=include_deleted
        ).limit(1)
        with self._engine.connect() as conn:
            return conn.execute(stmt).first() is not None

    def count(self, filters: Filters | None = None, *, include_deleted: bool = False) -> int:
        stmt = self._scoped(
            select(func.count(self._table.c.id)), filters, include_deleted=include_deleted
        )
        with self._engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one() or 0)

    def count_by(
        self,
        column: str,
        filters: Filters | None = None,
        *,
        include_deleted: bool = False,
    ) -> dict[str, int]:
        """Group-by count: ``{column value: row count}``. NULL groups are skipped."""
        col = self._table.c[column]
        stmt = self._scoped(
            select(col, func.count(self._table.c.id)).group_by(col),
            filters,
            include_deleted=include_deleted,
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return {str(value): int(n) for value, n in rows if value is not None}

    def total(
        self,
        column: str,
        filters: Filters | None = None,
        *,
        include_deleted: bool = False,
    ) -> float:
        """Sum of *column* over matching rows (0.0 when none match)."""
        stmt = self._scoped(
            select(func.coalesce(func.sum(self._table.c[column]), 0.0)),
            filters,
            include_deleted=include_deleted,
        )
        with self._engine.connect() as conn:
            return float(conn.execute(stmt).scalar_one() or 0.0)

    def average(
        self,
        column: str,
        filters: Filters | None = None,
        *,
        include_deleted: bool = False,
    ) -> float:
        """Mean of *column* over matching rows (0.0 when none match)."""
        stmt = self._scoped(
            select(func.avg(self._table.c[column])),
            filters,
            include_deleted=include_deleted,
        )
        with self._engine.connect() as conn:
            return float(conn.execute(stmt).scalar_one() or 0.0)

    def values(
        self,
        column: str,
        filters: Filters | None = None,
        *,
        include_deleted: bool = False,
    ) -> list[Any]:
        """All values of a single column over matching rows."""
        stmt = self._scoped(
            select(self._table.c[column]), filters, include_deleted=include_deleted
        )
        with self._engine.connect() as conn:
            return list(conn.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, row: Mapping[str, Any]) -> None:
        """Insert or replace a row by primary key, in a single transaction."""
        values = dict(row)
        entity_id = values["id"]
        with self._engine.begin() as conn:
            existing = conn.execute(
                select(self._table.c.id).where(self._table.c.id == entity_id)
            ).first()
            if existing is None:
                conn.execute(insert(self._table).values(**values))
            else:
                conn.execute(
                    update(self._table).where(self._table.c.id == entity_id).values(**values)
                )
