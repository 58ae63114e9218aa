"""UpgradeService — database migration with Alembic.

Pipeline: BACKUP → MIGRATE → VALIDATE → REPORT
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import make_url

from kizuna.infrastructure.database.migrations import build_config
from kizuna.infrastructure.database.schema import metadata
from kizuna.services.base import BaseService
from kizuna.services.result import ErrorCode, ServiceResult
from kizuna.services.telemetry import traced

logger = logging.getLogger(__name__)

BACKUP_DIRNAME = "backups"


class UpgradeService(BaseService):
    """Handles database schema migrations via Alembic."""

    entity = "upgrade"

    def _tables_exist(self) -> bool:
        """Check if the entity tables exist (databases created before Alembic tracking)."""
        return "bookings" in inspect(self._store.engine).get_table_names()

    def _sqlite_path(self) -> Path | None:
        url = make_url(self._store.url)
        if url.get_backend_name() != "sqlite" or not url.database:
            return None
        return Path(url.database)

    def _backup_db(self) -> Path | None:
        """Copy the SQLite file to ``.kizuna/backups/``; None for other backends."""
        source = self._sqlite_path()
        if source is None or not source.is_file():
            return None
        backup_dir = source.parent / BACKUP_DIRNAME
        backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = self._now().strftime("%Y%m%dT%H%M%S")
        target = backup_dir / f"{source.stem}-{stamp}{source.suffix}"
        shutil.copy2(source, target)
        logger.info("Backed up database to %s", target)
        return target

    @traced
    def check_pending(self) -> ServiceResult:
        """List pending migrations without applying."""
        op = "upgrade.check_pending"

        try:
            cfg = build_config(self._store.url)
            script = ScriptDirectory.from_config(cfg)
            head = script.get_current_head()

            with self._store.engine.connect() as conn:
                ctx = MigrationContext.configure(conn)
                current = ctx.get_current_revision()

            # Walk from head down to current
            pending: list[dict[str, Any]] = []
            if current != head and head is not None:
                rev_obj = script.get_revision(head)
                while rev_obj is not None and rev_obj.revision != current:
                    pending.append({"revision": rev_obj.revision, "description": rev_obj.doc or ""})
                    down = rev_obj.down_revision
                    if down is None:
                        break
                    rev_obj = script.get_revision(str(down))

            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "pending_count": len(pending),
                    "pending": pending,
                    "current": current,
                    "head": head,
                },
            )
        except Exception as exc:
            logger.exception("Migration check failed")
            return ServiceResult.failure(
                op, ErrorCode.STORAGE_ERROR, f"Failed to check migrations: {exc}", stage="check"
            )

    @traced
    def apply(self) -> ServiceResult:
        """BACKUP → MIGRATE → VALIDATE → REPORT pipeline."""
        op = "upgrade.apply"
        warnings: list[str] = []

        check_result = self.check_pending()
        if not check_result.ok:
            return check_result

        pending_count = check_result.data["pending_count"]
        if pending_count == 0:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "applied_count": 0,
                    "current": check_result.data["head"],
                    "message": "Database is already up to date",
                },
            )

        # BACKUP
        try:
            backup_path = self._backup_db()
        except OSError as exc:
            return ServiceResult.failure(
                op, ErrorCode.STORAGE_ERROR, f"Backup failed: {exc}", stage="backup"
            )
        if backup_path is None:
            warnings.append("No file backup taken for this database backend")

        # MIGRATE, or STAMP when the tables predate Alembic tracking
        try:
            cfg = build_config(self._store.url)
            if check_result.data.get("current") is None and self._tables_exist():
                command.stamp(cfg, "head")
            else:
                command.upgrade(cfg, "head")
        except Exception as exc:
            logger.exception("Migration failed")
            return ServiceResult.failure(
                op,
                ErrorCode.STORAGE_ERROR,
                f"Migration failed: {exc}. Backup at: {backup_path}",
                stage="migrate",
                backup_path=str(backup_path) if backup_path else None,
            )

        # VALIDATE
        missing = sorted(set(metadata.tables) - set(inspect(self._store.engine).get_table_names()))
        if missing:
            warnings.append(f"Post-migration check: missing tables {', '.join(missing)}")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "applied_count": pending_count,
                "current": check_result.data["head"],
                "backup_path": str(backup_path) if backup_path else None,
            },
            warnings=warnings,
        )

    @traced
    def stamp_current(self) -> ServiceResult:
        """Stamp DB as at current head (for freshly created DBs)."""
        op = "upgrade.stamp_current"

        try:
            cfg = build_config(self._store.url)
            command.stamp(cfg, "head")
            head = ScriptDirectory.from_config(cfg).get_current_head()
        except Exception as exc:
            logger.exception("Stamp failed")
            return ServiceResult.failure(
                op, ErrorCode.STORAGE_ERROR, f"Failed to stamp database: {exc}", stage="stamp"
            )
        return ServiceResult(ok=True, op=op, data={"stamped": True, "current": head})
