"""InitService — workspace initialization.

Creates ``kizuna.toml`` (or validates an existing one) and the ``.kizuna/`` database,
then stamps the database at the current Alembic head so later
``kizuna upgrade`` runs only apply newer revisions.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from kizuna.config.discovery import CONFIG_FILENAME, load_config
from kizuna.config.models import DatabaseConfig
from kizuna.infrastructure.database.engine import database_url, init_database
from kizuna.infrastructure.database.migrations import stamp_head
from kizuna.services.result import ErrorCode, ServiceResult
from kizuna.services.telemetry import traced

logger = logging.getLogger(__name__)

_CONFIG_TEMPLATE = """\
# kizuna workspace configuration.
# Only overrides belong here; every key has a built-in default.

[database]
filename = "{filename}"

[security]
max_login_attempts = 5
lock_hours = 2
"""


class InitService:
    """Workspace bootstrap; runs before any Store exists."""

    @staticmethod
    @traced
    def init_workspace(root: Path, *, database: DatabaseConfig | None = None) -> ServiceResult:
        op = "init.workspace"
        database = database or DatabaseConfig()
        root.mkdir(parents=True, exist_ok=True)

        files_created: list[str] = []
        config_path = root / CONFIG_FILENAME
        if config_path.exists():
            try:
                load_config(config_path)
            except (tomllib.TOMLDecodeError, ValidationError) as exc:
                return ServiceResult.failure(
                    op,
                    ErrorCode.INVALID_INPUT,
                    f"Existing {CONFIG_FILENAME} is invalid: {exc}",
                    path=str(config_path),
                )
        else:
            config_path.write_text(
                _CONFIG_TEMPLATE.format(filename=database.filename), encoding="utf-8"
            )
            files_created.append(CONFIG_FILENAME)

        url = database.url or database_url(root, database.filename)
        try:
            engine = init_database(root, url=database.url, filename=database.filename)
            engine.dispose()
            stamp_head(url)
        except SQLAlchemyError:
            logger.exception("Workspace initialization failed at %s", root)
            return ServiceResult.failure(
                op, ErrorCode.STORAGE_ERROR, "Could not create the database", path=str(root)
            )

        logger.info("Initialized workspace at %s", root)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(root),
                "config": str(config_path),
                "database": url,
                "files_created": files_created,
            },
        )
