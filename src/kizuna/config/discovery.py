"""Locate and read ``kizuna.toml``.

A workspace is the directory holding ``kizuna.toml``; commands run from
any subdirectory find it by walking up, the way git finds ``.git/``.
``KIZUNA_CONFIG`` names a config file directly and disables the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from kizuna.config.models import KizunaConfig

CONFIG_FILENAME = "kizuna.toml"
CONFIG_ENV_VAR = "KIZUNA_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file in effect for *start* (default: cwd), or None.

    An unset ``KIZUNA_CONFIG`` falls through to the walk-up search; a set
    one that points at a missing file means "no config", not "keep looking".
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML. Raises ``tomllib.TOMLDecodeError`` on bad syntax."""
    return tomllib.loads(path.read_text(encoding="utf-8"))


def load_config(path: Path | None = None, cwd: Path | None = None) -> KizunaConfig:
    """Validated sections from *path*, or from the file discovered from *cwd*.

    With no file at all every section takes its built-in defaults.
    """
    path = path or find_config(cwd)
    if path is None:
        return KizunaConfig()
    return KizunaConfig.model_validate(read_config(path))
