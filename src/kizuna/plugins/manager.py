"""Plugin discovery, loading, and synchronous hook dispatch."""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import Any

import pluggy

from kizuna.plugins.hookspecs import KizunaHookSpec

PROJECT_NAME = "kizuna"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(KizunaHookSpec)

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load ``kizuna.plugins`` entry points, then scan *local_dir*.

        Returns the names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints("kizuna.plugins")
        if local_dir is not None:
            self._discover_local(local_dir)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> str | None:
        """Call every implementation of *hook_name* with *payload*.

        Returns a warning message when a plugin raised, else None.
        """
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return None
        try:
            hook_fn(**payload)
        except Exception:
            logger.warning("Hook %s failed", hook_name, exc_info=True)
            return f"Plugin hook {hook_name} failed"
        return None

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Register hook classes from each ``*.py`` in *local_dir*.

        Files starting with ``_`` are skipped. Load errors are logged and
        the file is skipped.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"kizuna_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name or not self._has_hook_impls(obj):
                    continue
                try:
                    self.register_plugin(obj(), name=f"{module_name}.{obj.__name__}")
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Whether *cls* has methods marked with ``@hookimpl`` (``kizuna_impl``)."""
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "kizuna_impl", None):
                return True
        return False
