"""Extension layer — lifecycle hooks via pluggy.

Discovery: ``kizuna.plugins`` entry points plus single-file plugins in
``.kizuna/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from kizuna.plugins.hookspecs import hookimpl
from kizuna.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
