"""Rich Console factory and theme for kizuna output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

KIZUNA_THEME = Theme(
    {
        "kz.ok": "bold green",
        "kz.error": "bold red",
        "kz.warning": "bold yellow",
        "kz.op": "bold cyan",
        "kz.key": "dim",
        "kz.id": "bold blue",
        "kz.name": "bold",
        "kz.money": "magenta",
        "kz.status.open": "yellow",
        "kz.status.live": "green",
        "kz.status.done": "cyan",
        "kz.status.closed": "dim",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "draft": "kz.status.open",
    "pending": "kz.status.open",
    "active": "kz.status.live",
    "confirmed": "kz.status.live",
    "in_progress": "kz.status.live",
    "completed": "kz.status.done",
    "paid": "kz.status.done",
    "cancelled": "kz.status.closed",
    "inactive": "kz.status.closed",
    "archived": "kz.status.closed",
    "no_show": "kz.status.closed",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=KIZUNA_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    if not isinstance(console.file, StringIO):
        raise TypeError("Console is not backed by a StringIO buffer")
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for an entity status."""
    return _STATUS_STYLES.get(status, "")
