"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched on the method part of ``result.op``
(``"journey.list_items"`` → ``"list_items"``) in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from kizuna.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from kizuna.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op) or _OP_RENDERERS.get(
            _method(result.op), _render_generic
        )
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    # List results print IDs only
    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if item.get("id"))
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _method(op: str) -> str:
    return op.rsplit(".", 1)[-1]


def _entity(op: str) -> str:
    return op.split(".", 1)[0]


def _lookup(item: dict[str, Any], path: str) -> Any:
    """Resolve a dotted *path* such as ``"schedule.start_date"`` in *item*."""
    value: Any = item
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="kz.ok")
    op = Text(f"  {result.op}", style="kz.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="kz.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="kz.id")
    elif key in ("name", "email"):
        v = Text(str(value), style="kz.name")
    elif key.endswith("status"):
        v = Text(str(value), style=style_for_status(str(value)))
    elif key.endswith("price") or key in ("total_revenue", "total_value"):
        v = Text(str(value), style="kz.money")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# Columns per entity for list tables; dotted paths reach into nested views.
_TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "user": ("id", "email", "role", "status"),
    "provider": ("id", "name", "type", "status", "rating.average"),
    "journey": (
        "id",
        "name",
        "status",
        "schedule.start_date",
        "guide_id",
        "pricing.base_price",
        "remaining_spots",
    ),
    "booking": (
        "id",
        "journey_id",
        "customer_id",
        "status",
        "participants",
        "total_price",
    ),
}


def _item_table(entity: str, items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table for a list of entity views."""
    columns = _TABLE_COLUMNS.get(entity, ("id", "status"))
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for col in columns:
        header = col.rsplit(".", 1)[-1].replace("_", " ").title()
        style = "kz.id" if header == "Id" else None
        table.add_column("ID" if header == "Id" else header, style=style, no_wrap=header == "Id")
    if verbose:
        table.add_column("Updated", style="dim")

    for item in items:
        row: list[Any] = []
        for col in columns:
            value = _lookup(item, col)
            text = "" if value is None else str(value)
            if col == "status":
                row.append(Text(text, style=style_for_status(text)))
            else:
                row.append(text)
        if verbose:
            row.append(str(_lookup(item, "meta.updated_at") or ""))
        table.add_row(*row)

    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    label = Text("ERROR", style="kz.error")
    op = Text(f"  {result.op}{code}", style="kz.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────


_MUTATION_KEYS: tuple[str, ...] = (
    "id",
    "name",
    "email",
    "role",
    "type",
    "status",
    "previous_status",
    "journey_id",
    "customer_id",
    "guide_id",
    "participants",
    "total_price",
    "payment_status",
    "deleted",
)


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update/delete/restore/status results."""
    _status_line(console, result)
    for key in _MUTATION_KEYS:
        if key in result.data:
            _field(console, key, result.data[key])
    if "fields_changed" in result.data:
        _field(console, "fields_changed", ", ".join(result.data["fields_changed"]))
    if verbose:
        _render_meta(console, result)


# ── Query renderers ───────────────────────────────────────────────────


def _render_single_item(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a ``get`` result as a panel of its top-level scalar fields."""
    d = result.data
    lines: list[str] = []
    for key, value in d.items():
        if key in ("id", "meta") or value is None or value == [] or value == {}:
            continue
        if isinstance(value, (dict, list)):
            value = _json.dumps(value, separators=(",", ":"))
        lines.append(f"{key}: {value}")

    if verbose and isinstance(d.get("meta"), dict):
        meta = d["meta"]
        lines.append("")
        for key in ("version", "created_at", "created_by", "updated_at", "updated_by"):
            lines.append(f"{key}: {meta.get(key)}")

    label = d.get("name") or d.get("email") or _entity(result.op)
    title = f"{d.get('id', '?')} — {label}"
    style = style_for_status(str(d.get("status", "")))
    console.print(Panel("\n".join(lines), title=title, border_style=style or "dim", expand=False))


def _render_item_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render ``list_items`` results as a table."""
    items = result.data.get("items", [])
    console.print(_item_table(_entity(result.op), items, verbose=verbose))
    total = result.data.get("total")
    count = result.data.get("count", len(items))
    suffix = f" of {total}" if total is not None else ""
    console.print(f"\n{count}{suffix} items")


def _stats_block(console: Console, title: str | None, stats: dict[str, Any]) -> None:
    if title:
        console.print(Text(f"  {title}", style="kz.name"))
    for key, value in stats.items():
        if isinstance(value, dict):
            table = Table(title=key, show_header=False, pad_edge=False, expand=False)
            table.add_column("Key")
            table.add_column("Count", justify="right")
            for bucket, count in value.items():
                table.add_row(str(bucket), str(count))
            console.print(table)
        else:
            _field(console, key, value)


def _render_stats(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render provider/journey/booking statistics."""
    _status_line(console, result)
    _stats_block(console, None, result.data)
    if verbose:
        _render_meta(console, result)


def _render_overview(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render ``stats.overview`` as one block per entity."""
    _status_line(console, result)
    for section, stats in result.data.items():
        _stats_block(console, section, stats)
    if verbose:
        _render_meta(console, result)


# ── Upgrade renderers ────────────────────────────────────────────────


def _render_upgrade(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render upgrade/migration results."""
    _status_line(console, result)
    d = result.data
    for key in ("applied_count", "pending_count", "current", "head", "backup_path", "message"):
        if key in d:
            _field(console, key, d[key])
    if verbose and d.get("pending"):
        console.print()
        for p in d["pending"]:
            console.print(f"  {p['revision']}: {p['description']}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations (by method)
    "create": _render_mutation,
    "create_for_customer": _render_mutation,
    "register": _render_mutation,
    "update": _render_mutation,
    "update_mine": _render_mutation,
    "update_staff": _render_mutation,
    "update_status": _render_mutation,
    "cancel_mine": _render_mutation,
    "assign_guide": _render_mutation,
    "delete": _render_mutation,
    "restore": _render_mutation,
    # Queries
    "get": _render_single_item,
    "list_items": _render_item_table,
    "stats": _render_stats,
    # Full op names
    "stats.overview": _render_overview,
    "upgrade.check_pending": _render_upgrade,
    "upgrade.apply": _render_upgrade,
    "upgrade.stamp_current": _render_upgrade,
}
