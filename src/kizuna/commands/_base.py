"""Custom Click base classes with --examples support, plus shared option parsing.

Provides KizunaCommand and KizunaGroup that accept an ``examples``
parameter. When ``--examples`` is passed, the command prints usage
examples and exits. This keeps ``--help`` concise while making examples
available on demand.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class KizunaCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class KizunaGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = KizunaCommand`` so all subcommands automatically
    accept the ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = KizunaCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


# Shared ``--data`` option: extra fields as inline JSON or ``@path/to/file.json``.
data_option = click.option(
    "--data",
    "data",
    default=None,
    help="Extra fields as a JSON object, or @FILE to read one from disk.",
)


def load_json(raw: str, *, param_hint: str) -> Any:
    """Decode inline JSON, or the contents of ``@path`` when *raw* starts with ``@``."""
    text = raw
    if raw.startswith("@"):
        path = Path(raw[1:])
        if not path.is_file():
            raise click.BadParameter(f"File not found: {path}", param_hint=param_hint)
        text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Invalid JSON: {exc}", param_hint=param_hint) from exc


def parse_data(raw: str | None) -> dict[str, Any]:
    """Decode a ``--data`` value into a field mapping."""
    if not raw:
        return {}
    value = load_json(raw, param_hint="--data")
    if not isinstance(value, dict):
        raise click.BadParameter("Expected a JSON object", param_hint="--data")
    return value


def merge_fields(data: str | None, **options: Any) -> dict[str, Any]:
    """``--data`` fields overlaid with the explicitly given (non-None) options."""
    fields = parse_data(data)
    fields.update({k: v for k, v in options.items() if v is not None})
    return fields


list_options = [
    click.option("--include-deleted", is_flag=True, help="Include soft-deleted records."),
    click.option("--limit", type=int, default=None, help="Page size (default 50, max 200)."),
    click.option("--offset", type=int, default=0, help="Rows to skip."),
]


def with_list_options(func: Any) -> Any:
    """Apply the shared paging/deleted options to a list command."""
    for option in reversed(list_options):
        func = option(func)
    return func
