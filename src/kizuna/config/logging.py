"""structlog configuration for kizuna.

Everything goes to stderr so stdout stays parseable with ``--json``:
colored key/value lines by default, one JSON object per line with
``--log-json``.

Service modules log through ``logging.getLogger(__name__)``. The
ProcessorFormatter installed here runs those records through the same
processor chain as native structlog events, so both carry the calling
``actor``/``role`` once :func:`bind_actor` has run.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Libraries that log at INFO on every connection or migration step.
_NOISY_LOGGERS = ("sqlalchemy", "alembic")


def _processors(log_json: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if log_json:
        processors.append(structlog.processors.format_exc_info)
    return processors


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route kizuna, library, and structlog output to a single stderr handler.

    Args:
        verbose: Let ``kizuna.*`` loggers through at DEBUG; otherwise WARNING+.
        log_json: Render JSON lines instead of the console format.

    Safe to call more than once; the root handler is replaced each time.
    """
    shared = _processors(log_json)
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("kizuna").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_actor(actor_id: str | None, role: str) -> None:
    """Attach the calling principal to every subsequent log line."""
    structlog.contextvars.bind_contextvars(actor=actor_id, role=role)


def unbind_actor() -> None:
    structlog.contextvars.unbind_contextvars("actor", "role")
