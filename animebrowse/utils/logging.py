"""structlog configuration for animeBrowse.

One processor chain serves structlog loggers and the standard library alike,
so uvicorn and httpx output looks the same as application events.  The final
renderer is JSON in production (``APP_ENV=production`` or ``json_output``)
and the console renderer everywhere else.

Rendered lines go to stdout by default.  The CLI passes ``stream=sys.stderr``
so command output on stdout stays machine-readable.

httpx and httpcore log every upstream request at INFO.  The query service
already logs cache hits and the coordinator logs each request lifecycle, so
those loggers are held at WARNING unless the level is DEBUG.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog

_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _renderer(use_json: bool, target: TextIO) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=target.isatty())


def _route_stdlib(
    level: str,
    target: TextIO,
    processors: list[structlog.types.Processor],
    renderer: structlog.types.Processor,
) -> None:
    """Send standard-library records through the structlog renderer."""
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *processors,
            renderer,
        ],
    )
    handler = logging.StreamHandler(target)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    quiet_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the standard-library root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR (case-insensitive).
        json_output: Force the JSON renderer regardless of ``APP_ENV``.
        stream: Where rendered lines go.  Defaults to stdout.

    Returns:
        A configured structlog BoundLogger.
    """
    level = log_level.upper()
    target = stream or sys.stdout
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    processors = _shared_processors()
    renderer = _renderer(use_json, target)

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=target),
        # configure_logging may run more than once per process.
        cache_logger_on_first_use=False,
    )
    _route_stdlib(level, target, processors, renderer)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Named logger; configures logging with defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Attach *values* to every event logged inside the block.

    ``None`` values are skipped, so optional identifiers (a missing
    ``X-Client-Id`` header, say) leave no empty keys behind.
    """
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield
