"""Structured logging configuration."""

import logging
import sys

import structlog


def parse_level(level: int | str) -> int:
    """Turn a level name such as ``"debug"`` into its stdlib number.

    Unknown names fall back to INFO.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(*, json_output: bool = False, level: int | str = logging.INFO) -> None:
    """Configure structlog for the application.

    Events are written to stderr; stdout is reserved for the CLI's JSON result.

    Args:
        json_output: Emit JSON lines (production) instead of the console renderer.
        level: Minimum level, as a number or a name like ``"INFO"``.
    """
    numeric_level = parse_level(level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # uvicorn and playwright log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level, force=True)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound to a module name."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
