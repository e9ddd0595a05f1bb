"""structlog configuration shared by the CLI and library users."""

import logging
import sys
from typing import Any

import structlog


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # resolved per logger so a redirected sys.stderr is always honoured
    return structlog.PrintLogger(file=sys.stderr)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog to write key/value (or JSON) lines to stderr.

    stdout is left alone so JSON results can be piped from the CLI.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )
