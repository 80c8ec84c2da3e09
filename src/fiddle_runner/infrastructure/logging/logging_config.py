"""
Logging configuration for the fiddle runner.

structlog on top of stdlib logging. Records go to stderr so that the CLI's
result output on stdout stays machine readable.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict

# Keys that structlog adds for its own processors
_INTERNAL_KEYS = ("exc_info", "stack_info", "exception")


def text_renderer(logger: Any, method_name: str, event_dict: EventDict) -> str:
    """
    Render one event as a single line, followed by the traceback if any.

    Example:
        [2025-01-14 10:30:45] [WARNING] [fiddle_runner.infrastructure.process.launcher]
        Worker exited with non-zero status environment_id=aB3dE5fG7hJ9kL1m exit_code=3
    """
    timestamp = event_dict.pop("timestamp", None)
    level = event_dict.pop("level", method_name).upper()
    logger_name = event_dict.pop("logger", None)
    message = event_dict.pop("event", "")
    exception = event_dict.get("exception")

    parts = [f"[{timestamp}]"] if timestamp else []
    parts.append(f"[{level}]")
    if logger_name:
        parts.append(f"[{logger_name}]")
    parts.append(str(message))
    parts.extend(
        f"{key}={value!r}" if not isinstance(value, (str, int, float, bool)) else f"{key}={value}"
        for key, value in sorted(event_dict.items())
        if key not in _INTERNAL_KEYS
    )

    line = " ".join(parts)
    if exception:
        line += "\n" + exception
    return line


def configure_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure structlog for the runner.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_format: "text" (default) or "json"
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format.lower() == "json"
        else text_renderer
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None, **context) -> structlog.stdlib.BoundLogger:
    """Logger bound to ``name`` (usually ``__name__``) and optional context."""
    if name:
        return structlog.get_logger(name, **context)
    return structlog.get_logger(**context)
