"""Logging configuration for Delver."""

import sys
from pathlib import Path
from typing import Any, TextIO

import structlog


def _level_to_int(level: str) -> int:
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# log file opened by configure_logging; closed on reconfigure or close_logging()
_log_handle: TextIO | None = None


def configure_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    json_logs: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for the game process."""
    global _log_handle
    close_logging()
    if log_file:
        _log_handle = open(log_file, "a", encoding="utf-8")
        output_stream = _log_handle
    else:
        output_stream = stream or sys.stderr

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(
            fmt="iso" if json_logs else "%Y-%m-%d %H:%M:%S"
        ),
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=output_stream.isatty())
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output_stream),
        # loggers must follow reconfiguration, so they are not cached
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance for a module."""
    return structlog.get_logger(name)


def close_logging() -> None:
    """Close the log file, if one is open; later events go to stderr."""
    global _log_handle
    if _log_handle is None:
        return
    handle, _log_handle = _log_handle, None
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(file=sys.stderr))
    handle.close()
