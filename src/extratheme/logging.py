"""Logging configuration.

Configures loguru to output one JSON object per line in production and
human-readable colored output in development. Standard library logging
(uvicorn, httpx) is routed into loguru.
"""

import json
import logging
import sys
import traceback
from typing import Any

from loguru import logger

_SEVERITY = {
    "TRACE": "DEBUG",
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "INFO",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL",
}


def _serialize(record: dict[str, Any]) -> str:
    """Serialize a log record to a flat JSON object.

    Fields passed through ``extra`` (directly or as ``extra={...}``) end up
    at the top level next to ``severity``, ``message`` and ``time``.
    """
    log_entry: dict[str, Any] = {
        "severity": _SEVERITY.get(record["level"].name, "INFO"),
        "message": record["message"],
        "time": record["time"].isoformat(),
        "logger": record["name"],
    }

    if record["exception"] is not None:
        exc_info = record["exception"]
        tb_str = None
        if exc_info.traceback:
            tb_str = "".join(
                traceback.format_exception(exc_info.type, exc_info.value, exc_info.traceback)
            )
        log_entry["exception"] = {
            "type": exc_info.type.__name__ if exc_info.type else None,
            "value": str(exc_info.value) if exc_info.value else None,
            "traceback": tb_str,
        }

    for key, value in record.get("extra", {}).items():
        if key == "extra" and isinstance(value, dict):
            log_entry.update(value)
        elif not key.startswith("_"):
            log_entry[key] = value

    return json.dumps(log_entry, default=str)


def _json_sink(message: Any) -> None:
    """Sink that writes serialized JSON to stdout."""
    sys.stdout.write(_serialize(message.record) + "\n")
    sys.stdout.flush()


def configure_logging(*, is_production: bool, log_level: str = "INFO") -> None:
    """Configure loguru for the application.

    Args:
        is_production: If True, output JSON lines. If False, use
            human-readable colored output for development.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logger.remove()

    if is_production:
        logger.add(
            _json_sink,
            level=log_level,
            format="{message}",
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level=log_level,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level> {extra}"
                "{exception}"
            ),
            colorize=True,
            backtrace=True,
            diagnose=True,
        )

    _intercept_standard_logging(log_level)


def _intercept_standard_logging(log_level: str) -> None:
    """Intercept standard library logging and route to loguru."""

    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            try:
                level: str | int = logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

            # Find caller from where the logged message originated
            frame, depth = logging.currentframe(), 2
            while frame and frame.f_code.co_filename == logging.__file__:
                frame = frame.f_back
                depth += 1

            logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())

    logging.basicConfig(handlers=[InterceptHandler()], level=log_level, force=True)

    for name in ["uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "httpcore"]:
        logging.getLogger(name).setLevel(log_level)
        logging.getLogger(name).handlers = [InterceptHandler()]
