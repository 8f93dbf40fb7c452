"""
Structured logging configuration for the scheduler backend.

Development logs go to the console in a readable one-line format.
Production (SCHEDULER_ENV=production) writes JSON lines to one rotating file
per logger under SCHEDULER_LOG_DIR.

Loggers (all under the "scheduler." namespace):
- api: Request handling and error mapping
- services: Profile and event operations, with GUIDs
- engine: Validation rejections and no-op updates (DEBUG)
- db: Engine setup, schema creation, persistence conflicts
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional


LOGGER_NAMES = ["api", "services", "engine", "db"]

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Keys: timestamp (UTC, "Z" suffix), level, logger, message, module,
    function, line, plus ``exception`` and anything passed as
    ``extra={"extra_fields": {...}}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload.update(getattr(record, "extra_fields", {}) or {})
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """[2024-06-01 09:00:00] INFO - scheduler.services - Created event: evt_..."""

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _log_level() -> int:
    name = os.environ.get("SCHEDULER_LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def _is_production() -> bool:
    return os.environ.get("SCHEDULER_ENV", "development").lower() == "production"


def _build_handler(logger_name: str, is_prod: bool) -> logging.Handler:
    if not is_prod:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ConsoleFormatter())
        return handler

    log_dir = Path(os.environ.get("SCHEDULER_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_dir / f"{logger_name}.log",
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8"
    )
    handler.setFormatter(JSONFormatter())
    return handler


def configure_logging() -> Dict[str, logging.Logger]:
    """
    (Re)configure every scheduler logger from the environment.

    Environment Variables:
        SCHEDULER_ENV: production enables JSON file logging
        SCHEDULER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default INFO)
        SCHEDULER_LOG_DIR: Directory for production log files (default ./logs)

    Returns:
        Short logger name -> configured Logger
    """
    level = _log_level()
    is_prod = _is_production()

    loggers = {}
    for name in LOGGER_NAMES:
        logger = logging.getLogger(f"scheduler.{name}")
        logger.setLevel(level)
        logger.propagate = False
        logger.handlers.clear()

        handler = _build_handler(name, is_prod)
        handler.setLevel(level)
        logger.addHandler(handler)

        loggers[name] = logger
    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Return one of the scheduler loggers, configuring them on first use.

    Raises:
        ValueError: If name is not one of api, services, engine, db

    Example:
        >>> get_logger("services").info(f"Created event: {guid}")
    """
    global _loggers
    if _loggers is None:
        _loggers = configure_logging()

    if name not in _loggers:
        raise ValueError(
            f"Unknown logger name: {name}. "
            f"Valid names: {', '.join(_loggers)}"
        )
    return _loggers[name]


def init_logging() -> Dict[str, logging.Logger]:
    """Configure logging at application startup."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
