"""
Category loggers for the API.

Every category ("app", "route", "model_utils", "error") is served by a logger
named ``adventureworks.<category>``, a child of the Flask app logger, so its
records also reach the handlers ``configure_logging`` attached there. With
``LOGGING_ENABLE_CATEGORY_FILES`` each category additionally writes to its own
timed-rotating file under ``LOGGING_BASE_DIR``. Fields bound with
:func:`log_context` travel with every record written inside the block.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from flask import Flask

LOGGER_PREFIX = "adventureworks"

CATEGORY_FILES: Dict[str, str] = {
    "app": "application.log",
    "route": "route.log",
    "model_utils": "persistence.log",
    "error": "errors.log",
}

# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_context: ContextVar[Mapping[str, Any]] = ContextVar("log_context", default={})


@contextmanager
def log_context(**fields: Any):
    """Bind ``fields`` to every record logged inside the block; ``None`` values are skipped."""

    merged = dict(_context.get())
    merged.update((key, value) for key, value in fields.items() if value is not None)
    token = _context.set(merged)
    try:
        yield
    finally:
        _context.reset(token)


class ContextAwareFormatter(logging.Formatter):
    """Text lines with a ``| key=value`` suffix, or one JSON object per record."""

    def __init__(self, *, json_format: bool = False, static_fields: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__("[%(asctime)s] %(levelname)s %(name)s - %(message)s")
        self.json_format = json_format
        self.static_fields = {k: v for k, v in (static_fields or {}).items() if v is not None}

    def format(self, record: logging.LogRecord) -> str:
        context = _context.get()
        if self.json_format:
            return json.dumps(self._as_dict(record, context), default=str, separators=(",", ":"))

        line = super().format(record)
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return line

    def _as_dict(self, record: logging.LogRecord, context: Mapping[str, Any]) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.static_fields,
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_") and key not in entry
        )
        if context:
            entry["context"] = dict(context)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return entry


def _level(value: Any, default: int = logging.INFO) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value or "").upper())
    return level if isinstance(level, int) else default


class LoggerManager:
    """Hands out category loggers and owns the handlers it attaches to them."""

    def __init__(
        self,
        *,
        base_dir: Optional[str] = None,
        rotation_when: str = "midnight",
        backup_count: int = 7,
        level: int = logging.INFO,
        category_files: bool = False,
        console: bool = False,
        formatter: Optional[logging.Formatter] = None,
    ) -> None:
        self.base_dir = Path(base_dir or "/tmp/adventureworks_logs")
        self.rotation_when = rotation_when
        self.backup_count = backup_count
        self.level = level
        self.category_files = category_files
        self.console = console
        self.formatter = formatter or ContextAwareFormatter()
        self._loggers: Dict[str, logging.Logger] = {}
        self._owned: Dict[str, List[logging.Handler]] = {}
        self._console_handler: Optional[logging.Handler] = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "LoggerManager":
        return cls(
            base_dir=config.get("LOGGING_BASE_DIR"),
            rotation_when=config.get("LOGGING_ROTATION_WHEN", "midnight"),
            backup_count=int(config.get("LOGGING_ROTATION_BACKUP_COUNT", 7)),
            level=_level(config.get("LOGGING_DEFAULT_LEVEL")),
            category_files=bool(config.get("LOGGING_ENABLE_CATEGORY_FILES", True)),
            console=bool(config.get("LOGGING_CONSOLE_ENABLED", True)),
            formatter=ContextAwareFormatter(
                json_format=bool(config.get("LOGGING_JSON_FORMAT", False)),
                static_fields={"app": config.get("APP_NAME"), "version": config.get("APP_VERSION")},
            ),
        )

    def get_logger(self, category: str) -> logging.Logger:
        key = category.strip().lower()
        logger = self._loggers.get(key)
        if logger is not None:
            return logger

        logger = logging.getLogger(f"{LOGGER_PREFIX}.{key}")
        logger.setLevel(self.level)
        handlers: List[logging.Handler] = []
        if self.category_files:
            handlers.append(self._file_handler(CATEGORY_FILES.get(key, f"{key}.log")))
        if self.console:
            handlers.append(self._shared_console_handler())
        for handler in handlers:
            logger.addHandler(handler)

        self._owned[key] = handlers
        self._loggers[key] = logger
        return logger

    def _file_handler(self, filename: str) -> logging.Handler:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        handler = TimedRotatingFileHandler(
            self.base_dir / filename,
            when=self.rotation_when,
            backupCount=self.backup_count,
            encoding="utf-8",
            utc=True,
        )
        handler.setLevel(self.level)
        handler.setFormatter(self.formatter)
        return handler

    def _shared_console_handler(self) -> logging.Handler:
        if self._console_handler is None:
            self._console_handler = logging.StreamHandler()
            self._console_handler.setLevel(self.level)
            self._console_handler.setFormatter(self.formatter)
        return self._console_handler

    def shutdown(self) -> None:
        """Detach and close every handler this manager attached."""

        for key, logger in self._loggers.items():
            for handler in self._owned.get(key, []):
                logger.removeHandler(handler)
                if handler is not self._console_handler:
                    handler.close()
        if self._console_handler is not None:
            self._console_handler.close()
        self._loggers.clear()
        self._owned.clear()
        self._console_handler = None


_manager: Optional[LoggerManager] = None


def init_logger(app: Flask) -> LoggerManager:
    """Replace the shared manager with one built from ``app.config``."""

    global _manager
    shutdown_logger()
    _manager = LoggerManager.from_config(app.config)
    return _manager


def shutdown_logger() -> None:
    global _manager
    if _manager is not None:
        _manager.shutdown()
        _manager = None


def get_logger(category: str) -> logging.Logger:
    global _manager
    if _manager is None:
        # Outside an app (scripts, bare unit tests) records only propagate
        _manager = LoggerManager()
    return _manager.get_logger(category)
