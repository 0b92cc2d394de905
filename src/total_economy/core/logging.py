"""
Logging setup for total-economy.

``LogManager`` wires the standard library loggers from ``LoggingConfig``:
console output on the root logger, rotating files for ``main`` and
``error``, and a JSON lines file that receives every record logged under
``total_economy.cogs.economy``. Fields set through ``log_context`` are
copied onto each record written to a file.
"""

import logging
import logging.handlers
import sys
import json
from typing import Optional, Dict, Any
from pathlib import Path
from datetime import datetime, timezone
from contextlib import contextmanager

from .config import AppConfig, get_config
from .errors import ConfigurationError


ECONOMY_LOGGER = "total_economy.cogs.economy"

# Attributes every LogRecord carries; anything else came from `extra` or the context
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class ContextFilter(logging.Filter):
    """Copies the current context fields onto each record."""

    def __init__(self):
        super().__init__()
        self.context_data: Dict[str, Any] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context_data.items():
            setattr(record, key, value)
        if not hasattr(record, 'timestamp'):
            record.timestamp = datetime.now(timezone.utc).isoformat()
        return True

    def set_context(self, **kwargs):
        self.context_data.update(kwargs)

    def clear_context(self):
        self.context_data.clear()


class JSONFormatter(logging.Formatter):
    """One JSON object per line, including fields passed via ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and key not in entry
        )
        return json.dumps(entry, default=str, ensure_ascii=False)


class LogManager:
    """Owns the handlers it installs and removes them again on shutdown."""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.loggers: Dict[str, logging.Logger] = {}
        self.context_filter = ContextFilter()
        self._initialized = False

    @property
    def settings(self):
        return self.config.logging

    def initialize(self) -> None:
        """
        Install handlers for the root, main, error and economy loggers

        Raises:
            ConfigurationError: when the log directory or a log file cannot be created
        """
        if self._initialized:
            return

        try:
            if self.settings.file_handler_enabled:
                Path(self.settings.log_directory).mkdir(parents=True, exist_ok=True)

            root = logging.getLogger()
            root.setLevel(self._level(self.settings.level))
            root.handlers.clear()
            if self.settings.console_handler_enabled:
                root.addHandler(self._stream_handler(sys.stdout))

            self.create_logger("main", self.settings.main_log_file)
            self.create_logger("error", self.settings.error_log_file, level="ERROR")
            # Economy records also keep reaching the console through the root logger
            self.create_logger(
                ECONOMY_LOGGER, self.settings.economy_log_file, json_lines=True, propagate=True
            )
        except (OSError, ValueError, AttributeError) as e:
            raise ConfigurationError(
                "logging_initialization", f"Failed to initialize logging system: {e}", cause=e
            )

        self._initialized = True

    @staticmethod
    def _level(name: str) -> int:
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")
        return level

    def _stream_handler(self, stream, level: int = logging.NOTSET) -> logging.Handler:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(self.settings.format))
        handler.setLevel(level)
        return handler

    def create_logger(self,
                      name: str,
                      log_file: Optional[str] = None,
                      level: Optional[str] = None,
                      json_lines: bool = False,
                      propagate: bool = False) -> logging.Logger:
        """
        Configure ``name`` once and remember it

        Args:
            name: logger name
            log_file: file under the log directory, written only when file output is on
            level: overrides the configured level
            json_lines: write the file with ``JSONFormatter``
            propagate: also pass records to the root handlers
        """
        if name in self.loggers:
            return self.loggers[name]

        logger = logging.getLogger(name)
        logger.setLevel(self._level(level or self.settings.level))
        logger.handlers.clear()
        logger.propagate = propagate

        if log_file and self.settings.file_handler_enabled:
            file_handler = logging.handlers.RotatingFileHandler(
                Path(self.settings.log_directory) / log_file,
                maxBytes=self.settings.max_file_size,
                backupCount=self.settings.backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(
                JSONFormatter() if json_lines else logging.Formatter(self.settings.format)
            )
            file_handler.addFilter(self.context_filter)
            logger.addHandler(file_handler)

        if level == "ERROR":
            logger.addHandler(self._stream_handler(sys.stderr, logging.ERROR))

        self.loggers[name] = logger
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        self.initialize()
        return self.loggers.get(name) or self.create_logger(name)

    @contextmanager
    def log_context(self, **kwargs):
        """Add fields to every file record written inside the block"""
        saved = dict(self.context_filter.context_data)
        self.context_filter.set_context(**kwargs)
        try:
            yield
        finally:
            self.context_filter.context_data = saved

    def shutdown(self) -> None:
        for logger in self.loggers.values():
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()
        self.loggers.clear()
        self._initialized = False


_log_manager: Optional[LogManager] = None


def _manager() -> LogManager:
    global _log_manager
    if _log_manager is None:
        _log_manager = LogManager()
        _log_manager.initialize()
    return _log_manager


def get_logger(name: str) -> logging.Logger:
    return _manager().get_logger(name)


def log_context(**kwargs):
    return _manager().log_context(**kwargs)


def initialize_logging(config: Optional[AppConfig] = None) -> None:
    """Replace the active logging setup with one built from ``config``"""
    global _log_manager
    shutdown_logging()
    _log_manager = LogManager(config)
    _log_manager.initialize()


def shutdown_logging() -> None:
    global _log_manager
    if _log_manager is not None:
        _log_manager.shutdown()
        _log_manager = None
