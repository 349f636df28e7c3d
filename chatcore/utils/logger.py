"""
This module provides the client's logging setup.
It features `LoggerManager` for creating and managing logger instances with
console and file handlers in text, colored or JSON format, and
`JsonLogFormatter` for producing structured JSON logs.
"""

import os
import sys
import logging
import json
from typing import Optional

try:
    from colorlog import ColoredFormatter

    COLORLOG_AVAILABLE = True
except ImportError:
    COLORLOG_AVAILABLE = False

from chatcore.utils.task_paths import TaskPaths


class LoggerManager:
    """
    A factory class for creating and managing singleton `logging.Logger` instances.

    For any logger name the same instance is returned, so handlers are attached
    only once.

    Key features of the configured loggers:
    - **Dual Output**: console (stdout) and file handlers.
    - **Customizable Levels & Formatting**: console output is colored when
      `colorlog` is installed; file output is plain text or JSON
      (`JsonLogFormatter`).
    - **Path Handling**: log files go to `log_file` when given, otherwise to
      the directory resolved by `TaskPaths` (`CHATBOT_LOG_DIR` or `logs/`).
    - **No Duplicate Propagation**: `propagate = False`.

    `configure()` sets process-wide defaults (level, JSON file output) that
    apply to loggers created afterwards; the CLI calls it once from the
    loaded settings.
    """

    _loggers = {}
    _default_level = "INFO"
    _default_use_json = False

    @classmethod
    def configure(cls, level: Optional[str] = None, use_json: Optional[bool] = None) -> None:
        """Set defaults for subsequently created loggers and re-level existing ones."""
        if level:
            cls._default_level = level.upper()
            for logger in cls._loggers.values():
                logger.setLevel(cls._default_level)
                for handler in logger.handlers:
                    handler.setLevel(cls._default_level)
        if use_json is not None:
            cls._default_use_json = use_json

    @classmethod
    def get_logger(
        cls,
        name: str,
        log_file: Optional[str] = None,
        level: Optional[str] = None,
        use_json: Optional[bool] = None,
        use_color: bool = True,
        task_paths: Optional[TaskPaths] = None,
    ) -> logging.Logger:
        """
        Retrieve or create a logger configured for console and file output.

        Args:
            name (str): A unique identifier (typically the module name).
            log_file (Optional[str]): Full path to a log file. Overrides
                task_paths if set.
            level (Optional[str]): Logging level threshold ("DEBUG", "INFO", etc.).
            use_json (Optional[bool]): If True, format file logs as JSON.
            use_color (bool): If True and colorlog is available, enable colored
                console output.
            task_paths (Optional[TaskPaths]): Resolves the log file path.

        Returns:
            logging.Logger: A fully configured logger instance.
        """
        if name in cls._loggers:
            return cls._loggers[name]

        level = (level or cls._default_level).upper()
        use_json = cls._default_use_json if use_json is None else use_json

        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False  # Prevent duplicate logs

        if not log_file:
            log_file = (task_paths or TaskPaths()).get_log_path(name="chatbot")

        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)

        logger.addHandler(cls._setup_file_handler(log_file, level, use_json))
        logger.addHandler(cls._setup_console_handler(level, use_color))

        cls._loggers[name] = logger
        return logger

    @staticmethod
    def _setup_file_handler(
        filepath: str, level: str, use_json: bool
    ) -> logging.Handler:
        handler = logging.FileHandler(filepath, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(LoggerManager._get_formatter(use_json=use_json, color=False))
        return handler

    @staticmethod
    def _setup_console_handler(level: str, use_color: bool) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(LoggerManager._get_formatter(use_json=False, color=use_color))
        return handler

    @staticmethod
    def _get_formatter(
        use_json: bool = False, color: bool = False
    ) -> logging.Formatter:
        """
        Returns a log formatter object based on configuration.

        Args:
            use_json (bool): If True, returns a JSON formatter (for structured logs).
            color (bool): If True and colorlog is installed, returns a colored
                formatter.
        """
        if use_json:
            return JsonLogFormatter()

        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"

        if color and COLORLOG_AVAILABLE:
            return ColoredFormatter(
                fmt="%(log_color)s" + fmt,
                datefmt=datefmt,
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'bold_red',
                },
            )
        return logging.Formatter(fmt, datefmt)


class JsonLogFormatter(logging.Formatter):
    """
    A formatter that outputs logs in JSON format.

    Example Output:
        {
            "timestamp": "2026-05-07 13:12:01",
            "level": "INFO",
            "logger": "chatcore.conversation.exchange",
            "message": "chat.send.ok",
            "history_id": 42
        }

    Supports extra data via `extra={"extra_data": {...}}` in logging calls.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra_data"):
            log_record.update(record.extra_data)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)
