# common/logger/print_logger.py

import sys
import traceback
from typing import Any, Dict
from datetime import datetime

from .logger_interface import LoggerInterface, LogLevel


class PrintLogger(LoggerInterface):
    """Plain print-based logger, used for CLI runs and when loguru sinks are unwanted."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    LEVEL_ORDER = {
        LogLevel.DEBUG: 0,
        LogLevel.INFO: 1,
        LogLevel.WARNING: 2,
        LogLevel.ERROR: 3,
        LogLevel.CRITICAL: 4,
    }

    def __init__(
        self,
        name: str = "api-testlab",
        level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
    ):
        self.name = name
        self.level = level
        self.context: Dict[str, Any] = {}
        self.use_colors = use_colors and sys.stdout.isatty()

    def _should_log(self, level: LogLevel) -> bool:
        return self.LEVEL_ORDER[level] >= self.LEVEL_ORDER[self.level]

    def _format_message(self, level: LogLevel, message: str) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        formatted = f"{timestamp} [{level.value:8}] {self.name}: {message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            formatted += f" | {context_str}"
        if self.use_colors:
            formatted = f"{self.COLORS[level.value]}{formatted}{self.COLORS['RESET']}"
        return formatted

    def _emit(self, level: LogLevel, message: str, *args) -> None:
        if not self._should_log(level):
            return
        if args:
            message = message.format(*args)
        stream = sys.stderr if level in (LogLevel.ERROR, LogLevel.CRITICAL) else sys.stdout
        print(self._format_message(level, message), file=stream)

    def debug(self, message: str, *args, **kwargs) -> None:
        self._emit(LogLevel.DEBUG, message, *args)

    def info(self, message: str, *args, **kwargs) -> None:
        self._emit(LogLevel.INFO, message, *args)

    def warning(self, message: str, *args, **kwargs) -> None:
        self._emit(LogLevel.WARNING, message, *args)

    def error(self, message: str, *args, **kwargs) -> None:
        self._emit(LogLevel.ERROR, message, *args)

    def exception(self, message: str, *args, **kwargs) -> None:
        self._emit(LogLevel.ERROR, message, *args)
        if self._should_log(LogLevel.ERROR):
            traceback.print_exc(file=sys.stderr)

    def log(self, level: LogLevel, message: str, *args, **kwargs) -> None:
        self._emit(level, message, *args)

    def add_context(self, **context: Any) -> None:
        self.context.update(context)

    def clear_context(self) -> None:
        self.context.clear()
