# common/logger/standard_logger.py

import sys
from typing import Any, Optional, Dict
from pathlib import Path
from loguru import logger as loguru_logger

from .logger_interface import LoggerInterface, LogLevel


class StandardLogger(LoggerInterface):
    """Logger backed by loguru, one filtered sink per logger name."""

    _default_handler_removed = False

    def __init__(
        self,
        name: str = "api-testlab",
        level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        log_file: Optional[str] = None,
    ):
        self.name = name
        self.level = level
        self.use_colors = use_colors
        self.log_file = log_file
        self.context: Dict[str, Any] = {}
        self._handler_ids = []

        if not StandardLogger._default_handler_removed:
            loguru_logger.remove()
            StandardLogger._default_handler_removed = True

        self._handler_ids.append(
            loguru_logger.add(
                sys.stderr,
                format=self._console_format(use_colors),
                level=level.value,
                colorize=use_colors,
                backtrace=True,
                diagnose=False,
                filter=lambda record: record["extra"].get("logger_name") == name,
            )
        )

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            self._handler_ids.append(
                loguru_logger.add(
                    log_file,
                    format=(
                        "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                        "{extra[logger_name]}:{name}:{function}:{line} | {message}"
                    ),
                    level=level.value,
                    rotation="10 MB",
                    retention="30 days",
                    compression="zip",
                    enqueue=True,
                    filter=lambda record: record["extra"].get("logger_name") == name,
                )
            )

        self.logger = loguru_logger.bind(logger_name=name)

    @staticmethod
    def _console_format(use_colors: bool) -> str:
        if use_colors:
            return (
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{extra[logger_name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            )
        return (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
            "{extra[logger_name]}:{function}:{line} | {message}"
        )

    def _log_with_context(self, level: str, message: str, *args, **kwargs) -> None:
        full_context = {**self.context, **kwargs.get("extra", {})}
        if args:
            message = message.format(*args)
        # depth=2 reports the caller of debug()/info() rather than this helper
        self.logger.bind(**full_context).opt(depth=2).log(level, message)

    def debug(self, message: str, *args, **kwargs) -> None:
        self._log_with_context("DEBUG", message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self._log_with_context("INFO", message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self._log_with_context("WARNING", message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self._log_with_context("ERROR", message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs) -> None:
        if args:
            message = message.format(*args)
        bound = self.logger.bind(**self.context, **kwargs.get("extra", {}))
        bound.opt(depth=1).exception(message)

    def log(self, level: LogLevel, message: str, *args, **kwargs) -> None:
        self._log_with_context(level.value, message, *args, **kwargs)

    def add_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    def clear_context(self) -> None:
        self.context.clear()

    def close(self) -> None:
        """Detach this logger's sinks from loguru."""
        for handler_id in self._handler_ids:
            loguru_logger.remove(handler_id)
        self._handler_ids.clear()
