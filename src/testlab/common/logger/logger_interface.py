# common/logger/logger_interface.py

from abc import ABC, abstractmethod
from typing import Any
from enum import Enum


class LogLevel(Enum):
    """Log level enumeration"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def parse(cls, value: "str | LogLevel") -> "LogLevel":
        """Accept either a LogLevel or its (case-insensitive) name."""
        if isinstance(value, LogLevel):
            return value
        return cls(str(value).strip().upper())


class LoggerInterface(ABC):
    """Abstract base interface for all logger implementations"""

    @abstractmethod
    def debug(self, message: str, *args, **kwargs) -> None:
        pass

    @abstractmethod
    def info(self, message: str, *args, **kwargs) -> None:
        pass

    @abstractmethod
    def warning(self, message: str, *args, **kwargs) -> None:
        pass

    @abstractmethod
    def error(self, message: str, *args, **kwargs) -> None:
        pass

    @abstractmethod
    def exception(self, message: str, *args, **kwargs) -> None:
        """Log an error together with the active traceback"""
        pass

    @abstractmethod
    def log(self, level: LogLevel, message: str, *args, **kwargs) -> None:
        pass

    @abstractmethod
    def add_context(self, **context: Any) -> None:
        """Add contextual information to subsequent logs"""
        pass

    @abstractmethod
    def clear_context(self) -> None:
        pass
