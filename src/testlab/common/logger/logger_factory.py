# common/logger/logger_factory.py

import os
from typing import Optional, Dict
from enum import Enum

from .logger_interface import LoggerInterface, LogLevel
from .standard_logger import StandardLogger
from .print_logger import PrintLogger


class LoggerType(Enum):
    """Available logger types"""

    STANDARD = "standard"
    PRINT = "print"


class LoggerFactory:
    """Factory for creating and caching logger instances.

    ``TESTLAB_LOG_LEVEL`` (if set) acts as a floor override for every
    logger created afterwards, and ``TESTLAB_LOG_FILE`` adds a file sink.
    """

    _instances: Dict[str, LoggerInterface] = {}
    _level_override: Optional[LogLevel] = None
    _log_file: Optional[str] = None

    @classmethod
    def configure(
        cls, level: Optional[LogLevel] = None, log_file: Optional[str] = None
    ) -> None:
        """Set process-wide level floor and file sink for loggers created later."""
        cls._level_override = level
        cls._log_file = log_file

    @classmethod
    def get_logger(
        cls,
        name: str = "api-testlab",
        logger_type: LoggerType = LoggerType.STANDARD,
        level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        log_file: Optional[str] = None,
    ) -> LoggerInterface:
        """
        Get or create a logger instance

        Args:
            name: Logger name, e.g. ``tool.rest_api_caller``
            logger_type: Type of logger to create
            level: Minimum log level
            use_colors: Whether to use colored console output
            log_file: Optional log file path (StandardLogger only)

        Returns:
            Logger instance
        """
        cache_key = f"{name}_{logger_type.value}"
        if cache_key not in cls._instances:
            cls._instances[cache_key] = cls.create_logger(
                name=name,
                logger_type=logger_type,
                level=level,
                use_colors=use_colors,
                log_file=log_file,
            )
        return cls._instances[cache_key]

    @classmethod
    def create_logger(
        cls,
        name: str,
        logger_type: LoggerType = LoggerType.STANDARD,
        level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        log_file: Optional[str] = None,
    ) -> LoggerInterface:
        """Create a new (uncached) logger instance."""
        env_level = os.getenv("TESTLAB_LOG_LEVEL")
        if level != LogLevel.DEBUG:
            if env_level:
                level = LogLevel.parse(env_level)
            elif cls._level_override is not None:
                level = cls._level_override
        log_file = log_file or os.getenv("TESTLAB_LOG_FILE") or cls._log_file

        if logger_type == LoggerType.STANDARD:
            return StandardLogger(
                name=name, level=level, use_colors=use_colors, log_file=log_file
            )
        elif logger_type == LoggerType.PRINT:
            return PrintLogger(name=name, level=level, use_colors=use_colors)
        else:
            raise ValueError(f"Unknown logger type: {logger_type}")

    @classmethod
    def clear_cache(cls) -> None:
        """Clear cached logger instances"""
        for instance in cls._instances.values():
            if isinstance(instance, StandardLogger):
                instance.close()
        cls._instances.clear()
