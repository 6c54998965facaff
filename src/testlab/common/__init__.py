from .logger import (
    LoggerInterface,
    LogLevel,
    StandardLogger,
    PrintLogger,
    LoggerFactory,
    LoggerType,
)

__all__ = [
    "LoggerInterface",
    "LogLevel",
    "StandardLogger",
    "PrintLogger",
    "LoggerFactory",
    "LoggerType",
]
