from .logger_interface import LoggerInterface, LogLevel
from .standard_logger import StandardLogger
from .print_logger import PrintLogger
from .logger_factory import LoggerFactory, LoggerType

__all__ = [
    "LoggerInterface",
    "LogLevel",
    "StandardLogger",
    "PrintLogger",
    "LoggerFactory",
    "LoggerType",
]
