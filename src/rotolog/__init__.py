"""
rotolog: template-formatted, size-rotated text logging.

Records pass a severity threshold, are rendered through a ``${tag}``
template and written to a single sink under one lock. When the sink is a
file it is rotated once it reaches a size limit, keeping a bounded number of
numbered backups that are renumbered on a background worker.
"""

from .config import LoggerSettings, LogLevel
from .core import configure_logging, get_logger, set_logger
from .levels import Level, parse_level, should_emit
from .logger import DEFAULT_FORMAT, Logger
from .template import Template, compile_template

DEBUG = Level.DEBUG
INFO = Level.INFO
WARN = Level.WARN
ERROR = Level.ERROR
FATAL = Level.FATAL
OFF = Level.OFF

__all__ = [
    "DEBUG",
    "DEFAULT_FORMAT",
    "ERROR",
    "FATAL",
    "INFO",
    "Level",
    "LogLevel",
    "Logger",
    "LoggerSettings",
    "OFF",
    "Template",
    "WARN",
    "compile_template",
    "configure_logging",
    "get_logger",
    "parse_level",
    "set_logger",
    "should_emit",
]
