"""
Interceptors routing other logging front-ends into a rotolog Logger.

- stdlib ``logging``: :class:`RedirectStdLibHandler` on the root logger.
- structlog: :func:`configure_structlog` installs a processor chain whose
  final step writes into the Logger.

Both keep the original call site as the record's caller, and both cap
severity at ERROR so a third-party library can never trigger a FATAL exit.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import structlog
from structlog.typing import EventDict, WrappedLogger

from .levels import Level
from .logger import Logger
from .tags import Caller


def _target(logger: Logger | None) -> Logger:
    if logger is not None:
        return logger
    from .core import get_logger

    return get_logger()


# =============================================================================
# stdlib logging
# =============================================================================


def stdlib_level(levelno: int) -> Level:
    """Map a stdlib numeric level onto a rotolog level."""
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


class RedirectStdLibHandler(logging.Handler):
    """
    Redirect standard library logging records into a Logger.

    The handler's formatter renders the message body (``%(message)s`` by
    default); the Logger's own template renders the rest of the line.
    """

    def __init__(self, logger: Logger | None = None, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            _target(self._logger).log(
                stdlib_level(record.levelno),
                msg,
                caller=Caller(record.pathname, record.lineno),
            )
        except Exception:
            self.handleError(record)


def intercept_stdlib(
    logger: Logger | None = None,
    *,
    level: int = logging.DEBUG,
    names: Iterable[str] = (),
) -> RedirectStdLibHandler:
    """
    Replace the root logger's handlers with a redirect into ``logger``.

    Loggers listed in ``names`` lose their own handlers and propagate to the
    root, so libraries that configured themselves are captured too.
    """
    handler = RedirectStdLibHandler(logger)
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in names:
        lg = logging.getLogger(name)
        lg.handlers = []
        lg.propagate = True
    return handler


# =============================================================================
# structlog
# =============================================================================

_METHOD_LEVELS = {
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "msg": Level.INFO,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
    "exception": Level.ERROR,
    "critical": Level.ERROR,
    "fatal": Level.ERROR,
}

EXCLUDED_KEYS = {"event", "level", "timestamp", "pathname", "lineno", "exception", "stack"}


def render_event(event_dict: EventDict) -> str:
    """Flatten an event dict into message text: ``event key=value ...``."""
    parts = [str(event_dict.get("event", ""))]
    parts.extend(f"{k}={v}" for k, v in event_dict.items() if k not in EXCLUDED_KEYS)
    text = " ".join(part for part in parts if part)
    for key in ("exception", "stack"):
        if event_dict.get(key):
            text = f"{text}\n{event_dict[key]}"
    return text


def rotolog_renderer(logger: Logger | None = None) -> Any:
    """Build the final structlog processor writing into ``logger``."""

    def render(wrapped: WrappedLogger, method_name: str, event_dict: EventDict) -> Any:
        pathname = event_dict.get("pathname")
        caller = Caller(pathname, event_dict.get("lineno") or 0) if pathname else None
        level = _METHOD_LEVELS.get(method_name, Level.INFO)
        _target(logger).log(level, render_event(event_dict), caller=caller)
        raise structlog.DropEvent

    return render


def configure_structlog(logger: Logger | None = None) -> None:
    """
    Configure structlog so every bound logger writes through ``logger``.

    Severity filtering is left to the Logger's threshold.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.PATHNAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            rotolog_renderer(logger),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
