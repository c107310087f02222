"""
Process-wide default Logger.

Libraries should receive a :class:`~rotolog.logger.Logger` explicitly. For
applications that want one shared instance, this module holds it:
``configure_logging`` is the initialization point, ``get_logger`` returns the
current instance (creating a stdout logger with defaults on first use) and
``set_logger`` swaps it wholesale.
"""

from __future__ import annotations

import threading
from typing import Any

from .config import LoggerSettings
from .logger import Logger

# =============================================================================
# Global State
# =============================================================================

_default: Logger | None = None
_lock = threading.Lock()


def configure_logging(settings: LoggerSettings | None = None, **overrides: Any) -> Logger:
    """
    Build the default Logger from settings and install it.

    Args:
        settings: Explicit settings; read from the environment when omitted.
        **overrides: Field overrides applied on top of ``settings``.

    Returns:
        The newly installed Logger. A previously installed one is closed.
    """
    if settings is None:
        settings = LoggerSettings(**overrides)
    elif overrides:
        settings = LoggerSettings(**{**settings.model_dump(), **overrides})
    logger = Logger.from_settings(settings)
    previous = set_logger(logger)
    if previous is not None and previous is not logger:
        previous.close()
    return logger


def get_logger() -> Logger:
    """Return the default Logger, creating one with defaults if needed."""
    global _default
    with _lock:
        if _default is None:
            _default = Logger()
        return _default


def set_logger(logger: Logger) -> Logger | None:
    """Install ``logger`` as the default; return the one it replaced."""
    global _default
    with _lock:
        previous, _default = _default, logger
    return previous


def reset_logger() -> None:
    """Forget the default Logger without closing it (tests)."""
    global _default
    with _lock:
        _default = None
