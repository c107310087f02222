"""
ANSI color utilities for level names.
"""

from __future__ import annotations

from typing import Any

from .levels import Level

COLORS = {
    "reset": "\033[0m",
    "blue": "\033[34m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "red_bg": "\033[41m",
}

LEVEL_COLORS = {
    Level.DEBUG: "blue",
    Level.INFO: "green",
    Level.WARN: "yellow",
    Level.ERROR: "red",
    Level.FATAL: "red_bg",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


def level_names(use_color: bool) -> dict[Level, str]:
    """Display names for every emittable level, colorized on request."""
    names = {}
    for level, color in LEVEL_COLORS.items():
        names[level] = colorize(level.name, color) if use_color else level.name
    return names


def is_terminal(stream: Any) -> bool:
    """True if ``stream`` is attached to an interactive terminal."""
    try:
        return bool(getattr(stream, "isatty", lambda: False)())
    except (ValueError, OSError):
        # closed or detached stream
        return False
