"""
Tag resolution for templates.

Each recognised ``${tag}`` maps to a resolver taking the per-record
:class:`RecordContext` and returning text. The mapping is built once per
Logger, so new tags can be registered without touching a central switch.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Callable, Dict, NamedTuple

from .template import TagWriter

PID = str(os.getpid())

TIME_LOCAL_FORMAT = "%Y-%m-%d %H:%M:%S"


class Caller(NamedTuple):
    file: str
    line: int


UNKNOWN_CALLER = Caller("???", 0)


@dataclass
class RecordContext:
    """Everything a resolver may need for one record."""

    level_name: str
    prefix: str
    message: str
    caller: Caller = UNKNOWN_CALLER
    now: datetime = field(default_factory=datetime.now)
    pid: str = PID


Resolver = Callable[[RecordContext], str]


# =============================================================================
# Built-in resolvers
# =============================================================================


def format_time_local(now: datetime) -> str:
    return f"{now.strftime(TIME_LOCAL_FORMAT)}.{now.microsecond // 1000:03d}"


def format_time_rfc3339(now: datetime) -> str:
    stamp = now.astimezone().isoformat(timespec="seconds")
    if stamp.endswith("+00:00"):
        stamp = stamp[:-6] + "Z"
    return stamp


def mid_file(path: str) -> str:
    parent = os.path.basename(os.path.dirname(path)) or "."
    return f"{parent}/{os.path.basename(path)}"


def default_tags() -> Dict[str, Resolver]:
    """Return a fresh mapping of the built-in tags."""
    return {
        "time_local": lambda ctx: format_time_local(ctx.now),
        "time_rfc3339": lambda ctx: format_time_rfc3339(ctx.now),
        "level": lambda ctx: ctx.level_name,
        "pid": lambda ctx: ctx.pid,
        "prefix": lambda ctx: ctx.prefix,
        "long_file": lambda ctx: ctx.caller.file,
        "short_file": lambda ctx: os.path.basename(ctx.caller.file),
        "mid_file": lambda ctx: mid_file(ctx.caller.file),
        "line": lambda ctx: str(ctx.caller.line),
        "message": lambda ctx: ctx.message,
    }


def unknown_tag(name: str) -> str:
    return f"[unknown tag {name}]"


def failed_tag(name: str, exc: BaseException) -> str:
    try:
        detail = f"{type(exc).__name__}: {exc}"
    except Exception:
        detail = type(exc).__name__
    return f"[tag {name} failed: {detail}]"


def resolve(resolvers: Dict[str, Resolver], name: str, ctx: RecordContext) -> str:
    """Text for one tag. Resolver errors render as a placeholder."""
    resolver = resolvers.get(name)
    if resolver is None:
        return unknown_tag(name)
    try:
        text = resolver(ctx)
        return text if isinstance(text, str) else str(text)
    except Exception as exc:
        return failed_tag(name, exc)


def tag_writer(resolvers: Dict[str, Resolver], ctx: RecordContext) -> TagWriter:
    """Bind ``resolvers`` to one record, producing a template callback."""

    def write(out: BinaryIO, tag: str) -> int:
        text = resolve(resolvers, tag, ctx)
        return out.write(text.encode("utf-8", errors="replace"))

    return write
