"""
The Logger aggregate.

A Logger owns a severity threshold, a prefix, a compiled template, an output
sink and the rotation state of its backing file. Every emit goes through
:meth:`Logger._log`, which filters first, then formats into a pooled buffer
and performs write-then-maybe-rotate inside a single critical section.
"""

from __future__ import annotations

import inspect
import io
import os
import sys
import threading
import traceback
from collections import deque
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Iterable

from .buffers import BufferPool
from .colors import is_terminal, level_names
from .exceptions import RotologError, SinkError
from .levels import Level, parse_level, should_emit
from .rotation import MEGABYTE, RotationManager
from .tags import UNKNOWN_CALLER, Caller, RecordContext, Resolver, default_tags, tag_writer
from .template import Template, compile_template

if TYPE_CHECKING:
    from .config import LoggerSettings

DEFAULT_FORMAT = "${prefix}${time_local} ${level}:${pid}:${mid_file}:${line}: ${message}\n"

FATAL_EXIT_CODE = 1


# =============================================================================
# Message helpers
# =============================================================================


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def _safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def format_message(fmt: str | None, args: tuple[Any, ...]) -> str:
    """Render a message body; never raises."""
    if fmt is None:
        return " ".join(_safe_str(arg) for arg in args)
    if not args:
        return fmt
    try:
        if len(args) == 1 and isinstance(args[0], Mapping):
            return fmt % args[0]
        return fmt % args
    except Exception:
        return f"{fmt} {_safe_repr(args)}"


def dump_stacks() -> str:
    """Stack traces of every live thread, current thread first."""
    names = {thread.ident: thread.name for thread in threading.enumerate()}
    current = threading.get_ident()
    frames = sorted(sys._current_frames().items(), key=lambda item: item[0] != current)
    parts = []
    for ident, frame in frames:
        parts.append(f"Thread {names.get(ident, '?')} ({ident}):\n")
        parts.append("".join(traceback.format_stack(frame)))
    return "".join(parts)


def _is_binary(stream: Any) -> bool:
    if isinstance(stream, io.TextIOBase):
        return False
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    return "b" in getattr(stream, "mode", "")


def _caller_at(depth: int) -> Caller:
    """File and line ``depth`` frames above the function calling this one."""
    frame = inspect.currentframe()
    frame = frame.f_back if frame is not None else None
    for _ in range(depth):
        if frame is None:
            break
        frame = frame.f_back
    if frame is None:
        return UNKNOWN_CALLER
    return Caller(frame.f_code.co_filename, frame.f_lineno)


# =============================================================================
# Logger
# =============================================================================


class Logger:
    """
    Template-formatting logger with size-based file rotation.

    Args:
        filename: Backing file. Empty means stream-only mode, no rotation.
        level: Initial severity threshold.
        max_size: Rotation threshold in megabytes; 0 disables rotation.
        backups: Number of numbered backups to retain.
        max_bytes: Rotation threshold in bytes, overriding ``max_size``.
        prefix: Text for the ``${prefix}`` tag.
        fmt: Initial format string.
        output: Sink when no filename is given, or when the file cannot
            be opened (default stdout).
        exit_func: Called with the exit status after a FATAL record.
    """

    def __init__(
        self,
        filename: str = "",
        level: Level | int | str = Level.INFO,
        max_size: int = 0,
        backups: int = 0,
        *,
        max_bytes: int | None = None,
        prefix: str = "",
        fmt: str = DEFAULT_FORMAT,
        output: Any = None,
        exit_func: Callable[[int], Any] = os._exit,
    ) -> None:
        self._mutex = threading.RLock()
        self._level = parse_level(level)
        self._prefix = prefix
        self._template = compile_template(fmt)
        self._tags: dict[str, Resolver] = default_tags()
        self._color = False
        self._levels = level_names(False)
        self._pool = BufferPool()
        self._failures: deque[RotologError] = deque()
        self._exit = exit_func

        limit = max_bytes if max_bytes is not None else max_size * MEGABYTE
        self._rotation = RotationManager(filename, limit, backups)
        self._owned: Any = None
        self._output: Any = None
        self._binary = False

        self._install(output if output is not None else sys.stdout)
        if filename:
            handle = self._rotation.open()
            if handle is not None:
                self._install(handle, owned=True)
            self._report_failures()

    @classmethod
    def from_settings(cls, settings: LoggerSettings, **kwargs: Any) -> "Logger":
        """Build a Logger from :class:`~rotolog.config.LoggerSettings`."""
        logger = cls(
            settings.file_path,
            settings.level.value,
            settings.max_size,
            settings.backups,
            prefix=settings.prefix,
            fmt=settings.format,
            **kwargs,
        )
        if settings.color and is_terminal(logger.output):
            logger.enable_color()
        return logger

    # =========================================================================
    # State accessors and mutators
    # =========================================================================

    @property
    def level(self) -> Level:
        return self._level

    def set_level(self, level: Level | int | str) -> None:
        value = parse_level(level)
        with self._mutex:
            self._level = value

    @property
    def prefix(self) -> str:
        return self._prefix

    def set_prefix(self, prefix: str) -> None:
        with self._mutex:
            self._prefix = prefix

    @property
    def template(self) -> Template:
        return self._template

    def set_format(self, fmt: str) -> None:
        template = compile_template(fmt)
        with self._mutex:
            self._template = template

    @property
    def output(self) -> Any:
        return self._output

    def set_output(self, output: Any) -> None:
        """Replace the sink; color is turned off unless it is a terminal."""
        with self._mutex:
            if self._owned is not None and self._owned is not output:
                self._close_owned()
            self._install(output)
        self._report_failures()

    def enable_color(self) -> None:
        with self._mutex:
            self._color = True
            self._levels = level_names(True)

    def disable_color(self) -> None:
        with self._mutex:
            self._color = False
            self._levels = level_names(False)

    @property
    def color(self) -> bool:
        return self._color

    def register_tag(self, name: str, resolver: Resolver) -> None:
        """Add or override a ``${name}`` tag for subsequent records."""
        with self._mutex:
            self._tags[name] = resolver

    @property
    def filename(self) -> str:
        return self._rotation.filename

    @property
    def max_bytes(self) -> int:
        return self._rotation.max_bytes

    @property
    def backups(self) -> int:
        return self._rotation.backups

    @property
    def size(self) -> int:
        return self._rotation.size

    # =========================================================================
    # Emit API
    # =========================================================================

    def print(self, *values: Any) -> None:
        """Write the values directly, bypassing level and template."""
        self._write_raw(format_message(None, values) + "\n")

    def printf(self, fmt: str, *args: Any) -> None:
        self._write_raw(format_message(fmt, args) + "\n")

    def debug(self, *values: Any) -> None:
        self._log(Level.DEBUG, values)

    def debugf(self, fmt: str, *args: Any) -> None:
        self._log(Level.DEBUG, args, fmt)

    def info(self, *values: Any) -> None:
        self._log(Level.INFO, values)

    def infof(self, fmt: str, *args: Any) -> None:
        self._log(Level.INFO, args, fmt)

    def warn(self, *values: Any) -> None:
        self._log(Level.WARN, values)

    def warnf(self, fmt: str, *args: Any) -> None:
        self._log(Level.WARN, args, fmt)

    def error(self, *values: Any) -> None:
        self._log(Level.ERROR, values)

    def errorf(self, fmt: str, *args: Any) -> None:
        self._log(Level.ERROR, args, fmt)

    def fatal(self, *values: Any) -> None:
        """Log at FATAL with a stack dump, then terminate the process."""
        self._log(Level.FATAL, values)
        self._exit(FATAL_EXIT_CODE)

    def fatalf(self, fmt: str, *args: Any) -> None:
        self._log(Level.FATAL, args, fmt)
        self._exit(FATAL_EXIT_CODE)

    def log(
        self,
        level: Level | int | str,
        message: str,
        *args: Any,
        caller: Caller | None = None,
        stacklevel: int = 1,
    ) -> None:
        """
        Generic entry point for bridges and wrappers.

        ``caller`` overrides the call site; otherwise it is taken
        ``stacklevel`` frames above this method. FATAL is downgraded to
        ERROR here: only :meth:`fatal`/:meth:`fatalf` terminate the process.
        """
        value = parse_level(level)
        if value == Level.FATAL:
            value = Level.ERROR
        if caller is None:
            caller = _caller_at(stacklevel)
        self._log(value, args, message, caller=caller)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def wait_archival(self, timeout: float | None = None) -> bool:
        """Block until queued backup renumbering has finished."""
        done = self._rotation.wait(timeout)
        self._report_failures()
        return done

    def close(self) -> None:
        """Finish archival and release the file this Logger opened."""
        self._rotation.wait()
        self._rotation.shutdown()
        with self._mutex:
            if self._owned is not None:
                self._close_owned()
                self._install(sys.stderr)
        self._report_failures()

    # =========================================================================
    # Internals
    # =========================================================================

    def _log(
        self,
        level: Level,
        args: tuple[Any, ...],
        fmt: str | None = None,
        *,
        caller: Caller | None = None,
        rotate: bool = True,
        report: bool = True,
    ) -> None:
        if not should_emit(level, self._level):
            return
        if caller is None:
            # _log <- public emit method <- application
            caller = _caller_at(2)
        message = format_message(fmt, args)
        if level == Level.FATAL:
            message = f"{message}\n{dump_stacks()}"

        with self._mutex:
            buf = self._pool.acquire()
            try:
                ctx = RecordContext(
                    level_name=self._levels[level],
                    prefix=self._prefix,
                    message=message,
                    caller=caller,
                )
                self._template.execute(buf, tag_writer(self._tags, ctx))
                self._write_locked(buf.getvalue(), rotate=rotate, report=report)
            finally:
                self._pool.release(buf)
        if report:
            self._report_failures()

    def _write_raw(self, text: str) -> None:
        with self._mutex:
            self._write_locked(text.encode("utf-8", errors="replace"), rotate=True, report=True)
        self._report_failures()

    def _write_locked(self, data: bytes, *, rotate: bool, report: bool) -> None:
        try:
            if self._binary:
                self._output.write(data)
            else:
                self._output.write(data.decode("utf-8", errors="replace"))
            self._output.flush()
        except (OSError, ValueError) as exc:
            if report:
                self._failures.append(SinkError(self.filename or repr(self._output), exc))
            return

        if self._owned is None or self._output is not self._owned:
            return
        if self._rotation.record(len(data)) and rotate:
            handle = self._rotation.rotate()
            if handle is not None:
                self._close_owned()
                self._install(handle, owned=True)

    def _install(self, output: Any, *, owned: bool = False) -> None:
        self._output = output
        self._binary = _is_binary(output)
        if owned:
            self._owned = output
        if not is_terminal(output):
            self._color = False
            self._levels = level_names(False)

    def _close_owned(self) -> None:
        handle, self._owned = self._owned, None
        try:
            handle.close()
        except OSError as exc:
            self._failures.append(SinkError(self.filename, exc))

    def _report_failures(self) -> None:
        failures: Iterable[RotologError] = [*self._rotation.drain_failures(), *self._drain_own()]
        for exc in failures:
            self._log(Level.ERROR, (exc,), caller=UNKNOWN_CALLER, rotate=False, report=False)

    def _drain_own(self) -> list[RotologError]:
        failures = []
        while self._failures:
            failures.append(self._failures.popleft())
        return failures
