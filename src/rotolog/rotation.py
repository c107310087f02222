"""
Size-based rotation of the active log file.

The manager counts bytes written to the active file. When the count reaches
the limit the Logger asks it to swap files: the active file is renamed to
``<path>.tmp`` and a fresh file is opened at ``<path>``. Renumbering of the
numbered backups then happens on a single background worker, so a slow
filesystem never stalls the write path.

Failures never raise. They are queued as :class:`RotologError` instances and
the owning Logger drains and reports them once it has released its lock.
"""

from __future__ import annotations

import os
import re
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import BinaryIO

from .exceptions import ArchivalError, RotationError, RotologError, SinkError

MEGABYTE = 1024 * 1024
TMP_SUFFIX = ".tmp"


class RotationManager:
    """Byte accounting and file swapping for one log path."""

    def __init__(self, filename: str, max_bytes: int, backups: int) -> None:
        self.filename = filename
        self.max_bytes = max_bytes
        self.backups = max(0, backups)
        self.size = 0
        self._failures: deque[RotologError] = deque()
        self._executor: ThreadPoolExecutor | None = None
        self._pending: Future | None = None

    # =========================================================================
    # Accounting
    # =========================================================================

    @property
    def enabled(self) -> bool:
        return bool(self.filename) and self.max_bytes > 0

    @property
    def tmp_path(self) -> str:
        return self.filename + TMP_SUFFIX

    def backup_path(self, index: int) -> str:
        return f"{self.filename}.{index}"

    def record(self, nbytes: int) -> bool:
        """Account for a completed write; True if rotation is now due."""
        if not self.filename:
            return False
        self.size += nbytes
        return self.enabled and self.size >= self.max_bytes

    # =========================================================================
    # Synchronous phase (caller holds the Logger lock)
    # =========================================================================

    def open(self) -> BinaryIO | None:
        """Open the active file for appending and load its current size."""
        try:
            handle = open(self.filename, "ab")
        except OSError as exc:
            self._failures.append(SinkError(self.filename, exc))
            return None
        try:
            self.size = os.fstat(handle.fileno()).st_size
        except OSError as exc:
            handle.close()
            self._failures.append(SinkError(self.filename, exc))
            return None
        return handle

    def rotate(self) -> BinaryIO | None:
        """
        Retire the active file and open a fresh one.

        Returns the new handle, or None if this rotation cycle was abandoned,
        in which case the caller keeps writing to its current sink.
        """
        # The previous archival task still owns <path>.tmp until it finishes.
        if self._pending is not None:
            wait([self._pending])
            self._pending = None

        try:
            os.remove(self.tmp_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._failures.append(RotationError(self.filename, exc))
            return None

        try:
            os.replace(self.filename, self.tmp_path)
        except OSError as exc:
            self._failures.append(RotationError(self.filename, exc))
            return None

        handle = self.open()
        if handle is None:
            try:
                os.replace(self.tmp_path, self.filename)
            except OSError as exc:
                self._failures.append(RotationError(self.filename, exc))
            return None

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rotolog-archive")
        self._pending = self._executor.submit(self.archive)
        return handle

    # =========================================================================
    # Asynchronous phase (archival worker)
    # =========================================================================

    def backup_indices(self) -> list[int]:
        """Indices of the existing ``<base>.<N>`` backups, newest last."""
        directory = os.path.dirname(os.path.abspath(self.filename))
        # canonical indices only; "app.log.01" is not backup 1
        pattern = re.compile(rf"^{re.escape(os.path.basename(self.filename))}\.([1-9]\d*)$")
        indices = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir():
                    continue
                match = pattern.match(entry.name)
                if match:
                    indices.append(int(match.group(1)))
        return sorted(indices, reverse=True)

    def archive(self) -> None:
        """Shift every backup up one slot, evict overflow, install ``.1``."""
        try:
            for index in self.backup_indices():
                try:
                    if index + 1 > self.backups:
                        os.remove(self.backup_path(index))
                    else:
                        os.replace(self.backup_path(index), self.backup_path(index + 1))
                except FileNotFoundError:
                    # removed between the listing and the rename
                    continue
            if self.backups >= 1:
                os.replace(self.tmp_path, self.backup_path(1))
            else:
                os.remove(self.tmp_path)
        except OSError as exc:
            self._failures.append(ArchivalError(self.filename, exc))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def drain_failures(self) -> list[RotologError]:
        failures = []
        while self._failures:
            failures.append(self._failures.popleft())
        return failures

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the in-flight archival task, if any, completes."""
        pending = self._pending
        if pending is None:
            return True
        done, _ = wait([pending], timeout=timeout)
        return bool(done)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._pending = None
