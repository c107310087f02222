"""
Reusable byte buffers for record formatting.
"""

from __future__ import annotations

import io
import threading

DEFAULT_CAPACITY = 32


class BufferPool:
    """
    A bounded free-list of :class:`io.BytesIO` buffers.

    Buffers are reset when acquired, not when released, so a buffer
    abandoned on an error path can never leak a previous record.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._capacity = capacity
        self._free: list[io.BytesIO] = []
        self._lock = threading.Lock()

    def acquire(self) -> io.BytesIO:
        with self._lock:
            buf = self._free.pop() if self._free else None
        if buf is None:
            return io.BytesIO()
        buf.seek(0)
        buf.truncate(0)
        return buf

    def release(self, buf: io.BytesIO) -> None:
        with self._lock:
            if len(self._free) < self._capacity:
                self._free.append(buf)

    def __len__(self) -> int:
        return len(self._free)
