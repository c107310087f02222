"""
Exception hierarchy for rotolog.

None of these reach the caller of an emit operation: sink, rotation and
archival failures are wrapped here and reported through the Logger itself.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RotologError(Exception):
    """Root of all rotolog errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class SinkError(RotologError):
    """The log file could not be opened, stat'ed or written."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(
            f"log sink '{path}' failed: {cause}",
            code="SINK_ERROR",
            details={"path": path, "cause": repr(cause)},
        )


class RotationError(RotologError):
    """The synchronous swap of the active file failed."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(
            f"rotation of '{path}' failed: {cause}",
            code="ROTATION_ERROR",
            details={"path": path, "cause": repr(cause)},
        )


class ArchivalError(RotologError):
    """Backup renumbering or pruning failed in the background task."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(
            f"archival of '{path}' backups failed: {cause}",
            code="ARCHIVAL_ERROR",
            details={"path": path, "cause": repr(cause)},
        )


class TemplateError(RotologError):
    """A format string could not be tokenized."""

    def __init__(self, source: str, position: int) -> None:
        super().__init__(
            f"unterminated placeholder at offset {position}",
            code="TEMPLATE_ERROR",
            details={"source": source, "position": position},
        )
