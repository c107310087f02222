"""
Placeholder templates.

A template is a format string with ``${tag}`` placeholders. It is tokenized
once into literal and tag segments and then executed per record against a
resolver callback that writes each tag's value.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import BinaryIO, Callable

from .exceptions import TemplateError

START_TAG = "${"
END_TAG = "}"

TagWriter = Callable[[BinaryIO, str], int]


@dataclass(frozen=True)
class Segment:
    text: str
    is_tag: bool = False


class Template:
    """Compiled format description, reusable across records."""

    __slots__ = ("source", "segments", "_literal")

    def __init__(self, source: str, segments: tuple[Segment, ...]) -> None:
        self.source = source
        self.segments = segments
        # Encoded once, literals are written on every record.
        self._literal = tuple(seg.text.encode("utf-8") if not seg.is_tag else b"" for seg in segments)

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(seg.text for seg in self.segments if seg.is_tag)

    def execute(self, out: BinaryIO, write_tag: TagWriter) -> int:
        """Write the rendered template into ``out``; return bytes written."""
        written = 0
        for seg, literal in zip(self.segments, self._literal):
            if seg.is_tag:
                written += write_tag(out, seg.text)
            elif literal:
                written += out.write(literal)
        return written

    def execute_string(self, write_tag: TagWriter) -> str:
        """Convenience wrapper returning the rendered text."""
        buf = io.BytesIO()
        self.execute(buf, write_tag)
        return buf.getvalue().decode("utf-8")

    def __repr__(self) -> str:
        return f"Template({self.source!r})"


def tokenize(source: str) -> tuple[Segment, ...]:
    """
    Split ``source`` into literal and tag segments.

    Raises:
        TemplateError: a ``${`` has no closing ``}``.
    """
    segments: list[Segment] = []
    pos = 0
    while True:
        start = source.find(START_TAG, pos)
        if start < 0:
            if pos < len(source):
                segments.append(Segment(source[pos:]))
            break
        if start > pos:
            segments.append(Segment(source[pos:start]))
        end = source.find(END_TAG, start + len(START_TAG))
        if end < 0:
            raise TemplateError(source, start)
        segments.append(Segment(source[start + len(START_TAG) : end], is_tag=True))
        pos = end + len(END_TAG)
    return tuple(segments)


def compile_template(source: str) -> Template:
    """
    Compile ``source`` into a :class:`Template`.

    Never fails: a malformed format string yields a template that renders the
    whole string as literal text.
    """
    try:
        segments = tokenize(source)
    except TemplateError:
        segments = (Segment(source),) if source else ()
    return Template(source, segments)
