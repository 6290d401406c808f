"""Annotated buffer: processed text as ordered, tagged, non-overlapping runs."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum


class SpanTag(str, Enum):
    """Which transformation produced a run of output text."""

    PLAIN = "plain"
    REPLACED = "replaced"
    CAPITALIZED = "capitalized"
    BOTH = "both"


@dataclass(frozen=True)
class Segment:
    text: str
    tag: SpanTag


class AnnotatedBuffer:
    """Ordered segments whose concatenated text is the processed document.

    Invariants kept by ``append``: empty segments are never stored and two
    adjacent segments never carry the same tag.
    """

    def __init__(self, segments: Iterable[Segment] = ()) -> None:
        self._segments: list[Segment] = []
        for segment in segments:
            self.append(segment.text, segment.tag)

    @classmethod
    def from_text(cls, text: str) -> AnnotatedBuffer:
        buffer = cls()
        buffer.append(text, SpanTag.PLAIN)
        return buffer

    def append(self, text: str, tag: SpanTag) -> None:
        if not text:
            return
        if self._segments and self._segments[-1].tag == tag:
            last = self._segments.pop()
            text = last.text + text
        self._segments.append(Segment(text=text, tag=tag))

    @property
    def segments(self) -> tuple[Segment, ...]:
        return tuple(self._segments)

    @property
    def text(self) -> str:
        return "".join(segment.text for segment in self._segments)

    def spans(self, tag: SpanTag) -> list[str]:
        """Texts of all segments carrying ``tag``, in order."""

        return [segment.text for segment in self._segments if segment.tag == tag]

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnnotatedBuffer):
            return NotImplemented
        return self._segments == other._segments

    def __repr__(self) -> str:
        return f"AnnotatedBuffer({self._segments!r})"
