"""Sentence-boundary capitalization over an annotated buffer."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from core.rewrite.buffer import AnnotatedBuffer, SpanTag

SENTENCE_BOUNDARIES = frozenset(".?!\u2026\n")

_LEADING_WORD_RE = re.compile(r"\w+")
_UPGRADED_TAG = {
    SpanTag.PLAIN: SpanTag.CAPITALIZED,
    SpanTag.REPLACED: SpanTag.BOTH,
    SpanTag.CAPITALIZED: SpanTag.CAPITALIZED,
    SpanTag.BOTH: SpanTag.BOTH,
}


@dataclass(frozen=True)
class CapsResult:
    buffer: AnnotatedBuffer
    caps_count: int


def apply_auto_caps(buffer: AnnotatedBuffer, exception_words: Iterable[str] = ()) -> CapsResult:
    """Uppercase the first letter of every sentence.

    The scan runs over the concatenated segment text with a two-state
    machine. A sentence boundary (``.``, ``?``, ``!``, ellipsis, newline)
    arms it; the first non-whitespace character after that disarms it. If
    that character is a letter, the word starting there is capitalized
    unless its leading word characters are an exception word.

    A capitalized word is split out of its segment: out of a ``plain`` run
    it becomes ``capitalized``, out of a ``replaced`` run it becomes
    ``both``.
    """

    exceptions = {word.strip().casefold() for word in exception_words if word.strip()}
    result = AnnotatedBuffer()
    needs_cap = True
    caps_count = 0

    for segment in buffer:
        text = segment.text
        chars = list(text)
        word_ranges: list[tuple[int, int]] = []

        for index, char in enumerate(text):
            if char in SENTENCE_BOUNDARIES:
                needs_cap = True
                continue
            if char.isspace() or not needs_cap:
                continue

            needs_cap = False
            if not char.isalpha():
                continue
            if _leading_word(text, index) in exceptions:
                continue
            capped = char.upper()
            if capped == char:
                continue

            chars[index] = capped
            caps_count += 1
            if word_ranges and index < word_ranges[-1][1]:
                continue
            word_ranges.append((index, _word_end(text, index)))

        cursor = 0
        for start, end in word_ranges:
            result.append("".join(chars[cursor:start]), segment.tag)
            result.append("".join(chars[start:end]), _UPGRADED_TAG[segment.tag])
            cursor = end
        result.append("".join(chars[cursor:]), segment.tag)

    return CapsResult(buffer=result, caps_count=caps_count)


def _word_end(text: str, start: int) -> int:
    end = start
    while end < len(text) and not text[end].isspace():
        end += 1
    return end


def _leading_word(text: str, start: int) -> str:
    match = _LEADING_WORD_RE.match(text, start)
    return match.group(0).casefold() if match else ""
