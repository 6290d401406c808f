"""Multi-rule, conflict-free literal substitution over an annotated buffer.

Rules run in compiled order. Each rule only scans ``plain`` segments, so the
output of an earlier replacement (or of the same rule) is never rescanned.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass

from core.rewrite.buffer import AnnotatedBuffer, SpanTag
from core.rules.compiler import build_matcher
from core.rules.models import CompiledRule

MAX_SUBSTITUTIONS = 50_000


@dataclass(frozen=True)
class SubstitutionResult:
    buffer: AnnotatedBuffer
    replaced_count: int
    truncated: bool = False


def substitute(
    source: str | AnnotatedBuffer,
    rules: Sequence[CompiledRule],
    *,
    match_case: bool = False,
    whole_word: bool = False,
    max_substitutions: int = MAX_SUBSTITUTIONS,
) -> SubstitutionResult:
    """Apply compiled rules and tag every produced span as ``replaced``.

    Args:
        source: Normalized text or a buffer from a previous stage.
        rules: Output of ``compile_rules``, longest find first.
        match_case: Case-sensitive matching and verbatim replacements when
            True; otherwise case-insensitive matching with preserve-case.
        whole_word: Reject matches adjacent to a letter, digit or underscore.
        max_substitutions: Hard ceiling on replacements for this call.

    Returns:
        SubstitutionResult with the new buffer, the number of replacements
        and whether the ceiling cut the run short.
    """

    buffer = AnnotatedBuffer.from_text(source) if isinstance(source, str) else source
    if not rules:
        return SubstitutionResult(buffer=buffer, replaced_count=0)

    replaced_count = 0
    for rule in rules:
        buffer, applied, truncated = _apply_rule(
            buffer,
            rule,
            match_case=match_case,
            whole_word=whole_word,
            budget=max_substitutions - replaced_count,
        )
        replaced_count += applied
        if truncated:
            return SubstitutionResult(buffer=buffer, replaced_count=replaced_count, truncated=True)

    return SubstitutionResult(buffer=buffer, replaced_count=replaced_count)


def preserve_case(original: str, replacement: str) -> str:
    """Derive the replacement's casing from the text it replaces."""

    if not original or not replacement:
        return replacement
    if original.upper() == original and original.lower() != original:
        return replacement.upper()
    if original[0].isupper():
        return replacement[0].upper() + replacement[1:].lower()
    return replacement


def _apply_rule(
    buffer: AnnotatedBuffer,
    rule: CompiledRule,
    *,
    match_case: bool,
    whole_word: bool,
    budget: int,
) -> tuple[AnnotatedBuffer, int, bool]:
    pattern = build_matcher(rule, match_case=match_case)
    logical_text = buffer.text
    result = AnnotatedBuffer()
    applied = 0
    truncated = False
    offset = 0

    for segment in buffer:
        segment_start = offset
        offset += len(segment.text)
        if segment.tag != SpanTag.PLAIN or truncated:
            result.append(segment.text, segment.tag)
            continue

        text = segment.text
        cursor = 0
        for start, end in _iter_accepted_matches(
            pattern, text, logical_text, segment_start, whole_word=whole_word
        ):
            if applied >= budget:
                truncated = True
                break
            matched = text[start:end]
            replacement = rule.replace if match_case else preserve_case(matched, rule.replace)
            result.append(text[cursor:start], SpanTag.PLAIN)
            # An empty replacement still counts as one substitution (deletion).
            result.append(replacement, SpanTag.REPLACED)
            applied += 1
            cursor = end
        result.append(text[cursor:], SpanTag.PLAIN)

    return result, applied, truncated


def _iter_accepted_matches(
    pattern: re.Pattern[str],
    text: str,
    logical_text: str,
    segment_start: int,
    *,
    whole_word: bool,
):
    position = 0
    while position <= len(text):
        match = pattern.search(text, position)
        if match is None:
            return
        start, end = match.span()
        if end == start:
            position = start + 1
            continue

        absolute_start = segment_start + start
        absolute_end = segment_start + end
        before = logical_text[absolute_start - 1] if absolute_start > 0 else ""
        after = logical_text[absolute_end] if absolute_end < len(logical_text) else ""

        rejected = _is_combining(after) or _is_combining(text[start])
        if whole_word and (_is_word_char(before) or _is_word_char(after)):
            rejected = True
        if rejected:
            position = start + 1
            continue

        yield start, end
        position = end


def _is_word_char(char: str) -> bool:
    return bool(char) and (char.isalnum() or char == "_")


def _is_combining(char: str) -> bool:
    return bool(char) and unicodedata.combining(char) != 0
