"""Word-balanced and pattern-driven splitting of long chapters."""

from __future__ import annotations

import math
import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from core.text.normalizer import count_words, normalize_text, split_lines
from core.utils.errors import EmptyInputWarning, InvalidPatternError, NoMatchError
from core.utils.notices import Notice

DEFAULT_HEADER_PATTERN = r"^(Chương|Chapter|Hồi)\s+\d+"
PARAGRAPH_SEPARATOR = "\n\n"


class SplitPart(BaseModel):
    """One output part with its display title and word count."""

    model_config = ConfigDict(extra="forbid")

    title: str
    content: str
    word_count: int


class CountSplit(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["count"] = "count"
    parts: int = Field(ge=1)
    header_pattern: str = DEFAULT_HEADER_PATTERN


class PatternSplit(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["pattern"] = "pattern"
    pattern: str


SplitMode = Annotated[CountSplit | PatternSplit, Field(discriminator="kind")]


class SplitOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    parts: list[SplitPart] = Field(default_factory=list)
    notices: list[Notice] = Field(default_factory=list)


def split(raw_input: str, mode: CountSplit | PatternSplit) -> SplitOutput:
    """Split entry point; blank input yields a notice instead of parts."""

    if not raw_input or not raw_input.strip():
        warning = EmptyInputWarning("input text is empty")
        return SplitOutput(notices=[Notice.from_warning(warning)])

    if isinstance(mode, CountSplit):
        parts = split_by_count(raw_input, mode.parts, header_pattern=mode.header_pattern)
    else:
        parts = split_by_pattern(raw_input, mode.pattern)
    return SplitOutput(parts=parts)


def split_by_count(
    text: str,
    parts: int,
    *,
    header_pattern: str = DEFAULT_HEADER_PATTERN,
) -> list[SplitPart]:
    """Partition paragraphs into ``parts`` roughly word-balanced parts.

    A leading chapter header (e.g. "Chapter 12") is excluded from word
    accounting and re-emitted on every non-empty part as "Chapter 12.1",
    "Chapter 12.2", ... Paragraphs are never split or reordered; the last
    part absorbs any remainder.
    """

    if parts < 1:
        raise ValueError(f"parts must be >= 1, got {parts}")

    normalized = normalize_text(text)
    lines = split_lines(normalized)
    header = ""
    body_lines = lines
    header_regex = _compile_header_pattern(header_pattern)
    if lines and header_regex.match(lines[0].strip()):
        header = lines[0].strip()
        body_lines = lines[1:]

    paragraphs = [line for line in body_lines if line.strip()]
    target_words = math.ceil(count_words("\n".join(body_lines)) / parts)
    grouped = _group_paragraphs(paragraphs, parts, target_words)

    result: list[SplitPart] = []
    for index in range(parts):
        content = PARAGRAPH_SEPARATOR.join(grouped[index]) if index < len(grouped) else ""
        title = f"Part {index + 1}"
        if header and content:
            title = re.sub(r"\d+", lambda match: f"{match.group(0)}.{index + 1}", header, count=1)
            content = f"{title}{PARAGRAPH_SEPARATOR}{content}"
        result.append(SplitPart(title=title, content=content, word_count=count_words(content)))
    return result


def split_by_pattern(text: str, pattern: str | re.Pattern[str]) -> list[SplitPart]:
    """Split at every match start of a user pattern.

    String patterns are compiled multiline and case-insensitive. Text before
    the first match belongs to no part.

    Raises:
        InvalidPatternError: blank pattern or regex compile failure.
        NoMatchError: the pattern matches nowhere in the text.
    """

    regex = _compile_split_pattern(pattern)
    normalized = normalize_text(text)
    starts = [match.start() for match in regex.finditer(normalized)]
    if not starts:
        raise NoMatchError("split pattern matched nothing", pattern=regex.pattern)

    result: list[SplitPart] = []
    for index, start in enumerate(starts):
        end = starts[index + 1] if index + 1 < len(starts) else len(normalized)
        chunk_lines = [line for line in split_lines(normalized[start:end].strip()) if line.strip()]
        content = PARAGRAPH_SEPARATOR.join(chunk_lines)
        title = chunk_lines[0].strip() if chunk_lines else f"Part {index + 1}"
        result.append(SplitPart(title=title, content=content, word_count=count_words(content)))
    return result


def _group_paragraphs(paragraphs: list[str], parts: int, target_words: int) -> list[list[str]]:
    grouped: list[list[str]] = []
    current: list[str] = []
    current_words = 0

    for paragraph in paragraphs:
        words = count_words(paragraph)
        if current and current_words + words > target_words and len(grouped) < parts - 1:
            grouped.append(current)
            current = [paragraph]
            current_words = words
        else:
            current.append(paragraph)
            current_words += words

    if current:
        grouped.append(current)
    return grouped


def _compile_split_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    if not pattern.strip():
        raise InvalidPatternError("split pattern is empty", pattern=pattern)
    try:
        return re.compile(pattern, re.MULTILINE | re.IGNORECASE)
    except re.error as exc:
        raise InvalidPatternError(f"invalid split pattern: {exc}", pattern=pattern) from exc


def _compile_header_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidPatternError(f"invalid header pattern: {exc}", pattern=pattern) from exc
