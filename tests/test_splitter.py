from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from core.split.splitter import (
    CountSplit,
    PatternSplit,
    SplitMode,
    split,
    split_by_count,
    split_by_pattern,
)
from core.text.normalizer import count_words
from core.utils.errors import InvalidPatternError, NoMatchError

CHAPTER = "\n".join(
    [
        "Chapter 12",
        "One two three.",
        "Four five six.",
        "Seven eight nine.",
        "Ten eleven twelve.",
    ]
)


def test_split_by_count_renumbers_chapter_header() -> None:
    parts = split_by_count(CHAPTER, 2)

    assert [part.title for part in parts] == ["Chapter 12.1", "Chapter 12.2"]
    assert parts[0].content == "Chapter 12.1\n\nOne two three.\n\nFour five six."
    assert parts[1].content == "Chapter 12.2\n\nSeven eight nine.\n\nTen eleven twelve."
    assert parts[0].word_count == 8


def test_split_by_count_preserves_every_body_word() -> None:
    parts = split_by_count(CHAPTER, 3)

    body_words = sum(part.word_count - count_words(part.title) for part in parts if part.content)

    assert body_words == 12


def test_split_by_count_always_returns_requested_number_of_parts() -> None:
    parts = split_by_count("alpha beta\ngamma delta", 5)

    assert len(parts) == 5
    assert [part.content for part in parts] == ["alpha beta", "gamma delta", "", "", ""]
    assert [part.title for part in parts] == ["Part 1", "Part 2", "Part 3", "Part 4", "Part 5"]
    assert parts[4].word_count == 0


def test_split_by_count_last_part_absorbs_remainder() -> None:
    text = "\n".join(["a b", "c d", "e f", "g h", "i j"])

    parts = split_by_count(text, 2)

    assert [part.content for part in parts] == ["a b\n\nc d", "e f\n\ng h\n\ni j"]


def test_split_by_count_single_part_keeps_everything() -> None:
    parts = split_by_count("Chương 3\nmột hai\nba bốn", 1)

    assert len(parts) == 1
    assert parts[0].title == "Chương 3.1"
    assert parts[0].content == "Chương 3.1\n\nmột hai\n\nba bốn"


def test_split_by_count_accepts_custom_header_pattern() -> None:
    parts = split_by_count("Book 7\nx y\nz w", 2, header_pattern=r"^Book\s+\d+")

    assert [part.title for part in parts] == ["Book 7.1", "Book 7.2"]


def test_split_by_count_rejects_non_positive_parts() -> None:
    with pytest.raises(ValueError, match="parts must be >= 1"):
        split_by_count(CHAPTER, 0)


def test_split_by_count_rejects_invalid_header_pattern() -> None:
    with pytest.raises(InvalidPatternError):
        split_by_count(CHAPTER, 2, header_pattern="(")


def test_split_by_pattern_starts_part_at_each_match() -> None:
    text = "Intro line\nChapter 1\nA\nchapter 2\nB\n\nChapter 3\nC"

    parts = split_by_pattern(text, r"^Chapter \d+")

    assert [part.title for part in parts] == ["Chapter 1", "chapter 2", "Chapter 3"]
    assert [part.content for part in parts] == [
        "Chapter 1\n\nA",
        "chapter 2\n\nB",
        "Chapter 3\n\nC",
    ]
    assert [part.word_count for part in parts] == [3, 3, 3]


def test_split_by_pattern_rejects_invalid_regex() -> None:
    with pytest.raises(InvalidPatternError) as exc_info:
        split_by_pattern("text", "([")

    assert exc_info.value.pattern == "(["


def test_split_by_pattern_rejects_blank_pattern() -> None:
    with pytest.raises(InvalidPatternError):
        split_by_pattern("text", "  ")


def test_split_by_pattern_raises_when_nothing_matches() -> None:
    with pytest.raises(NoMatchError):
        split_by_pattern("no headers here", r"^Chapter \d+")


def test_split_entry_point_dispatches_on_mode() -> None:
    by_count = split(CHAPTER, CountSplit(parts=2))
    by_pattern = split(CHAPTER, PatternSplit(pattern=r"^Seven"))

    assert len(by_count.parts) == 2
    assert [part.title for part in by_pattern.parts] == ["Seven eight nine."]


def test_split_blank_input_returns_notice() -> None:
    result = split("  ", CountSplit(parts=2))

    assert result.parts == []
    assert [notice.code for notice in result.notices] == ["empty_input"]


def test_split_mode_discriminates_on_kind() -> None:
    adapter = TypeAdapter(SplitMode)

    assert isinstance(adapter.validate_python({"kind": "count", "parts": 3}), CountSplit)
    assert isinstance(adapter.validate_python({"kind": "pattern", "pattern": "x"}), PatternSplit)
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "count", "parts": 0})
