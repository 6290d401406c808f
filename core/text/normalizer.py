"""Quote/space canonicalization and paragraph/word accounting helpers."""

from __future__ import annotations

import re
import unicodedata

_DOUBLE_QUOTES_RE = re.compile(
    "[\u201C\u201D\u201E\u201F\u00AB\u00BB\u275D\u275E\u301D-\u301F\uFF02\u02DD]"
)
_SINGLE_QUOTES_RE = re.compile(
    "[\u2018\u2019\u201A\u201B\u2039\u203A\u275B\u275C\u276E\u276F\uA78C\uFF07]"
)
_NBSP = "\u00A0"
_LINE_SPLIT_RE = re.compile(r"\r?\n")


def normalize_text(text: str) -> str:
    """Canonicalize quote and space variants before any matching.

    Double-quote variants (curly, angle, CJK, fullwidth) become ``"``,
    single-quote variants become ``'`` and non-breaking spaces become a plain
    space. The result is NFC-composed so that a precomposed letter is never
    split across two spans.
    """

    if not text:
        return ""

    text = unicodedata.normalize("NFC", text)
    text = _DOUBLE_QUOTES_RE.sub('"', text)
    text = _SINGLE_QUOTES_RE.sub("'", text)
    return text.replace(_NBSP, " ")


def count_words(text: str) -> int:
    """Count whitespace-delimited tokens."""

    return len(text.split())


def split_lines(text: str) -> list[str]:
    return _LINE_SPLIT_RE.split(text)


def tidy_paragraphs(text: str) -> str:
    """Drop blank lines and re-join paragraphs with a single blank line."""

    return "\n\n".join(line for line in split_lines(text) if line.strip())
