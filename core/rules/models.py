"""Data models for rewrite rules and per-mode settings."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_EXCEPTION_WORDS: tuple[str, ...] = ("jpg", "png", "com", "vn", "net")


class RuleConfig(BaseModel):
    """Raw find/replace pair as entered by the user."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    find: str = ""
    replace: str = ""


class ModeSettings(BaseModel):
    """Immutable snapshot of one mode: rules, toggles and caps exceptions."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    rules: list[RuleConfig] = Field(default_factory=list)
    match_case: bool = False
    whole_word: bool = False
    auto_caps: bool = False
    exception_words: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCEPTION_WORDS))
    tidy_paragraphs: bool = True


@dataclass(frozen=True)
class CompiledRule:
    """Normalized rule ready for matching; ordered by find length."""

    find: str
    replace: str
    source_order: int


def split_exception_words(raw: str) -> list[str]:
    """Parse a comma-separated exception list into trimmed, case-folded words."""

    return [item.strip().casefold() for item in raw.split(",") if item.strip()]
