"""Custom exceptions and recoverable warnings for core logic."""

from __future__ import annotations

from typing import ClassVar


class RewriteWarning(UserWarning):
    """Recoverable condition surfaced to the caller as a notice."""

    code: ClassVar[str] = "warning"


class EmptyInputWarning(RewriteWarning):
    """Blank text passed to rewrite or split."""

    code: ClassVar[str] = "empty_input"


class NoRulesWarning(RewriteWarning):
    """No usable rule and auto-caps disabled: nothing to do."""

    code: ClassVar[str] = "no_rules"


class SafetyBoundExceeded(RewriteWarning):
    """Substitution count reached the hard cap; output is partial."""

    code: ClassVar[str] = "safety_bound_exceeded"


class InvalidPatternError(ValueError):
    """Raised when a split pattern is blank or fails to compile."""

    def __init__(self, message: str, *, pattern: str) -> None:
        super().__init__(message)
        self.pattern = pattern


class NoMatchError(ValueError):
    """Raised when a split pattern compiles but matches nothing."""

    def __init__(self, message: str, *, pattern: str) -> None:
        super().__init__(message)
        self.pattern = pattern


class ModeStoreError(ValueError):
    """Raised for unknown or conflicting mode names in the mode store."""

    def __init__(self, message: str, *, mode: str) -> None:
        super().__init__(message)
        self.mode = mode


class CsvFormatError(ValueError):
    """Raised when a rules CSV does not carry a find/replace header."""
