"""User-facing notices for recoverable pipeline conditions."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from core.utils.errors import RewriteWarning


class Notice(BaseModel):
    """Single notice returned alongside a rewrite or split result."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str
    message: str
    level: Literal["info", "warn"] = "warn"

    @classmethod
    def from_warning(cls, warning: RewriteWarning) -> Notice:
        return cls(code=warning.code, message=str(warning), level="warn")
