"""Rewrite pipeline: normalize -> substitute -> auto-caps -> render."""

from __future__ import annotations

import asyncio

from pydantic import BaseModel, ConfigDict, Field

from core.rewrite.autocaps import apply_auto_caps
from core.rewrite.buffer import AnnotatedBuffer, SpanTag
from core.rewrite.render import render_html
from core.rewrite.substitute import MAX_SUBSTITUTIONS, substitute
from core.rules.compiler import compile_rules
from core.rules.models import ModeSettings
from core.text.normalizer import normalize_text, tidy_paragraphs
from core.utils.errors import EmptyInputWarning, NoRulesWarning, SafetyBoundExceeded
from core.utils.notices import Notice


class SegmentView(BaseModel):
    """Serializable view of one buffer segment."""

    model_config = ConfigDict(extra="forbid")

    text: str
    tag: SpanTag


class RewriteSummary(BaseModel):
    """JSON-friendly rewrite report for CLI/API output."""

    model_config = ConfigDict(extra="forbid")

    replaced_count: int
    caps_count: int
    truncated: bool
    notices: list[Notice] = Field(default_factory=list)
    segments: list[SegmentView] = Field(default_factory=list)


class RewriteOutput(BaseModel):
    """In-memory rewrite output; the buffer stays available for other renderers."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    buffer: AnnotatedBuffer
    markup: str
    replaced_count: int = 0
    caps_count: int = 0
    truncated: bool = False
    notices: list[Notice] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return self.buffer.text

    def summary(self) -> RewriteSummary:
        return RewriteSummary(
            replaced_count=self.replaced_count,
            caps_count=self.caps_count,
            truncated=self.truncated,
            notices=list(self.notices),
            segments=[SegmentView(text=item.text, tag=item.tag) for item in self.buffer],
        )


def rewrite(
    raw_input: str,
    settings: ModeSettings,
    *,
    max_substitutions: int | None = None,
) -> RewriteOutput:
    """Run the full rewrite path for one document and one mode snapshot."""

    if not raw_input or not raw_input.strip():
        warning = EmptyInputWarning("input text is empty")
        return RewriteOutput(
            buffer=AnnotatedBuffer(), markup="", notices=[Notice.from_warning(warning)]
        )

    text = normalize_text(raw_input)
    if settings.tidy_paragraphs:
        text = tidy_paragraphs(text)

    notices: list[Notice] = []
    rules = compile_rules(settings.rules)
    if not rules and not settings.auto_caps:
        notices.append(Notice.from_warning(NoRulesWarning("no replacement rules configured")))

    limit = MAX_SUBSTITUTIONS if max_substitutions is None else max_substitutions
    substituted = substitute(
        text,
        rules,
        match_case=settings.match_case,
        whole_word=settings.whole_word,
        max_substitutions=limit,
    )
    if substituted.truncated:
        notices.append(
            Notice.from_warning(
                SafetyBoundExceeded(f"stopped after {limit} substitutions; output is partial")
            )
        )

    buffer = substituted.buffer
    caps_count = 0
    if settings.auto_caps:
        capped = apply_auto_caps(buffer, settings.exception_words)
        buffer = capped.buffer
        caps_count = capped.caps_count

    return RewriteOutput(
        buffer=buffer,
        markup=render_html(buffer),
        replaced_count=substituted.replaced_count,
        caps_count=caps_count,
        truncated=substituted.truncated,
        notices=notices,
    )


async def rewrite_deferred(
    raw_input: str,
    settings: ModeSettings,
    *,
    max_substitutions: int | None = None,
) -> RewriteOutput:
    """Yield to the event loop once, then run ``rewrite``.

    Lets callers flush a "processing" state before the computation, which then
    runs in a worker thread so the event loop keeps serving other requests.
    """

    await asyncio.sleep(0)
    return await asyncio.to_thread(
        rewrite, raw_input, settings, max_substitutions=max_substitutions
    )
