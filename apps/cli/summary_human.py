"""Human-readable rewrite/split summaries for CLI output."""

from __future__ import annotations

from collections import Counter

from core.rewrite.buffer import SpanTag
from core.rewrite.pipeline import RewriteOutput
from core.split.splitter import SplitPart


def render_rewrite_summary(output: RewriteOutput, *, mode_name: str | None = None) -> str:
    """Render one-screen human-readable rewrite summary."""

    lines: list[str] = []
    lines.append("rewrite_summary:")
    if mode_name is not None:
        lines.append(f"mode={mode_name}")
    lines.append(f"replaced={output.replaced_count} caps={output.caps_count}")

    tag_counter: Counter[str] = Counter(
        segment.tag.value for segment in output.buffer if segment.tag != SpanTag.PLAIN
    )
    if tag_counter:
        spans_text = ", ".join(f"{tag}={tag_counter[tag]}" for tag in sorted(tag_counter))
        lines.append(f"spans: {spans_text}")
    else:
        lines.append("spans: none")

    lines.append(f"result={'PARTIAL' if output.truncated else 'COMPLETE'}")
    return "\n".join(lines)


def render_split_summary(parts: list[SplitPart]) -> str:
    """Render one line per split part with its word count."""

    lines = ["split_summary:"]
    for index, part in enumerate(parts, start=1):
        title = part.title if len(part.title) <= 40 else f"{part.title[:37]}..."
        label = title if part.content else f"{title} (empty)"
        lines.append(f"{index:>3}. {label} [{part.word_count} W]")
    return "\n".join(lines)
