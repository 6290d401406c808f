"""Pure projections of an annotated buffer: HTML markup, plain text, docx."""

from __future__ import annotations

import html

from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.text import WD_COLOR_INDEX

from core.rewrite.buffer import AnnotatedBuffer, SpanTag

TAG_CSS_CLASSES: dict[SpanTag, str] = {
    SpanTag.REPLACED: "hl-yellow",
    SpanTag.CAPITALIZED: "hl-blue",
    SpanTag.BOTH: "hl-orange",
}

TAG_HIGHLIGHTS: dict[SpanTag, WD_COLOR_INDEX] = {
    SpanTag.REPLACED: WD_COLOR_INDEX.YELLOW,
    SpanTag.CAPITALIZED: WD_COLOR_INDEX.TURQUOISE,
    SpanTag.BOTH: WD_COLOR_INDEX.BRIGHT_GREEN,
}


def render_html(buffer: AnnotatedBuffer) -> str:
    """Render segments as escaped HTML, wrapping tagged runs in ``<mark>``."""

    parts: list[str] = []
    for segment in buffer:
        escaped = html.escape(segment.text, quote=True)
        css_class = TAG_CSS_CLASSES.get(segment.tag)
        if css_class is None:
            parts.append(escaped)
        else:
            parts.append(f'<mark class="{css_class}">{escaped}</mark>')
    return "".join(parts)


def render_text(buffer: AnnotatedBuffer) -> str:
    return buffer.text


def render_docx(buffer: AnnotatedBuffer) -> DocxDocument:
    """Build a document with one paragraph per non-blank line.

    Tagged runs keep their highlight colour; a segment spanning several
    lines is split into one run per paragraph.
    """

    document = Document()
    paragraph = None
    for segment in buffer:
        highlight = TAG_HIGHLIGHTS.get(segment.tag)
        for line_index, piece in enumerate(segment.text.split("\n")):
            if line_index > 0:
                paragraph = None
            if not piece:
                continue
            if paragraph is None:
                paragraph = document.add_paragraph()
            run = paragraph.add_run(piece)
            if highlight is not None:
                run.font.highlight_color = highlight
    return document
