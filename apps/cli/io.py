"""CLI I/O helpers: input reading and atomic output writing."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from docx import Document

from core.rewrite.pipeline import RewriteOutput
from core.rewrite.render import render_docx
from core.split.splitter import SplitPart


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for a single rewrite run."""

    html: Path
    text: Path
    report: Path
    docx: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Build fixed rewrite output file paths under out_dir."""

    return OutputPaths(
        html=out_dir / "out.html",
        text=out_dir / "out.txt",
        report=out_dir / "out.rewrite_report.json",
        docx=out_dir / "out.docx",
    )


def build_split_manifest_path(out_dir: Path) -> Path:
    return out_dir / "out.split_manifest.json"


def build_split_part_path(out_dir: Path, index: int) -> Path:
    return out_dir / f"part_{index:02d}.txt"


def existing_output_files(paths: OutputPaths, *, include_docx: bool = False) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    candidates = [paths.html, paths.text, paths.report]
    if include_docx:
        candidates.append(paths.docx)
    return [path for path in candidates if path.exists()]


def read_input_text(path: Path) -> str:
    """Read prose input; ``.docx`` files are read one paragraph per line."""

    if path.suffix.lower() == ".docx":
        document = Document(str(path))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)
    return path.read_text(encoding="utf-8-sig")


def write_rewrite_output_atomic(
    paths: OutputPaths, output: RewriteOutput, *, include_docx: bool = False
) -> None:
    """Write rewrite artifacts atomically using temporary files + replace."""

    paths.html.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_text(paths.html, output.markup)
    _atomic_write_text(paths.text, output.text)
    _atomic_write_json(paths.report, output.summary().model_dump(mode="json"))
    if include_docx:
        _atomic_write_docx(paths.docx, render_docx(output.buffer))


def write_split_output_atomic(out_dir: Path, parts: list[SplitPart]) -> list[Path]:
    """Write one text file per part plus a JSON manifest; return part paths."""

    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    manifest: list[dict[str, Any]] = []
    for index, part in enumerate(parts, start=1):
        path = build_split_part_path(out_dir, index)
        _atomic_write_text(path, part.content)
        written.append(path)
        manifest.append({"file": path.name, **part.model_dump(mode="json", exclude={"content"})})
    _atomic_write_json(build_split_manifest_path(out_dir), {"parts": manifest})
    return written


def _atomic_write_text(path: Path, content: str) -> None:
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            prefix=f"{path.name}.",
            suffix=".tmp",
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(content)
        tmp_path.replace(path)
    except Exception:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            prefix=f"{path.name}.",
            suffix=".tmp",
        ) as tmp:
            tmp_path = Path(tmp.name)
            json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
        tmp_path.replace(path)
    except Exception:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise


def _atomic_write_docx(path: Path, document) -> None:
    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        document.save(str(tmp_path))
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise
