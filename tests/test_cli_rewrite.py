from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from apps.cli.main import app
from core.rules.mode_store import ModeStore
from core.rules.models import ModeSettings, RuleConfig

runner = CliRunner()


def _write_store(path: Path) -> None:
    ModeStore(path).upsert(
        "default",
        ModeSettings(rules=[RuleConfig(find="anh", replace="em")], auto_caps=True),
    )


def _write_input(path: Path, text: str = "xin chào. anh là ai?") -> None:
    path.write_text(text, encoding="utf-8")


def test_cli_rewrite_success_writes_outputs(tmp_path: Path) -> None:
    store = tmp_path / "prose_settings.json"
    source = tmp_path / "input.txt"
    out_dir = tmp_path / "out"
    _write_store(store)
    _write_input(source)

    result = runner.invoke(
        app,
        ["rewrite", "--input", str(source), "--out-dir", str(out_dir), "--store", str(store)],
    )

    assert result.exit_code == 0, result.output
    assert "rewrite_summary:" in result.output
    assert "mode=default" in result.output
    assert "INFO(rewrite): replaced=1 caps=2" in result.output
    assert "result=COMPLETE" in result.output
    assert "INFO: success" in result.output
    assert (out_dir / "out.txt").read_text(encoding="utf-8") == "Xin chào. Em là ai?"
    assert (out_dir / "out.html").exists()
    assert not (out_dir / "out.docx").exists()


def test_cli_rewrite_with_settings_file_and_docx(tmp_path: Path) -> None:
    settings = tmp_path / "mode.yaml"
    settings.write_text("rules:\n  - [cat, dog]\n", encoding="utf-8")
    source = tmp_path / "input.txt"
    out_dir = tmp_path / "out"
    _write_input(source, "the cat")

    result = runner.invoke(
        app,
        [
            "rewrite",
            "--input",
            str(source),
            "--out-dir",
            str(out_dir),
            "--settings",
            str(settings),
            "--docx",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "mode=mode.yaml" in result.output
    assert (out_dir / "out.txt").read_text(encoding="utf-8") == "the dog"
    assert (out_dir / "out.docx").exists()


def test_cli_rewrite_unknown_mode_exits_1(tmp_path: Path) -> None:
    source = tmp_path / "input.txt"
    _write_input(source)

    result = runner.invoke(
        app,
        [
            "rewrite",
            "--input",
            str(source),
            "--out-dir",
            str(tmp_path / "out"),
            "--store",
            str(tmp_path / "prose_settings.json"),
            "--mode",
            "missing",
        ],
    )

    assert result.exit_code == 1
    assert "ERROR(load_settings): Unknown mode: missing" in result.output


def test_cli_rewrite_rejects_conflicting_overwrite_flags(tmp_path: Path) -> None:
    source = tmp_path / "input.txt"
    _write_input(source)

    result = runner.invoke(
        app,
        ["rewrite", "--input", str(source), "--force", "--no-overwrite"],
    )

    assert result.exit_code == 1
    assert "cannot be used together" in result.output


def test_cli_rewrite_no_overwrite_fails_on_existing_outputs(tmp_path: Path) -> None:
    source = tmp_path / "input.txt"
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "out.txt").write_text("old", encoding="utf-8")
    _write_input(source)

    result = runner.invoke(
        app,
        [
            "rewrite",
            "--input",
            str(source),
            "--out-dir",
            str(out_dir),
            "--store",
            str(tmp_path / "prose_settings.json"),
            "--no-overwrite",
        ],
    )

    assert result.exit_code == 1
    assert "--no-overwrite" in result.output
    assert (out_dir / "out.txt").read_text(encoding="utf-8") == "old"


def test_cli_rewrite_empty_input_writes_nothing(tmp_path: Path) -> None:
    source = tmp_path / "input.txt"
    out_dir = tmp_path / "out"
    _write_input(source, "  \n")

    result = runner.invoke(
        app,
        [
            "rewrite",
            "--input",
            str(source),
            "--out-dir",
            str(out_dir),
            "--store",
            str(tmp_path / "prose_settings.json"),
        ],
    )

    assert result.exit_code == 0
    assert "WARNING(empty_input)" in result.output
    assert "INFO: nothing to write" in result.output
    assert not out_dir.exists()


def test_cli_rewrite_reports_partial_result_on_safety_bound(tmp_path: Path) -> None:
    store = tmp_path / "prose_settings.json"
    ModeStore(store).upsert("default", ModeSettings(rules=[RuleConfig(find="a", replace="b")]))
    source = tmp_path / "input.txt"
    out_dir = tmp_path / "out"
    _write_input(source, "a a a")

    result = runner.invoke(
        app,
        [
            "rewrite",
            "--input",
            str(source),
            "--out-dir",
            str(out_dir),
            "--store",
            str(store),
            "--max-substitutions",
            "2",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "WARNING(safety_bound_exceeded)" in result.output
    assert "result=PARTIAL" in result.output
    report = json.loads((out_dir / "out.rewrite_report.json").read_text(encoding="utf-8"))
    assert report["truncated"] is True
    assert report["replaced_count"] == 2
