"""Typer CLI entrypoint for prose-rewrite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from apps.cli.io import (
    build_output_paths,
    build_split_manifest_path,
    existing_output_files,
    read_input_text,
    write_rewrite_output_atomic,
    write_split_output_atomic,
)
from apps.cli.summary_human import render_rewrite_summary, render_split_summary
from core.rewrite.pipeline import rewrite
from core.rules.csv_io import dump_rules_csv, parse_rules_csv
from core.rules.mode_loader import load_mode_settings
from core.rules.mode_store import ModeStore
from core.rules.models import ModeSettings, RuleConfig, split_exception_words
from core.split.splitter import (
    DEFAULT_HEADER_PATTERN,
    CountSplit,
    PatternSplit,
    SplitOutput,
    split,
)
from core.utils.errors import EmptyInputWarning, InvalidPatternError, NoMatchError
from core.utils.notices import Notice

app = typer.Typer(help="Prose rewrite CLI", rich_markup_mode=None)
modes_app = typer.Typer(help="Manage named rewrite modes.", rich_markup_mode=None)
rules_app = typer.Typer(help="Manage find/replace rules.", rich_markup_mode=None)
app.add_typer(modes_app, name="modes")
app.add_typer(rules_app, name="rules")

DEFAULT_STORE_PATH = Path("prose_settings.json")
DEFAULT_SPLIT_PARTS = 2

StoreOption = Annotated[
    Path,
    typer.Option(
        "--store",
        envvar="PROSE_SETTINGS_STORE",
        dir_okay=False,
        help="JSON mode store path.",
    ),
]


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("rewrite")
def rewrite_command(
    input_path: Annotated[
        Path, typer.Option("--input", exists=True, dir_okay=False, file_okay=True)
    ],
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    settings: Annotated[
        Path | None,
        typer.Option("--settings", help="YAML mode settings file (overrides the store)."),
    ] = None,
    store: StoreOption = DEFAULT_STORE_PATH,
    mode: Annotated[
        str | None, typer.Option("--mode", help="Mode name in the store; default is current.")
    ] = None,
    docx: Annotated[
        bool, typer.Option("--docx", help="Also write out.docx with highlighted runs.")
    ] = False,
    max_substitutions: Annotated[int | None, typer.Option(min=1)] = None,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite outputs when they already exist.")
    ] = False,
    no_overwrite: Annotated[
        bool,
        typer.Option(
            "--no-overwrite",
            help="Fail when outputs already exist.",
        ),
    ] = False,
) -> None:
    """Apply a mode's rules and auto-caps to one document and write artifacts."""

    if force and no_overwrite:
        typer.echo("ERROR: --force and --no-overwrite cannot be used together.")
        raise typer.Exit(code=1)
    if settings is not None and mode is not None:
        typer.echo("ERROR: --settings and --mode cannot be used together.")
        raise typer.Exit(code=1)

    paths = build_output_paths(out_dir)
    existing = existing_output_files(paths, include_docx=docx)
    if existing and no_overwrite:
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)
    if existing:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"INFO: overwriting existing outputs: {names}")

    failure_stage = "unknown"
    mode_label: str | None = None
    try:
        failure_stage = "load_settings"
        if settings is not None:
            mode_settings = load_mode_settings(settings)
            mode_label = settings.name
        else:
            mode_store = ModeStore(store)
            mode_label = mode or mode_store.current_name()
            mode_settings = mode_store.get(mode_label)
        failure_stage = "load_input"
        raw_input = read_input_text(input_path)
        failure_stage = "pipeline"
        output = rewrite(raw_input, mode_settings, max_substitutions=max_substitutions)
    except ValueError as exc:
        typer.echo(f"ERROR({failure_stage}): {exc}")
        raise typer.Exit(code=1) from exc
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    _echo_notices(output.notices)
    if _has_notice(output.notices, EmptyInputWarning.code):
        typer.echo("INFO: nothing to write")
        raise typer.Exit(code=0)

    try:
        write_rewrite_output_atomic(paths, output, include_docx=docx)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: write output failed: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(render_rewrite_summary(output, mode_name=mode_label))
    typer.echo(f"INFO(rewrite): replaced={output.replaced_count} caps={output.caps_count}")
    typer.echo("INFO: success")


@app.command("split")
def split_command(
    input_path: Annotated[
        Path, typer.Option("--input", exists=True, dir_okay=False, file_okay=True)
    ],
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    parts: Annotated[int | None, typer.Option("--parts", min=1)] = None,
    pattern: Annotated[
        str | None, typer.Option("--pattern", help="Regex whose matches start each part.")
    ] = None,
    header_pattern: Annotated[
        str, typer.Option("--header-pattern", help="Chapter header regex for count mode.")
    ] = DEFAULT_HEADER_PATTERN,
) -> None:
    """Split one document into word-balanced or pattern-delimited parts."""

    if parts is not None and pattern is not None:
        typer.echo("ERROR: --parts and --pattern cannot be used together.")
        raise typer.Exit(code=1)

    split_mode: CountSplit | PatternSplit
    if pattern is not None:
        split_mode = PatternSplit(pattern=pattern)
    else:
        split_mode = CountSplit(parts=parts or DEFAULT_SPLIT_PARTS, header_pattern=header_pattern)

    try:
        result: SplitOutput = split(read_input_text(input_path), split_mode)
    except InvalidPatternError as exc:
        typer.echo(f"ERROR: invalid pattern: {exc}")
        raise typer.Exit(code=3) from exc
    except NoMatchError as exc:
        typer.echo(f"ERROR: pattern matched nothing: {exc.pattern}")
        raise typer.Exit(code=4) from exc
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    _echo_notices(result.notices)
    if _has_notice(result.notices, EmptyInputWarning.code):
        typer.echo("INFO: nothing to write")
        raise typer.Exit(code=0)

    try:
        write_split_output_atomic(out_dir, result.parts)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: write output failed: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(render_split_summary(result.parts))
    manifest_name = build_split_manifest_path(out_dir).name
    typer.echo(f"INFO: wrote {len(result.parts)} parts and {manifest_name}")
    typer.echo("INFO: success")


@modes_app.command("list")
def modes_list(store: StoreOption = DEFAULT_STORE_PATH) -> None:
    """List modes; the current one is marked with '*'."""

    mode_store = ModeStore(store)
    current = _run_store(mode_store.current_name)
    for name in _run_store(mode_store.list_names):
        marker = "*" if name == current else " "
        typer.echo(f"{marker} {name}")


@modes_app.command("show")
def modes_show(
    name: Annotated[str | None, typer.Argument()] = None,
    store: StoreOption = DEFAULT_STORE_PATH,
) -> None:
    """Print one mode's settings as JSON."""

    mode_store = ModeStore(store)
    settings = _run_store(lambda: mode_store.get(name) if name else mode_store.current())
    typer.echo(json.dumps(settings.model_dump(mode="json"), ensure_ascii=False, indent=2))


@modes_app.command("add")
def modes_add(name: str, store: StoreOption = DEFAULT_STORE_PATH) -> None:
    """Create a mode with default settings and make it current."""

    _run_store(lambda: ModeStore(store).create(name))
    typer.echo(f"INFO: created mode {name}")


@modes_app.command("copy")
def modes_copy(source: str, target: str, store: StoreOption = DEFAULT_STORE_PATH) -> None:
    """Copy a mode under a new name and make the copy current."""

    _run_store(lambda: ModeStore(store).copy(source, target))
    typer.echo(f"INFO: copied mode {source} -> {target}")


@modes_app.command("rename")
def modes_rename(old: str, new: str, store: StoreOption = DEFAULT_STORE_PATH) -> None:
    _run_store(lambda: ModeStore(store).rename(old, new))
    typer.echo(f"INFO: renamed mode {old} -> {new}")


@modes_app.command("delete")
def modes_delete(name: str, store: StoreOption = DEFAULT_STORE_PATH) -> None:
    mode_store = ModeStore(store)
    _run_store(lambda: mode_store.delete(name))
    typer.echo(f"INFO: deleted mode {name}; current mode is {mode_store.current_name()}")


@modes_app.command("use")
def modes_use(name: str, store: StoreOption = DEFAULT_STORE_PATH) -> None:
    _run_store(lambda: ModeStore(store).use(name))
    typer.echo(f"INFO: current mode is {name}")


@modes_app.command("set")
def modes_set(
    name: str,
    store: StoreOption = DEFAULT_STORE_PATH,
    match_case: Annotated[bool | None, typer.Option("--match-case/--no-match-case")] = None,
    whole_word: Annotated[bool | None, typer.Option("--whole-word/--no-whole-word")] = None,
    auto_caps: Annotated[bool | None, typer.Option("--auto-caps/--no-auto-caps")] = None,
    tidy_paragraphs: Annotated[
        bool | None, typer.Option("--tidy-paragraphs/--no-tidy-paragraphs")
    ] = None,
    exceptions: Annotated[
        str | None, typer.Option("--exceptions", help="Comma-separated auto-caps exceptions.")
    ] = None,
) -> None:
    """Update toggles and the auto-caps exception list of one mode."""

    mode_store = ModeStore(store)
    current = _run_store(lambda: mode_store.get(name))
    updates: dict[str, object] = {
        key: value
        for key, value in {
            "match_case": match_case,
            "whole_word": whole_word,
            "auto_caps": auto_caps,
            "tidy_paragraphs": tidy_paragraphs,
            "exception_words": None if exceptions is None else split_exception_words(exceptions),
        }.items()
        if value is not None
    }
    updated = ModeSettings.model_validate({**current.model_dump(), **updates})
    _run_store(lambda: mode_store.upsert(name, updated))
    typer.echo(
        f"INFO: mode {name}: match_case={updated.match_case} whole_word={updated.whole_word} "
        f"auto_caps={updated.auto_caps} exceptions={','.join(updated.exception_words)}"
    )


@rules_app.command("list")
def rules_list(
    mode: Annotated[str | None, typer.Option("--mode")] = None,
    store: StoreOption = DEFAULT_STORE_PATH,
) -> None:
    """Print the rules of one mode as tab-separated find/replace pairs."""

    mode_store = ModeStore(store)
    settings = _run_store(lambda: mode_store.get(mode) if mode else mode_store.current())
    for rule in settings.rules:
        typer.echo(f"{rule.find}\t{rule.replace}")


@rules_app.command("add")
def rules_add(
    find: Annotated[str, typer.Option("--find")],
    replace: Annotated[str, typer.Option("--replace")] = "",
    mode: Annotated[str | None, typer.Option("--mode")] = None,
    store: StoreOption = DEFAULT_STORE_PATH,
) -> None:
    if not find.strip():
        typer.echo("ERROR: --find must not be blank.")
        raise typer.Exit(code=1)
    mode_store = ModeStore(store)
    target = mode or _run_store(mode_store.current_name)
    rule = RuleConfig(find=find, replace=replace)
    updated = _run_store(lambda: mode_store.add_rule(target, rule))
    typer.echo(f"INFO: mode {target} now has {len(updated.rules)} rules")


@rules_app.command("import")
def rules_import(
    csv_path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, file_okay=True)],
    store: StoreOption = DEFAULT_STORE_PATH,
) -> None:
    """Append rules from a find,replace[,mode] CSV into the store."""

    try:
        grouped = parse_rules_csv(csv_path.read_text(encoding="utf-8"))
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc
    added = _run_store(lambda: ModeStore(store).import_rules(grouped))
    typer.echo(f"INFO: imported {added} rules into {len(grouped)} modes")


@rules_app.command("export")
def rules_export(
    csv_path: Annotated[Path, typer.Argument(dir_okay=False, file_okay=True)],
    store: StoreOption = DEFAULT_STORE_PATH,
) -> None:
    """Write every mode's rules to a find,replace,mode CSV."""

    exported = _run_store(ModeStore(store).export_rules)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    csv_path.write_text(dump_rules_csv(exported), encoding="utf-8")
    total = sum(len(rules) for rules in exported.values())
    typer.echo(f"INFO: exported {total} rules to {csv_path}")


def _run_store(action):
    try:
        return action()
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc


def _echo_notices(notices: list[Notice]) -> None:
    for notice in notices:
        typer.echo(f"WARNING({notice.code}): {notice.message}")


def _has_notice(notices: list[Notice], code: str) -> bool:
    return any(notice.code == code for notice in notices)


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
