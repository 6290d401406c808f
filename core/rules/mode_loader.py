"""Mode settings loading from YAML files."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.rules.models import ModeSettings, split_exception_words


def load_mode_settings(path: Path | None = None) -> ModeSettings:
    """Load and validate one mode's settings from YAML."""

    settings_path = path or Path(__file__).with_name("default_mode.yaml")

    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Mode settings file not found: {settings_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in mode settings file: {settings_path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Mode settings file must contain a mapping: {settings_path}")

    try:
        return ModeSettings.model_validate(_coerce_settings(raw))
    except ValidationError as exc:
        raise ValueError(f"Invalid mode settings schema: {settings_path}") from exc


def _coerce_settings(raw: dict[object, object]) -> dict[object, object]:
    """Accept ``[find, replace]`` rule pairs and a comma-separated exception string."""

    normalized = dict(raw)
    exception_words = raw.get("exception_words")
    if isinstance(exception_words, str):
        normalized["exception_words"] = split_exception_words(exception_words)

    rules = raw.get("rules")
    if not isinstance(rules, list):
        return normalized

    coerced: list[object] = []
    for item in rules:
        if isinstance(item, (list, tuple)) and len(item) == 2:
            find, replace = ("" if value is None else str(value) for value in item)
            coerced.append({"find": find, "replace": replace})
        else:
            coerced.append(item)
    normalized["rules"] = coerced
    return normalized
