"""Local JSON store for named rewrite modes."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from core.rules.models import ModeSettings, RuleConfig
from core.utils.errors import ModeStoreError

_STORE_VERSION = 1
DEFAULT_MODE_NAME = "default"


@dataclass
class ModeStoreData:
    """On-disk JSON structure for mode settings."""

    version: int = _STORE_VERSION
    current_mode: str = DEFAULT_MODE_NAME
    modes: dict[str, ModeSettings] = field(
        default_factory=lambda: {DEFAULT_MODE_NAME: ModeSettings()}
    )


class ModeStore:
    """Persist mode settings keyed by mode name in a JSON file.

    The store always holds at least one mode; deleting the last one brings
    back a fresh ``default``.
    """

    def __init__(self, store_path: Path) -> None:
        self._store_path = store_path

    @property
    def path(self) -> Path:
        return self._store_path

    def get(self, name: str) -> ModeSettings:
        data = self._read_data()
        return self._require(data, name)

    def current_name(self) -> str:
        return self._read_data().current_mode

    def current(self) -> ModeSettings:
        data = self._read_data()
        return data.modes[data.current_mode]

    def list_names(self) -> list[str]:
        return sorted(self._read_data().modes)

    def use(self, name: str) -> None:
        data = self._read_data()
        self._require(data, name)
        data.current_mode = name
        self._write_data(data)

    def upsert(self, name: str, settings: ModeSettings) -> None:
        data = self._read_data()
        data.modes[name] = settings
        self._write_data(data)

    def create(self, name: str) -> ModeSettings:
        data = self._read_data()
        self._require_free(data, name)
        settings = ModeSettings()
        data.modes[name] = settings
        data.current_mode = name
        self._write_data(data)
        return settings

    def copy(self, source: str, target: str) -> ModeSettings:
        data = self._read_data()
        settings = self._require(data, source)
        self._require_free(data, target)
        data.modes[target] = settings.model_copy(deep=True)
        data.current_mode = target
        self._write_data(data)
        return data.modes[target]

    def rename(self, old: str, new: str) -> None:
        data = self._read_data()
        settings = self._require(data, old)
        if old == new:
            return
        self._require_free(data, new)
        del data.modes[old]
        data.modes[new] = settings
        if data.current_mode == old:
            data.current_mode = new
        self._write_data(data)

    def delete(self, name: str) -> None:
        data = self._read_data()
        self._require(data, name)
        del data.modes[name]
        if not data.modes:
            data.modes[DEFAULT_MODE_NAME] = ModeSettings()
        if data.current_mode not in data.modes:
            data.current_mode = sorted(data.modes)[0]
        self._write_data(data)

    def add_rule(self, name: str, rule: RuleConfig) -> ModeSettings:
        data = self._read_data()
        settings = self._require(data, name)
        updated = settings.model_copy(update={"rules": [*settings.rules, rule]})
        data.modes[name] = updated
        self._write_data(data)
        return updated

    def import_rules(self, rules_by_mode: Mapping[str, Sequence[RuleConfig]]) -> int:
        """Append rules per mode, creating unknown modes; return rules added."""

        data = self._read_data()
        added = 0
        for name, rules in rules_by_mode.items():
            settings = data.modes.get(name) or ModeSettings()
            data.modes[name] = settings.model_copy(update={"rules": [*settings.rules, *rules]})
            added += len(rules)
        self._write_data(data)
        return added

    def export_rules(self) -> dict[str, list[RuleConfig]]:
        data = self._read_data()
        return {name: list(data.modes[name].rules) for name in sorted(data.modes)}

    def _require(self, data: ModeStoreData, name: str) -> ModeSettings:
        try:
            return data.modes[name]
        except KeyError as exc:
            raise ModeStoreError(f"Unknown mode: {name}", mode=name) from exc

    def _require_free(self, data: ModeStoreData, name: str) -> None:
        if not name.strip():
            raise ModeStoreError("Mode name must not be empty", mode=name)
        if name in data.modes:
            raise ModeStoreError(f"Mode already exists: {name}", mode=name)

    def _read_data(self) -> ModeStoreData:
        if not self._store_path.exists():
            return ModeStoreData()

        try:
            raw = json.loads(self._store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid mode store JSON: {self._store_path}") from exc
        if not isinstance(raw, dict):
            raise ValueError(f"Mode store must contain an object: {self._store_path}")

        modes: dict[str, ModeSettings] = {}
        try:
            for name, item in raw.get("modes", {}).items():
                modes[name] = ModeSettings.model_validate(item)
        except ValidationError as exc:
            raise ValueError(f"Invalid mode settings in store: {self._store_path}") from exc

        if not modes:
            modes[DEFAULT_MODE_NAME] = ModeSettings()
        current_mode = raw.get("current_mode", DEFAULT_MODE_NAME)
        if current_mode not in modes:
            current_mode = sorted(modes)[0]

        version = int(raw.get("version", _STORE_VERSION))
        return ModeStoreData(version=version, current_mode=current_mode, modes=modes)

    def _write_data(self, data: ModeStoreData) -> None:
        self._store_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._store_path.with_suffix(f"{self._store_path.suffix}.tmp")

        payload = {
            "version": data.version,
            "current_mode": data.current_mode,
            "modes": {
                key: data.modes[key].model_dump(mode="json") for key in sorted(data.modes.keys())
            },
        }
        temp_path.write_text(
            json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
        )
        temp_path.replace(self._store_path)
