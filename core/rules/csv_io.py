"""CSV import/export of find/replace rules grouped by mode."""

from __future__ import annotations

import csv
import io
from collections.abc import Mapping, Sequence

from core.rules.models import RuleConfig
from core.utils.errors import CsvFormatError

_BOM = "\ufeff"
_HEADER = ("find", "replace", "mode")
_DEFAULT_MODE = "default"


def parse_rules_csv(text: str) -> dict[str, list[RuleConfig]]:
    """Parse ``find,replace[,mode]`` rows into rules keyed by mode name.

    The header row must mention both ``find`` and ``replace``. Comma and tab
    delimiters are accepted; blank lines and rows without a find value are
    skipped.
    """

    content = text.removeprefix(_BOM)
    if not content:
        raise CsvFormatError("CSV is empty")

    # Rows are parsed from the raw body so quoted fields keep their newlines.
    header_line, _, body = content.partition("\n")
    header_line = header_line.rstrip("\r")
    header = header_line.lower()
    if "find" not in header or "replace" not in header:
        raise CsvFormatError("CSV header must contain 'find' and 'replace' columns")

    delimiter = "\t" if "\t" in header_line and "," not in header_line else ","
    grouped: dict[str, list[RuleConfig]] = {}
    for row in csv.reader(io.StringIO(body, newline=""), delimiter=delimiter):
        cells = [cell.strip() for cell in row]
        if len(cells) < 2 or not cells[0]:
            continue
        mode = cells[2] if len(cells) > 2 and cells[2] else _DEFAULT_MODE
        grouped.setdefault(mode, []).append(RuleConfig(find=cells[0], replace=cells[1]))
    return grouped


def dump_rules_csv(rules_by_mode: Mapping[str, Sequence[RuleConfig]]) -> str:
    """Serialize rules as a BOM-prefixed, fully quoted ``find,replace,mode`` CSV."""

    handle = io.StringIO()
    handle.write(_BOM)
    writer = csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator="\n")
    handle.write(",".join(_HEADER) + "\n")
    for mode, rules in rules_by_mode.items():
        for rule in rules:
            writer.writerow([rule.find, rule.replace, mode])
    return handle.getvalue()
