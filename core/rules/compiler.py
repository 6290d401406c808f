"""Compile raw find/replace pairs into ordered literal matchers."""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import lru_cache

from core.rules.models import CompiledRule, RuleConfig
from core.text.normalizer import normalize_text


def compile_rules(rules: Sequence[RuleConfig]) -> list[CompiledRule]:
    """Normalize, filter and order rules for the substitution engine.

    Rules with a blank find-string are dropped. The result is sorted by
    find length descending so that "New York City" is tried before
    "New York"; ties keep their original order.
    """

    compiled: list[CompiledRule] = []
    for index, rule in enumerate(rules):
        if not rule.find.strip():
            continue
        compiled.append(
            CompiledRule(
                find=normalize_text(rule.find),
                replace=normalize_text(rule.replace),
                source_order=index,
            )
        )

    compiled.sort(key=lambda item: -len(item.find))
    return compiled


def build_matcher(rule: CompiledRule, *, match_case: bool) -> re.Pattern[str]:
    """Return the literal pattern for a rule.

    Whole-word boundaries are checked by the engine against the buffer's
    logical text, not here, because a plain segment does not see its
    neighbours.
    """

    return _compile_literal(rule.find, match_case)


@lru_cache(maxsize=1024)
def _compile_literal(find: str, match_case: bool) -> re.Pattern[str]:
    flags = 0 if match_case else re.IGNORECASE
    return re.compile(re.escape(find), flags)
