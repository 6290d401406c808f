from __future__ import annotations

import pytest

from core.rewrite.buffer import SpanTag
from core.rewrite.pipeline import rewrite, rewrite_deferred
from core.rules.models import ModeSettings, RuleConfig


def _settings(**overrides: object) -> ModeSettings:
    return ModeSettings.model_validate(overrides)


def test_rewrite_replaces_and_capitalizes_with_markup() -> None:
    settings = _settings(
        rules=[RuleConfig(find="anh", replace="em")],
        auto_caps=True,
    )

    output = rewrite("xin chào. anh là ai?", settings)

    assert output.text == "Xin chào. Em là ai?"
    assert output.replaced_count == 1
    assert output.caps_count == 2
    assert output.truncated is False
    assert output.notices == []
    assert '<mark class="hl-orange">Em</mark>' in output.markup
    assert '<mark class="hl-blue">Xin</mark>' in output.markup


def test_rewrite_normalizes_quotes_before_matching() -> None:
    settings = _settings(rules=[RuleConfig(find='"hi"', replace="hello")])

    output = rewrite("he said “hi”", settings)

    assert output.text == "he said hello"
    assert output.replaced_count == 1


def test_rewrite_tidies_paragraph_spacing_by_default() -> None:
    output = rewrite("one\n\n\n two\n", _settings(auto_caps=True))

    assert output.text == "One\n\n Two"


def test_rewrite_can_keep_original_spacing() -> None:
    output = rewrite("one\n\n\ntwo", _settings(auto_caps=True, tidy_paragraphs=False))

    assert output.text == "One\n\n\nTwo"


def test_rewrite_blank_input_returns_empty_input_notice() -> None:
    output = rewrite("   \n", _settings())

    assert output.text == ""
    assert output.markup == ""
    assert [notice.code for notice in output.notices] == ["empty_input"]


def test_rewrite_without_rules_or_caps_returns_no_rules_notice() -> None:
    output = rewrite("unchanged", _settings(rules=[RuleConfig(find=" ", replace="x")]))

    assert output.text == "unchanged"
    assert [notice.code for notice in output.notices] == ["no_rules"]


def test_rewrite_reports_safety_bound() -> None:
    settings = _settings(rules=[RuleConfig(find="a", replace="b")])

    output = rewrite("a a a a", settings, max_substitutions=3)

    assert output.truncated is True
    assert output.replaced_count == 3
    assert output.text == "b b b a"
    assert [notice.code for notice in output.notices] == ["safety_bound_exceeded"]


def test_rewrite_summary_lists_segments() -> None:
    settings = _settings(rules=[RuleConfig(find="cat", replace="dog")])

    summary = rewrite("a cat", settings).summary()

    assert summary.replaced_count == 1
    assert [(item.text, item.tag) for item in summary.segments] == [
        ("a ", SpanTag.PLAIN),
        ("dog", SpanTag.REPLACED),
    ]
    assert summary.model_dump(mode="json")["segments"][1] == {"text": "dog", "tag": "replaced"}


@pytest.mark.anyio
async def test_rewrite_deferred_matches_synchronous_result() -> None:
    settings = _settings(rules=[RuleConfig(find="cat", replace="dog")], auto_caps=True)

    deferred = await rewrite_deferred("the cat.", settings)
    direct = rewrite("the cat.", settings)

    assert deferred.text == direct.text == "The dog."
    assert deferred.buffer == direct.buffer
