from __future__ import annotations

from markdown_styler.models import CharacterStyle, ElementType, TagRole
from markdown_styler.rules import CharacterRule, CharacterRuleTag
from markdown_styler.scanner import (
    _pair_tags,
    apply_rule,
    build_elements,
    count_run,
    match_at,
    scan_elements,
)

ITALIC_RULE = CharacterRule(
    primary_tag=CharacterRuleTag("*", TagRole.REPEATING),
    styles={1: CharacterStyle.ITALIC, 2: CharacterStyle.BOLD},
    max_repeat=2,
)
LINK_RULE = CharacterRule(
    primary_tag=CharacterRuleTag("[", TagRole.OPEN),
    auxiliary_tags=(
        CharacterRuleTag("]", TagRole.CLOSE),
        CharacterRuleTag("(", TagRole.METADATA_OPEN),
        CharacterRuleTag(")", TagRole.METADATA_CLOSE),
    ),
    styles={1: CharacterStyle.LINK},
    defines_boundary=True,
)
CODE_RULE = CharacterRule(
    primary_tag=CharacterRuleTag("`", TagRole.REPEATING),
    styles={1: CharacterStyle.CODE},
    cancels_remaining_rules=True,
    requires_balanced_tag_count=True,
)


def _categories(elements):
    return [element.category for element in elements]


def test_build_elements_categorizes_characters():
    elements = build_elements("a b\nc")

    assert [element.character for element in elements] == list("a b\nc")
    assert _categories(elements) == [
        ElementType.LITERAL,
        ElementType.SPACE,
        ElementType.LITERAL,
        ElementType.NEWLINE,
        ElementType.LITERAL,
    ]


def test_match_at_requires_unclaimed_literals():
    elements = build_elements("**a")

    assert match_at(elements, 0, "**") is True
    assert match_at(elements, 1, "**") is False
    assert match_at(elements, 2, "ab") is False
    assert match_at(elements, -1, "*") is False

    elements[0].match_complete = True
    assert match_at(elements, 0, "**") is False

    elements[1].category = ElementType.TAG
    assert match_at(elements, 1, "*") is False


def test_count_run_counts_preceding_escapes():
    elements = build_elements("\\\\*")

    assert count_run(elements, 2, "\\") == 2
    assert count_run(elements, 1, "\\") == 1
    assert count_run(elements, 0, "\\") == 0
    assert count_run(elements, 2, "/") == 0


def test_count_run_includes_elided_escapes():
    elements = build_elements("a\\*")
    elements[1].category = ElementType.ESCAPE

    assert count_run(elements, 2, "\\") == 1


def test_repeating_rule_styles_content_and_marks_tags():
    elements = build_elements("a *b* c")

    assert apply_rule(elements, ITALIC_RULE) == 1
    assert elements[2].category is ElementType.TAG
    assert elements[4].category is ElementType.TAG
    assert elements[3].styles == [CharacterStyle.ITALIC]
    assert all(not element.styles for index, element in enumerate(elements) if index != 3)


def test_repeating_rule_needs_equal_run_lengths():
    elements = build_elements("**a*")

    assert apply_rule(elements, ITALIC_RULE) == 0
    assert all(element.category is not ElementType.TAG for element in elements)


def test_odd_escape_run_makes_tag_literal():
    elements = build_elements("\\*a*")

    assert apply_rule(elements, ITALIC_RULE) == 0
    assert elements[0].category is ElementType.ESCAPE
    assert elements[1].category is ElementType.LITERAL


def test_even_escape_run_keeps_half_and_tag_active():
    elements = build_elements("\\\\*a*")

    assert apply_rule(elements, ITALIC_RULE) == 1
    assert _categories(elements)[:3] == [
        ElementType.ESCAPE,
        ElementType.LITERAL,
        ElementType.TAG,
    ]


def test_enclosed_rule_captures_metadata_and_boundary():
    elements = build_elements("[a](x)")

    assert apply_rule(elements, LINK_RULE) == 1
    assert _categories(elements) == [
        ElementType.TAG,
        ElementType.LITERAL,
        ElementType.TAG,
        ElementType.TAG,
        ElementType.METADATA,
        ElementType.TAG,
    ]
    assert elements[1].styles == [CharacterStyle.LINK]
    assert elements[1].metadata == ["x"]
    assert [element.boundary_count for element in elements] == [0, 1, 0, 0, 0, 0]


def test_enclosed_rule_without_metadata_is_literal():
    elements = build_elements("[a] (x)")

    assert apply_rule(elements, LINK_RULE) == 0
    assert all(element.category is not ElementType.TAG for element in elements)


def test_enclosed_rule_counts_nested_openers():
    elements = build_elements("[a [b] c](x)")

    assert apply_rule(elements, LINK_RULE) == 1
    styled = "".join(element.character for element in elements if element.styles)
    assert styled == "a [b] c"


def test_later_match_may_not_cross_boundary():
    elements = scan_elements("*a [b*](x)", [LINK_RULE, ITALIC_RULE])

    assert not any(CharacterStyle.ITALIC in element.styles for element in elements)
    assert elements[0].category is ElementType.LITERAL


def test_later_match_may_enclose_boundary_span():
    elements = scan_elements("*[b](x)*", [LINK_RULE, ITALIC_RULE])

    assert elements[2].styles == [CharacterStyle.LINK, CharacterStyle.ITALIC]


def test_cancelling_rule_completes_span():
    elements = build_elements("`*a*` b")

    assert apply_rule(elements, CODE_RULE) == 1
    assert [element.match_complete for element in elements] == [True] * 5 + [False, False]

    assert apply_rule(elements, ITALIC_RULE) == 0
    assert elements[2].styles == [CharacterStyle.CODE]


def test_balanced_rule_does_not_fire_on_odd_count():
    elements = build_elements("`a` `b")

    assert apply_rule(elements, CODE_RULE) == 0


def test_scan_elements_empty_text():
    assert scan_elements("", [ITALIC_RULE]) == []


def test_pair_tags_pairs_innermost_opener_first():
    elements = build_elements("[ [a]")

    assert _pair_tags(elements, ("[",), "]", set()) == {0: None, 2: 4}


def test_pair_tags_without_nesting_takes_next_close():
    elements = build_elements("|a|b|")

    assert _pair_tags(elements, ("|",), "|", set()) == {0: 2, 2: 4, 4: None}


def test_pair_tags_skips_escaped_close():
    elements = build_elements("[a\\]b]")

    assert _pair_tags(elements, ("[",), "]", {3}) == {0: 5}


def test_enclosed_rule_matches_after_unclosed_opener():
    elements = build_elements("[ [a](x)")

    assert apply_rule(elements, LINK_RULE) == 1
    styled = "".join(element.character for element in elements if element.styles)
    assert styled == "a"
    assert elements[0].category is ElementType.LITERAL
