from __future__ import annotations

import logging
import textwrap

import pytest

from markdown_styler.config import StylerConfig
from markdown_styler.lines import (
    classify_lines,
    extract_front_matter,
    merge_list_continuations,
    resolve_indentation,
)
from markdown_styler.models import BlockStyle, ChangeApplication, ClassifiedLine
from markdown_styler.rules import BlockRule, FrontMatterRule, RuleSet, build_rule_set

DEFAULT_RULES = build_rule_set()
FRONT_MATTER_RULES = (FrontMatterRule("---", "---", ":"),)


def _classify(content: str, rule_set: RuleSet = DEFAULT_RULES) -> list[ClassifiedLine]:
    lines, _ = classify_lines(textwrap.dedent(content).strip("\n"), rule_set)
    return lines


def _summary(lines: list[ClassifiedLine]) -> list[tuple[BlockStyle, str]]:
    return [(line.style, line.text) for line in lines]


def test_empty_input_yields_no_lines():
    assert classify_lines("", DEFAULT_RULES) == ([], {})


@pytest.mark.parametrize(
    ("line", "expected_style", "expected_text"),
    [
        ("# Title", BlockStyle.H1, "Title"),
        ("## Title ##", BlockStyle.H2, "Title"),
        ("### Three", BlockStyle.H3, "Three"),
        ("###### Six", BlockStyle.H6, "Six"),
        ("# C#", BlockStyle.H1, "C#"),
        ("> quoted", BlockStyle.BLOCKQUOTE, "quoted"),
        ("    print(1)", BlockStyle.CODE_BLOCK, "print(1)"),
        ("\tprint(1)", BlockStyle.CODE_BLOCK, "print(1)"),
        ("- item", BlockStyle.UNORDERED_LIST, "item"),
        ("* item", BlockStyle.UNORDERED_LIST, "item"),
        ("+ item", BlockStyle.UNORDERED_LIST, "item"),
        ("12. item", BlockStyle.ORDERED_LIST, "item"),
        ("#hashtag", BlockStyle.BODY, "#hashtag"),
        ("  plain text  ", BlockStyle.BODY, "plain text"),
    ],
)
def test_single_line_classification(line: str, expected_style: BlockStyle, expected_text: str):
    (classified,), _ = classify_lines(line, DEFAULT_RULES)

    assert classified.style is expected_style
    assert classified.text == expected_text


def test_raw_prefix_keeps_stripped_token():
    heading, item = _classify(
        """
        ## Section
          2. second
        """
    )

    assert heading.raw_prefix == "## "
    assert item.raw_prefix == "  2. "
    assert item.leading_space_width == 2
    assert heading.leading_space_width == 0


def test_first_matching_rule_wins():
    (line,), _ = classify_lines("    - nested item", DEFAULT_RULES)

    assert line.style is BlockStyle.UNORDERED_LIST
    assert line.leading_space_width == 4


def test_setext_underlines_restyle_previous_line():
    lines = _classify(
        """
        Title
        =====
        Subtitle
        ---
        """
    )

    assert _summary(lines) == [(BlockStyle.H1, "Title"), (BlockStyle.H2, "Subtitle")]


def test_setext_underline_without_previous_text_is_body():
    lines = _classify("text\n\n===")

    assert _summary(lines) == [
        (BlockStyle.BODY, "text"),
        (BlockStyle.BODY, ""),
        (BlockStyle.BODY, "==="),
    ]


def test_lone_underline_is_body():
    assert _summary(_classify("---")) == [(BlockStyle.BODY, "---")]


def test_empty_lines_kept_as_body_by_default():
    lines = _classify("a\n\nb")

    assert _summary(lines) == [
        (BlockStyle.BODY, "a"),
        (BlockStyle.BODY, ""),
        (BlockStyle.BODY, "b"),
    ]


def test_empty_lines_dropped_without_style():
    rule_set = build_rule_set(StylerConfig(keep_empty_lines=False))

    assert _summary(_classify("a\n\n   \nb", rule_set)) == [
        (BlockStyle.BODY, "a"),
        (BlockStyle.BODY, "b"),
    ]


def test_until_close_rule_hides_block():
    rule_set = RuleSet(
        block_rules=(
            BlockRule(
                token="%%", style=BlockStyle.BODY, applies_to=ChangeApplication.UNTIL_CLOSE
            ),
        )
    )

    lines = _classify(
        """
        before
        %% comment
        hidden

        also hidden
        %%
        after
        """,
        rule_set,
    )

    assert _summary(lines) == [(BlockStyle.BODY, "before"), (BlockStyle.BODY, "after")]


def test_list_continuation_is_merged():
    lines = _classify(
        """
        - item
        wrapped text

        Next paragraph
        """
    )

    assert _summary(lines) == [
        (BlockStyle.UNORDERED_LIST, "item\nwrapped text"),
        (BlockStyle.BODY, ""),
        (BlockStyle.BODY, "Next paragraph"),
    ]


def test_list_continuation_merge_can_be_disabled():
    rule_set = build_rule_set(StylerConfig(merge_list_continuations=False))

    lines = _classify("- item\nwrapped", rule_set)

    assert _summary(lines) == [
        (BlockStyle.UNORDERED_LIST, "item"),
        (BlockStyle.BODY, "wrapped"),
    ]


def test_merge_list_continuations_ignores_non_body_lines():
    lines = [
        ClassifiedLine("item", style=BlockStyle.ORDERED_LIST),
        ClassifiedLine("quote", style=BlockStyle.BLOCKQUOTE),
    ]

    assert merge_list_continuations(lines) == lines


def test_nested_list_depths():
    lines = _classify(
        """
        - a
          - b
            - c
          - d
        """
    )

    assert [line.indent_depth for line in lines] == [0, 1, 2, 1]
    assert [line.text for line in lines] == ["a", "b", "c", "d"]


def test_tab_indent_nests_one_level():
    lines = _classify("- a\n\t- b")

    assert [line.indent_depth for line in lines] == [0, 1]


def test_indent_jump_without_intermediate_level_falls_back_to_zero():
    lines = _classify("- a\n      - b")

    assert [line.indent_depth for line in lines] == [0, 0]


def test_resolve_indentation_stops_at_non_list_line():
    lines = [
        ClassifiedLine("a", style=BlockStyle.UNORDERED_LIST, leading_space_width=0),
        ClassifiedLine("", style=BlockStyle.BODY),
        ClassifiedLine("b", style=BlockStyle.UNORDERED_LIST, leading_space_width=2),
    ]

    resolve_indentation(lines)

    assert [line.indent_depth for line in lines] == [0, 0, 0]


def test_front_matter_is_extracted():
    lines, front_matter = classify_lines("---\na: 1\nb: 2\n---\nBody", DEFAULT_RULES)

    assert front_matter == {"a": "1", "b": "2"}
    assert _summary(lines) == [(BlockStyle.BODY, "Body")]


def test_front_matter_disabled_keeps_lines():
    rule_set = build_rule_set(StylerConfig(enable_front_matter=False))

    lines, front_matter = classify_lines("---\na: 1\n---\nBody", rule_set)

    assert front_matter == {}
    assert [line.text for line in lines] == ["---", "a: 1", "Body"]
    assert lines[1].style is BlockStyle.H2


def test_extract_front_matter_splits_on_first_separator():
    found: dict[str, str] = {}

    remaining = extract_front_matter(
        ["---", " url : http://example.com ", "title: One", "title: Two", "no separator", "---"],
        FRONT_MATTER_RULES,
        found,
    )

    assert remaining == []
    assert found == {"url": "http://example.com", "title": "Two"}


def test_extract_front_matter_drops_leading_blank_lines():
    remaining = extract_front_matter(
        ["---", "a: 1", "---", "", "  ", "Body", ""], FRONT_MATTER_RULES, {}
    )

    assert remaining == ["Body", ""]


def test_extract_front_matter_requires_open_token_on_first_line():
    lines = ["Intro", "---", "a: 1", "---"]

    assert extract_front_matter(lines, FRONT_MATTER_RULES, {}) == lines


def test_extract_front_matter_needs_more_than_one_line():
    found: dict[str, str] = {}

    assert extract_front_matter(["---"], FRONT_MATTER_RULES, found) == ["---"]
    assert found == {}


def test_unterminated_front_matter_consumes_document(caplog):
    found: dict[str, str] = {}

    with caplog.at_level(logging.WARNING, logger="markdown_styler"):
        remaining = extract_front_matter(["---", "a: 1", "Body"], FRONT_MATTER_RULES, found)

    assert remaining == []
    assert found == {"a": "1"}
    assert "never closed" in caplog.text
