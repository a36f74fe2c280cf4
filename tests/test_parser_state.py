from markdown_styler.lines import (
    _extract,
    _try_close_block,
    _try_restyle_previous,
    leading_space_width,
)
from markdown_styler.models import (
    BlockStyle,
    ClassifiedLine,
    MatchStrategy,
    ParserContext,
    RemovalSide,
)
from markdown_styler.rules import BlockRule


def test_try_close_block_ignored_without_active_block():
    ctx = ParserContext()

    assert _try_close_block(ctx, "anything") is False
    assert ctx.close_token is None


def test_try_close_block_swallows_lines_until_token():
    ctx = ParserContext(close_token="%%")

    assert _try_close_block(ctx, "hidden") is True
    assert ctx.close_token == "%%"

    assert _try_close_block(ctx, "  %%  ") is True
    assert ctx.close_token is None


def test_try_restyle_previous_requires_previous_text():
    assert _try_restyle_previous(ParserContext(), BlockStyle.H1) is False

    ctx = ParserContext(lines=[ClassifiedLine("")])
    assert _try_restyle_previous(ctx, BlockStyle.H1) is False
    assert ctx.lines[0].style is BlockStyle.BODY


def test_try_restyle_previous_rewrites_last_line():
    ctx = ParserContext(lines=[ClassifiedLine("First"), ClassifiedLine("Second")])

    assert _try_restyle_previous(ctx, BlockStyle.H2) is True
    assert [line.style for line in ctx.lines] == [BlockStyle.BODY, BlockStyle.H2]


def test_extract_leading_removes_prefix():
    rule = BlockRule(token=">", style=BlockStyle.BLOCKQUOTE)

    assert _extract(rule, "> quote") == (">", " quote")
    assert _extract(rule, "quote >") is None


def test_extract_trailing_needs_whitespace_before_token():
    rule = BlockRule(token=" ::", style=BlockStyle.H1, removal_side=RemovalSide.TRAILING)

    assert _extract(rule, "Title ::") == ("", "Title ")
    assert _extract(rule, "Title::") is None
    assert _extract(rule, "::") == ("", "")


def test_extract_both_keeps_unclosed_heading_text():
    rule = BlockRule(token="# ", style=BlockStyle.H1, removal_side=RemovalSide.BOTH)

    assert _extract(rule, "# Title #") == ("# ", "Title ")
    assert _extract(rule, "# C#") == ("# ", "C#")


def test_extract_none_never_matches():
    rule = BlockRule(token="=", style=BlockStyle.H1, removal_side=RemovalSide.NONE)

    assert _extract(rule, "===") is None


def test_extract_regex_strategy():
    rule = BlockRule(
        token=r"\[\d+\]\s*", style=BlockStyle.ORDERED_LIST, strategy=MatchStrategy.REGEX
    )

    assert _extract(rule, "[12] note") == ("[12] ", "note")
    assert _extract(rule, "note [12]") is None


def test_leading_space_width_counts_tabs_as_three():
    assert leading_space_width("") == 0
    assert leading_space_width("  - a") == 2
    assert leading_space_width("\t- a") == 3
    assert leading_space_width(" \t - a") == 5
