"""Line classification: front matter, block styles, list continuation and nesting."""

from __future__ import annotations

import re

from .constants import NESTED_INDENT_DELTAS, SAME_INDENT_DELTAS, SPACE_WIDTH, TAB_WIDTH
from .logger import get_logger
from .models import (
    BlockStyle,
    ChangeApplication,
    ClassifiedLine,
    MatchStrategy,
    ParserContext,
    RemovalSide,
)
from .rules import BlockRule, FrontMatterRule, RuleSet

logger = get_logger(__name__)


def leading_space_width(text: str) -> int:
    """Measure leading whitespace for list indent comparison.

    A space counts as one column and a tab as three, so both space- and
    tab-indented nesting land in the same delta ranges.

    Args:
        text: Text whose leading whitespace should be measured.

    Returns:
        int: Width of the leading whitespace.

    Examples:
        leading_space_width("  - item")  # 2
        leading_space_width("\\t- item")  # 3
    """
    width = 0
    for character in text:
        if character == " ":
            width += SPACE_WIDTH
            continue
        if character == "\t":
            width += TAB_WIDTH
            continue
        break
    return width


def extract_front_matter(
    lines: list[str], rules: tuple[FrontMatterRule, ...], front_matter: dict[str, str]
) -> list[str]:
    """Strip a leading front matter block and collect its key/value pairs.

    The block starts when the first line (stripped) equals a rule's open
    token and at least one more line follows. Lines are consumed up to the
    close token; each line holding the key separator records
    ``key -> value`` (both stripped, last write wins). Blank lines after the
    block are dropped. An unterminated block consumes the rest of the document.

    Args:
        lines: Raw document lines.
        rules: Candidate front matter rules; the first whose open token
            matches is used.
        front_matter: Mapping updated in place with the collected pairs.

    Returns:
        list[str]: Lines remaining after the front matter block.

    Examples:
        extract_front_matter(["---", "a: 1", "---", "Body"], rules, found)  # ["Body"]
    """
    if not lines:
        return lines

    first_line = lines[0].strip()
    rule = next((candidate for candidate in rules if candidate.open_token == first_line), None)
    if rule is None or len(lines) < 2:
        return lines

    index = 1
    closed = False
    while index < len(lines):
        line = lines[index]
        index += 1
        if line.strip() == rule.close_token:
            closed = True
            break
        key, separator, value = line.partition(rule.key_separator)
        if not separator:
            continue
        front_matter[key.strip()] = value.strip()

    if not closed:
        logger.warning(
            "Front matter opened with %r is never closed; the rest of the document was consumed",
            rule.open_token,
        )

    remaining = lines[index:]
    while remaining and not remaining[0].strip():
        remaining = remaining[1:]
    return remaining


def _strip_leading(rule: BlockRule, text: str) -> tuple[str, str] | None:
    if rule.strategy is MatchStrategy.FINDER:
        match = rule.finder(text) if rule.finder is not None else None
        if match is None or match.start() != 0:
            return None
        return text[: match.end()], text[match.end() :]

    if rule.strategy is MatchStrategy.REGEX:
        for token in rule.tokens:
            match = re.match(token, text)
            if match:
                return match.group(0), text[match.end() :]
        return None

    for token in rule.tokens:
        if text.startswith(token):
            return token, text[len(token) :]
    return None


def _strip_trailing(rule: BlockRule, text: str) -> str | None:
    """Remove a trailing run of the token's characters preceded by whitespace.

    ``"Title ##"`` loses its closing run, ``"C#"`` keeps its ``#``.
    """
    token_characters = rule.token.strip()
    if not token_characters:
        return None

    stripped = text.rstrip(token_characters)
    if stripped == text:
        return None
    if stripped and not stripped[-1].isspace():
        return None
    return stripped


def _extract(rule: BlockRule, text: str) -> tuple[str, str] | None:
    """Apply a rule's removal side to `text`.

    Returns:
        tuple[str, str] | None: The removed prefix and the remaining text, or
            None when the rule does not apply.
    """
    if rule.removal_side is RemovalSide.NONE:
        return None

    if rule.removal_side is RemovalSide.TRAILING:
        remainder = _strip_trailing(rule, text)
        return None if remainder is None else ("", remainder)

    leading = _strip_leading(rule, text)
    if leading is None:
        return None

    prefix, remainder = leading
    if rule.removal_side is RemovalSide.BOTH:
        trailing = _strip_trailing(rule, remainder)
        if trailing is not None:
            remainder = trailing
    return prefix, remainder


def _try_close_block(ctx: ParserContext, line: str) -> bool:
    """Consume a line while an until-close block is active.

    Returns:
        bool: True when the line belongs to the block (including the closing
            line); the caller emits nothing for it.
    """
    if ctx.close_token is None:
        return False

    if line.strip() == ctx.close_token:
        ctx.close_token = None
    return True


def _try_restyle_previous(ctx: ParserContext, style: BlockStyle) -> bool:
    """Give the previous non-empty line `style`; used by setext-style underlines."""
    previous = ctx.previous_line
    if previous is None or not previous.text:
        return False

    previous.style = style
    return True


def _is_underline(rule: BlockRule, line: str) -> bool:
    text = line.strip() if rule.trim_whitespace else line
    return bool(text) and set(text) <= set(rule.token)


def _classify_line(ctx: ParserContext, line: str, rule_set: RuleSet) -> ClassifiedLine | None:
    """Classify one raw line, updating `ctx` for until-close and previous-line rules.

    Returns:
        ClassifiedLine | None: The line to emit, or None when the line only
            changed state (or is skipped).
    """
    if _try_close_block(ctx, line):
        return None

    if not line.strip():
        if rule_set.empty_line_style is None:
            return None
        return ClassifiedLine(text="", style=rule_set.empty_line_style)

    for rule in rule_set.block_rules:
        text = line.strip() if rule.trim_whitespace else line
        extracted = _extract(rule, text)
        if extracted is None:
            continue

        prefix, remainder = extracted
        # Only a change to the text counts as a match
        if remainder == text:
            continue

        if rule.applies_to is ChangeApplication.UNTIL_CLOSE:
            ctx.close_token = rule.token
            return None

        if rule.trim_whitespace:
            remainder = remainder.strip()

        if rule.applies_to is ChangeApplication.PREVIOUS:
            if _try_restyle_previous(ctx, rule.style):
                return None
            break

        return ClassifiedLine(
            text=remainder,
            style=rule.style,
            raw_prefix=prefix,
            leading_space_width=leading_space_width(prefix) if rule.style.is_list else 0,
        )

    for rule in rule_set.block_rules:
        if rule.applies_to is not ChangeApplication.PREVIOUS:
            continue
        if _is_underline(rule, line):
            if _try_restyle_previous(ctx, rule.style):
                return None
            break

    return ClassifiedLine(text=line.strip(), style=BlockStyle.BODY)


def merge_list_continuations(lines: list[ClassifiedLine]) -> list[ClassifiedLine]:
    """Join body lines that directly follow a list item into that item.

    A blank line ends the item, so later paragraphs stay separate.

    Args:
        lines: Classified lines in document order.

    Returns:
        list[ClassifiedLine]: Lines with continuations folded into their list
            item, newline-joined.

    Examples:
        merge_list_continuations([item("- a"), body("wrapped")])  # one item "a\\nwrapped"
    """
    merged: list[ClassifiedLine] = []
    for line in lines:
        previous = merged[-1] if merged else None
        if (
            previous is not None
            and previous.style.is_list
            and line.style is BlockStyle.BODY
            and line.text
        ):
            previous.text = f"{previous.text}\n{line.text}"
            continue
        merged.append(line)
    return merged


def _list_depth(lines: list[ClassifiedLine], index: int) -> int:
    current = lines[index]
    for candidate in range(index - 1, -1, -1):
        previous = lines[candidate]
        if not previous.style.is_list:
            break
        delta = current.leading_space_width - previous.leading_space_width
        if delta in NESTED_INDENT_DELTAS:
            return previous.indent_depth + 1
        if delta in SAME_INDENT_DELTAS:
            return previous.indent_depth
    # No qualifying ancestor, e.g. a jump of four or more columns
    return 0


def resolve_indentation(lines: list[ClassifiedLine]) -> None:
    """Assign `indent_depth` to every list line from its leading whitespace.

    Each list line is compared with the list lines before it, nearest first:
    a width delta of 2 or 3 nests one level deeper, 0 or 1 keeps the level,
    anything else keeps looking. A non-list line ends the search.

    Args:
        lines: Classified lines, updated in place.

    Examples:
        widths 0, 2, 4, 2 resolve to depths 0, 1, 2, 1
    """
    for index, line in enumerate(lines):
        if line.style.is_list:
            line.indent_depth = _list_depth(lines, index)


def classify_lines(content: str, rule_set: RuleSet) -> tuple[list[ClassifiedLine], dict[str, str]]:
    """Split `content` into classified lines.

    Args:
        content: Decoded document text.
        rule_set: Rule tables to classify with.

    Returns:
        tuple[list[ClassifiedLine], dict[str, str]]: Classified lines (without
            tokens) and the front matter mapping.

    Examples:
        classify_lines("# Title\\n- item", DEFAULT_RULE_SET)
    """
    ctx = ParserContext()
    raw_lines = extract_front_matter(
        content.splitlines(), rule_set.front_matter_rules, ctx.front_matter
    )

    for line in raw_lines:
        classified = _classify_line(ctx, line, rule_set)
        if classified is not None:
            ctx.lines.append(classified)

    if ctx.close_token is not None:
        logger.debug("Block closed by %r never ended; trailing lines dropped", ctx.close_token)

    lines = ctx.lines
    if rule_set.merge_list_continuations:
        lines = merge_list_continuations(lines)
    resolve_indentation(lines)

    logger.debug("Classified %d raw lines into %d lines", len(raw_lines), len(lines))
    return lines, ctx.front_matter
