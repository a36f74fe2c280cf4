"""Rule-driven inline scanning over a sequence of character elements."""

from __future__ import annotations

from bisect import bisect_right
from collections import defaultdict
from collections.abc import Iterable, Mapping

from .logger import get_logger
from .models import CharacterStyle, Element, ElementType, TagRole
from .rules import CharacterRule

logger = get_logger(__name__)

STYLABLE_CATEGORIES = (ElementType.LITERAL, ElementType.SPACE, ElementType.NEWLINE)


def build_elements(text: str) -> list[Element]:
    """Turn `text` into one element per character.

    Args:
        text: Line text to scan.

    Returns:
        list[Element]: Elements categorized as newline, space, or literal.

    Examples:
        [element.category for element in build_elements("a b")]
        # [LITERAL, SPACE, LITERAL]
    """
    elements = []
    for character in text:
        if character in "\r\n":
            category = ElementType.NEWLINE
        elif character.isspace():
            category = ElementType.SPACE
        else:
            category = ElementType.LITERAL
        elements.append(Element(character=character, category=category))
    return elements


def match_at(elements: list[Element], index: int, text: str) -> bool:
    """Check whether unclaimed literal elements starting at `index` spell `text`.

    Args:
        elements: Scanned elements.
        index: Position to test.
        text: Tag text to look for.

    Returns:
        bool: True when every character of `text` lines up with a literal
            element that no cancelling rule has claimed.

    Examples:
        match_at(build_elements("**a"), 0, "**")  # True
    """
    if index < 0 or index + len(text) > len(elements):
        return False

    for offset, character in enumerate(text):
        element = elements[index + offset]
        if (
            element.category is not ElementType.LITERAL
            or element.match_complete
            or element.character != character
        ):
            return False
    return True


def count_run(elements: list[Element], index: int, characters: Iterable[str]) -> int:
    """Count the escape characters directly before `index`.

    Elements already elided as escapes are still counted, so escape parity
    stays stable across rules.

    Args:
        elements: Scanned elements.
        index: Position of the character that may be escaped.
        characters: Escape characters of the active rule.

    Returns:
        int: Length of the run of escape elements ending at ``index - 1``.

    Examples:
        count_run(build_elements("\\\\\\\\*"), 2, "\\\\")  # 2
    """
    escape_characters = frozenset(characters)
    count = 0
    position = index - 1
    while position >= 0:
        element = elements[position]
        if (
            element.character not in escape_characters
            or element.match_complete
            or element.category not in (ElementType.LITERAL, ElementType.ESCAPE)
        ):
            break
        count += 1
        position -= 1
    return count


def _resolve_escapes(elements: list[Element], rule: CharacterRule) -> set[int]:
    """Elide escape characters in front of the rule's tags.

    Within a run of N escapes every other one is elided, leaving N // 2
    visible. An odd run escapes the tag.

    Returns:
        set[int]: Start positions of tags that are escaped for this rule.
    """
    escaped: set[int] = set()
    if not rule.escape_characters:
        return escaped

    tag_texts = rule.tag_texts()
    for index in range(len(elements)):
        if not any(match_at(elements, index, text) for text in tag_texts):
            continue

        run_length = count_run(elements, index, rule.escape_characters)
        if not run_length:
            continue

        run_start = index - run_length
        for offset in range(0, run_length, 2):
            elements[run_start + offset].category = ElementType.ESCAPE

        if run_length % 2 == 1:
            escaped.add(index)
    return escaped


def _tag_at(
    elements: list[Element], index: int, texts: Iterable[str], escaped: set[int]
) -> str | None:
    if index in escaped:
        return None
    for text in texts:
        if match_at(elements, index, text):
            return text
    return None


def _find_close(
    elements: list[Element],
    start: int,
    open_texts: tuple[str, ...],
    close_text: str,
    escaped: set[int],
) -> int | None:
    """Find the closing tag for an opener, counting nested openers.

    Returns:
        int | None: Start position of the closing tag, or None.
    """
    # Identical open and close texts cannot nest
    nests = close_text not in open_texts
    depth = 0
    index = start
    while index < len(elements):
        if index in escaped:
            index += 1
            continue

        if match_at(elements, index, close_text):
            if depth == 0:
                return index
            depth -= 1
            index += len(close_text)
            continue

        opener = _tag_at(elements, index, open_texts, escaped) if nests else None
        if opener is not None:
            depth += 1
            index += len(opener)
            continue

        index += 1
    return None


def _pair_tags(
    elements: list[Element],
    open_texts: tuple[str, ...],
    close_text: str,
    escaped: set[int],
) -> dict[int, int | None]:
    """Pair openers with their closing tags in a single pass.

    Every opener the pass reaches maps to the position `_find_close` would
    return for it, or to None when it is never closed. Openers missing from
    the result (overlapped by a tag the pass stepped over) need `_find_close`.

    Returns:
        dict[int, int | None]: Opener start to closing tag start.
    """
    pairs: dict[int, int | None] = {}

    if close_text in open_texts:
        # No nesting: each opener takes the first unescaped close after it
        next_close: list[int | None] = [None] * (len(elements) + 1)
        for index in range(len(elements) - 1, -1, -1):
            if index not in escaped and match_at(elements, index, close_text):
                next_close[index] = index
            else:
                next_close[index] = next_close[index + 1]
        for index in range(len(elements)):
            opener = _tag_at(elements, index, open_texts, escaped)
            if opener is not None:
                pairs[index] = next_close[min(index + len(opener), len(elements))]
        return pairs

    pending: list[int] = []
    index = 0
    while index < len(elements):
        if index in escaped:
            index += 1
            continue

        if match_at(elements, index, close_text):
            if pending:
                pairs[pending.pop()] = index
            index += len(close_text)
            continue

        opener = _tag_at(elements, index, open_texts, escaped)
        if opener is not None:
            pairs[index] = None
            pending.append(index)
            index += len(opener)
            continue

        index += 1
    return pairs


def _closing_index(
    elements: list[Element],
    pairs: dict[int, int | None],
    index: int,
    opener: str,
    open_texts: tuple[str, ...],
    close_text: str,
    escaped: set[int],
) -> int | None:
    if index in pairs:
        return pairs[index]
    return _find_close(elements, index + len(opener), open_texts, close_text, escaped)


def _boundary_limits(elements: list[Element]) -> list[int]:
    """For each position, the first later position with a lower boundary count."""
    limits = [len(elements)] * len(elements)
    pending: list[int] = []
    for index, element in enumerate(elements):
        while pending and elements[pending[-1]].boundary_count > element.boundary_count:
            limits[pending.pop()] = index
        pending.append(index)
    return limits


def _within_boundary(
    elements: list[Element], start: int, end: int, limits: list[int] | None = None
) -> bool:
    """Check that ``elements[start:end]`` does not cross a boundary span.

    `limits` from `_boundary_limits` turns the check into a lookup; it stays
    valid for positions at or after the last change to any boundary count.
    """
    level = elements[start].boundary_count
    if elements[end - 1].boundary_count != level:
        return False
    if limits is not None:
        return limits[start] >= end
    return all(element.boundary_count >= level for element in elements[start:end])


def _mark(elements: list[Element], start: int, end: int, category: ElementType) -> None:
    for element in elements[start:end]:
        element.category = category


def _plain_text(elements: Iterable[Element]) -> str:
    return "".join(
        element.character for element in elements if element.category in STYLABLE_CATEGORIES
    )


def _apply_match(
    elements: list[Element],
    rule: CharacterRule,
    span: tuple[int, int],
    content: tuple[int, int],
    styles: tuple[CharacterStyle, ...],
    metadata: str | None = None,
) -> None:
    span_start, span_end = span
    content_start, content_end = content

    for element in elements[content_start:content_end]:
        if element.match_complete or element.category not in STYLABLE_CATEGORIES:
            continue
        element.styles.extend(styles)
        if metadata is not None:
            element.metadata.append(metadata)
        if rule.defines_boundary:
            element.boundary_count += 1

    if rule.cancels_remaining_rules:
        for element in elements[span_start:span_end]:
            element.match_complete = True


def _match_enclosed(
    elements: list[Element],
    rule: CharacterRule,
    escaped: set[int],
    lookup: Mapping[str, str],
) -> int:
    """Match open/close (and optional metadata) tag pairs for `rule`.

    Returns:
        int: Number of spans matched.
    """
    open_texts = rule.open_texts()
    close_text = rule.tag(TagRole.CLOSE).text
    metadata_open = rule.tag(TagRole.METADATA_OPEN)
    metadata_close = rule.tag(TagRole.METADATA_CLOSE)
    styles = rule.styles_for(1)

    # Matches only change elements before the scan position, so tables built
    # up front stay valid for every later candidate
    pairs = _pair_tags(elements, open_texts, close_text, escaped)
    metadata_pairs: dict[int, int | None] = {}
    if metadata_open is not None and metadata_close is not None:
        metadata_pairs = _pair_tags(
            elements, (metadata_open.text,), metadata_close.text, escaped
        )
    limits = _boundary_limits(elements)

    matches = 0
    index = 0
    while index < len(elements):
        opener = _tag_at(elements, index, open_texts, escaped)
        if opener is None:
            index += 1
            continue

        content_start = index + len(opener)
        close_index = _closing_index(
            elements, pairs, index, opener, open_texts, close_text, escaped
        )
        if close_index is None:
            index += 1
            continue
        span_end = close_index + len(close_text)

        metadata_range = None
        if metadata_open is not None and metadata_close is not None:
            # Metadata must follow the closing tag directly
            if _tag_at(elements, span_end, (metadata_open.text,), escaped) is None:
                index += 1
                continue
            metadata_end = _closing_index(
                elements,
                metadata_pairs,
                span_end,
                metadata_open.text,
                (metadata_open.text,),
                metadata_close.text,
                escaped,
            )
            if metadata_end is None:
                index += 1
                continue
            metadata_range = (span_end + len(metadata_open.text), metadata_end)
            span_end = metadata_end + len(metadata_close.text)

        if not _within_boundary(elements, index, span_end, limits):
            index += 1
            continue

        metadata = None
        if metadata_range is not None:
            metadata = _plain_text(elements[metadata_range[0] : metadata_range[1]])
            if rule.uses_metadata_lookup:
                key = metadata or _plain_text(elements[content_start:close_index])
                metadata = lookup.get(key, "")

        _apply_match(
            elements,
            rule,
            span=(index, span_end),
            content=(content_start, close_index),
            styles=styles,
            metadata=metadata,
        )
        _mark(elements, index, content_start, ElementType.TAG)
        _mark(elements, close_index, close_index + len(close_text), ElementType.TAG)
        if metadata_range is not None:
            metadata_start, metadata_end = metadata_range
            _mark(elements, close_index + len(close_text), metadata_start, ElementType.TAG)
            _mark(elements, metadata_start, metadata_end, ElementType.METADATA)
            _mark(elements, metadata_end, span_end, ElementType.TAG)

        matches += 1
        index = span_end
    return matches


def _is_tag_character(
    elements: list[Element], index: int, character: str, escaped: set[int]
) -> bool:
    return index not in escaped and match_at(elements, index, character)


def _find_runs(
    elements: list[Element], character: str, escaped: set[int]
) -> list[tuple[int, int]]:
    runs = []
    index = 0
    while index < len(elements):
        if not _is_tag_character(elements, index, character, escaped):
            index += 1
            continue
        start = index
        while index < len(elements) and _is_tag_character(elements, index, character, escaped):
            index += 1
        runs.append((start, index - start))
    return runs


def _is_open_edge(elements: list[Element], index: int) -> bool:
    if index < 0 or index >= len(elements):
        return True
    character = elements[index].character
    return character.isspace() or not character.isalnum()


def _run_available(elements: list[Element], run: tuple[int, int]) -> bool:
    start, length = run
    return all(
        element.category is ElementType.LITERAL and not element.match_complete
        for element in elements[start : start + length]
    )


def _is_balanced(elements: list[Element], rule: CharacterRule, escaped: set[int]) -> bool:
    character = rule.primary_tag.text
    count = sum(
        1
        for index in range(len(elements))
        if _is_tag_character(elements, index, character, escaped)
    )
    return count % (2 * rule.min_repeat) == 0


def _match_repeating(elements: list[Element], rule: CharacterRule, escaped: set[int]) -> int:
    """Pair runs of a repeated tag character (``*``, ``~``, backtick) of equal length.

    Returns:
        int: Number of spans matched.
    """
    if rule.requires_balanced_tag_count and not _is_balanced(elements, rule, escaped):
        return 0

    runs = _find_runs(elements, rule.primary_tag.text, escaped)

    # Closers grouped by run length, in document order
    closers: dict[int, list[tuple[int, int]]] = defaultdict(list)
    for run in runs:
        run_start, run_length = run
        if rule.requires_surrounding_space and not _is_open_edge(
            elements, run_start + run_length
        ):
            continue
        closers[run_length].append(run)

    matches = 0
    for opener in runs:
        start, length = opener
        if not rule.min_repeat <= length <= rule.max_repeat or not rule.styles_for(length):
            continue
        if not _run_available(elements, opener):
            continue
        if rule.requires_surrounding_space and not _is_open_edge(elements, start - 1):
            continue

        candidates = closers[length]
        for closer in candidates[bisect_right(candidates, opener) :]:
            close_start, close_length = closer
            if not _run_available(elements, closer):
                continue
            close_end = close_start + close_length
            if not _within_boundary(elements, start, close_end):
                continue

            _apply_match(
                elements,
                rule,
                span=(start, close_end),
                content=(start + length, close_start),
                styles=rule.styles_for(length),
            )
            _mark(elements, start, start + length, ElementType.TAG)
            _mark(elements, close_start, close_end, ElementType.TAG)
            matches += 1
            break
    return matches


def apply_rule(
    elements: list[Element], rule: CharacterRule, lookup: Mapping[str, str] | None = None
) -> int:
    """Apply one character rule to `elements` in place.

    Escapes in front of the rule's tags are resolved first, whether or not the
    rule finds a span.

    Args:
        elements: Scanned elements, updated in place.
        rule: Rule to apply.
        lookup: Reference table for rules that resolve metadata by key.

    Returns:
        int: Number of spans the rule matched.

    Examples:
        elements = build_elements("a *b* c")
        apply_rule(elements, italic_rule)  # 1
    """
    escaped = _resolve_escapes(elements, rule)
    if rule.is_repeating:
        return _match_repeating(elements, rule, escaped)
    return _match_enclosed(elements, rule, escaped, lookup or {})


def scan_elements(
    text: str, rules: Iterable[CharacterRule], lookup: Mapping[str, str] | None = None
) -> list[Element]:
    """Scan `text` with every rule in order.

    Earlier rules claim spans first; a cancelling rule hides its span from the
    rules after it, and a boundary rule keeps later spans from straddling it.

    Args:
        text: Line text to scan.
        rules: Character rules in priority order.
        lookup: Reference table for metadata lookups.

    Returns:
        list[Element]: Annotated elements ready for coalescing into tokens.

    Examples:
        scan_elements("[text](http://x)", DEFAULT_RULE_SET.character_rules)
    """
    elements = build_elements(text)
    if not elements:
        return elements

    for rule in rules:
        matches = apply_rule(elements, rule, lookup)
        if matches:
            logger.debug("%s matched %d span(s) in %r", rule, matches, text)
    return elements
