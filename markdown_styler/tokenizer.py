"""Coalesce scanned elements into styled tokens."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .constants import (
    BATON_PREFIX_PATTERN,
    BATON_TEXT_PREFIX,
    MENTION_ALL_TEXT_PREFIX,
    MENTION_GROUPS,
    MENTION_ID_PATTERN,
    MENTION_PREFIX_PATTERN,
    MENTION_TEXT_PREFIX,
)
from .models import CharacterStyle, Element, ElementType, Token
from .rules import CharacterRule
from .scanner import scan_elements

MENTION_STYLES = (CharacterStyle.MENTION, CharacterStyle.MENTION_ALL)


def coalesce(elements: Iterable[Element]) -> list[Token]:
    """Merge consecutive elements with identical styles into tokens.

    Escape elements are dropped without ending the current token; tag and
    metadata elements end it and are dropped as well.

    Args:
        elements: Annotated elements from `scan_elements`.

    Returns:
        list[Token]: Tokens in order. Never empty: text without visible
            characters yields a single empty token.

    Examples:
        coalesce(scan_elements("a *b* c", rules))
        # [Token("a "), Token("b", (ITALIC,)), Token(" c")]
    """
    tokens: list[Token] = []
    buffer: list[str] = []
    styles: tuple[CharacterStyle, ...] = ()
    metadata: tuple[str, ...] = ()

    def flush() -> None:
        if buffer:
            tokens.append(Token(text="".join(buffer), styles=styles, metadata=metadata))
            buffer.clear()

    for element in elements:
        if element.category is ElementType.ESCAPE:
            continue
        if element.category in (ElementType.TAG, ElementType.METADATA):
            flush()
            continue

        element_styles = tuple(element.styles)
        if buffer and element_styles != styles:
            flush()
        buffer.append(element.character)
        styles = element_styles
        metadata = tuple(element.metadata)

    flush()
    return tokens or [Token(text="")]


def _replace_style(
    styles: tuple[CharacterStyle, ...], replacement: CharacterStyle
) -> tuple[CharacterStyle, ...]:
    return tuple(replacement if style in MENTION_STYLES else style for style in styles)


def rewrite_mention(token: Token) -> Token:
    """Render the raw body of a mention span as display text.

    ``123}Name`` becomes ``@Name`` (mention), ``1:2}Name`` becomes ``@@Name``
    (baton), and ``members``/``project`` become ``@!members``/``@!project``
    (group mention). A leading numeric id is kept as metadata.

    Args:
        token: Token carrying a mention style.

    Returns:
        Token: Rewritten token; tokens without a mention style are returned
            unchanged.

    Examples:
        rewrite_mention(Token("42}Ana", (CharacterStyle.MENTION,)))
        # Token("@Ana", (MENTION,), ("42",))
    """
    if not any(style in MENTION_STYLES for style in token.styles):
        return token

    text = token.text
    metadata = token.metadata
    id_match = MENTION_ID_PATTERN.match(text)
    if id_match:
        metadata = (*metadata, id_match.group(1))

    baton_match = BATON_PREFIX_PATTERN.match(text)
    if baton_match:
        return Token(
            text=f"{BATON_TEXT_PREFIX}{text[baton_match.end() :]}",
            styles=_replace_style(token.styles, CharacterStyle.BATON),
            metadata=metadata,
        )

    mention_match = MENTION_PREFIX_PATTERN.match(text)
    if mention_match:
        return Token(
            text=f"{MENTION_TEXT_PREFIX}{text[mention_match.end() :]}",
            styles=_replace_style(token.styles, CharacterStyle.MENTION),
            metadata=metadata,
        )

    if text in MENTION_GROUPS:
        return Token(
            text=f"{MENTION_ALL_TEXT_PREFIX}{text}",
            styles=_replace_style(token.styles, CharacterStyle.MENTION_ALL),
            metadata=(*metadata, text),
        )

    return token


def tokenize(
    text: str, rules: Iterable[CharacterRule], lookup: Mapping[str, str] | None = None
) -> list[Token]:
    """Split `text` into styled tokens.

    Args:
        text: Line text without its block token.
        rules: Character rules in priority order.
        lookup: Reference table for reference-style links and images.

    Returns:
        list[Token]: Styled tokens; at least one, possibly empty.

    Examples:
        tokenize("[text](http://x)", DEFAULT_RULE_SET.character_rules)
        # [Token("text", (LINK,), ("http://x",))]
    """
    tokens = coalesce(scan_elements(text, rules, lookup))
    return [rewrite_mention(token) for token in tokens]
