"""Data models for markdown-styler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class BlockStyle(Enum):
    """Line-level styles assigned by the line classifier.

    Attributes:
        BODY: Plain paragraph text.
        H1: Level-one heading (``#`` prefix or ``===`` underline).
        H2: Level-two heading (``##`` prefix or ``---`` underline).
        H3: Level-three heading.
        H4: Level-four heading.
        H5: Level-five heading.
        H6: Level-six heading.
        BLOCKQUOTE: Line starting with ``>``.
        CODE_BLOCK: Indented code line; never tokenised.
        UNORDERED_LIST: ``-``, ``*`` or ``+`` list item.
        ORDERED_LIST: ``1.`` style list item.
    """

    BODY = auto()
    H1 = auto()
    H2 = auto()
    H3 = auto()
    H4 = auto()
    H5 = auto()
    H6 = auto()
    BLOCKQUOTE = auto()
    CODE_BLOCK = auto()
    UNORDERED_LIST = auto()
    ORDERED_LIST = auto()

    @property
    def is_list(self) -> bool:
        return self in (BlockStyle.UNORDERED_LIST, BlockStyle.ORDERED_LIST)

    @property
    def is_heading(self) -> bool:
        return self.name.startswith("H") and self.name[1:].isdigit()

    @property
    def should_tokenise(self) -> bool:
        return self is not BlockStyle.CODE_BLOCK


class CharacterStyle(Enum):
    """Inline styles applied by character rules."""

    BOLD = auto()
    ITALIC = auto()
    CODE = auto()
    LINK = auto()
    IMAGE = auto()
    STRIKETHROUGH = auto()
    KEYWORD = auto()
    MENTION = auto()
    MENTION_ALL = auto()
    BATON = auto()


class MatchStrategy(Enum):
    """How a block rule locates its token at the start of a line."""

    LITERAL = auto()
    REGEX = auto()
    FINDER = auto()


class RemovalSide(Enum):
    """Which side of the line a block rule strips its token from."""

    LEADING = auto()
    TRAILING = auto()
    BOTH = auto()
    NONE = auto()


class ChangeApplication(Enum):
    """Which line a matching block rule restyles.

    Attributes:
        CURRENT: The matching line itself.
        PREVIOUS: The line emitted before the matching line (setext headings).
        UNTIL_CLOSE: Every line up to the next occurrence of the token is dropped.
    """

    CURRENT = auto()
    PREVIOUS = auto()
    UNTIL_CLOSE = auto()


class TagRole(Enum):
    """Role of a tag within a character rule."""

    OPEN = auto()
    CLOSE = auto()
    METADATA_OPEN = auto()
    METADATA_CLOSE = auto()
    REPEATING = auto()


class ElementType(Enum):
    """Coarse category of a scanned character.

    Attributes:
        LITERAL: Visible text, eligible to form tags.
        ESCAPE: An escape character elided from the output.
        SPACE: Horizontal whitespace.
        NEWLINE: Line break inside a merged line.
        METADATA: Text captured as metadata (URL, reference key); elided.
        TAG: Markup consumed by a rule match; elided.
    """

    LITERAL = auto()
    ESCAPE = auto()
    SPACE = auto()
    NEWLINE = auto()
    METADATA = auto()
    TAG = auto()


@dataclass
class ParserContext:
    """Encapsulate classifier state while walking a document.

    A new context is created for every call; nothing is shared between
    documents.

    Attributes:
        close_token: Token that ends the active until-close block, if any.
        lines: Lines emitted so far.
        front_matter: Key/value pairs collected from the front matter block.
    """

    close_token: str | None = None
    lines: list[ClassifiedLine] = field(default_factory=list)
    front_matter: dict[str, str] = field(default_factory=dict)

    @property
    def previous_line(self) -> ClassifiedLine | None:
        return self.lines[-1] if self.lines else None


@dataclass(frozen=True)
class Token:
    """A maximal run of characters sharing one style sequence.

    Attributes:
        text: Visible text of the run.
        styles: Character styles, in the order rules applied them.
        metadata: Metadata strings (link targets, image sources, ids) aligned
            with the styles that produced them.
    """

    text: str
    styles: tuple[CharacterStyle, ...] = ()
    metadata: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "text": self.text,
            "styles": [style.name.lower() for style in self.styles],
            "metadata": list(self.metadata),
        }


@dataclass
class ClassifiedLine:
    """A logical line with its block style and, once tokenised, its tokens.

    Attributes:
        text: Line text with the block token removed.
        style: Block style of the line.
        raw_prefix: Exact text stripped by the matching rule.
        indent_depth: Nesting depth for list items (0 for top level).
        leading_space_width: Width of the leading whitespace of list items,
            counting a space as 1 and a tab as 3.
        tokens: Inline tokens produced for `text`.
    """

    text: str
    style: BlockStyle = BlockStyle.BODY
    raw_prefix: str = ""
    indent_depth: int = 0
    leading_space_width: int = 0
    tokens: list[Token] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "text": self.text,
            "style": self.style.name.lower(),
            "raw_prefix": self.raw_prefix,
            "indent_depth": self.indent_depth,
            "leading_space_width": self.leading_space_width,
            "tokens": [token.to_dict() for token in self.tokens],
        }


@dataclass
class Element:
    """One input character plus the annotations accumulated by rule scans.

    Attributes:
        character: The source character.
        category: Current element category.
        boundary_count: Number of boundary-defining matches enclosing the
            element.
        match_complete: Set once a cancelling rule claimed the element; later
            rules skip it.
        styles: Character styles applied so far.
        metadata: Metadata strings applied so far.
    """

    character: str
    category: ElementType = ElementType.LITERAL
    boundary_count: int = 0
    match_complete: bool = False
    styles: list[CharacterStyle] = field(default_factory=list)
    metadata: list[str] = field(default_factory=list)


@dataclass
class ParseResult:
    """Structured result of parsing a Markdown document.

    Attributes:
        lines: Classified lines, each carrying its tokens.
        front_matter: Key/value pairs from the front matter block.
        references: Reference definitions (``[key]: value``) used to resolve
            reference-style links and images.
    """

    lines: list[ClassifiedLine]
    front_matter: dict[str, str] = field(default_factory=dict)
    references: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "front_matter": dict(self.front_matter),
            "references": dict(self.references),
            "lines": [line.to_dict() for line in self.lines],
        }
