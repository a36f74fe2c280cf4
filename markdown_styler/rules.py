"""Declarative rule tables for the line classifier and the element scanner."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from .config import StylerConfig, normalize_config, validate_config
from .constants import (
    CODE_INDENT_TOKEN,
    DEFAULT_ESCAPE_CHARACTERS,
    FRONT_MATTER_DELIMITER,
    FRONT_MATTER_SEPARATOR,
    ORDERED_MARKER_PATTERN,
    UNORDERED_DASH_PATTERN,
    UNORDERED_PLUS_PATTERN,
    UNORDERED_STAR_PATTERN,
)
from .exceptions import MissingTagError, RuleError
from .models import (
    BlockStyle,
    ChangeApplication,
    CharacterStyle,
    MatchStrategy,
    RemovalSide,
    TagRole,
)

Finder = Callable[[str], re.Match[str] | None]


@dataclass(frozen=True)
class BlockRule:
    """Line-level rule: a token that, when found, gives a line its block style.

    Attributes:
        token: Literal prefix, regex (for `MatchStrategy.REGEX`), or a
            descriptive label for finder rules.
        style: Block style given to matching lines.
        alternate_tokens: Further literal prefixes tried after `token`.
        strategy: How the token is located.
        removal_side: Which side of the line the token is stripped from.
        trim_whitespace: Whether the line is stripped before matching and after
            token removal.
        applies_to: Which line receives the style.
        finder: Callable returning a match anchored at the start of the line;
            required for `MatchStrategy.FINDER`.
    """

    token: str
    style: BlockStyle
    alternate_tokens: tuple[str, ...] = ()
    strategy: MatchStrategy = MatchStrategy.LITERAL
    removal_side: RemovalSide = RemovalSide.LEADING
    trim_whitespace: bool = True
    applies_to: ChangeApplication = ChangeApplication.CURRENT
    finder: Finder | None = None

    def __post_init__(self):
        if self.strategy is MatchStrategy.FINDER:
            if self.finder is None:
                raise RuleError(f"Finder rule for {self.style.name} needs a `finder` callable")
        elif not self.token:
            raise RuleError(f"Block rule for {self.style.name} needs a non-empty token")
        object.__setattr__(self, "alternate_tokens", tuple(self.alternate_tokens))

    @property
    def tokens(self) -> tuple[str, ...]:
        return (self.token, *self.alternate_tokens)


@dataclass(frozen=True)
class FrontMatterRule:
    """Delimiters of a key/value preamble stripped before classification."""

    open_token: str
    close_token: str
    key_separator: str


@dataclass(frozen=True)
class CharacterRuleTag:
    """A tag string and the role it plays within a character rule."""

    text: str
    role: TagRole


@dataclass(frozen=True)
class CharacterRule:
    """Inline rule describing a styled span and how to recognize it.

    Attributes:
        primary_tag: Opening tag, or the repeated character for symmetric
            markers such as ``*``.
        auxiliary_tags: Close, metadata-open/close, and alternate open tags.
        escape_characters: Characters that escape a following tag.
        styles: Styles applied per group. For repeating tags the group is the
            length of the tag run, so ``{1: ITALIC, 2: BOLD}`` styles ``*a*``
            and ``**a**`` differently. Values may be a style or a tuple.
        min_repeat: Shortest accepted run for repeating tags.
        max_repeat: Longest accepted run for repeating tags.
        uses_metadata_lookup: Resolve the metadata text through the reference
            table instead of using it literally.
        defines_boundary: Later matches may not open or close across the span.
        cancels_remaining_rules: Later rules ignore the matched span.
        requires_balanced_tag_count: Only fire when the line holds a multiple
            of ``2 * min_repeat`` unescaped tag characters.
        requires_surrounding_space: Repeating tags must sit next to whitespace,
            punctuation, or the line edge on their outer side.

    Examples:
        CharacterRule(
            primary_tag=CharacterRuleTag("`", TagRole.REPEATING),
            styles={1: CharacterStyle.CODE},
            cancels_remaining_rules=True,
        )
    """

    primary_tag: CharacterRuleTag
    auxiliary_tags: tuple[CharacterRuleTag, ...] = ()
    escape_characters: frozenset[str] = DEFAULT_ESCAPE_CHARACTERS
    styles: Mapping[int, tuple[CharacterStyle, ...]] = field(default_factory=dict)
    min_repeat: int = 1
    max_repeat: int = 1
    uses_metadata_lookup: bool = False
    defines_boundary: bool = False
    cancels_remaining_rules: bool = False
    requires_balanced_tag_count: bool = False
    requires_surrounding_space: bool = False

    def __post_init__(self):
        if not self.primary_tag.text:
            raise RuleError("Character rule needs a non-empty primary tag")

        if self.min_repeat > self.max_repeat:
            minimum, maximum = self.max_repeat, self.min_repeat
            object.__setattr__(self, "min_repeat", minimum)
            object.__setattr__(self, "max_repeat", maximum)

        object.__setattr__(self, "auxiliary_tags", tuple(self.auxiliary_tags))
        object.__setattr__(self, "escape_characters", frozenset(self.escape_characters))
        object.__setattr__(
            self,
            "styles",
            {
                group: (value,) if isinstance(value, CharacterStyle) else tuple(value)
                for group, value in self.styles.items()
            },
        )

        if self.is_repeating:
            if len(self.primary_tag.text) != 1:
                raise RuleError(
                    f"Repeating tag `{self.primary_tag.text}` must be a single character"
                )
            return

        if self.tag(TagRole.CLOSE) is None:
            raise MissingTagError(self.primary_tag.text, "close")
        has_open = self.tag(TagRole.METADATA_OPEN) is not None
        has_close = self.tag(TagRole.METADATA_CLOSE) is not None
        if has_open != has_close:
            missing = "metadata close" if has_open else "metadata open"
            raise MissingTagError(self.primary_tag.text, missing)

    @property
    def is_repeating(self) -> bool:
        return self.primary_tag.role is TagRole.REPEATING

    @property
    def has_metadata(self) -> bool:
        return self.tag(TagRole.METADATA_OPEN) is not None

    def tag(self, role: TagRole) -> CharacterRuleTag | None:
        """Return the first auxiliary tag with `role`, or None."""
        for candidate in self.auxiliary_tags:
            if candidate.role is role:
                return candidate
        return None

    def open_texts(self) -> tuple[str, ...]:
        """Opening texts in match priority order: primary first, then alternates."""
        alternates = tuple(tag.text for tag in self.auxiliary_tags if tag.role is TagRole.OPEN)
        return (self.primary_tag.text, *alternates)

    def tag_texts(self) -> tuple[str, ...]:
        """Every distinct tag text of the rule; escapes are resolved before these."""
        texts = [self.primary_tag.text]
        for candidate in self.auxiliary_tags:
            if candidate.text not in texts:
                texts.append(candidate.text)
        return tuple(texts)

    def styles_for(self, group: int) -> tuple[CharacterStyle, ...]:
        return self.styles.get(group, ())

    def __str__(self) -> str:
        return f"CharacterRule({self.primary_tag.text!r})"


@dataclass(frozen=True)
class RuleSet:
    """Immutable, order-significant rule tables for one configuration.

    A rule set holds no per-document state and can be shared between calls.

    Attributes:
        block_rules: Line rules, evaluated in order; first match wins.
        character_rules: Inline rules, applied in order; earlier rules claim
            spans first.
        front_matter_rules: Candidate front matter delimiters.
        empty_line_style: Style for blank lines, or None to drop them.
        merge_list_continuations: Join body lines into a preceding list item.
    """

    block_rules: tuple[BlockRule, ...] = ()
    character_rules: tuple[CharacterRule, ...] = ()
    front_matter_rules: tuple[FrontMatterRule, ...] = ()
    empty_line_style: BlockStyle | None = BlockStyle.BODY
    merge_list_continuations: bool = True


def _pattern_finder(pattern: re.Pattern[str]) -> Finder:
    return pattern.match


def _list_rules() -> list[BlockRule]:
    # Untrimmed so the leading whitespace survives in `raw_prefix` for indent resolution
    return [
        BlockRule(
            token="- ",
            style=BlockStyle.UNORDERED_LIST,
            strategy=MatchStrategy.FINDER,
            trim_whitespace=False,
            finder=_pattern_finder(UNORDERED_DASH_PATTERN),
        ),
        BlockRule(
            token="* ",
            style=BlockStyle.UNORDERED_LIST,
            strategy=MatchStrategy.FINDER,
            trim_whitespace=False,
            finder=_pattern_finder(UNORDERED_STAR_PATTERN),
        ),
        BlockRule(
            token="+ ",
            style=BlockStyle.UNORDERED_LIST,
            strategy=MatchStrategy.FINDER,
            trim_whitespace=False,
            finder=_pattern_finder(UNORDERED_PLUS_PATTERN),
        ),
        BlockRule(
            token="1. ",
            style=BlockStyle.ORDERED_LIST,
            strategy=MatchStrategy.FINDER,
            trim_whitespace=False,
            finder=_pattern_finder(ORDERED_MARKER_PATTERN),
        ),
    ]


def _heading_rules() -> list[BlockRule]:
    levels = [
        BlockStyle.H6,
        BlockStyle.H5,
        BlockStyle.H4,
        BlockStyle.H3,
        BlockStyle.H2,
        BlockStyle.H1,
    ]
    return [
        BlockRule(token=f"{'#' * (6 - offset)} ", style=style, removal_side=RemovalSide.BOTH)
        for offset, style in enumerate(levels)
    ]


def _setext_rules() -> list[BlockRule]:
    return [
        BlockRule(
            token="=",
            style=BlockStyle.H1,
            removal_side=RemovalSide.NONE,
            applies_to=ChangeApplication.PREVIOUS,
        ),
        BlockRule(
            token="-",
            style=BlockStyle.H2,
            removal_side=RemovalSide.NONE,
            applies_to=ChangeApplication.PREVIOUS,
        ),
    ]


def _emphasis_styles(config: StylerConfig) -> dict[int, tuple[CharacterStyle, ...]]:
    styles: dict[int, tuple[CharacterStyle, ...]] = {}
    if config.enable_italic:
        styles[1] = (CharacterStyle.ITALIC,)
    if config.enable_bold:
        styles[2] = (CharacterStyle.BOLD,)
    if config.enable_italic and config.enable_bold:
        styles[3] = (CharacterStyle.BOLD, CharacterStyle.ITALIC)
    return styles


def _bracket_rules(open_text: str, style: CharacterStyle) -> list[CharacterRule]:
    # Reference form (``[text][key]``) first, then inline (``[text](url)``)
    close = CharacterRuleTag("]", TagRole.CLOSE)
    return [
        CharacterRule(
            primary_tag=CharacterRuleTag(open_text, TagRole.OPEN),
            auxiliary_tags=(
                close,
                CharacterRuleTag("[", TagRole.METADATA_OPEN),
                CharacterRuleTag("]", TagRole.METADATA_CLOSE),
            ),
            styles={1: style},
            uses_metadata_lookup=True,
            defines_boundary=True,
        ),
        CharacterRule(
            primary_tag=CharacterRuleTag(open_text, TagRole.OPEN),
            auxiliary_tags=(
                close,
                CharacterRuleTag("(", TagRole.METADATA_OPEN),
                CharacterRuleTag(")", TagRole.METADATA_CLOSE),
            ),
            styles={1: style},
            defines_boundary=True,
        ),
    ]


def build_block_rules(config: StylerConfig) -> tuple[BlockRule, ...]:
    """Build the line rule table enabled by `config`, in evaluation order."""
    rules: list[BlockRule] = []
    if config.enable_list:
        rules.extend(_list_rules())
    if config.enable_codeblock:
        rules.append(
            BlockRule(
                token=CODE_INDENT_TOKEN,
                alternate_tokens=("\t",),
                style=BlockStyle.CODE_BLOCK,
                trim_whitespace=False,
            )
        )
    if config.enable_blockquote:
        rules.append(BlockRule(token=">", style=BlockStyle.BLOCKQUOTE))
    if config.enable_header:
        rules.extend(_heading_rules())
        if config.enable_setext_header:
            rules.extend(_setext_rules())
    return tuple(rules)


def build_character_rules(config: StylerConfig) -> tuple[CharacterRule, ...]:
    """Build the inline rule table enabled by `config`, in priority order."""
    rules: list[CharacterRule] = []
    if config.enable_image:
        rules.extend(_bracket_rules("![", CharacterStyle.IMAGE))
    if config.enable_link:
        rules.extend(_bracket_rules("[", CharacterStyle.LINK))
    if config.enable_mention:
        mention_open = CharacterRuleTag("{{{mention:", TagRole.OPEN)
        rules.extend(
            [
                CharacterRule(
                    primary_tag=mention_open,
                    auxiliary_tags=(CharacterRuleTag("}}}", TagRole.CLOSE),),
                    styles={1: CharacterStyle.MENTION_ALL},
                    cancels_remaining_rules=True,
                ),
                CharacterRule(
                    primary_tag=mention_open,
                    auxiliary_tags=(CharacterRuleTag("}}", TagRole.CLOSE),),
                    styles={1: CharacterStyle.MENTION},
                    cancels_remaining_rules=True,
                ),
            ]
        )
    if config.enable_code:
        rules.append(
            CharacterRule(
                primary_tag=CharacterRuleTag("`", TagRole.REPEATING),
                styles={1: CharacterStyle.CODE, 2: CharacterStyle.CODE, 3: CharacterStyle.CODE},
                min_repeat=1,
                max_repeat=3,
                cancels_remaining_rules=True,
                requires_balanced_tag_count=True,
            )
        )
    if config.enable_strikethrough:
        rules.append(
            CharacterRule(
                primary_tag=CharacterRuleTag("~", TagRole.REPEATING),
                styles={1: CharacterStyle.STRIKETHROUGH, 2: CharacterStyle.STRIKETHROUGH},
                min_repeat=1,
                max_repeat=2,
                requires_balanced_tag_count=True,
            )
        )
    emphasis = _emphasis_styles(config)
    if emphasis:
        groups = sorted(emphasis)
        for marker, needs_space in (("*", False), ("_", True)):
            rules.append(
                CharacterRule(
                    primary_tag=CharacterRuleTag(marker, TagRole.REPEATING),
                    styles=emphasis,
                    min_repeat=groups[0],
                    max_repeat=groups[-1],
                    requires_surrounding_space=needs_space,
                )
            )
    if config.enable_keyword:
        rules.append(
            CharacterRule(
                primary_tag=CharacterRuleTag("<==", TagRole.OPEN),
                auxiliary_tags=(CharacterRuleTag("==>", TagRole.CLOSE),),
                styles={1: CharacterStyle.KEYWORD},
            )
        )
    return tuple(rules)


def build_rule_set(config: StylerConfig | None = None) -> RuleSet:
    """Turn feature flags into an immutable rule set.

    Args:
        config: Feature flags; defaults to a new `StylerConfig` when omitted.

    Returns:
        RuleSet: Block, character, and front matter tables for the flags.

    Raises:
        ConfigError: If the configuration fails validation.

    Examples:
        rule_set = build_rule_set(StylerConfig(enable_mention=False))
    """
    config = normalize_config(config or StylerConfig())
    validate_config(config)

    front_matter_rules: tuple[FrontMatterRule, ...] = ()
    if config.enable_front_matter:
        front_matter_rules = (
            FrontMatterRule(
                open_token=FRONT_MATTER_DELIMITER,
                close_token=FRONT_MATTER_DELIMITER,
                key_separator=FRONT_MATTER_SEPARATOR,
            ),
        )

    return RuleSet(
        block_rules=build_block_rules(config),
        character_rules=build_character_rules(config),
        front_matter_rules=front_matter_rules,
        empty_line_style=BlockStyle.BODY if config.keep_empty_lines else None,
        merge_list_continuations=config.merge_list_continuations,
    )
