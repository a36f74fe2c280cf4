"""Markdown parsing entry points."""

from __future__ import annotations

from pathlib import Path

from .config import ConfigError, StylerConfig
from .constants import REFERENCE_OPEN, REFERENCE_SEPARATOR
from .filesystem import collect_file_stat, enforce_file_size, get_max_file_size, safe_read
from .lines import classify_lines
from .logger import get_logger
from .models import BlockStyle, ClassifiedLine, ParseResult, Token
from .rules import RuleSet, build_rule_set
from .tokenizer import tokenize

logger = get_logger(__name__)

DEFAULT_RULE_SET = build_rule_set()


def extract_references(lines: list[ClassifiedLine]) -> tuple[list[ClassifiedLine], dict[str, str]]:
    """Pull ``[key]: value`` definitions out of the body lines.

    Args:
        lines: Classified lines in document order.

    Returns:
        tuple[list[ClassifiedLine], dict[str, str]]: Lines without the
            definitions, and the definitions keyed by label (both sides
            stripped, last write wins).

    Examples:
        extract_references([ClassifiedLine("[home]: https://example.com")])
        # ([], {"home": "https://example.com"})
    """
    kept: list[ClassifiedLine] = []
    references: dict[str, str] = {}

    for line in lines:
        if line.style is BlockStyle.BODY and line.text.startswith(REFERENCE_OPEN):
            key, separator, value = line.text[len(REFERENCE_OPEN) :].partition(REFERENCE_SEPARATOR)
            if separator:
                references[key.strip()] = value.strip()
                continue
        kept.append(line)

    return kept, references


def parse_markdown(content: str, rule_set: RuleSet | None = None) -> ParseResult:
    """Classify and tokenize Markdown content.

    Lines are classified first. Reference definitions are then removed and
    used to resolve reference-style links and images, and every line except
    code blocks is tokenized.

    Args:
        content: The markdown content to parse.
        rule_set: Rule tables to apply; defaults to the full default table.

    Returns:
        ParseResult: Classified lines carrying their tokens, the front matter,
            and the reference definitions. Empty input yields no lines.

    Examples:
        result = parse_markdown("# Title\\n\\nSome *emphasis*.")
        result.lines[0].style  # BlockStyle.H1
    """
    rule_set = rule_set or DEFAULT_RULE_SET

    lines, front_matter = classify_lines(content, rule_set)
    lines, references = extract_references(lines)

    for line in lines:
        if line.style.should_tokenise:
            line.tokens = tokenize(line.text, rule_set.character_rules, references)
        else:
            line.tokens = [Token(text=line.text)]

    logger.debug(
        "Parsed %d lines (%d front matter keys, %d references)",
        len(lines),
        len(front_matter),
        len(references),
    )
    return ParseResult(lines=lines, front_matter=front_matter, references=references)


class ParseFileError(Exception):
    """Raised when parsing a Markdown file fails."""


def parse_file(filepath: Path, config: StylerConfig | None = None) -> ParseResult:
    """Read and parse a Markdown file.

    Args:
        filepath: Path to the markdown file to parse.
        config: Feature flags and limits; defaults to a new `StylerConfig`
            when omitted.

    Returns:
        ParseResult: Parsed document.

    Raises:
        ParseFileError: If configuration is invalid, the file exceeds the size
            limit, or the file cannot be read or decoded.

    Examples:
        result = parse_file(Path("README.md"), StylerConfig(enable_mention=False))
    """
    config = config or StylerConfig()
    try:
        rule_set = build_rule_set(config)
    except ConfigError as error:
        raise ParseFileError(str(error)) from error

    try:
        max_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise ParseFileError(str(error)) from error

    # Read file content
    try:
        enforce_file_size(collect_file_stat(filepath), max_size, filepath)
        with safe_read(filepath) as file:
            content = file.read()
    except UnicodeDecodeError as error:
        error_message = f"Invalid UTF-8 sequence in {filepath}: {error}"
        raise ParseFileError(error_message) from error
    except IOError as error:
        raise ParseFileError(str(error)) from error

    return parse_markdown(content, rule_set)
