"""
markdown-styler: Markdown line classifier and rule-driven inline tokenizer.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    markdown-styler README.md
    markdown-styler README.md --format json --disable mention

Library Usage:
    from markdown_styler import build_rule_set, parse_markdown, StylerConfig

    result = parse_markdown("# Title\\n\\nSome **bold** text.")
    for line in result.lines:
        print(line.style, [(token.text, token.styles) for token in line.tokens])

    rule_set = build_rule_set(StylerConfig(enable_mention=False))
    result = parse_markdown(content, rule_set)
"""

from .config import ConfigError, StylerConfig
from .exceptions import MissingTagError, RuleError
from .lines import classify_lines
from .models import BlockStyle, CharacterStyle, ClassifiedLine, ParseResult, Token
from .parser import ParseFileError, parse_file, parse_markdown
from .rules import (
    BlockRule,
    CharacterRule,
    CharacterRuleTag,
    FrontMatterRule,
    RuleSet,
    build_rule_set,
)
from .tokenizer import tokenize

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "parse_markdown",
    "parse_file",
    "classify_lines",
    "tokenize",
    "build_rule_set",
    # Data models
    "BlockStyle",
    "CharacterStyle",
    "ClassifiedLine",
    "ParseResult",
    "Token",
    # Rules
    "BlockRule",
    "CharacterRule",
    "CharacterRuleTag",
    "FrontMatterRule",
    "RuleSet",
    # Configuration
    "StylerConfig",
    # Exceptions
    "ConfigError",
    "MissingTagError",
    "ParseFileError",
    "RuleError",
    # Version
    "__version__",
]
