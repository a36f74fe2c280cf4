"""Constants used across the markdown-styler package."""

from __future__ import annotations

import re

from .config import StylerConfig

DEFAULT_CONFIG = StylerConfig()

# Escapes and indentation
DEFAULT_ESCAPE_CHARACTERS = frozenset("\\")
SPACE_WIDTH = 1
TAB_WIDTH = 3
NESTED_INDENT_DELTAS = frozenset({2, 3})
SAME_INDENT_DELTAS = frozenset({0, 1})

# Block patterns
UNORDERED_DASH_PATTERN = re.compile(r"^\s*-\s+")
UNORDERED_STAR_PATTERN = re.compile(r"^\s*\*\s+")
UNORDERED_PLUS_PATTERN = re.compile(r"^\s*\+\s+")
ORDERED_MARKER_PATTERN = re.compile(r"^\s*\d+\.\s+")
CODE_INDENT_TOKEN = "    "

# Front matter
FRONT_MATTER_DELIMITER = "---"
FRONT_MATTER_SEPARATOR = ":"

# Reference definitions: ``[key]: value``
REFERENCE_OPEN = "["
REFERENCE_SEPARATOR = "]:"

# Mention spans: ``{{{mention:123}Name}}``, ``{{{mention:1:2}Name}}``, ``{{{mention:members}}}``
MENTION_ID_PATTERN = re.compile(r"^([0-9]+)")
BATON_PREFIX_PATTERN = re.compile(r"^[0-9]+:[0-9]+\}")
MENTION_PREFIX_PATTERN = re.compile(r"^[0-9]+\}")
MENTION_GROUPS = ("members", "project")
MENTION_TEXT_PREFIX = "@"
BATON_TEXT_PREFIX = "@@"
MENTION_ALL_TEXT_PREFIX = "@!"

# Files
MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mdown", ".mkd", ".txt")
DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size
