"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
import tomllib

FEATURE_PREFIX = "enable_"


@dataclass
class StylerConfig:
    """Feature flags that decide which rules the default rule set contains.

    Attributes:
        enable_list: Classify ``-``/``*``/``+``/``1.`` lines as list items.
        enable_codeblock: Classify four-space or tab indented lines as code.
        enable_blockquote: Classify ``>`` lines as blockquotes.
        enable_header: Classify ``#`` lines as headings.
        enable_setext_header: Treat ``===``/``---`` underlines as headings for
            the previous line.
        enable_image: Recognize ``![alt](src)`` and ``![alt][ref]``.
        enable_link: Recognize ``[text](url)`` and ``[text][ref]``.
        enable_code: Recognize backtick code spans.
        enable_strikethrough: Recognize ``~~text~~``.
        enable_bold: Recognize ``**text**`` and ``__text__``.
        enable_italic: Recognize ``*text*`` and ``_text_``.
        enable_keyword: Recognize ``<==keyword==>`` spans.
        enable_mention: Recognize ``{{{mention:...}}}`` spans.
        enable_front_matter: Strip a leading ``---`` delimited key/value block.
        keep_empty_lines: Emit blank lines as empty body lines instead of
            dropping them.
        merge_list_continuations: Join body lines that directly follow a list
            item into that item.
        disable: Feature names to switch off (``"bold"`` clears
            ``enable_bold``); folded into the flags by `normalize_config`.
        max_file_size: Maximum file size in bytes that will be processed.

    Examples:
        StylerConfig(enable_mention=False, keep_empty_lines=False)
    """

    # Block rules
    enable_list: bool = True
    enable_codeblock: bool = True
    enable_blockquote: bool = True
    enable_header: bool = True
    enable_setext_header: bool = True

    # Character rules
    enable_image: bool = True
    enable_link: bool = True
    enable_code: bool = True
    enable_strikethrough: bool = True
    enable_bold: bool = True
    enable_italic: bool = True
    enable_keyword: bool = True
    enable_mention: bool = True

    # Document handling
    enable_front_matter: bool = True
    keep_empty_lines: bool = True
    merge_list_continuations: bool = True
    disable: tuple[str, ...] = ()

    # Limits
    max_file_size: int = 10 * 1024 * 1024


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`max_file_size` must be a positive integer")
    """


def feature_names() -> tuple[str, ...]:
    """Return the switchable feature names, e.g. ``("list", "codeblock", ...)``."""
    return tuple(
        item.name[len(FEATURE_PREFIX) :]
        for item in fields(StylerConfig)
        if item.name.startswith(FEATURE_PREFIX)
    )


def load_config(search_path: Path) -> StylerConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.markdown-styler]`` table from `pyproject.toml` and the
    ``[markdown-styler]`` or ``[tool.markdown-styler]`` table from
    `.markdown-styler.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        StylerConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping, contains
            unsupported keys, or disables an unknown feature.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "markdown-styler")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".markdown-styler.toml",
            table_paths=[("markdown-styler",), ("tool", "markdown-styler")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return StylerConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> StylerConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> StylerConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return StylerConfig()

    values = dict(raw_config)
    # TOML arrays arrive as lists
    if isinstance(values.get("disable"), list):
        values["disable"] = tuple(values["disable"])

    try:
        return StylerConfig(**values)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: StylerConfig) -> StylerConfig:
    """Fold the `disable` list into the individual feature flags.

    Args:
        config: Configuration to normalize.

    Returns:
        StylerConfig: Copy with ``enable_*`` flags cleared for every disabled
            feature and an empty `disable` list.

    Raises:
        ConfigError: If `disable` is not a list of known feature names.
    """
    if not config.disable:
        return config

    if isinstance(config.disable, str) or not all(
        isinstance(name, str) for name in config.disable
    ):
        raise ConfigError("`disable` must be a list of feature names")

    known = feature_names()
    changes: dict[str, object] = {"disable": ()}
    for name in config.disable:
        if name not in known:
            raise ConfigError(
                f"Unknown feature `{name}` in `disable`; expected one of: {', '.join(known)}"
            )
        changes[f"{FEATURE_PREFIX}{name}"] = False

    return replace(config, **changes)


def validate_config(config: StylerConfig) -> None:
    """Validate a `StylerConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If a flag is not a boolean, a disabled feature is unknown,
            or the file size limit is not a positive integer.

    Examples:
        validate_config(StylerConfig(enable_bold=False))
    """
    config = normalize_config(config)

    for item in fields(StylerConfig):
        value = getattr(config, item.name)
        if item.name.startswith(FEATURE_PREFIX) or item.name in (
            "keep_empty_lines",
            "merge_list_continuations",
        ):
            if not isinstance(value, bool):
                raise ConfigError(f"`{item.name}` must be a boolean")

    _ensure_integers({"max_file_size": config.max_file_size})
    _ensure_positive({"max_file_size": config.max_file_size})


def apply_overrides(config: StylerConfig, **overrides: object) -> StylerConfig:
    """Apply override values to a `StylerConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set
            to None (and empty `disable` sequences) are ignored.

    Returns:
        StylerConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `StylerConfig`.

    Examples:
        updated = apply_overrides(config, enable_front_matter=False, disable=("bold",))
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if "disable" in changes:
        if not changes["disable"]:
            del changes["disable"]
        else:
            changes["disable"] = tuple(config.disable) + tuple(changes["disable"])
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> StylerConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        StylerConfig: Validated configuration ready for building a rule set.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), disable=("mention",))
    """
    config = load_config(search_path)
    try:
        config = apply_overrides(config, **overrides)
    except TypeError as error:
        raise ConfigError(str(error)) from error
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
