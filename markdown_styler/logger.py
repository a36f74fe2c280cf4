"""Logging helpers for markdown-styler.

The library only creates loggers; configuring handlers is left to the caller
(the CLI does so for ``--verbose``).
"""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "markdown_styler"


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under ``markdown_styler``.

    Args:
        name: Logger name, typically ``__name__``.

    Returns:
        logging.Logger: Logger whose name starts with ``markdown_styler.``.

    Examples:
        get_logger("scanner").name  # "markdown_styler.scanner"
    """
    if not (name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}.")):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
