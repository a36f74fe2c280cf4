"""Package-specific exception types."""

from __future__ import annotations


class RuleError(ValueError):
    """Base class for invalid rule definitions.

    Rule tables are built by code, so these are programming errors; document
    content never raises.
    """


class MissingTagError(RuleError):
    """Raised when a character rule lacks a tag its matching needs.

    Args:
        primary_tag: Text of the rule's primary tag.
        role: Name of the missing tag role.
    """

    def __init__(self, primary_tag: str, role: str):
        self.primary_tag = primary_tag
        self.role = role
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return f"Character rule `{self.primary_tag}` has no {self.role} tag"
