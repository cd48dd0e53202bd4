"""
Base exceptions for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from MustcUserError.

Programming errors and bugs should NOT inherit from MustcUserError;
they will propagate with full tracebacks.
"""

from __future__ import annotations

from typing import Any, Optional


class MustcUserError(Exception):
    """
    Base class for all user-facing errors in mustc.

    These errors indicate problems that the user can fix:
    broken templates, missing partials, invalid configuration, etc.
    """
    pass


class CompileError(MustcUserError):
    """Compilation of a node tree failed."""
    pass


class UnknownNodeKindError(CompileError):
    """The walker met a node that is not one of the known node types."""
    def __init__(self, node: Any):
        self.node = node
        super().__init__(f"Unknown node type: {type(node).__name__} ({node!r})")


class MustacheSyntaxError(MustcUserError):
    """Tokenizer or parser rejected the template source."""
    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        where = f" on line {line}" if line is not None else ""
        super().__init__(f"{message}{where}")


class TemplateNotFoundError(MustcUserError):
    """Raised when a partial template source cannot be found."""
    def __init__(self, name: str, searched: Optional[str] = None):
        self.name = name
        self.searched = searched
        msg = f"Template '{name}' not found"
        if searched:
            msg += f". Searched: {searched}"
        super().__init__(msg)


class RecursionLimitError(MustcUserError):
    """Partials or lambdas nested deeper than the configured limit."""
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"Maximum template nesting depth ({limit}) exceeded; "
            f"check for partials or lambdas that render themselves"
        )


class ConfigError(MustcUserError):
    """Malformed engine configuration."""
    pass


__all__ = [
    "MustcUserError",
    "CompileError",
    "UnknownNodeKindError",
    "MustacheSyntaxError",
    "TemplateNotFoundError",
    "RecursionLimitError",
    "ConfigError",
]
