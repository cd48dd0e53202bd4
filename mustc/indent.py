"""
Line indentation tracking for the compiler.

A partial rendered on an indented standalone line must have every one of its
output lines prefixed with that indentation. The compiler knows where lines
start (the parser splits newlines into their own text nodes), so it decides
statically which emissions carry the prefix: the first text or variable after
the start of the template or after a newline.
"""

from __future__ import annotations

import enum


class IndentState(enum.Enum):
    PENDING = "pending"      # next emission starts a line and takes the indent
    CONSUMED = "consumed"    # current line already has its indent


class IndentTracker:
    """
    Per-compilation indentation state machine.

    Owned by a single compile call; never shared between compilations.
    """

    def __init__(self):
        self.state = IndentState.PENDING

    @property
    def pending(self) -> bool:
        return self.state is IndentState.PENDING

    def newline(self) -> None:
        """A line break was emitted; the next emission starts a new line."""
        self.state = IndentState.PENDING

    def flush(self) -> bool:
        """
        Claim the indent for the emission being compiled.

        Returns:
            True if this emission must be prefixed with the render-time indent
        """
        if self.state is IndentState.PENDING:
            self.state = IndentState.CONSUMED
            return True
        return False


__all__ = ["IndentState", "IndentTracker"]
