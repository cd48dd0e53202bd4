"""
Lookup strategy selection.

The way a tag name is resolved against the context is decided once, when the
template is compiled, so rendering never has to scan names again.
"""

from __future__ import annotations

import enum


class Strategy(enum.Enum):
    """How a name is looked up in the Context."""
    LAST = "last"        # {{.}}: the current top of the context stack
    DIRECT = "find"      # {{name}}: first scope (from the top) that has the key
    DOTTED = "find_dot"  # {{a.b.c}}: path walk starting at the scope that has "a"


def select_strategy(name: str) -> Strategy:
    """
    Select the Context lookup method for a tag name.

    Args:
        name: Variable or section name as written in the template

    Returns:
        LAST for ".", DIRECT for plain names, DOTTED for names with a dot
    """
    if name == ".":
        return Strategy.LAST
    if "." not in name:
        return Strategy.DIRECT
    return Strategy.DOTTED


__all__ = ["Strategy", "select_strategy"]
