"""
Section registry.

Section bodies are compiled once per distinct (delimiters, raw body) pair and
shared by every call site within one compilation. The section name is not part
of the key: {{#a}}x{{/a}} and {{#b}}x{{/b}} share one routine and differ only
in the name their call sites look up.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Tuple

if TYPE_CHECKING:
    from .program import Instruction

logger = logging.getLogger(__name__)

DEFAULT_OTAG = "{{"
DEFAULT_CTAG = "}}"


def delimiter_tag(otag: str, ctag: str) -> Optional[str]:
    """
    Set-delimiter tag reproducing a non-default delimiter pair.

    Returns None for the default pair, so default sections hash and load
    exactly like plain text.
    """
    if otag == DEFAULT_OTAG and ctag == DEFAULT_CTAG:
        return None
    return f"{{{{= {otag} {ctag} =}}}}"


def section_key(source: str, delimiters: Optional[str] = None) -> str:
    """Content address of a section body."""
    payload = f"{delimiters or ''}\n{source}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SectionRoutine:
    """
    Independently compiled section body.

    Attributes:
        key: Registry key (content address)
        source: Raw body text, passed to lambdas
        delimiters: Set-delimiter tag for lambda re-compilation, or None
        body: Compiled instructions of the section children
    """
    key: str
    source: str
    delimiters: Optional[str]
    body: Tuple["Instruction", ...]


class SectionRegistry:
    """
    Content-addressed routine cache for a single compilation.

    Not thread-safe and not meant to outlive the compile call that created it.
    """

    def __init__(self):
        self._routines: Dict[str, SectionRoutine] = {}
        self.hits = 0

    def get(self, key: str) -> Optional[SectionRoutine]:
        routine = self._routines.get(key)
        if routine is not None:
            self.hits += 1
            logger.debug(f"Section {key[:8]} reused")
        return routine

    def register(self, routine: SectionRoutine) -> SectionRoutine:
        if routine.key in self._routines:
            raise ValueError(f"Section routine '{routine.key}' already registered")
        self._routines[routine.key] = routine
        return routine

    def __contains__(self, key: str) -> bool:
        return key in self._routines

    def __len__(self) -> int:
        return len(self._routines)

    def __iter__(self) -> Iterator[SectionRoutine]:
        return iter(self._routines.values())


__all__ = [
    "DEFAULT_OTAG",
    "DEFAULT_CTAG",
    "delimiter_tag",
    "section_key",
    "SectionRoutine",
    "SectionRegistry",
]
