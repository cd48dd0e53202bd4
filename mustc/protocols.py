"""
Protocols for the collaborators a compiled Program talks to at render time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .program import Program


@runtime_checkable
class LoaderProtocol(Protocol):
    """
    Source of compiled sub-templates.

    Programs call it while rendering to obtain partials and to compile the
    text returned by lambdas.
    """

    def load_partial(self, name: str) -> "Program":
        """
        Compiled partial by name.

        Raises:
            TemplateNotFoundError: If the loader is strict and the partial is unknown
        """
        ...

    def load_lambda(self, source: str, delimiters: Optional[str] = None) -> "Program":
        """
        Compile lambda output.

        Args:
            source: Template text returned by the lambda
            delimiters: Set-delimiter tag of the enclosing section, if non-default
        """
        ...


__all__ = ["LoaderProtocol"]
