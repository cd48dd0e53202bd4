"""
Template compiler.

Turns a parsed template (a tree of nodes) into a Program: a flat list of
instructions with lookup strategies, shared section routines and indentation
decisions all resolved ahead of rendering.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from .escape import Escaper
from .errors import UnknownNodeKindError
from .indent import IndentTracker
from .nodes import (
    CommentNode,
    InvertedSectionNode,
    PartialNode,
    SectionNode,
    TemplateNode,
    TextNode,
    VariableNode,
)
from .program import (
    EmitInvertedSection,
    EmitLiteral,
    EmitPartial,
    EmitSection,
    EmitVariable,
    Instruction,
    Program,
)
from .protocols import LoaderProtocol
from .sections import SectionRegistry, SectionRoutine, delimiter_tag, section_key
from .strategy import select_strategy

logger = logging.getLogger(__name__)


class _Walker:
    """
    State of a single compilation.

    Holds the template source (for slicing section bodies), the indent tracker
    and the section registry. Created by Compiler.compile and dropped when it
    returns.
    """

    def __init__(self, source: str):
        self.source = source
        self.tracker = IndentTracker()
        self.sections = SectionRegistry()

    def walk(self, nodes: Sequence[TemplateNode], level: int = 0) -> Tuple[Instruction, ...]:
        """
        Compile a node sequence.

        Args:
            nodes: Nodes in template order
            level: Nesting depth of the sequence (diagnostics only)

        Raises:
            UnknownNodeKindError: On a node of an unknown type
        """
        level += 1
        instructions: List[Instruction] = []
        for node in nodes:
            handler = self._DISPATCH.get(type(node))
            if handler is None:
                raise UnknownNodeKindError(node)
            instruction = handler(self, node, level)
            if instruction is not None:
                instructions.append(instruction)
        return tuple(instructions)

    def _text(self, node: TextNode, level: int) -> Optional[Instruction]:
        if node.text == "\n":
            self.tracker.newline()
            return EmitLiteral("\n")
        if not node.text:
            return None
        return EmitLiteral(node.text, indent=self.tracker.flush())

    def _variable(self, node: VariableNode, level: int) -> Instruction:
        return EmitVariable(
            strategy=select_strategy(node.name),
            name=node.name,
            escape=node.escape,
            indent=self.tracker.flush(),
        )

    def _section(self, node: SectionNode, level: int) -> Instruction:
        inline = not self.tracker.pending
        delimiters = delimiter_tag(node.otag, node.ctag)
        body_source = self.source[node.start:node.end]
        key = section_key(body_source, delimiters)

        routine = self.sections.get(key)
        if routine is None:
            logger.debug(f"{'  ' * level}section '{node.name}' -> new routine {key[:8]}")
            routine = self.sections.register(SectionRoutine(
                key=key,
                source=body_source,
                delimiters=delimiters,
                body=self.walk(node.children, level),
            ))

        return EmitSection(
            routine=routine,
            strategy=select_strategy(node.name),
            name=node.name,
            inline=inline,
        )

    def _inverted_section(self, node: InvertedSectionNode, level: int) -> Instruction:
        return EmitInvertedSection(
            strategy=select_strategy(node.name),
            name=node.name,
            body=self.walk(node.children, level),
        )

    def _partial(self, node: PartialNode, level: int) -> Instruction:
        return EmitPartial(name=node.name, indent=node.indent, inline=not self.tracker.pending)

    def _comment(self, node: CommentNode, level: int) -> None:
        return None

    _DISPATCH: Dict[Type[Any], Callable[["_Walker", Any, int], Optional[Instruction]]] = {
        TextNode: _text,
        VariableNode: _variable,
        SectionNode: _section,
        InvertedSectionNode: _inverted_section,
        PartialNode: _partial,
        CommentNode: _comment,
    }


class Compiler:
    """
    Compiles node trees into Programs.

    A Compiler keeps no state between compile calls, so it can be reused;
    concurrent compilations should still use separate instances.
    """

    def __init__(self, loader: LoaderProtocol, escaper: Optional[Escaper] = None):
        """
        Args:
            loader: Partial/lambda loader the compiled programs render with
            escaper: Escaper for {{name}} tags (UTF-8 HTML escaping by default)
        """
        self.loader = loader
        self.escaper = escaper or Escaper()

    def compile(self, source: str, tree: Sequence[TemplateNode], name: str) -> Program:
        """
        Compile a parsed template.

        Args:
            source: Template source the tree was parsed from
            tree: Top-level nodes
            name: Label of the compiled template

        Returns:
            Program ready for rendering

        Raises:
            UnknownNodeKindError: If the tree contains an unknown node type
        """
        walker = _Walker(source)
        instructions = walker.walk(tree)
        logger.debug(
            f"Compiled '{name}': {len(instructions)} instructions, "
            f"{len(walker.sections)} section routines ({walker.sections.hits} reused)"
        )
        return Program(name, instructions, self.loader, self.escaper)


__all__ = ["Compiler"]
