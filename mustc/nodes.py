"""
Template AST nodes.

Immutable node classes produced by the parser and consumed by the compiler.
A template is a sequence of nodes; sections and inverted sections hold their
own child sequences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TemplateNode:
    """Base class for all template AST nodes."""
    pass


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """
    Literal text.

    The parser emits every line break as its own TextNode("\\n"), so the
    compiler can tell where output lines start.
    """
    text: str


@dataclass(frozen=True)
class VariableNode(TemplateNode):
    """Interpolation tag: {{name}} (escaped), {{{name}}} or {{&name}} (raw)."""
    name: str
    escape: bool = True


@dataclass(frozen=True)
class SectionNode(TemplateNode):
    """
    Section block {{#name}}...{{/name}}.

    start/end delimit the raw body in the template source; otag/ctag are the
    delimiters active at the opening tag. Both are needed to hand the body to
    lambdas and to key the section registry.
    """
    name: str
    children: Tuple[TemplateNode, ...] = ()
    start: int = 0
    end: int = 0
    otag: str = "{{"
    ctag: str = "}}"


@dataclass(frozen=True)
class InvertedSectionNode(TemplateNode):
    """Inverted section {{^name}}...{{/name}}."""
    name: str
    children: Tuple[TemplateNode, ...] = ()


@dataclass(frozen=True)
class PartialNode(TemplateNode):
    """Partial reference {{>name}}; indent is the whitespace of a standalone tag line."""
    name: str
    indent: str = ""


@dataclass(frozen=True)
class CommentNode(TemplateNode):
    """Comment tag {{! ... }}. Renders nothing."""
    pass


# Alias for a node sequence (AST)
TemplateAST = Tuple[TemplateNode, ...]


def format_ast_tree(ast: TemplateAST, indent: int = 0) -> str:
    """Readable dump of an AST, one node per line."""
    lines = []
    pad = "  " * indent
    for node in ast:
        if isinstance(node, (SectionNode, InvertedSectionNode)):
            lines.append(f"{pad}{type(node).__name__}({node.name!r})")
            inner = format_ast_tree(node.children, indent + 1)
            if inner:
                lines.append(inner)
        else:
            lines.append(f"{pad}{node!r}")
    return "\n".join(lines)


__all__ = [
    "TemplateNode",
    "TextNode",
    "VariableNode",
    "SectionNode",
    "InvertedSectionNode",
    "PartialNode",
    "CommentNode",
    "TemplateAST",
    "format_ast_tree",
]
