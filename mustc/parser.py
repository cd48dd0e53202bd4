"""
Mustache parser.

Builds the node tree from the token stream: nests section contents, checks
that every section is closed by a tag with the same name and records the raw
body offsets the compiler needs.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .errors import MustacheSyntaxError
from .nodes import (
    CommentNode,
    InvertedSectionNode,
    PartialNode,
    SectionNode,
    TemplateAST,
    TemplateNode,
    TextNode,
    VariableNode,
)
from .tokenizer import Token, Tokenizer, TokenType


class Parser:
    """Token stream to AST."""

    def parse(self, tokens: Sequence[Token]) -> TemplateAST:
        """
        Build the AST.

        Raises:
            MustacheSyntaxError: On unbalanced or mismatched section tags
        """
        root: List[TemplateNode] = []
        open_sections: List[Tuple[Token, List[TemplateNode]]] = []

        for token in tokens:
            target = open_sections[-1][1] if open_sections else root
            kind = token.type

            if kind in (TokenType.TEXT, TokenType.NEWLINE):
                target.append(TextNode(token.value))
            elif kind is TokenType.ESCAPED:
                target.append(VariableNode(token.value, escape=True))
            elif kind is TokenType.UNESCAPED:
                target.append(VariableNode(token.value, escape=False))
            elif kind in (TokenType.SECTION, TokenType.INVERTED):
                open_sections.append((token, []))
            elif kind is TokenType.END_SECTION:
                if not open_sections:
                    raise MustacheSyntaxError(f"Unexpected closing tag '{token.value}'", token.line)
                opening, children = open_sections.pop()
                if opening.value != token.value:
                    raise MustacheSyntaxError(
                        f"Section '{opening.value}' (line {opening.line}) closed by '{token.value}'",
                        token.line,
                    )
                node = self._close_section(opening, token, children)
                (open_sections[-1][1] if open_sections else root).append(node)
            elif kind is TokenType.PARTIAL:
                target.append(PartialNode(token.value, indent=token.indent))
            elif kind is TokenType.COMMENT:
                target.append(CommentNode())
            # DELIM_CHANGE only affects tokenizing

        if open_sections:
            opening = open_sections[-1][0]
            raise MustacheSyntaxError(f"Unclosed section '{opening.value}'", opening.line)
        return tuple(root)

    @staticmethod
    def _close_section(opening: Token, closing: Token, children: List[TemplateNode]) -> TemplateNode:
        if opening.type is TokenType.INVERTED:
            return InvertedSectionNode(opening.value, tuple(children))
        return SectionNode(
            name=opening.value,
            children=tuple(children),
            start=opening.end,
            end=closing.start,
            otag=opening.otag,
            ctag=opening.ctag,
        )


def parse_template(source: str) -> TemplateAST:
    """Tokenize and parse template source."""
    return Parser().parse(Tokenizer().scan(source))


__all__ = ["Parser", "parse_template"]
