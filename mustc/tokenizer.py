"""
Mustache tokenizer.

Splits template source into text, newline and tag tokens, tracking delimiter
changes and removing "standalone" tag lines (a line holding nothing but
whitespace and one block, partial, comment or delimiter tag).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .errors import MustacheSyntaxError
from .sections import DEFAULT_CTAG, DEFAULT_OTAG


class TokenType(enum.Enum):
    TEXT = "TEXT"
    NEWLINE = "NEWLINE"
    ESCAPED = "ESCAPED"
    UNESCAPED = "UNESCAPED"
    SECTION = "SECTION"
    INVERTED = "INVERTED"
    END_SECTION = "END_SECTION"
    PARTIAL = "PARTIAL"
    COMMENT = "COMMENT"
    DELIM_CHANGE = "DELIM_CHANGE"


_SIGILS = {
    "#": TokenType.SECTION,
    "^": TokenType.INVERTED,
    "/": TokenType.END_SECTION,
    ">": TokenType.PARTIAL,
    "!": TokenType.COMMENT,
    "&": TokenType.UNESCAPED,
}

# Tags that vanish together with their line when they stand alone on it
_STANDALONE_TYPES = {
    TokenType.SECTION,
    TokenType.INVERTED,
    TokenType.END_SECTION,
    TokenType.PARTIAL,
    TokenType.COMMENT,
    TokenType.DELIM_CHANGE,
}


@dataclass(frozen=True)
class Token:
    """
    Token with position information.

    For tags, start is the offset of the opening delimiter and end the offset
    right after the closing one; otag/ctag are the delimiters the tag was
    written with.
    """
    type: TokenType
    value: str
    line: int
    start: int
    end: int
    otag: str = DEFAULT_OTAG
    ctag: str = DEFAULT_CTAG
    indent: str = ""

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, line {self.line})"


def parse_delimiters(text: str, line: Optional[int] = None) -> Tuple[str, str]:
    """Parse the body of a set-delimiter tag, e.g. "<% %>"."""
    parts = text.split()
    if len(parts) != 2 or any("=" in part for part in parts):
        raise MustacheSyntaxError(f"Invalid delimiter tag '{text}'", line)
    return parts[0], parts[1]


class Tokenizer:
    """Stateless Mustache tokenizer; scan() can be called repeatedly."""

    def scan(self, source: str) -> List[Token]:
        """
        Tokenize template source.

        Every line break becomes its own NEWLINE token, unless it ends a
        standalone tag line, in which case the whole line is dropped.

        Raises:
            MustacheSyntaxError: On unclosed tags or invalid delimiter tags
        """
        tokens: List[Token] = []
        line_tokens: List[Token] = []
        otag, ctag = DEFAULT_OTAG, DEFAULT_CTAG
        pos = 0
        line = 1
        size = len(source)

        while pos < size:
            if source.startswith(otag, pos):
                token = self._read_tag(source, pos, otag, ctag, line)
                if token.type is TokenType.DELIM_CHANGE:
                    otag, ctag = parse_delimiters(token.value, line)
                line_tokens.append(token)
                line += source.count("\n", token.start, token.end)
                pos = token.end
            elif source[pos] == "\n":
                newline = Token(TokenType.NEWLINE, "\n", line, pos, pos + 1)
                self._flush_line(line_tokens, tokens, newline)
                line_tokens = []
                line += 1
                pos += 1
            else:
                stop = size
                for candidate in (source.find(otag, pos), source.find("\n", pos)):
                    if candidate != -1 and candidate < stop:
                        stop = candidate
                line_tokens.append(Token(TokenType.TEXT, source[pos:stop], line, pos, stop))
                pos = stop

        self._flush_line(line_tokens, tokens, None)
        return tokens

    # ======= Internal methods =======

    def _read_tag(self, source: str, start: int, otag: str, ctag: str, line: int) -> Token:
        inner = start + len(otag)
        sigil = source[inner:inner + 1]

        if sigil == "{":
            token_type, closing, inner = TokenType.UNESCAPED, "}" + ctag, inner + 1
        elif sigil == "=":
            token_type, closing, inner = TokenType.DELIM_CHANGE, "=" + ctag, inner + 1
        elif sigil in _SIGILS:
            token_type, closing, inner = _SIGILS[sigil], ctag, inner + 1
        else:
            token_type, closing = TokenType.ESCAPED, ctag

        stop = source.find(closing, inner)
        if stop == -1:
            raise MustacheSyntaxError(f"Unclosed tag '{otag}{sigil}'", line)
        value = source[inner:stop].strip()
        if not value and token_type is not TokenType.COMMENT:
            raise MustacheSyntaxError(f"Empty tag '{source[start:stop + len(closing)]}'", line)

        return Token(
            type=token_type,
            value=value,
            line=line,
            start=start,
            end=stop + len(closing),
            otag=otag,
            ctag=ctag,
        )

    @staticmethod
    def _flush_line(line_tokens: List[Token], tokens: List[Token], newline: Optional[Token]) -> None:
        tags = [t for t in line_tokens if t.type is not TokenType.TEXT]
        blank = all(not t.value.strip(" \t\r") for t in line_tokens if t.type is TokenType.TEXT)

        if len(tags) == 1 and tags[0].type in _STANDALONE_TYPES and blank:
            tag = tags[0]
            if tag.type is TokenType.PARTIAL:
                leading = line_tokens[:line_tokens.index(tag)]
                tag = replace(tag, indent="".join(t.value for t in leading))
            tokens.append(tag)
            return

        tokens.extend(t for t in line_tokens if t.type is not TokenType.TEXT or t.value)
        if newline is not None:
            tokens.append(newline)


__all__ = ["TokenType", "Token", "Tokenizer", "parse_delimiters"]
