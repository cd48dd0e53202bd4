"""
HTML escaping of interpolated values.
"""

from __future__ import annotations

import codecs

_ENTITIES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
}


class Escaper:
    """
    Charset-aware escaper for {{name}} interpolation.

    Replaces the HTML reserved characters with entities. Characters the
    configured charset cannot represent become numeric character references,
    so the escaped text can always be encoded with that charset.
    """

    def __init__(self, charset: str = "utf-8", escape_single_quotes: bool = True):
        try:
            info = codecs.lookup(charset)
        except LookupError:
            raise ValueError(f"Unknown charset '{charset}'")
        self.charset = info.name
        entities = dict(_ENTITIES)
        if escape_single_quotes:
            entities["'"] = "&#039;"
        self._table = str.maketrans(entities)
        self._lossless = self.charset.startswith("utf")

    def escape(self, text: str) -> str:
        escaped = text.translate(self._table)
        if self._lossless:
            return escaped
        return escaped.encode(self.charset, "xmlcharrefreplace").decode(self.charset)

    __call__ = escape


__all__ = ["Escaper"]
