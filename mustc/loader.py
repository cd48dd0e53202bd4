"""
Template sources and the Engine.

The Engine ties the pipeline together (tokenizer → parser → compiler) and is
the loader compiled programs call back into for partials and lambda output.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from .compiler import Compiler
from .config import EngineConfig
from .context import Context
from .errors import TemplateNotFoundError
from .escape import Escaper
from .parser import Parser
from .program import Program
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class TemplateSource(Protocol):
    """Where partial templates come from."""

    def get_source(self, name: str) -> str:
        """
        Raises:
            TemplateNotFoundError: If there is no template with this name
        """
        ...


class ArrayLoader:
    """In-memory partial templates keyed by name."""

    def __init__(self, templates: Optional[Mapping[str, str]] = None):
        self._templates: Dict[str, str] = dict(templates or {})

    def set_template(self, name: str, source: str) -> None:
        self._templates[name] = source

    def get_source(self, name: str) -> str:
        try:
            return self._templates[name]
        except KeyError:
            raise TemplateNotFoundError(name)


class FilesystemLoader:
    """Partial templates stored as <base_dir>/<name><extension>."""

    def __init__(self, base_dir: Path, extension: str = ".mustache"):
        self.base_dir = Path(base_dir)
        self.extension = extension

    def get_source(self, name: str) -> str:
        path = self.base_dir / f"{name}{self.extension}"
        if not path.is_file():
            raise TemplateNotFoundError(name, str(path))
        return path.read_text(encoding="utf-8")


def _digest(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:12]


class Engine:
    """
    Compiles and renders Mustache templates.

    Also implements the loader protocol: partials are fetched from the
    configured template source and compiled on demand, lambda output is
    compiled on demand. Compiled programs are not cached.
    """

    def __init__(self, config: Optional[EngineConfig] = None, partials: Optional[TemplateSource] = None):
        """
        Args:
            config: Engine settings (defaults when None)
            partials: Partial template source; defaults to a FilesystemLoader
                      over config.partials_dir when that is set
        """
        self.config = config or EngineConfig()
        if partials is None and self.config.partials_dir is not None:
            partials = FilesystemLoader(self.config.partials_dir, self.config.partials_extension)
        self.partials = partials
        self.escaper = Escaper(self.config.charset, self.config.escape_single_quotes)
        self.tokenizer = Tokenizer()
        self.parser = Parser()

    def compile(self, source: str, name: Optional[str] = None) -> Program:
        """
        Compile template source.

        Args:
            source: Template text
            name: Program label; derived from the source digest when omitted

        Raises:
            MustacheSyntaxError: If the source does not parse
        """
        tree = self.parser.parse(self.tokenizer.scan(source))
        return Compiler(self, self.escaper).compile(source, tree, name or f"template:{_digest(source)}")

    def new_context(self, data: Any = None) -> Context:
        return Context(data, max_depth=self.config.max_depth)

    def render(self, source: str, data: Any = None, indent: str = "") -> str:
        """Compile source and render it against data."""
        return self.compile(source).render(self.new_context(data), indent)

    # ======= Loader protocol =======

    def load_partial(self, name: str) -> Program:
        try:
            if self.partials is None:
                raise TemplateNotFoundError(name)
            source = self.partials.get_source(name)
        except TemplateNotFoundError:
            if self.config.strict_partials:
                raise
            logger.warning(f"Partial '{name}' not found, rendering it as empty")
            source = ""
        logger.debug(f"Loading partial '{name}'")
        return self.compile(source, name=f"partial:{name}")

    def load_lambda(self, source: str, delimiters: Optional[str] = None) -> Program:
        if delimiters:
            # on a line of its own the tag is standalone, so it adds no output
            source = f"{delimiters}\n{source}"
        return self.compile(source, name=f"lambda:{_digest(source)}")


__all__ = ["TemplateSource", "ArrayLoader", "FilesystemLoader", "Engine"]
