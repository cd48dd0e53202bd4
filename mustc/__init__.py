"""
mustc: Mustache templates compiled to reusable programs.

    engine = Engine()
    program = engine.compile("Hello {{name}}!")
    program.render(engine.new_context({"name": "World"}))
"""

from __future__ import annotations

from .compiler import Compiler
from .config import EngineConfig, load_config
from .context import Context
from .errors import (
    CompileError,
    ConfigError,
    MustacheSyntaxError,
    MustcUserError,
    RecursionLimitError,
    TemplateNotFoundError,
    UnknownNodeKindError,
)
from .escape import Escaper
from .loader import ArrayLoader, Engine, FilesystemLoader
from .parser import parse_template
from .program import Program

__all__ = [
    "Compiler",
    "Program",
    "Context",
    "Escaper",
    "Engine",
    "EngineConfig",
    "load_config",
    "ArrayLoader",
    "FilesystemLoader",
    "parse_template",
    "MustcUserError",
    "CompileError",
    "UnknownNodeKindError",
    "MustacheSyntaxError",
    "TemplateNotFoundError",
    "RecursionLimitError",
    "ConfigError",
]
