"""
Compiled templates and the render engine.

A Program is an immutable list of instructions produced by the Compiler.
Rendering interprets the instructions against a Context; nothing in the
Program changes while rendering, so one Program can serve any number of
renders, from any number of threads, as long as each render has its own
Context.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple, Type, Union

from .context import Context
from .escape import Escaper
from .protocols import LoaderProtocol
from .sections import SectionRoutine
from .strategy import Strategy

logger = logging.getLogger(__name__)


# ======= Instructions =======

@dataclass(frozen=True)
class EmitLiteral:
    """Append literal text; indent marks the first emission of a line."""
    text: str
    indent: bool = False


@dataclass(frozen=True)
class EmitVariable:
    """Append a looked-up value, escaped or raw."""
    strategy: Strategy
    name: str
    escape: bool = True
    indent: bool = False


@dataclass(frozen=True)
class EmitSection:
    """
    Render a shared section routine with the value bound to name.

    inline is set when the tag is preceded by output on its line.
    """
    routine: SectionRoutine
    strategy: Strategy
    name: str
    inline: bool = False


@dataclass(frozen=True)
class EmitInvertedSection:
    """Render body once when the value bound to name is falsy."""
    strategy: Strategy
    name: str
    body: Tuple["Instruction", ...] = ()


@dataclass(frozen=True)
class EmitPartial:
    """Render a partial with the caller's indent plus its own."""
    name: str
    indent: str = ""
    inline: bool = False


Instruction = Union[EmitLiteral, EmitVariable, EmitSection, EmitInvertedSection, EmitPartial]


def is_lambda(value: Any) -> bool:
    return callable(value) and not isinstance(value, str)


def is_iterable(value: Any) -> bool:
    """Values a section iterates over (as opposed to pushing them once)."""
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping))


class _RenderState:
    """Output buffer and indentation of one Program render call."""
    __slots__ = ("context", "indent", "parts", "skip_indent")

    def __init__(self, context: Context, indent: str, skip_indent: bool):
        self.context = context
        self.indent = indent
        self.parts: List[str] = []
        # The first line of an inline partial already carries the caller's indent
        self.skip_indent = skip_indent

    def write_indent(self) -> None:
        if self.skip_indent:
            self.skip_indent = False
        elif self.indent:
            self.parts.append(self.indent)

    def write(self, text: str) -> None:
        if text:
            self.parts.append(text)


class Program:
    """
    Executable compiled template.

    Attributes:
        name: Label of the compiled template (used in diagnostics)
        instructions: Top-level instructions in output order
    """

    def __init__(
        self,
        name: str,
        instructions: Tuple[Instruction, ...],
        loader: LoaderProtocol,
        escaper: Escaper,
    ):
        self.name = name
        self.instructions = instructions
        self.loader = loader
        self.escaper = escaper

    def __repr__(self) -> str:
        return f"Program({self.name!r}, {len(self.instructions)} instructions)"

    def render(self, context: Context, indent: str = "", escape: bool = False) -> str:
        """
        Render the template.

        Args:
            context: Lookup context; mutated during the call and restored on return
            indent: Prefix for every output line
            escape: Escape the whole output

        Returns:
            Rendered text
        """
        text = self._render(context, indent, continued=False)
        if escape:
            return self.escaper.escape(text)
        return text

    # ======= Internal methods =======

    def _render(self, context: Context, indent: str, continued: bool) -> str:
        state = _RenderState(context, indent, skip_indent=continued)
        self._run(self.instructions, state)
        return "".join(state.parts)

    def _run(self, instructions: Tuple[Instruction, ...], state: _RenderState) -> None:
        for instruction in instructions:
            self._HANDLERS[type(instruction)](self, instruction, state)

    @staticmethod
    def _lookup(strategy: Strategy, name: str, context: Context) -> Any:
        if strategy is Strategy.LAST:
            return context.last()
        if strategy is Strategy.DIRECT:
            return context.find(name)
        return context.find_dot(name)

    def _emit_literal(self, instruction: EmitLiteral, state: _RenderState) -> None:
        if instruction.indent:
            state.write_indent()
        state.write(instruction.text)
        if "\n" in instruction.text:
            state.skip_indent = False

    def _emit_variable(self, instruction: EmitVariable, state: _RenderState) -> None:
        value = self._lookup(instruction.strategy, instruction.name, state.context)
        if is_lambda(value):
            with state.context.descend():
                program = self.loader.load_lambda(str(value()))
                value = program.render(state.context)
        text = "" if value is None else str(value)
        if instruction.escape:
            text = self.escaper.escape(text)
        if instruction.indent:
            state.write_indent()
        state.write(text)

    def _emit_section(self, instruction: EmitSection, state: _RenderState) -> None:
        context = state.context
        routine = instruction.routine
        value = self._lookup(instruction.strategy, instruction.name, context)

        if is_lambda(value):
            with context.descend():
                program = self.loader.load_lambda(str(value(routine.source)), routine.delimiters)
                text = program._render(
                    context, state.indent, continued=instruction.inline or state.skip_indent
                )
            if text:
                state.skip_indent = False
            state.write(text)
        elif not value:
            return
        elif is_iterable(value):
            for item in value:
                with context.scope(item):
                    self._run(routine.body, state)
        else:
            with context.scope(value):
                self._run(routine.body, state)

    def _emit_inverted_section(self, instruction: EmitInvertedSection, state: _RenderState) -> None:
        value = self._lookup(instruction.strategy, instruction.name, state.context)
        if not value:
            self._run(instruction.body, state)

    def _emit_partial(self, instruction: EmitPartial, state: _RenderState) -> None:
        logger.debug(f"Rendering partial '{instruction.name}' from '{self.name}'")
        with state.context.descend():
            program = self.loader.load_partial(instruction.name)
            text = program._render(
                state.context,
                state.indent + instruction.indent,
                continued=instruction.inline or state.skip_indent,
            )
        if text:
            state.skip_indent = False
        state.write(text)

    _HANDLERS: Dict[Type[Any], Callable[["Program", Any, _RenderState], None]] = {
        EmitLiteral: _emit_literal,
        EmitVariable: _emit_variable,
        EmitSection: _emit_section,
        EmitInvertedSection: _emit_inverted_section,
        EmitPartial: _emit_partial,
    }

    # ======= Diagnostics =======

    @property
    def routines(self) -> List[SectionRoutine]:
        """Distinct section routines reachable from this program, in first-use order."""
        found: Dict[str, SectionRoutine] = {}

        def visit(instructions: Tuple[Instruction, ...]) -> None:
            for instruction in instructions:
                if isinstance(instruction, EmitSection):
                    if instruction.routine.key not in found:
                        found[instruction.routine.key] = instruction.routine
                        visit(instruction.routine.body)
                elif isinstance(instruction, EmitInvertedSection):
                    visit(instruction.body)

        visit(self.instructions)
        return list(found.values())

    def describe(self) -> str:
        """Readable listing of the instructions and section routines."""
        lines = [f"program {self.name}"]
        _describe(self.instructions, 1, lines)
        for routine in self.routines:
            lines.append(f"routine {routine.key[:8]}" + (f" {routine.delimiters}" if routine.delimiters else ""))
            _describe(routine.body, 1, lines)
        return "\n".join(lines)


def _describe(instructions: Tuple[Instruction, ...], level: int, lines: List[str]) -> None:
    pad = "  " * level
    for ins in instructions:
        mark = " +indent" if getattr(ins, "indent", False) is True else ""
        if isinstance(ins, EmitLiteral):
            lines.append(f"{pad}text {ins.text!r}{mark}")
        elif isinstance(ins, EmitVariable):
            kind = "escaped" if ins.escape else "raw"
            lines.append(f"{pad}var {ins.strategy.value} {ins.name!r} {kind}{mark}")
        elif isinstance(ins, EmitSection):
            lines.append(f"{pad}section {ins.strategy.value} {ins.name!r} -> {ins.routine.key[:8]}")
        elif isinstance(ins, EmitInvertedSection):
            lines.append(f"{pad}inverted {ins.strategy.value} {ins.name!r}")
            _describe(ins.body, level + 1, lines)
        elif isinstance(ins, EmitPartial):
            lines.append(f"{pad}partial {ins.name!r} indent {ins.indent!r}")


__all__ = [
    "EmitLiteral",
    "EmitVariable",
    "EmitSection",
    "EmitInvertedSection",
    "EmitPartial",
    "Instruction",
    "Program",
    "is_lambda",
    "is_iterable",
]
