from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from codestink.config import StinkConfig
from codestink.engine.types import CodeFunction, CodeVariable, SourceFile


class SyntaxTree(Protocol):
    # tree-sitter Tree exposes `root_node`; we treat nodes structurally.
    root_node: Any


@dataclass(frozen=True, slots=True)
class ParsedFragment:
    """A single function's source parsed on its own."""

    source: bytes
    root: Any
    # The function-like node the fragment describes; None when the parse did
    # not produce one (e.g. a truncated fragment).
    function_node: Any | None = None


@dataclass(frozen=True, slots=True)
class FunctionContext:
    function: CodeFunction
    config: StinkConfig
    fragment: ParsedFragment | None = None

    @property
    def text(self) -> str:
        return self.function.text


@dataclass(frozen=True, slots=True)
class VariableContext:
    variable: CodeVariable
    config: StinkConfig


@dataclass(frozen=True, slots=True)
class FileContext:
    file: SourceFile
    config: StinkConfig
    lines: tuple[str, ...]
