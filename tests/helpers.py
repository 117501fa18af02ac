from __future__ import annotations

from pathlib import Path

from codestink.engine.types import BoundValue, CodeFunction, CodeVariable, FunctionKind


def make_function(text: str, *, name: str = "fetchUser", kind: FunctionKind = "function") -> CodeFunction:
    return CodeFunction(name=name, text=text, file_name="example.ts", kind=kind)


def make_variable(name: str, value: object = None) -> CodeVariable:
    return CodeVariable(name=name, value=BoundValue.from_python(value), function_name="fetchUser")


def write_ts(root: Path, relpath: str, content: str) -> Path:
    path = root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
