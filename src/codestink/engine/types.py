from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from codestink.engine.scoring import StinkEngine

FunctionKind = Literal["function", "method", "arrow"]

BASE_SCORE = 100


class ValueKind(enum.Enum):
    ABSENT = "absent"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    MAP = "map"
    SET = "set"
    FUNCTION = "function"
    OTHER = "other"


# Kinds that name a concrete runtime type. ABSENT and OTHER carry no type
# information, so type-mismatch checks skip them.
_TYPED_KINDS = frozenset(
    {
        ValueKind.BOOLEAN,
        ValueKind.NUMBER,
        ValueKind.STRING,
        ValueKind.ARRAY,
        ValueKind.OBJECT,
        ValueKind.MAP,
        ValueKind.SET,
        ValueKind.FUNCTION,
    }
)


@dataclass(frozen=True, slots=True)
class BoundValue:
    kind: ValueKind
    text: str = ""

    @property
    def type_name(self) -> str | None:
        """Runtime type name used in issue messages, or None when unknown."""

        if self.kind in _TYPED_KINDS:
            return self.kind.value
        return None

    @classmethod
    def absent(cls) -> BoundValue:
        return cls(ValueKind.ABSENT)

    @classmethod
    def from_python(cls, value: Any) -> BoundValue:
        """
        Classify a Python value the way a JavaScript runtime would see it.

        `bool` is checked before `int` because it is a subclass of it.
        """

        if value is None:
            kind = ValueKind.ABSENT
        elif isinstance(value, bool):
            kind = ValueKind.BOOLEAN
        elif isinstance(value, (int, float)):
            kind = ValueKind.NUMBER
        elif isinstance(value, str):
            kind = ValueKind.STRING
        elif isinstance(value, (set, frozenset)):
            kind = ValueKind.SET
        elif isinstance(value, Mapping):
            kind = ValueKind.MAP if not isinstance(value, dict) else ValueKind.OBJECT
        elif isinstance(value, Sequence):
            kind = ValueKind.ARRAY
        elif callable(value):
            kind = ValueKind.FUNCTION
        else:
            kind = ValueKind.OTHER
        return cls(kind, repr(value))

    @classmethod
    def from_node(cls, node: Any | None, source: bytes) -> BoundValue:
        """Classify a declarator's initializer node without evaluating it."""

        if node is None:
            return cls.absent()
        text = source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
        return cls(_kind_of_node(node, source), text)


@dataclass(slots=True)
class CodeVariable:
    name: str
    value: BoundValue = field(default_factory=BoundValue.absent)
    function_name: str | None = None

    def compute_clean_level(self, engine: StinkEngine | None = None) -> int:
        return _engine_or_default(engine).score(self)

    def issues(self, engine: StinkEngine | None = None) -> list[str]:
        return _engine_or_default(engine).issues(self)


@dataclass(slots=True)
class CodeFunction:
    name: str
    text: str
    file_name: str | None = None
    kind: FunctionKind = "function"
    language: str = "typescript"
    start_line: int | None = None  # 1-based
    variables: list[CodeVariable] = field(default_factory=list)

    def compute_clean_level(self, engine: StinkEngine | None = None) -> int:
        return _engine_or_default(engine).score(self)

    def issues(self, engine: StinkEngine | None = None) -> list[str]:
        return _engine_or_default(engine).issues(self)


@dataclass(slots=True)
class SourceFile:
    name: str
    text: str
    language: str = "typescript"
    path: Path | None = None
    functions: list[CodeFunction] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.text)

    def compute_clean_level(self, engine: StinkEngine | None = None) -> int:
        return _engine_or_default(engine).score(self)

    def issues(self, engine: StinkEngine | None = None) -> list[str]:
        return _engine_or_default(engine).issues(self)


Entity = SourceFile | CodeFunction | CodeVariable


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    rule_id: str
    penalty: int = 0
    issues: tuple[str, ...] = ()

    @property
    def triggered(self) -> bool:
        return self.penalty > 0 or bool(self.issues)


@dataclass(frozen=True, slots=True)
class ScoreResult:
    outcomes: tuple[RuleOutcome, ...] = ()
    malformed: bool = False
    degraded: bool = False

    @property
    def stink_level(self) -> int:
        return sum(o.penalty for o in self.outcomes)

    @property
    def clean_level(self) -> int:
        return max(0, BASE_SCORE - self.stink_level)

    @property
    def issues(self) -> tuple[str, ...]:
        return tuple(issue for o in self.outcomes for issue in o.issues)


@dataclass(frozen=True, slots=True)
class VariableAnalysis:
    variable: CodeVariable
    result: ScoreResult

    @property
    def clean_level(self) -> int:
        return self.result.clean_level

    @property
    def issues(self) -> tuple[str, ...]:
        return self.result.issues


@dataclass(frozen=True, slots=True)
class FunctionAnalysis:
    function: CodeFunction
    result: ScoreResult
    variables: tuple[VariableAnalysis, ...] = ()

    @property
    def clean_level(self) -> int:
        return self.result.clean_level

    @property
    def issues(self) -> tuple[str, ...]:
        return self.result.issues


@dataclass(frozen=True, slots=True)
class SkippedEntity:
    file_name: str
    reason: str
    entity_name: str | None = None


@dataclass(frozen=True, slots=True)
class FileAnalysis:
    file: SourceFile
    result: ScoreResult
    functions: tuple[FunctionAnalysis, ...]
    overall_clean_level: float
    skipped: tuple[SkippedEntity, ...] = ()

    def all_issues(self) -> list[str]:
        """File, function and variable issues, in that order."""

        issues = list(self.result.issues)
        for fn in self.functions:
            issues.extend(fn.issues)
            for var in fn.variables:
                issues.extend(var.issues)
        return issues

    @property
    def issue_count(self) -> int:
        return len(self.all_issues())


@dataclass(frozen=True, slots=True)
class AnalysisResults:
    files: tuple[FileAnalysis, ...] = ()
    skipped: tuple[SkippedEntity, ...] = ()

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def function_count(self) -> int:
        return sum(len(f.functions) for f in self.files)

    @property
    def issue_count(self) -> int:
        return sum(f.issue_count for f in self.files)

    @property
    def average_clean_level(self) -> float:
        if not self.files:
            return 0.0
        return sum(f.overall_clean_level for f in self.files) / len(self.files)


_LITERAL_KINDS: Mapping[str, ValueKind] = {
    "string": ValueKind.STRING,
    "template_string": ValueKind.STRING,
    "number": ValueKind.NUMBER,
    "true": ValueKind.BOOLEAN,
    "false": ValueKind.BOOLEAN,
    "array": ValueKind.ARRAY,
    "object": ValueKind.OBJECT,
    "arrow_function": ValueKind.FUNCTION,
    "function": ValueKind.FUNCTION,
    "function_expression": ValueKind.FUNCTION,
    "generator_function": ValueKind.FUNCTION,
    "null": ValueKind.ABSENT,
    "undefined": ValueKind.ABSENT,
}
_WRAPPER_NODE_TYPES = frozenset({"parenthesized_expression", "as_expression", "satisfies_expression", "non_null_expression"})
_COMPARISON_OPERATORS = frozenset({"==", "===", "!=", "!==", "<", "<=", ">", ">=", "instanceof", "in"})
_CONSTRUCTED_KINDS: Mapping[str, ValueKind] = {"Map": ValueKind.MAP, "WeakMap": ValueKind.MAP, "Set": ValueKind.SET, "WeakSet": ValueKind.SET}


def _kind_of_node(node: Any, source: bytes) -> ValueKind:
    while node.type in _WRAPPER_NODE_TYPES:
        inner = next(iter(node.named_children), None)
        if inner is None:
            return ValueKind.OTHER
        node = inner

    kind = _LITERAL_KINDS.get(node.type)
    if kind is not None:
        return kind

    if node.type == "identifier" and _text(node, source) == "undefined":
        return ValueKind.ABSENT
    if node.type == "new_expression":
        ctor = node.child_by_field_name("constructor")
        if ctor is not None:
            return _CONSTRUCTED_KINDS.get(_text(ctor, source), ValueKind.OTHER)
        return ValueKind.OTHER
    if node.type == "unary_expression":
        operator = node.child_by_field_name("operator")
        op = _text(operator, source) if operator is not None else ""
        if op in {"-", "+", "~"}:
            return ValueKind.NUMBER
        if op == "!":
            return ValueKind.BOOLEAN
        if op == "typeof":
            return ValueKind.STRING
        return ValueKind.OTHER
    if node.type == "binary_expression":
        operator = node.child_by_field_name("operator")
        if operator is not None and _text(operator, source) in _COMPARISON_OPERATORS:
            return ValueKind.BOOLEAN
    return ValueKind.OTHER


def _text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _engine_or_default(engine: StinkEngine | None) -> StinkEngine:
    if engine is not None:
        return engine
    from codestink.engine.scoring import default_engine

    return default_engine()
