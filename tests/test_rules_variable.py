from __future__ import annotations

from dataclasses import replace

import pytest
from helpers import make_variable

from codestink.config import StinkConfig, Thresholds
from codestink.engine.context import VariableContext
from codestink.engine.types import BoundValue, CodeVariable, ValueKind
from codestink.rules.utils import has_type_prefix, has_type_suffix
from codestink.rules.variable import V01VariableName, V02TypeMismatch


def _ctx(var: CodeVariable, config: StinkConfig | None = None) -> VariableContext:
    return VariableContext(variable=var, config=config or StinkConfig())


def test_v01_rejects_names_below_minimum_length() -> None:
    outcome = V01VariableName().check_variable(_ctx(make_variable("x", 1)))

    assert outcome.penalty == 10
    assert outcome.issues == ("Variable 'x' is too short to be descriptive",)


def test_v01_single_letter_rule_applies_when_minimum_is_one() -> None:
    config = replace(StinkConfig(), thresholds=Thresholds(min_variable_name_length=1))
    rule = V01VariableName()

    assert not rule.check_variable(_ctx(make_variable("i", 0), config)).triggered
    assert rule.check_variable(_ctx(make_variable("q", 0), config)).issues == (
        "Variable 'q' uses non-standard single letter naming",
    )


def test_v01_requires_camel_case() -> None:
    outcome = V01VariableName().check_variable(_ctx(make_variable("user_name", "a")))

    assert outcome.issues == ("Variable 'user_name' should use camelCase naming",)


def test_v01_reports_at_most_one_issue() -> None:
    outcome = V01VariableName().check_variable(_ctx(make_variable("X", 1)))

    assert len(outcome.issues) == 1


def test_v02_flags_boolean_prefix_bound_to_number() -> None:
    outcome = V02TypeMismatch().check_variable(_ctx(make_variable("isActive", 1)))

    assert outcome.penalty == 15
    assert outcome.issues == ("Variable 'isActive' implies type 'boolean' but contains a value of type 'number'",)


def test_v02_accepts_matching_kind() -> None:
    assert not V02TypeMismatch().check_variable(_ctx(make_variable("isActive", True))).triggered


@pytest.mark.parametrize(
    ("name", "value", "expected"),
    [
        ("itemCount", "ten", "number"),
        ("strName", 3, "string"),
        ("userMap", {"a": 1}, "map"),
        ("onSaveFn", [1], "function"),
    ],
)
def test_v02_checks_prefix_and_suffix_markers(name: str, value: object, expected: str) -> None:
    outcome = V02TypeMismatch().check_variable(_ctx(make_variable(name, value)))

    assert outcome.triggered
    assert f"implies type '{expected}'" in outcome.issues[0]


def test_v02_skips_values_without_known_type() -> None:
    absent = CodeVariable(name="isReady")
    unknown = CodeVariable(name="isReady", value=BoundValue(ValueKind.OTHER, "compute()"))

    assert not V02TypeMismatch().check_variable(_ctx(absent)).triggered
    assert not V02TypeMismatch().check_variable(_ctx(unknown)).triggered


def test_type_markers_respect_word_boundaries() -> None:
    assert has_type_prefix("isActive", "is")
    assert not has_type_prefix("issues", "is")
    assert not has_type_prefix("settings", "set")
    assert has_type_suffix("itemCount", "count")
    assert not has_type_suffix("discount", "count")
    assert not has_type_suffix("count", "count")


def test_bound_value_from_python_checks_bool_before_int() -> None:
    assert BoundValue.from_python(True).kind is ValueKind.BOOLEAN
    assert BoundValue.from_python(3).kind is ValueKind.NUMBER
    assert BoundValue.from_python({1, 2}).kind is ValueKind.SET
    assert BoundValue.from_python(len).kind is ValueKind.FUNCTION
    assert BoundValue.from_python(None).type_name is None
