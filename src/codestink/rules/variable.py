from __future__ import annotations

from codestink.engine.context import VariableContext
from codestink.engine.types import RuleOutcome
from codestink.rules.base import RuleMeta, VariableRule
from codestink.rules.utils import has_type_prefix, has_type_suffix, is_camel_case


class V01VariableName(VariableRule):
    meta = RuleMeta(
        rule_id="V01",
        title="Poor variable name",
        description="Variable names must be long enough, avoid stray single letters and use camelCase.",
        target="variable",
    )

    def check_variable(self, ctx: VariableContext) -> RuleOutcome:
        name = ctx.variable.name
        thresholds = ctx.config.thresholds
        penalty = ctx.config.penalties.variable_name

        if len(name) < thresholds.min_variable_name_length:
            return self._outcome(penalty, f"Variable '{name}' is too short to be descriptive")
        if len(name) == 1 and name not in ctx.config.naming.loop_index_names:
            return self._outcome(penalty, f"Variable '{name}' uses non-standard single letter naming")
        if not is_camel_case(name):
            return self._outcome(penalty, f"Variable '{name}' should use camelCase naming")
        return self._clean()


class V02TypeMismatch(VariableRule):
    meta = RuleMeta(
        rule_id="V02",
        title="Name implies a different type",
        description="A type marker in the name (isX, itemCount, strName, ...) disagrees with the bound value.",
        target="variable",
    )

    def check_variable(self, ctx: VariableContext) -> RuleOutcome:
        actual = ctx.variable.value.type_name
        if actual is None:
            return self._clean()

        name = ctx.variable.name
        for marker, expected in ctx.config.naming.type_markers.items():
            if not (has_type_prefix(name, marker) or has_type_suffix(name, marker)):
                continue
            if expected != actual:
                return self._outcome(
                    ctx.config.penalties.type_mismatch,
                    f"Variable '{name}' implies type '{expected}' but contains a value of type '{actual}'",
                )
        return self._clean()


def builtin_variable_rules() -> list[VariableRule]:
    return [V01VariableName(), V02TypeMismatch()]
