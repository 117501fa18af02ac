from __future__ import annotations

import re

from codestink.engine.context import FunctionContext
from codestink.engine.syntax import AbstractionMix, abstraction_mix, is_identifier, iter_nodes, node_text
from codestink.engine.types import RuleOutcome
from codestink.rules.base import FunctionRule, RuleMeta
from codestink.rules.utils import has_descriptive_parts, is_camel_case, split_camel_case

# The first parenthesised group stands in for the parameter list. This is a
# deliberately cheap approximation; fragments without one are skipped.
_PARAMETER_LIST_RE = re.compile(r"\(([^)]*)\)")
_BOOLEAN_PARAMETER_RE = re.compile(r"\(([^)]*bool[^)]*)\)", re.IGNORECASE)
_PROPERTY_ASSIGNMENT_RE = re.compile(r"(\w+)\.(\w+)\s*=(?!=)")
_OBJECT_COPY_RE = re.compile(r"Object\.assign|\.\.\.")
_MIXED_CONDITION_RE = re.compile(r"if\s*\(.*(?:&&.*\|\||\|\|.*&&).*\)")
_NEGATIVE_CONDITION_RE = re.compile(r"if\s*\(\s*!|!=")


class F01FunctionLength(FunctionRule):
    meta = RuleMeta(
        rule_id="F01",
        title="Function too long",
        description="Functions longer than the line threshold are harder to read and test.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        max_lines = ctx.config.thresholds.max_lines
        lines = len(ctx.text.split("\n"))
        if lines <= max_lines:
            return self._clean()
        return self._outcome(
            ctx.config.penalties.max_lines,
            f"Function {ctx.function.name} has {lines} lines (maximum recommended: {max_lines})",
        )


class F02BlockCount(FunctionRule):
    meta = RuleMeta(
        rule_id="F02",
        title="Too many code blocks",
        description="Counts opening braces; every block beyond the threshold adds a penalty.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        max_blocks = ctx.config.thresholds.max_blocks
        blocks = ctx.text.count("{")
        if blocks <= max_blocks:
            return self._clean()
        return self._outcome(
            (blocks - max_blocks) * ctx.config.penalties.max_blocks,
            f"Function {ctx.function.name} has {blocks} code blocks (maximum recommended: {max_blocks})",
        )


def count_parameters(text: str) -> int | None:
    """Number of comma-separated entries in the first `(...)`, or None without one."""

    match = _PARAMETER_LIST_RE.search(text)
    if match is None:
        return None
    params = match.group(1).strip()
    return len(params.split(",")) if params else 0


class F03ParameterCount(FunctionRule):
    meta = RuleMeta(
        rule_id="F03",
        title="Too many parameters",
        description="Every parameter beyond the threshold adds a penalty.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        count = count_parameters(ctx.text)
        max_params = ctx.config.thresholds.max_parameters
        if count is None or count <= max_params:
            return self._clean()
        return self._outcome(
            (count - max_params) * ctx.config.penalties.max_parameters,
            f"Function {ctx.function.name} has {count} parameters (maximum recommended: {max_params})",
        )


class F04NameCase(FunctionRule):
    meta = RuleMeta(
        rule_id="F04",
        title="Function name not camelCase",
        description="Function names must match ^[a-z][a-zA-Z0-9]*$.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        name = ctx.function.name
        if is_camel_case(name):
            return self._clean()
        return self._outcome(
            ctx.config.penalties.function_name,
            f"Function '{name}' is not using camelCase naming convention",
        )


class F05NameVerb(FunctionRule):
    meta = RuleMeta(
        rule_id="F05",
        title="Function name lacks an action verb",
        description="The first word of a function name should come from the approved verb list.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        name = ctx.function.name
        words = split_camel_case(name)
        if not words or words[0].lower() in ctx.config.naming.verbs:
            return self._clean()
        return self._outcome(
            ctx.config.penalties.function_name,
            f"Function '{name}' doesn't start with a valid action verb",
        )


class F06NameDescriptiveness(FunctionRule):
    meta = RuleMeta(
        rule_id="F06",
        title="Function name not descriptive",
        description="Function names need at least two camelCase words, none a single letter.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        name = ctx.function.name
        if has_descriptive_parts(split_camel_case(name)):
            return self._clean()
        return self._outcome(ctx.config.penalties.function_name, f"Function '{name}' lacks descriptive naming")


class F07AbstractionMixing(FunctionRule):
    meta = RuleMeta(
        rule_id="F07",
        title="Mixed levels of abstraction",
        description="The body both delegates (calls) and performs direct declarations/statements.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        fragment = ctx.fragment
        if fragment is None or fragment.function_node is None:
            return self._clean()
        body = fragment.function_node.child_by_field_name("body")
        if body is None or abstraction_mix(body) != AbstractionMix.MIXED:
            return self._clean()
        return self._outcome(
            ctx.config.penalties.abstraction_level,
            f"Function {ctx.function.name} mixes different levels of abstraction",
        )


class F08BooleanParameter(FunctionRule):
    meta = RuleMeta(
        rule_id="F08",
        title="Boolean parameter",
        description="Boolean flag parameters hide two behaviours behind one signature.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        if _BOOLEAN_PARAMETER_RE.search(ctx.text) is None:
            return self._clean()
        return self._outcome(
            ctx.config.penalties.boolean_parameter,
            f"Function {ctx.function.name} uses boolean parameters which reduce readability",
        )


class F09GlobalSymbols(FunctionRule):
    meta = RuleMeta(
        rule_id="F09",
        title="Global symbol usage",
        description="References to ambient globals (window, document, ...) couple code to its environment.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        fragment = ctx.fragment
        if fragment is None:
            return self._clean()
        globals_ = set(ctx.config.global_symbols)
        found: dict[str, None] = {}
        for node in iter_nodes(fragment.root):
            if not is_identifier(node):
                continue
            name = node_text(node, fragment.source)
            if name in globals_:
                found[name] = None
        if not found:
            return self._clean()
        return self._outcome(
            ctx.config.penalties.global_variable,
            f"Function {ctx.function.name} uses global variables: {', '.join(found)}",
        )


class F10MutableObjects(FunctionRule):
    meta = RuleMeta(
        rule_id="F10",
        title="Objects mutated in place",
        description="Several property assignments without Object.assign or spread copies.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        assignments = len(_PROPERTY_ASSIGNMENT_RE.findall(ctx.text))
        if assignments <= 1 or _OBJECT_COPY_RE.search(ctx.text) is not None:
            return self._clean()
        return self._outcome(
            ctx.config.penalties.mutable_object,
            f"Function {ctx.function.name} modifies objects without cloning them first",
        )


class F11UnencapsulatedCondition(FunctionRule):
    meta = RuleMeta(
        rule_id="F11",
        title="Unencapsulated condition",
        description="An if-guard mixes && and || instead of naming the condition.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        matches = len(_MIXED_CONDITION_RE.findall(ctx.text))
        if not matches:
            return self._clean()
        return self._outcome(
            matches * ctx.config.penalties.unencapsulated_condition,
            f"Function {ctx.function.name} has {matches} complex conditions that should be encapsulated",
        )


class F12NegativeConditional(FunctionRule):
    meta = RuleMeta(
        rule_id="F12",
        title="Negative conditional",
        description="Negated guards and not-equal comparisons read worse than positive ones.",
        target="function",
    )

    def check_function(self, ctx: FunctionContext) -> RuleOutcome:
        matches = len(_NEGATIVE_CONDITION_RE.findall(ctx.text))
        if not matches:
            return self._clean()
        return self._outcome(
            matches * ctx.config.penalties.negative_conditional,
            f"Function {ctx.function.name} uses {matches} negative conditionals, prefer positive conditions",
        )


def builtin_function_rules() -> list[FunctionRule]:
    return [
        F01FunctionLength(),
        F02BlockCount(),
        F03ParameterCount(),
        F04NameCase(),
        F05NameVerb(),
        F06NameDescriptiveness(),
        F07AbstractionMixing(),
        F08BooleanParameter(),
        F09GlobalSymbols(),
        F10MutableObjects(),
        F11UnencapsulatedCondition(),
        F12NegativeConditional(),
    ]
