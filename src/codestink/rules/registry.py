from __future__ import annotations

import re
from functools import lru_cache

from codestink.config import DEFAULT_RULE_GROUPS
from codestink.rules.base import BaseRule, FileRule, FunctionRule, VariableRule
from codestink.rules.duplicates import builtin_file_rules
from codestink.rules.function import builtin_function_rules
from codestink.rules.variable import builtin_variable_rules

_RULE_ID_RE = re.compile(r"^[A-Z][0-9]{2,}$")


def _check_ids(rules: list[BaseRule]) -> None:
    seen: set[str] = set()
    for rule in rules:
        rule_id = rule.meta.rule_id
        if not _RULE_ID_RE.match(rule_id):  # pragma: no cover
            raise RuntimeError(f"Rule id must match {_RULE_ID_RE.pattern}: {rule_id!r}")
        if rule_id in seen:  # pragma: no cover
            raise RuntimeError(f"Duplicate rule id: {rule_id}")
        seen.add(rule_id)


# Evaluation order is catalogue order, which fixes the order of issues.
@lru_cache(maxsize=1)
def function_rules() -> tuple[FunctionRule, ...]:
    return tuple(builtin_function_rules())


@lru_cache(maxsize=1)
def variable_rules() -> tuple[VariableRule, ...]:
    return tuple(builtin_variable_rules())


@lru_cache(maxsize=1)
def file_rules() -> tuple[FileRule, ...]:
    return tuple(builtin_file_rules())


@lru_cache(maxsize=1)
def all_rules() -> tuple[BaseRule, ...]:
    rules: list[BaseRule] = [*function_rules(), *variable_rules(), *file_rules()]
    _check_ids(rules)
    return tuple(rules)


def rule_ids() -> set[str]:
    return {r.meta.rule_id for r in all_rules()}


def groups_for_rule(rule_id: str) -> tuple[str, ...]:
    """Named groups (excluding `all`) that contain `rule_id`."""

    return tuple(name for name, ids in DEFAULT_RULE_GROUPS.items() if name != "all" and rule_id in ids)
