from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from functools import lru_cache
from typing import TypeVar

from codestink.config import StinkConfig, compute_enabled_rule_ids, validate_config
from codestink.engine.context import FileContext, FunctionContext, ParsedFragment, VariableContext
from codestink.engine.syntax import parse_fragment
from codestink.engine.types import (
    BASE_SCORE,
    CodeFunction,
    CodeVariable,
    Entity,
    RuleOutcome,
    ScoreResult,
    SourceFile,
)
from codestink.rules.base import BaseRule
from codestink.rules.duplicates import exceeds_scan_ceiling
from codestink.rules.registry import all_rules, file_rules, function_rules, variable_rules

logger = logging.getLogger(__name__)

# File score weight; the remainder goes to the average function score.
FILE_SCORE_WEIGHT = 0.4
FUNCTION_SCORE_WEIGHT = 0.6

# Failures a rule may raise on unusual input. Anything else is a bug and
# propagates.
_RULE_FAILURES = (ValueError, TypeError, AttributeError, IndexError, KeyError, RecursionError)

_Rule = TypeVar("_Rule", bound=BaseRule)


class MalformedInputError(ValueError):
    """Raised when a function fragment cannot be parsed into a syntax tree."""


class StinkEngine:
    """
    Scores files, functions and variables against the rule catalogue.

    Every call builds a fresh `ScoreResult`; the engine keeps no per-entity
    state, so repeated evaluation of an unchanged entity is stable.
    """

    def __init__(self, config: StinkConfig | None = None) -> None:
        self.config = validate_config(config if config is not None else StinkConfig())
        self.enabled_rule_ids = frozenset(
            compute_enabled_rule_ids(self.config, available_rule_ids=(r.meta.rule_id for r in all_rules()))
        )

    def evaluate_function(self, fn: CodeFunction) -> ScoreResult:
        try:
            fragment = self._parse_function(fn)
        except MalformedInputError as exc:
            logger.debug("Skipping function %s: %s", fn.name, exc)
            return ScoreResult(malformed=True)

        ctx = FunctionContext(function=fn, config=self.config, fragment=fragment)
        return ScoreResult(outcomes=self._run(function_rules(), lambda rule: rule.check_function(ctx)))

    def evaluate_variable(self, var: CodeVariable) -> ScoreResult:
        ctx = VariableContext(variable=var, config=self.config)
        return ScoreResult(outcomes=self._run(variable_rules(), lambda rule: rule.check_variable(ctx)))

    def evaluate_file(self, file: SourceFile) -> ScoreResult:
        ctx = FileContext(file=file, config=self.config, lines=tuple(file.text.split("\n")))
        degraded = "D01" in self.enabled_rule_ids and exceeds_scan_ceiling(ctx)
        if degraded:
            logger.warning(
                "%s has %d lines (limit %d); duplicate detection skipped",
                file.name,
                len(ctx.lines),
                self.config.max_duplicate_scan_lines,
            )
        outcomes = self._run(file_rules(), lambda rule: rule.check_file(ctx))
        return ScoreResult(outcomes=outcomes, degraded=degraded)

    def evaluate(self, entity: Entity) -> ScoreResult:
        if isinstance(entity, SourceFile):
            return self.evaluate_file(entity)
        if isinstance(entity, CodeFunction):
            return self.evaluate_function(entity)
        if isinstance(entity, CodeVariable):
            return self.evaluate_variable(entity)
        raise TypeError(f"cannot score {type(entity).__name__}")

    def score(self, entity: Entity) -> int:
        return self.evaluate(entity).clean_level

    def issues(self, entity: Entity) -> list[str]:
        return list(self.evaluate(entity).issues)

    def has_duplicate_code(self, file: SourceFile) -> bool:
        return any(o.rule_id == "D01" and o.triggered for o in self.evaluate_file(file).outcomes)

    def _parse_function(self, fn: CodeFunction) -> ParsedFragment:
        fragment = parse_fragment(fn.text, language=fn.language, kind=fn.kind)
        if fragment is None:
            raise MalformedInputError(f"cannot parse {fn.kind} {fn.name!r}")
        return fragment

    def _run(self, rules: Iterable[_Rule], check: Callable[[_Rule], RuleOutcome]) -> tuple[RuleOutcome, ...]:
        outcomes: list[RuleOutcome] = []
        for rule in rules:
            rule_id = rule.meta.rule_id
            if rule_id not in self.enabled_rule_ids:
                continue
            try:
                outcome = check(rule)
            except _RULE_FAILURES as exc:
                logger.debug("Rule %s failed: %s", rule_id, exc)
                outcome = RuleOutcome(rule_id=rule_id)
            outcomes.append(outcome)
        return tuple(outcomes)


def overall_clean_level(file_score: float, function_scores: Sequence[float]) -> float:
    """
    Weighted file score: 40% duplicate-detection score, 60% average function score.

    A file without functions counts its function average as a perfect score.
    """

    average = sum(function_scores) / len(function_scores) if function_scores else float(BASE_SCORE)
    return FILE_SCORE_WEIGHT * file_score + FUNCTION_SCORE_WEIGHT * average


@lru_cache(maxsize=1)
def default_engine() -> StinkEngine:
    return StinkEngine()
