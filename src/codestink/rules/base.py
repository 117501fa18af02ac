from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from codestink.engine.context import FileContext, FunctionContext, VariableContext
from codestink.engine.types import RuleOutcome

Target = Literal["function", "variable", "file"]


@dataclass(frozen=True, slots=True)
class RuleMeta:
    rule_id: str
    title: str
    description: str
    target: Target


class BaseRule(ABC):
    meta: RuleMeta

    def _outcome(self, penalty: int, *issues: str) -> RuleOutcome:
        return RuleOutcome(rule_id=self.meta.rule_id, penalty=penalty, issues=tuple(issues))

    def _clean(self) -> RuleOutcome:
        return RuleOutcome(rule_id=self.meta.rule_id)


class FunctionRule(BaseRule):
    @abstractmethod
    def check_function(self, ctx: FunctionContext) -> RuleOutcome: ...


class VariableRule(BaseRule):
    @abstractmethod
    def check_variable(self, ctx: VariableContext) -> RuleOutcome: ...


class FileRule(BaseRule):
    @abstractmethod
    def check_file(self, ctx: FileContext) -> RuleOutcome: ...
