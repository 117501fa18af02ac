from __future__ import annotations

from dataclasses import replace

import pytest
from helpers import make_function, make_variable

from codestink.config import ConfigError, Penalties, RulesConfig, StinkConfig, Thresholds
from codestink.engine.scoring import StinkEngine, default_engine, overall_clean_level
from codestink.engine.types import CodeFunction, SourceFile
from codestink.rules.function import F08BooleanParameter

CLEAN = "function fetchUser(id) {\n  return store.get(id);\n}"

STINKY = (
    "function Handle_Everything(a, b, c, d, e, f, g, isLoud: boolean) {\n"
    "  const total = a + b;\n"
    "  window.alert(total);\n"
    "  a.x = 1;\n"
    "  a.y = 2;\n"
    "  if (!a && b || c) { return; }\n"
    "  if (d != e) { return; }\n"
    "  if (f) { g(); }\n"
    "  if (f) { g(); }\n"
    "  if (f) { g(); }\n"
    "  if (f) { g(); }\n"
    "  if (f) { g(); }\n"
    "  if (f) { g(); }\n"
    "  if (f) { g(); }\n"
    "  if (f) { g(); }\n"
    "}"
)


def test_clean_function_scores_100(engine: StinkEngine) -> None:
    fn = make_function(CLEAN)

    assert engine.score(fn) == 100
    assert engine.issues(fn) == []


def test_scoring_is_idempotent(engine: StinkEngine) -> None:
    fn = make_function(STINKY, name="Handle_Everything")

    first = (engine.score(fn), engine.issues(fn))
    second = (engine.score(fn), engine.issues(fn))

    assert first == second
    assert fn.compute_clean_level(engine) == first[0]
    assert fn.issues(engine) == first[1]


def test_score_is_clamped_at_zero(engine: StinkEngine) -> None:
    fn = make_function(STINKY, name="Handle_Everything")

    result = engine.evaluate(fn)

    assert result.stink_level > 100
    assert result.clean_level == 0
    assert engine.score(fn) == 0


def test_adding_a_violation_never_raises_the_score(engine: StinkEngine) -> None:
    base = make_function("function fetchUser(a, b) {\n  return a;\n}")
    worse = make_function("function fetchUser(a, b, c, d) {\n  return a;\n}")

    assert engine.score(worse) <= engine.score(base)


def test_issues_follow_catalogue_order(engine: StinkEngine) -> None:
    fn = make_function("function x(a, b, c, d) {\n  return a;\n}", name="x")

    issues = engine.issues(fn)

    assert issues == [
        "Function x has 4 parameters (maximum recommended: 3)",
        "Function 'x' doesn't start with a valid action verb",
        "Function 'x' lacks descriptive naming",
    ]
    assert engine.score(fn) == 100 - 5 - 10 - 10


def test_variables_are_scored_independently(engine: StinkEngine) -> None:
    var = make_variable("isActive", 1)

    assert engine.score(var) == 85
    assert var.compute_clean_level(engine) == 85


def test_file_score_ignores_function_violations(engine: StinkEngine) -> None:
    source = SourceFile(name="a.ts", text=STINKY)

    assert engine.score(source) == 100


def test_malformed_fragment_yields_neutral_result(monkeypatch: pytest.MonkeyPatch, engine: StinkEngine) -> None:
    import codestink.engine.syntax as syntax

    monkeypatch.setattr(syntax, "parse", lambda _language, _source: None)
    fn = make_function(STINKY, name="Handle_Everything")

    result = engine.evaluate_function(fn)

    assert result.malformed is True
    assert result.clean_level == 100
    assert result.issues == ()


def test_failing_rule_is_isolated(monkeypatch: pytest.MonkeyPatch, engine: StinkEngine) -> None:
    def _boom(self: object, ctx: object) -> None:
        raise ValueError("boom")

    monkeypatch.setattr(F08BooleanParameter, "check_function", _boom)
    fn = make_function("function fetchUser(a, b, c, d, isOn: boolean) {\n  return a;\n}")

    result = engine.evaluate_function(fn)

    by_id = {o.rule_id: o for o in result.outcomes}
    assert not by_id["F08"].triggered
    assert by_id["F03"].penalty == 10


def test_disabled_rules_do_not_run() -> None:
    config = replace(StinkConfig(), rules=RulesConfig(enable="all", disable=("naming",)))
    fn = make_function("function x() {\n  return 1;\n}", name="x")

    assert StinkEngine(config).score(fn) == 100


def test_penalties_are_configurable() -> None:
    config = replace(StinkConfig(), penalties=Penalties(max_parameters=20))
    fn = make_function("function fetchUser(a, b, c, d) {\n  return a;\n}")

    assert StinkEngine(config).score(fn) == 80


def test_engine_rejects_invalid_config() -> None:
    with pytest.raises(ConfigError):
        StinkEngine(replace(StinkConfig(), thresholds=Thresholds(max_lines=-1)))
    with pytest.raises(ConfigError):
        StinkEngine(replace(StinkConfig(), min_clean_level=101))


def test_evaluate_rejects_unknown_entities(engine: StinkEngine) -> None:
    with pytest.raises(TypeError):
        engine.evaluate("function fetchUser() {}")  # type: ignore[arg-type]


def test_entities_fall_back_to_default_engine() -> None:
    fn = CodeFunction(name="fetchUser", text=CLEAN)

    assert default_engine() is default_engine()
    assert fn.compute_clean_level() == 100


def test_overall_clean_level_weights_file_and_functions() -> None:
    assert overall_clean_level(100, []) == pytest.approx(100.0)
    assert overall_clean_level(100, [50]) == pytest.approx(70.0)
    assert overall_clean_level(85, [100, 80]) == pytest.approx(0.4 * 85 + 0.6 * 90)
