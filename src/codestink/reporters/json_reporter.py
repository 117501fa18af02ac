from __future__ import annotations

import json
from typing import Any

from codestink import __version__
from codestink.engine.types import AnalysisResults, FileAnalysis, FunctionAnalysis, RuleOutcome, ScoreResult

REPORT_SCHEMA_VERSION = 1


def render_json(results: AnalysisResults) -> str:
    payload = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "tool": {"name": "CodeStink", "version": __version__},
        "summary": {
            "files": results.file_count,
            "functions": results.function_count,
            "issues": results.issue_count,
            "average_clean_level": round(results.average_clean_level, 2),
        },
        "files": [_file_to_dict(f) for f in results.files],
        "skipped": [
            {"file": s.file_name, "entity": s.entity_name, "reason": s.reason} for s in results.skipped
        ],
    }
    return json.dumps(payload, indent=2, sort_keys=False)


def _file_to_dict(analysis: FileAnalysis) -> dict[str, Any]:
    return {
        "name": analysis.file.name,
        "language": analysis.file.language,
        "size": analysis.file.size,
        "clean_level": analysis.result.clean_level,
        "overall_clean_level": round(analysis.overall_clean_level, 2),
        "degraded": analysis.result.degraded,
        "findings": _findings(analysis.result),
        "functions": [_function_to_dict(fn) for fn in analysis.functions],
    }


def _function_to_dict(analysis: FunctionAnalysis) -> dict[str, Any]:
    fn = analysis.function
    return {
        "name": fn.name,
        "kind": fn.kind,
        "start_line": fn.start_line,
        "clean_level": analysis.clean_level,
        "malformed": analysis.result.malformed,
        "findings": _findings(analysis.result),
        "variables": [
            {
                "name": var.variable.name,
                "value_kind": var.variable.value.kind.value,
                "clean_level": var.clean_level,
                "findings": _findings(var.result),
            }
            for var in analysis.variables
        ],
    }


def _findings(result: ScoreResult) -> list[dict[str, Any]]:
    return [_outcome_to_dict(o) for o in result.outcomes if o.triggered]


def _outcome_to_dict(outcome: RuleOutcome) -> dict[str, Any]:
    return {"rule_id": outcome.rule_id, "penalty": outcome.penalty, "messages": list(outcome.issues)}
