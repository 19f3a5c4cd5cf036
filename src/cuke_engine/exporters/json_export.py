"""JSON export for parsed feature trees."""

from __future__ import annotations

import json
from typing import Any

from cuke_engine.models import (
    Background,
    Examples,
    Feature,
    Scenario,
    ScenarioDefinition,
    ScenarioOutline,
    Step,
)


def step_to_dict(step: Step) -> dict[str, Any]:
    return {
        "keyword": step.keyword,
        "text": step.text,
        "line": step.line,
        "docstring": step.docstring,
        "datatable": [list(row) for row in step.datatable] if step.datatable is not None else None,
    }


def _examples_to_dict(examples: Examples) -> dict[str, Any]:
    return {
        "name": examples.name,
        "tags": list(examples.tags),
        "line": examples.line,
        "table_header": list(examples.table_header),
        "table_body": [list(row) for row in examples.table_body],
    }


def scenario_to_dict(scenario: ScenarioDefinition) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": "scenario_outline" if isinstance(scenario, ScenarioOutline) else "scenario",
        "name": scenario.name,
        "tags": list(scenario.tags),
        "line": scenario.line,
        "steps": [step_to_dict(s) for s in scenario.steps],
    }
    if isinstance(scenario, ScenarioOutline):
        data["examples"] = [_examples_to_dict(e) for e in scenario.examples]
    return data


def _background_to_dict(background: Background | None) -> dict[str, Any] | None:
    if background is None:
        return None
    return {"steps": [step_to_dict(s) for s in background.steps]}


def feature_to_dict(feature: Feature, scenarios: list[Scenario] | None = None) -> dict[str, Any]:
    """Convert a Feature into plain JSON-ready data.

    ``scenarios`` overrides the feature's own definitions, e.g. with the
    result of outline expansion.
    """
    definitions = feature.scenarios if scenarios is None else scenarios
    return {
        "name": feature.name,
        "description": feature.description,
        "tags": list(feature.tags),
        "background": _background_to_dict(feature.background),
        "scenarios": [scenario_to_dict(s) for s in definitions],
    }


def export_json(feature: Feature, indent: int = 2, scenarios: list[Scenario] | None = None) -> str:
    """Export a Feature as a JSON string."""
    return json.dumps(feature_to_dict(feature, scenarios), indent=indent)
