"""Scenario Outline expansion into concrete scenarios."""

from __future__ import annotations

from dataclasses import replace

from cuke_engine.models import (
    Feature,
    OutlineWithoutExamplesError,
    Scenario,
    ScenarioOutline,
    Step,
)


def expand_outline(outline: ScenarioOutline) -> list[Scenario]:
    """Expand an outline into one Scenario per Examples row.

    Blocks are expanded in the order written, rows in table order. Each
    scenario is tagged with the outline tags followed by its own Examples
    block's tags, without duplicates.
    """
    if not outline.examples:
        raise OutlineWithoutExamplesError(outline.name, line=outline.line + 1)

    scenarios: list[Scenario] = []
    for examples in outline.examples:
        tags = tuple(dict.fromkeys(outline.tags + examples.tags))
        for row_num, values in enumerate(examples.rows, 1):
            scenarios.append(Scenario(
                name=_scenario_name(outline.name, examples.name, row_num),
                steps=tuple(substitute_step(s, values) for s in outline.steps),
                tags=tags,
                line=outline.line,
            ))
    return scenarios


def expand_scenarios(feature: Feature) -> list[Scenario]:
    """Return every scenario of the feature with outlines expanded."""
    scenarios: list[Scenario] = []
    for definition in feature.scenarios:
        if isinstance(definition, ScenarioOutline):
            scenarios.extend(expand_outline(definition))
        else:
            scenarios.append(definition)
    return scenarios


def substitute_step(step: Step, values: dict[str, str]) -> Step:
    """Replace ``<name>`` placeholders in a step's text, docstring and table."""
    datatable = None
    if step.datatable is not None:
        datatable = tuple(
            tuple(substitute_placeholders(cell, values) for cell in row)
            for row in step.datatable
        )
    docstring = None
    if step.docstring is not None:
        docstring = substitute_placeholders(step.docstring, values)
    return replace(
        step,
        text=substitute_placeholders(step.text, values),
        docstring=docstring,
        datatable=datatable,
    )


def substitute_placeholders(text: str, values: dict[str, str]) -> str:
    for name, value in values.items():
        text = text.replace(f"<{name}>", value)
    return text


def _scenario_name(outline_name: str, examples_name: str, row_num: int) -> str:
    if examples_name:
        return f"{outline_name} ({examples_name}: row {row_num})"
    return f"{outline_name} (row {row_num})"
