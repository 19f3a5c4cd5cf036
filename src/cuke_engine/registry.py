"""Step definition registry: compile patterns once, resolve steps to matches."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from cuke_engine.expression import CompiledExpression, compile_expression
from cuke_engine.models import Step

StepHandler = Callable[..., Any]


class StepDefinitionError(Exception):
    """Raised when a step definition cannot be registered."""


class UndefinedStepError(Exception):
    """Raised when no registered pattern matches a step."""

    def __init__(self, step: Step, suggestion: str) -> None:
        self.step = step
        self.suggestion = suggestion
        super().__init__(
            f"No matching step definition for '{step.keyword} {step.text}' "
            f"(line {step.line + 1}); suggested pattern: {suggestion!r}"
        )


@dataclass(frozen=True)
class DataTable:
    """A step data table with header-keyed access."""

    raw: tuple[tuple[str, ...], ...]

    @property
    def headers(self) -> tuple[str, ...]:
        return self.raw[0] if len(self.raw) > 1 else ()

    @property
    def rows(self) -> tuple[tuple[str, ...], ...]:
        return self.raw[1:] if len(self.raw) > 1 else self.raw

    @property
    def maps(self) -> list[dict[str, str]]:
        if not self.headers:
            return []
        return [dict(zip(self.headers, row)) for row in self.rows]


@dataclass(frozen=True)
class StepDefinition:
    pattern: str
    expression: CompiledExpression
    handler: StepHandler | None = None


@dataclass(frozen=True)
class StepMatch:
    """A step definition together with the values it extracted."""

    definition: StepDefinition
    args: list[Any]
    docstring: str | None = None
    datatable: DataTable | None = None

    @property
    def pattern(self) -> str:
        return self.definition.pattern


@dataclass
class StepRegistry:
    """Ordered collection of step definitions.

    Lookup returns the first definition, in registration order, whose
    expression matches the step text.
    """

    definitions: list[StepDefinition] = field(default_factory=list)

    def register(self, pattern: str, handler: StepHandler | None = None) -> StepDefinition:
        if any(d.pattern == pattern for d in self.definitions):
            raise StepDefinitionError(f"Duplicate step definition: {pattern!r}")
        definition = StepDefinition(pattern, compile_expression(pattern), handler)
        self.definitions.append(definition)
        return definition

    def step(self, pattern: str) -> Callable[[StepHandler], StepHandler]:
        """Decorator form of register()."""

        def decorator(handler: StepHandler) -> StepHandler:
            self.register(pattern, handler)
            return handler

        return decorator

    def find(self, text: str) -> StepMatch | None:
        for definition in self.definitions:
            args = definition.expression.match(text)
            if args is not None:
                return StepMatch(definition, args)
        return None

    def resolve(self, step: Step) -> StepMatch:
        """Match a parsed step, attaching its docstring and data table."""
        found = self.find(step.text)
        if found is None:
            raise UndefinedStepError(step, suggest_expression(step.text))
        datatable = DataTable(step.datatable) if step.datatable is not None else None
        return StepMatch(found.definition, found.args, step.docstring, datatable)

    def __len__(self) -> int:
        return len(self.definitions)


_SUGGESTION_RE = re.compile(
    r'(?P<string>"(?:\\.|[^"\\])*")'
    r"|(?P<float>(?<![\w.])-?\d+\.\d+(?![\w.]))"
    r"|(?P<int>(?<![\w.])-?\d+(?![\w.]))"
    r"|(?P<special>[{}()/\\])"
)


def suggest_expression(text: str) -> str:
    """Suggest a Cucumber Expression for undefined step text.

    Quoted strings become {string}, decimals {float} and integers {int};
    other expression syntax is escaped.
    """

    def replace(match: re.Match[str]) -> str:
        kind = match.lastgroup
        if kind == "special":
            return "\\" + match.group()
        return "{" + str(kind) + "}"

    return _SUGGESTION_RE.sub(replace, text)
