"""Core data models for cuke-engine."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Union

STEP_KEYWORDS = ("Given", "When", "Then", "And", "But", "*")

DataTableRows = tuple[tuple[str, ...], ...]


@dataclass(frozen=True)
class Step:
    """A single keyword-prefixed step line."""

    keyword: str
    text: str
    line: int
    docstring: str | None = None
    datatable: DataTableRows | None = None

    def __post_init__(self) -> None:
        if self.keyword not in STEP_KEYWORDS:
            raise ValueError(f"Invalid step keyword: {self.keyword}")
        if self.docstring is not None and self.datatable is not None:
            raise ValueError("A step cannot carry both a docstring and a datatable")


@dataclass(frozen=True)
class Background:
    """Steps shared as a prefix by every scenario of a feature."""

    steps: tuple[Step, ...] = ()


@dataclass(frozen=True)
class Scenario:
    name: str
    steps: tuple[Step, ...] = ()
    tags: tuple[str, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class Examples:
    """One Examples table of a Scenario Outline."""

    name: str = ""
    tags: tuple[str, ...] = ()
    table_header: tuple[str, ...] = ()
    table_body: tuple[tuple[str, ...], ...] = ()
    line: int = 0

    @property
    def rows(self) -> list[dict[str, str]]:
        """Body rows keyed by header column."""
        return [dict(zip(self.table_header, row)) for row in self.table_body]


@dataclass(frozen=True)
class ScenarioOutline:
    """A templated scenario expanded once per Examples row."""

    name: str
    steps: tuple[Step, ...] = ()
    tags: tuple[str, ...] = ()
    examples: tuple[Examples, ...] = ()
    line: int = 0


ScenarioDefinition = Union[Scenario, ScenarioOutline]


@dataclass(frozen=True)
class Feature:
    """A parsed feature file."""

    name: str
    description: str = ""
    background: Background | None = None
    scenarios: tuple[ScenarioDefinition, ...] = ()
    tags: tuple[str, ...] = ()

    @property
    def outlines(self) -> list[ScenarioOutline]:
        return [s for s in self.scenarios if isinstance(s, ScenarioOutline)]


@dataclass(frozen=True)
class Atom:
    """An interned symbol captured by the ``{atom}`` parameter type.

    Atoms compare equal by name but never equal a plain string.
    """

    name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", sys.intern(self.name))

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f":{self.name}"


# ── Errors ──────────────────────────────────────────────────────────


class ParseError(Exception):
    """Raised when feature text does not fit the Gherkin grammar.

    ``line`` and ``column`` are 1-based; ``rest`` holds a short snippet of
    the input that could not be consumed.
    """

    def __init__(
        self,
        expected: str,
        line: int,
        column: int,
        rest: str = "",
        source_file: str | None = None,
    ) -> None:
        self.expected = expected
        self.line = line
        self.column = column
        self.rest = rest
        self.source_file = source_file
        super().__init__(self._summary())

    def _summary(self) -> str:
        location = f"line {self.line}, column {self.column}"
        if self.source_file:
            location = f"{self.source_file}:{self.line}:{self.column}"
        message = f"{location}: expected {self.expected}"
        if self.rest:
            message += f' (near "{self.rest}")'
        return message


class OutlineWithoutExamplesError(ParseError):
    """Raised when a Scenario Outline is finalized without any Examples."""

    def __init__(
        self,
        outline_name: str,
        line: int,
        column: int = 1,
        rest: str = "",
        source_file: str | None = None,
    ) -> None:
        self.outline_name = outline_name
        super().__init__(
            f"an Examples block for Scenario Outline '{outline_name}'",
            line,
            column,
            rest,
            source_file,
        )


class ExpressionError(Exception):
    """Raised when a step expression pattern cannot be compiled."""

    def __init__(self, message: str, pattern: str, position: int | None = None) -> None:
        self.pattern = pattern
        self.position = position
        if position is not None:
            message = f"{message} at position {position} in {pattern!r}"
        else:
            message = f"{message} in {pattern!r}"
        super().__init__(message)


class UnknownParameterTypeError(ExpressionError):
    """Raised for a ``{type}`` whose type name is not recognized."""

    def __init__(self, type_name: str, pattern: str, position: int | None = None) -> None:
        self.type_name = type_name
        super().__init__(f"Unknown parameter type: {type_name}", pattern, position)
