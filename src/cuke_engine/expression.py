"""Cucumber Expression compiler and matcher.

A pattern such as ``I have {int} cucumber(s)`` compiles into a tuple of
nodes. Matching walks the nodes left to right against the step text and
never revisits an earlier decision.

Supported syntax:
    {type} / {type?}   required / optional parameter
    (text)             optional text, not captured
    a/b/c              alternation, not captured
    \\{ \\} \\( \\) \\/ \\\\   escapes
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from cuke_engine.models import Atom, ExpressionError, UnknownParameterTypeError

SubParser = Callable[[str], Optional[tuple[Any, int]]]


class ParameterType(Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    WORD = "word"
    ATOM = "atom"


# ── Parameter sub-parsers ────────────────────────────────────────────
# Each takes the remaining step text and returns (value, consumed) for a
# prefix match, or None.

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?[0-9]+\.[0-9]+")
_WORD_RE = re.compile(r"[^ \t\n]+")
_ATOM_RE = re.compile(r"[A-Za-z0-9_@]+")


def _parse_string(text: str) -> tuple[str, int] | None:
    if not text.startswith('"'):
        return None
    chars: list[str] = []
    i = 1
    while i < len(text):
        if text.startswith('\\"', i):
            chars.append('"')
            i += 2
        elif text.startswith("\\\\", i):
            chars.append("\\")
            i += 2
        elif text[i] == '"':
            return "".join(chars), i + 1
        else:
            chars.append(text[i])
            i += 1
    return None


def _parse_int(text: str) -> tuple[int, int] | None:
    match = _INT_RE.match(text)
    if not match:
        return None
    return int(match.group()), match.end()


def _parse_float(text: str) -> tuple[float, int] | None:
    match = _FLOAT_RE.match(text)
    if not match:
        return None
    return float(match.group()), match.end()


def _parse_word(text: str) -> tuple[str, int] | None:
    match = _WORD_RE.match(text)
    if not match:
        return None
    return match.group(), match.end()


def _parse_atom(text: str) -> tuple[Atom, int] | None:
    match = _ATOM_RE.match(text)
    if not match:
        return None
    return Atom(match.group()), match.end()


SUB_PARSERS: dict[ParameterType, SubParser] = {
    ParameterType.STRING: _parse_string,
    ParameterType.INT: _parse_int,
    ParameterType.FLOAT: _parse_float,
    ParameterType.WORD: _parse_word,
    ParameterType.ATOM: _parse_atom,
}


# ── Compiled nodes ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Parameter:
    type: ParameterType
    parser: SubParser = field(repr=False, compare=False)
    optional: bool = False


@dataclass(frozen=True)
class OptionalText:
    text: str


@dataclass(frozen=True)
class Alternation:
    options: tuple[str, ...]


Node = Union[Literal, Parameter, OptionalText, Alternation]


@dataclass(frozen=True)
class CompiledExpression:
    """An immutable, reusable compiled pattern."""

    pattern: str
    nodes: tuple[Node, ...]

    @property
    def parameter_types(self) -> list[ParameterType]:
        return [n.type for n in self.nodes if isinstance(n, Parameter)]

    def match(self, text: str) -> list[Any] | None:
        return match_expression(text, self)


# ── Compiler ─────────────────────────────────────────────────────────

_ESCAPES = {"\\{": "{", "\\}": "}", "\\(": "(", "\\)": ")", "\\/": "/", "\\\\": "\\"}
_PARAMETER_RE = re.compile(r"\{([A-Za-z0-9_]+)(\?)?\}")
_OPTIONAL_RE = re.compile(r"\(([^)]+)\)")
_ALT_WORD = r"[^/\\ \t\n{}()]+"
_ALTERNATION_RE = re.compile(rf"{_ALT_WORD}(?:/{_ALT_WORD})+")
_WHITESPACE_RE = re.compile(r"[ \t\n]+")
_LITERAL_RE = re.compile(r"[^{\\( \t\n]+")


class ExpressionParser:
    """Scans a pattern string into nodes.

    At each position the constructs are tried in a fixed order: escape,
    parameter, optional text, alternation, whitespace, plain literal.
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.pos = 0

    def parse(self) -> tuple[Node, ...]:
        nodes: list[Node] = []
        while self.pos < len(self.pattern):
            nodes.append(self._next_node())
        return merge_literals(nodes)

    def _next_node(self) -> Node:
        pattern, pos = self.pattern, self.pos
        char = pattern[pos]

        if char == "\\":
            escape = pattern[pos:pos + 2]
            if escape not in _ESCAPES:
                raise ExpressionError(f"Invalid escape sequence {escape!r}", pattern, pos)
            self.pos += 2
            return Literal(_ESCAPES[escape])

        if char == "{":
            match = _PARAMETER_RE.match(pattern, pos)
            if not match:
                raise ExpressionError("Malformed parameter", pattern, pos)
            self.pos = match.end()
            return self._parameter(match.group(1), match.group(2) is not None, pos)

        if char == "(":
            match = _OPTIONAL_RE.match(pattern, pos)
            if not match:
                raise ExpressionError("Unterminated or empty optional text", pattern, pos)
            self.pos = match.end()
            return OptionalText(match.group(1))

        match = _ALTERNATION_RE.match(pattern, pos)
        if match:
            self.pos = match.end()
            return Alternation(tuple(match.group().split("/")))

        match = _WHITESPACE_RE.match(pattern, pos) or _LITERAL_RE.match(pattern, pos)
        if match is None:
            raise ExpressionError(f"Unexpected character {char!r}", pattern, pos)
        self.pos = match.end()
        return Literal(match.group())

    def _parameter(self, type_name: str, optional: bool, pos: int) -> Parameter:
        try:
            param_type = ParameterType(type_name)
        except ValueError as exc:
            raise UnknownParameterTypeError(type_name, self.pattern, pos) from exc
        return Parameter(param_type, SUB_PARSERS[param_type], optional)


def merge_literals(nodes: list[Node]) -> tuple[Node, ...]:
    """Merge runs of adjacent Literal nodes into one."""
    merged: list[Node] = []
    for node in nodes:
        if isinstance(node, Literal) and merged and isinstance(merged[-1], Literal):
            merged[-1] = Literal(merged[-1].text + node.text)
        else:
            merged.append(node)
    return tuple(merged)


def compile_expression(pattern: str) -> CompiledExpression:
    """Compile a Cucumber Expression.

    Raises ExpressionError for malformed syntax and UnknownParameterTypeError
    for a parameter type outside string/int/float/word/atom.
    """
    return CompiledExpression(pattern=pattern, nodes=ExpressionParser(pattern).parse())


# ── Matcher ──────────────────────────────────────────────────────────


def match_expression(text: str, compiled: CompiledExpression) -> list[Any] | None:
    """Match step text against a compiled expression.

    Returns the captured parameter values in order (None for an absent
    optional parameter), or None when the text does not match.
    """
    args: list[Any] = []
    remaining = text

    for node in compiled.nodes:
        if not remaining:
            # Only optional nodes can be satisfied by no text.
            if isinstance(node, Parameter) and node.optional:
                args.append(None)
                continue
            if isinstance(node, OptionalText):
                continue
            return None

        if isinstance(node, Literal):
            if not remaining.startswith(node.text):
                return None
            remaining = remaining[len(node.text):]

        elif isinstance(node, Parameter):
            result = node.parser(remaining)
            if result is None:
                if not node.optional:
                    return None
                args.append(None)
                continue
            value, consumed = result
            args.append(value)
            remaining = remaining[consumed:]

        elif isinstance(node, OptionalText):
            if remaining.startswith(node.text):
                remaining = remaining[len(node.text):]

        elif isinstance(node, Alternation):
            for option in node.options:
                if remaining.startswith(option):
                    remaining = remaining[len(option):]
                    break
            else:
                return None

    if remaining:
        return None
    return args
