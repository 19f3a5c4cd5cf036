"""Gherkin recursive descent parser.

Grammar (informal EBNF):
    feature       := BLANK* tags FEATURE description* background? definition* EOF
    description   := any line except FEATURE | TAGS | BACKGROUND | SCENARIO | OUTLINE | EXAMPLES
    background    := BACKGROUND step*
    definition    := tags (scenario | outline)
    scenario      := SCENARIO step*
    outline       := OUTLINE step* examples+
    examples      := tags EXAMPLES TABLE_ROW+
    step          := STEP (docstring | datatable)?
    docstring     := DOCSTRING DOCSTRING_LINE* DOCSTRING
    datatable     := TABLE_ROW+
    tags          := TAGS*

The Lexer handles whitespace, newlines and keyword recognition one line at a
time. The Parser builds tags, tables and doc strings from those tokens, then
steps, then sections, then the feature itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

from cuke_engine.models import (
    Background,
    Examples,
    Feature,
    OutlineWithoutExamplesError,
    ParseError,
    Scenario,
    ScenarioDefinition,
    ScenarioOutline,
    Step,
)

DOCSTRING_DELIMITER = '"""'
REST_SNIPPET_LENGTH = 50

_STEP_RE = re.compile(r"^(Given|When|Then|And|But|\*)[ \t]+(\S.*)$")
_TAG_RE = re.compile(r"^@[A-Za-z0-9_-]+$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")


class TokenType(Enum):
    BLANK = auto()           # empty or whitespace-only line
    COMMENT = auto()         # # text
    TAGS = auto()            # @tag1 @tag2
    FEATURE = auto()         # Feature: name
    BACKGROUND = auto()      # Background:
    SCENARIO = auto()        # Scenario: name
    OUTLINE = auto()         # Scenario Outline: name
    EXAMPLES = auto()        # Examples: name
    STEP = auto()            # Given text
    TABLE_ROW = auto()       # | a | b |
    DOCSTRING = auto()       # """
    DOCSTRING_LINE = auto()  # raw line between delimiters
    TEXT = auto()            # anything else
    EOF = auto()


_SECTION_KEYWORDS = (
    ("Feature:", TokenType.FEATURE),
    ("Background:", TokenType.BACKGROUND),
    ("Scenario Outline:", TokenType.OUTLINE),
    ("Scenario Template:", TokenType.OUTLINE),
    ("Scenario:", TokenType.SCENARIO),
    ("Examples:", TokenType.EXAMPLES),
    ("Scenarios:", TokenType.EXAMPLES),
)

_SKIPPABLE = (TokenType.BLANK, TokenType.COMMENT)

# Token types that end a run of steps.
_STEP_TERMINATORS = (
    TokenType.TAGS,
    TokenType.SCENARIO,
    TokenType.OUTLINE,
    TokenType.EXAMPLES,
    TokenType.EOF,
)

# Token types that end the feature description.
_DESCRIPTION_TERMINATORS = (
    TokenType.FEATURE,
    TokenType.TAGS,
    TokenType.BACKGROUND,
    TokenType.SCENARIO,
    TokenType.OUTLINE,
    TokenType.EXAMPLES,
    TokenType.EOF,
)


@dataclass
class Token:
    type: TokenType
    text: str
    line: int  # 0-indexed
    column: int  # 1-indexed, first non-blank character
    raw: str = ""
    keyword: str = ""


class Lexer:
    """Classifies raw Gherkin text into one token per line."""

    def __init__(self, content: str, source_file: str | None = None) -> None:
        if content.startswith("\ufeff"):
            content = content[1:]
        self.lines = [line.rstrip("\r") for line in content.split("\n")]
        self.source_file = source_file

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        in_docstring = False
        after_step = False  # a doc string may only open right after a step
        for i, line in enumerate(self.lines):
            stripped = line.strip()
            column = len(line) - len(line.lstrip(" \t")) + 1

            if in_docstring:
                if stripped == DOCSTRING_DELIMITER:
                    tokens.append(Token(TokenType.DOCSTRING, stripped, i, column, line))
                    in_docstring = False
                else:
                    tokens.append(Token(TokenType.DOCSTRING_LINE, line, i, column, line))
                continue

            if stripped == DOCSTRING_DELIMITER and after_step:
                tokens.append(Token(TokenType.DOCSTRING, stripped, i, column, line))
                in_docstring = True
                after_step = False
                continue

            token = self._classify(line, stripped, i, column)
            if token.type not in _SKIPPABLE:
                after_step = token.type == TokenType.STEP
            tokens.append(token)

        last = len(self.lines) - 1
        tokens.append(Token(TokenType.EOF, "", last, len(self.lines[last]) + 1))
        return tokens

    def _classify(self, line: str, stripped: str, index: int, column: int) -> Token:
        if not stripped:
            return Token(TokenType.BLANK, "", index, column, line)

        if stripped.startswith("#"):
            return Token(TokenType.COMMENT, stripped[1:].strip(), index, column, line)

        if stripped.startswith("@"):
            return Token(TokenType.TAGS, stripped, index, column, line)

        for keyword, token_type in _SECTION_KEYWORDS:
            if stripped.startswith(keyword):
                name = stripped[len(keyword):].strip()
                return Token(token_type, name, index, column, line, keyword)

        if stripped.startswith("|"):
            return Token(TokenType.TABLE_ROW, stripped, index, column, line)

        match = _STEP_RE.match(stripped)
        if match:
            return Token(
                TokenType.STEP, match.group(2).strip(), index, column, line, match.group(1)
            )

        return Token(TokenType.TEXT, stripped, index, column, line)


class Parser:
    """Recursive descent parser for Gherkin token streams."""

    def __init__(
        self,
        tokens: list[Token],
        lines: list[str] | None = None,
        source_file: str | None = None,
    ) -> None:
        self.tokens = tokens
        self.lines = lines or []
        self.source_file = source_file
        self.pos = 0

    def parse(self) -> Feature:
        """Parse the token stream into a Feature."""
        self._skip_blanks()
        tags = self._parse_tags()

        token = self._peek()
        if token.type != TokenType.FEATURE:
            raise self._error("Feature:", token)
        if not token.text:
            raise self._error("a feature name after Feature:", token)
        self._advance()

        self._skip_description()

        background = None
        if self._peek().type == TokenType.BACKGROUND:
            background = self._parse_background()

        scenarios: list[ScenarioDefinition] = []
        self._skip_blanks()
        while not self._at_end():
            scenarios.append(self._parse_definition())
            self._skip_blanks()

        return Feature(
            name=token.text,
            description="",
            background=background,
            scenarios=tuple(scenarios),
            tags=tags,
        )

    # ── Sections ─────────────────────────────────────────────────────

    def _skip_description(self) -> None:
        while self._peek().type not in _DESCRIPTION_TERMINATORS:
            if self._peek().type == TokenType.DOCSTRING:
                self._parse_docstring()  # raises when unterminated
            else:
                self._advance()

    def _parse_background(self) -> Background:
        self._advance()  # consume Background:
        return Background(steps=self._parse_steps())

    def _parse_definition(self) -> ScenarioDefinition:
        tags = self._parse_tags()
        token = self._peek()
        if token.type == TokenType.OUTLINE:
            return self._parse_outline(tags)
        if token.type == TokenType.SCENARIO:
            return self._parse_scenario(tags)
        raise self._error("Scenario: or Scenario Outline:", token)

    def _parse_scenario(self, tags: tuple[str, ...]) -> Scenario:
        token = self._advance()
        steps = self._parse_steps()
        return Scenario(name=token.text, steps=steps, tags=tags, line=token.line)

    def _parse_outline(self, tags: tuple[str, ...]) -> ScenarioOutline:
        token = self._advance()
        steps = self._parse_steps()

        examples: list[Examples] = []
        while self._examples_ahead():
            examples.append(self._parse_examples())

        if not examples:
            raise OutlineWithoutExamplesError(
                token.text,
                line=token.line + 1,
                column=token.column,
                rest=self._rest(token),
                source_file=self.source_file,
            )

        return ScenarioOutline(
            name=token.text,
            steps=steps,
            tags=tags,
            examples=tuple(examples),
            line=token.line,
        )

    def _examples_ahead(self) -> bool:
        """Look past blank lines and tags for an Examples keyword."""
        i = self.pos
        while i < len(self.tokens) and self.tokens[i].type in (*_SKIPPABLE, TokenType.TAGS):
            i += 1
        return i < len(self.tokens) and self.tokens[i].type == TokenType.EXAMPLES

    def _parse_examples(self) -> Examples:
        self._skip_blanks()
        tags = self._parse_tags()
        token = self._advance()  # consume Examples:
        self._skip_blanks()

        if self._peek().type != TokenType.TABLE_ROW:
            raise self._error("an Examples table header row", self._peek())

        rows = self._parse_table(uniform=True)
        return Examples(
            name=token.text,
            tags=tags,
            table_header=rows[0],
            table_body=rows[1:],
            line=token.line,
        )

    # ── Steps ────────────────────────────────────────────────────────

    def _parse_steps(self) -> tuple[Step, ...]:
        steps: list[Step] = []
        while True:
            self._skip_blanks()
            token = self._peek()
            if token.type in _STEP_TERMINATORS:
                break
            if token.type != TokenType.STEP:
                raise self._error("a step, tag line or section keyword", token)
            steps.append(self._parse_step())
        return tuple(steps)

    def _parse_step(self) -> Step:
        token = self._advance()
        docstring: str | None = None
        datatable: tuple[tuple[str, ...], ...] | None = None

        self._skip_blanks()
        attachment = self._peek()
        if attachment.type == TokenType.DOCSTRING:
            docstring = self._parse_docstring()
        elif attachment.type == TokenType.TABLE_ROW:
            datatable = self._parse_table()

        if docstring is not None or datatable is not None:
            self._skip_blanks()
            extra = self._peek()
            if extra.type in (TokenType.DOCSTRING, TokenType.TABLE_ROW):
                raise self._error("a single doc string or data table per step", extra)

        return Step(
            keyword=token.keyword,
            text=token.text,
            line=token.line,
            docstring=docstring,
            datatable=datatable,
        )

    # ── Elements ─────────────────────────────────────────────────────

    def _parse_tags(self) -> tuple[str, ...]:
        """Accumulate consecutive tag lines into one ordered tag set."""
        tags: list[str] = []
        while self._peek().type == TokenType.TAGS:
            token = self._advance()
            for match in re.finditer(r"\S+", token.raw):
                if match.group().startswith("#"):
                    break  # trailing comment
                if not _TAG_RE.match(match.group()):
                    raise ParseError(
                        "tag name",
                        token.line + 1,
                        match.start() + 1,
                        token.raw[match.start():][:REST_SNIPPET_LENGTH],
                        self.source_file,
                    )
                tags.append(match.group()[1:])
            self._skip_blanks()
        return tuple(dict.fromkeys(tags))

    def _parse_docstring(self) -> str:
        opening = self._advance()
        content: list[str] = []
        while True:
            token = self._peek()
            if token.type == TokenType.EOF:
                raise self._error(f"closing {DOCSTRING_DELIMITER} delimiter", opening)
            self._advance()
            if token.type == TokenType.DOCSTRING:
                break
            content.append(token.raw)
        return join_docstring(content)

    def _parse_table(self, uniform: bool = False) -> tuple[tuple[str, ...], ...]:
        rows: list[tuple[str, ...]] = []
        while self._table_row_ahead():
            while self._peek().type == TokenType.COMMENT:
                self._advance()
            token = self._advance()
            cells = split_table_row(token.text)
            if not cells:
                raise self._error("at least one table cell", token)
            if uniform and rows and len(cells) != len(rows[0]):
                raise self._error(
                    f"a table row with {len(rows[0])} cells, got {len(cells)}", token
                )
            rows.append(cells)
        return tuple(rows)

    def _table_row_ahead(self) -> bool:
        """Look past comment lines for another table row."""
        i = self.pos
        while i < len(self.tokens) and self.tokens[i].type == TokenType.COMMENT:
            i += 1
        return i < len(self.tokens) and self.tokens[i].type == TokenType.TABLE_ROW

    # ── Primitives ───────────────────────────────────────────────────

    def _peek(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]

    def _advance(self) -> Token:
        token = self._peek()
        self.pos += 1
        return token

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _skip_blanks(self) -> None:
        while self._peek().type in _SKIPPABLE:
            self._advance()

    def _rest(self, token: Token) -> str:
        remaining = "\n".join(self.lines[token.line:])
        return remaining[token.column - 1:][:REST_SNIPPET_LENGTH]

    def _error(self, expected: str, token: Token) -> ParseError:
        return ParseError(
            expected,
            line=token.line + 1,
            column=token.column,
            rest=self._rest(token),
            source_file=self.source_file,
        )


def split_table_row(row: str) -> tuple[str, ...]:
    """Split a ``| a | b |`` row into trimmed cells.

    The empty cell after a trailing ``|`` is dropped. ``\\|`` is a literal pipe.
    """
    stripped = row.strip()
    parts = _CELL_SPLIT_RE.split(stripped)[1:]
    if parts and stripped.endswith("|") and not stripped.endswith("\\|"):
        parts.pop()
    return tuple(part.strip().replace("\\|", "|") for part in parts)


def join_docstring(lines: list[str]) -> str:
    """Join doc string lines, stripping their common indentation."""
    indents = [
        len(line) - len(line.lstrip(" \t"))
        for line in lines
        if line.strip()
    ]
    min_indent = min(indents, default=0)
    return "\n".join(line[min_indent:] for line in lines).rstrip()


def parse_feature(content: str, source_file: str | None = None) -> Feature:
    """Parse Gherkin text into a Feature. Raises ParseError on malformed input."""
    lexer = Lexer(content, source_file)
    tokens = lexer.tokenize()
    parser = Parser(tokens, lexer.lines, source_file)
    return parser.parse()


def parse_feature_file(path: Path) -> Feature:
    """Parse a .feature file into a Feature."""
    content = path.read_text(encoding="utf-8")
    return parse_feature(content, source_file=str(path))
