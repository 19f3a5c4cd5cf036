"""Unit tests for cuke_engine.registry."""

import pytest

from cuke_engine.models import ExpressionError, Step
from cuke_engine.registry import (
    DataTable,
    StepDefinitionError,
    StepRegistry,
    UndefinedStepError,
    suggest_expression,
)


@pytest.fixture
def registry() -> StepRegistry:
    reg = StepRegistry()
    reg.register("I have {int} cucumber(s)")
    reg.register("I click/tap the {string} button")
    return reg


class TestRegister:
    def test_register_compiles(self, registry: StepRegistry) -> None:
        assert len(registry) == 2
        assert registry.definitions[0].expression.pattern == "I have {int} cucumber(s)"

    def test_duplicate_pattern(self, registry: StepRegistry) -> None:
        with pytest.raises(StepDefinitionError, match="Duplicate"):
            registry.register("I have {int} cucumber(s)")

    def test_invalid_pattern(self) -> None:
        with pytest.raises(ExpressionError):
            StepRegistry().register("I have {bogus}")

    def test_decorator(self) -> None:
        reg = StepRegistry()

        @reg.step("I eat {int} cucumbers")
        def eat(count: int) -> int:
            return count

        match = reg.find("I eat 3 cucumbers")
        assert match is not None
        assert match.definition.handler is eat
        assert match.definition.handler(*match.args) == 3


class TestFind:
    def test_find_match(self, registry: StepRegistry) -> None:
        match = registry.find('I tap the "OK" button')
        assert match is not None
        assert match.pattern == "I click/tap the {string} button"
        assert match.args == ["OK"]

    def test_find_none(self, registry: StepRegistry) -> None:
        assert registry.find("I have no idea") is None

    def test_first_registered_wins(self) -> None:
        reg = StepRegistry()
        reg.register("I have {int} apples")
        reg.register("I have {word} apples")
        match = reg.find("I have 3 apples")
        assert match is not None
        assert match.pattern == "I have {int} apples"
        assert reg.find("I have many apples").pattern == "I have {word} apples"


class TestResolve:
    def test_resolve_attaches_datatable(self, registry: StepRegistry) -> None:
        step = Step("Given", "I have 2 cucumbers", 4, datatable=(("name",), ("bob",)))
        match = registry.resolve(step)
        assert match.args == [2]
        assert match.datatable == DataTable((("name",), ("bob",)))
        assert match.docstring is None

    def test_resolve_attaches_docstring(self, registry: StepRegistry) -> None:
        step = Step("When", 'I click the "Save" button', 5, docstring="body")
        assert registry.resolve(step).docstring == "body"

    def test_undefined_step(self, registry: StepRegistry) -> None:
        step = Step("When", 'I click "x" 3 times', 7)
        with pytest.raises(UndefinedStepError) as exc_info:
            registry.resolve(step)
        error = exc_info.value
        assert error.step is step
        assert error.suggestion == "I click {string} {int} times"
        assert "(line 8)" in str(error)


class TestDataTable:
    def test_headers_rows_maps(self) -> None:
        table = DataTable((("name", "email"), ("bob", "b@x"), ("amy", "a@x")))
        assert table.headers == ("name", "email")
        assert table.rows == (("bob", "b@x"), ("amy", "a@x"))
        assert table.maps == [
            {"name": "bob", "email": "b@x"},
            {"name": "amy", "email": "a@x"},
        ]

    def test_single_row_has_no_headers(self) -> None:
        table = DataTable((("a", "b"),))
        assert table.headers == ()
        assert table.rows == (("a", "b"),)
        assert table.maps == []


class TestSuggestExpression:
    def test_string_and_int(self) -> None:
        assert suggest_expression('I click "x" 3 times') == "I click {string} {int} times"

    def test_float(self) -> None:
        assert suggest_expression("the price is 19.99") == "the price is {float}"

    def test_negative_int(self) -> None:
        assert suggest_expression("I move -4 steps") == "I move {int} steps"

    def test_digits_inside_words_kept(self) -> None:
        assert suggest_expression("I open tab2") == "I open tab2"

    def test_special_characters_escaped(self) -> None:
        assert suggest_expression("I see (a/b) {x}") == r"I see \(a\/b\) \{x\}"

    def test_plain_text_unchanged(self) -> None:
        assert suggest_expression("I log in") == "I log in"
