"""
Tests for the public surface: EquationParser.validate and EquationParser.compile

Checks:
1. Arithmetic, implicit multiplication and signs end to end
2. Functions and constants
3. Argument and definition errors
4. Compiled functions never raise and can be shared between threads
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from EquationEngine import EquationParser
from EquationEngine import error as E
from EquationEngine.EquationMembers import X_VARIABLE, Y_VARIABLE, Constant, Equation, Variable


def value_of(text, constants=None):
    """Compile an equation without variables and evaluate it."""
    return EquationParser.compile(Equation.create(text, constants=constants, variables=[]))()


# =============================================================================
# ARITHMETIC
# =============================================================================


class TestArithmetic:
    """Precedence, grouping and signs"""

    @pytest.mark.parametrize("text,expected", [
        ("2+3*4", 14.0),
        ("2*3^2", 18.0),
        ("(2+3)*4", 20.0),
        ("[2+3]*2", 10.0),
        ("2--3", 5.0),
        ("-5+3", -2.0),
        ("3*-5", -15.0),
        ("6/-2", -3.0),
        ("2*-3^2", -18.0),
        ("2^-1", 0.5),
        ("2^3^2", 64.0),
        ("(-7)%3", 2.0),
        ("(1)(2)(3)", 6.0),
        (".5*4", 2.0),
        ("5.+1", 6.0),
        ("( 2 + 3 ) * 4", 20.0),
    ])
    def test_values(self, text, expected) -> None:
        assert value_of(text) == expected

    def test_implicit_multiplication_with_variable(self) -> None:
        assert EquationParser.compile("2(3+X)")(1) == 8.0

    def test_lower_case_variable(self) -> None:
        assert EquationParser.compile("x*2")(3) == 6.0

    def test_negative_exponent_of_variable(self) -> None:
        assert EquationParser.compile("2^-X")(2) == 0.25

    def test_two_variables(self) -> None:
        equation = Equation.create("X^2+Y", variables=[X_VARIABLE, Y_VARIABLE])
        assert EquationParser.compile(equation)(3, 1) == 10.0

    def test_arguments_in_declaration_order(self) -> None:
        equation = Equation.create("X-Y", variables=[Y_VARIABLE, X_VARIABLE])
        assert EquationParser.compile(equation)(1, 5) == 4.0

    def test_custom_variable_name(self) -> None:
        equation = Equation.create("2T+1", variables=[Variable.create("T")])
        assert EquationParser.compile(equation)(4) == 9.0


# =============================================================================
# FUNCTIONS AND CONSTANTS
# =============================================================================


class TestFunctions:
    """Built-in functions end to end"""

    @pytest.mark.parametrize("text,expected", [
        ("max(3,5)", 5.0),
        ("sqrt(16)", 4.0),
        ("round(2.567,2)", 2.57),
        ("round(1250,-2)", 1300.0),
        ("log10(1000)", 3.0),
        ("SQRT(16)", 4.0),
        ("2sqrt(4)", 4.0),
        ("max(max(1,2),sqrt(9))", 3.0),
        ("max(2*3, 4) + 1", 7.0),
    ])
    def test_values(self, text, expected) -> None:
        assert value_of(text) == pytest.approx(expected)

    def test_function_of_variable(self) -> None:
        assert EquationParser.compile("sqrt(X)X")(4) == 8.0


class TestConstants:
    """Constants as named sub-expressions"""

    def test_expression_constant(self) -> None:
        equation = Equation.create("A*X", constants=[Constant.create("A", "3+2")])
        assert EquationParser.compile(equation)(4) == 20.0

    def test_numeric_constant(self) -> None:
        equation = Equation.create("B*X", constants=[Constant.create("B", "2.5")])
        assert EquationParser.compile(equation)(2) == 5.0

    def test_constant_using_variable_and_earlier_constant(self) -> None:
        constants = [Constant.create("A", "X+1"), Constant.create("B", "2A")]
        equation = Equation.create("B+A", constants=constants)
        compiled = EquationParser.compile(equation)
        assert compiled(1) == 6.0
        assert compiled(2) == 9.0

    def test_constant_in_function(self) -> None:
        equation = Equation.create("sqrt(A*8)", constants=[Constant.create("A", "2")], variables=[])
        assert EquationParser.compile(equation)() == 4.0

    def test_constant_referencing_itself_fails(self) -> None:
        equation = Equation.create("A", constants=[Constant.create("A", "2A")])
        with pytest.raises(E.EquationValidationError) as exc_info:
            EquationParser.compile(equation)
        (error,) = exc_info.value.errors
        assert (error.kind, error.offset, error.target) == (E.ErrorKind.INVALID_TEXT, 1, "A")

    def test_constant_referencing_later_constant_fails(self) -> None:
        constants = [Constant.create("A", "B+1"), Constant.create("B", "X")]
        equation = Equation.create("A", constants=constants)
        (error,) = EquationParser.validate(equation)
        assert (error.offset, error.text, error.target) == (0, "B", "A")


# =============================================================================
# ERRORS
# =============================================================================


class TestErrors:
    """What compile and validate raise"""

    def test_validation_error_carries_all_errors(self) -> None:
        with pytest.raises(E.EquationValidationError) as exc_info:
            EquationParser.compile("(2++3")
        error = exc_info.value
        assert error.code == "3100"
        assert error.equation == "(2++3"
        assert [e.kind for e in error.errors] == [
            E.ErrorKind.MISSING_SUB_EXPRESSION_DELIMITER,
            E.ErrorKind.MULTIPLE_SEQUENTIAL_OPERATORS,
        ]

    def test_single_error_examples(self) -> None:
        assert [e.kind for e in EquationParser.validate("(2+3")] == [E.ErrorKind.MISSING_SUB_EXPRESSION_DELIMITER]
        assert [(e.kind, e.offset) for e in EquationParser.validate("2++3")] == [
            (E.ErrorKind.MULTIPLE_SEQUENTIAL_OPERATORS, 1)]
        assert [e.kind for e in EquationParser.validate("2+")] == [E.ErrorKind.TRAILING_OPERATOR]

    def test_none_rejected(self) -> None:
        with pytest.raises(TypeError):
            EquationParser.validate(None)
        with pytest.raises(TypeError):
            EquationParser.compile(None)

    def test_other_types_rejected(self) -> None:
        with pytest.raises(TypeError):
            EquationParser.compile(5)

    def test_shorthand_colliding_with_member(self) -> None:
        equation = Equation.create("max*2", variables=[Variable.create("max")])
        with pytest.raises(E.EquationDefinitionError) as exc_info:
            EquationParser.validate(equation)
        assert exc_info.value.code == "3000"

    def test_wrong_argument_count(self) -> None:
        compiled = EquationParser.compile("X+1")
        with pytest.raises(TypeError):
            compiled()

    def test_logging(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="EquationEngine.EquationParser"):
            EquationParser.validate("2+3")
            EquationParser.compile("2+X")
        assert "Validating equation 2+3" in caplog.text
        assert "Parsing equation 2+X" in caplog.text


# =============================================================================
# COMPILED FUNCTIONS
# =============================================================================


class TestCompiledFunctions:
    """Compiled functions are safe to call anywhere"""

    def test_never_raises(self) -> None:
        compiled = EquationParser.compile("sqrt(X)+log10(X)+1/X+X%0+round(X,X)")
        for x in (-5.0, -1.5, 0.0, 2.0, 1e308, math.inf, math.nan):
            assert isinstance(compiled(x), float)

    def test_domain_errors_are_nan(self) -> None:
        assert math.isnan(EquationParser.compile("sqrt(X)")(-1))
        assert EquationParser.compile("1/X")(0) == math.inf

    def test_validate_does_not_change_result(self) -> None:
        """validate() before compile() changes nothing"""
        equation = Equation.create("2X^2+sqrt(X)")
        EquationParser.validate(equation)
        first = EquationParser.compile(equation)
        second = EquationParser.compile(equation)
        assert first(3) == second(3)

    def test_concurrent_calls(self) -> None:
        equation = Equation.create("A*X^2+sqrt(X)", constants=[Constant.create("A", "X+1")])
        compiled = EquationParser.compile(equation)
        xs = [float(i) for i in range(500)]
        expected = [compiled(x) for x in xs]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(compiled, xs))
        assert results == expected

    def test_concurrent_compiles(self) -> None:
        texts = [f"{i}X+{i}" for i in range(50)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            compiled = list(pool.map(EquationParser.compile, texts))
        assert [f(2) for f in compiled] == [3.0 * i for i in range(50)]
