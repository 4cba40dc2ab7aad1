from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MathError(Exception):
    def __init__(self, message, code="9999", equation=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.equation = equation


class EquationValidationError(MathError):
    """Raised by compile() when validation found one or more defects.

    ``errors`` holds every ErrorInfo, in report order.
    """

    def __init__(self, errors, equation=None):
        first = errors[0].message if errors else ""
        super().__init__(f"{len(errors)} validation error(s): {first}", code="3100", equation=equation)
        self.errors = list(errors)


class CompilationError(MathError):
    pass


class RegistrationError(MathError):
    pass


class EquationDefinitionError(MathError):
    pass


Error_Dictionary = {

    "1" : "Registration Error",
    "2" : "Numeric Function Error",
    "3" : "Equation Error",
    "5" : "Configuration Error",
    "9" : "Unexpected Error"

}

#Error Messages are structured in:
# 1. Digit: Main Error
# 2. Digit: Specification (1 = validation, 2 = compilation, 0 = general)
# 3. and 4. Digit: Error Number


ERROR_MESSAGES = {
    "1000" : "Duplicate shorthand: ", # + shorthand
    "1001" : "Registry is frozen, members can only be added at startup.",
    "1002" : "Function must declare at least one fixed argument: ", # + shorthand
    "1003" : "Invalid shorthand: ", # + shorthand
    "1004" : "Member group is missing a required operator: ", # + shorthand

    "3000" : "Equation shorthand collides with a registered member: ", # + shorthand
    "3001" : "Equation must be an Equation or a string.",

    "3100" : "Equation is not valid.",
    "3101" : "Invalid spacing: ",
    "3102" : "Multiple sequential operators: ",
    "3103" : "Operator is missing a value: ",
    "3104" : "Number too large: ",
    "3105" : "Too many decimal places: ",
    "3106" : "Empty sub-expression.",
    "3107" : "Missing sub-expression delimiter: ",
    "3108" : "Leading operator: ",
    "3109" : "Trailing operator: ",
    "3110" : "Decimal point between non-numbers: ",
    "3111" : "Trailing decimal point: ",
    "3112" : "Non-matching sub-expression delimiters: ",
    "3113" : "Function without sub-expression: ",
    "3114" : "Invalid text: ",
    "3115" : "Wrong number of function arguments: ",

    "3200" : "Unexpected token: ", # + token
    "3201" : "Fragment did not reduce to a single value: ", # + fragment

    "5000" : "Settings could not be saved: ", # + path

    "9999" : "Unexpected Error: " #+error
}


class ErrorKind(str, Enum):
    """Kinds of defects the validator reports."""

    UNKNOWN = "Unknown"
    INVALID_SPACING = "InvalidSpacing"
    MULTIPLE_SEQUENTIAL_OPERATORS = "MultipleSequentialOperators"
    OPERATOR_MISSING_VALUE = "OperatorMissingValue"
    NUMBER_TOO_LARGE = "NumberTooLarge"
    TOO_MANY_DECIMAL_PLACES = "TooManyDecimalPlaces"
    EMPTY_SUB_EXPRESSION = "EmptySubExpression"
    MISSING_SUB_EXPRESSION_DELIMITER = "MissingSubExpressionDelimiter"
    LEADING_OPERATOR = "LeadingOperator"
    TRAILING_OPERATOR = "TrailingOperator"
    DECIMAL_BETWEEN_NON_NUMBERS = "DecimalBetweenNonNumbers"
    TRAILING_DECIMAL = "TrailingDecimal"
    NON_MATCHING_SUB_EXPRESSION_DELIMITERS = "NonMatchingSubExpressionDelimiters"
    FUNCTION_WITHOUT_SUB_EXPRESSION = "FunctionWithoutSubExpression"
    INVALID_TEXT = "InvalidText"
    ARGUMENT_COUNT_MISMATCH = "ArgumentCountMismatch"

    @property
    def code(self):
        return _KIND_CODES[self]


_KIND_CODES = {
    ErrorKind.UNKNOWN: "9999",
    ErrorKind.INVALID_SPACING: "3101",
    ErrorKind.MULTIPLE_SEQUENTIAL_OPERATORS: "3102",
    ErrorKind.OPERATOR_MISSING_VALUE: "3103",
    ErrorKind.NUMBER_TOO_LARGE: "3104",
    ErrorKind.TOO_MANY_DECIMAL_PLACES: "3105",
    ErrorKind.EMPTY_SUB_EXPRESSION: "3106",
    ErrorKind.MISSING_SUB_EXPRESSION_DELIMITER: "3107",
    ErrorKind.LEADING_OPERATOR: "3108",
    ErrorKind.TRAILING_OPERATOR: "3109",
    ErrorKind.DECIMAL_BETWEEN_NON_NUMBERS: "3110",
    ErrorKind.TRAILING_DECIMAL: "3111",
    ErrorKind.NON_MATCHING_SUB_EXPRESSION_DELIMITERS: "3112",
    ErrorKind.FUNCTION_WITHOUT_SUB_EXPRESSION: "3113",
    ErrorKind.INVALID_TEXT: "3114",
    ErrorKind.ARGUMENT_COUNT_MISMATCH: "3115",
}


@dataclass(frozen=True)
class ErrorInfo:
    """One defect: where it is (offset into the original text of its target) and what was found there.

    ``target`` is None for the equation text, or the shorthand of the constant whose value is at fault.
    """

    kind: ErrorKind
    offset: int
    text: str
    target: Optional[str] = None

    @property
    def code(self):
        return self.kind.code

    @property
    def message(self):
        location = f"constant '{self.target}'" if self.target is not None else "equation"
        detail = repr(self.text) if self.text else ""
        return f"{ERROR_MESSAGES[self.code]}{detail} at {location}, position {self.offset}"
