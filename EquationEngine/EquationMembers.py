# EquationMembers.py
"""""
Everything an equation can be built from.

Variable / Constant / Equation
------------------------------
Caller-supplied, immutable pydantic models. They are validated on creation,
so the engine can trust them afterwards.

Operator / Function / SubExpressionDelimiter
--------------------------------------------
Registry members. Operators are a tagged variant (OperatorKind) instead of a
class per operator; functions wrap a native callable whose arity is read
from its signature.

MemberGroup / MemberRegistry
----------------------------
A MemberGroup is the immutable set of operators, functions and delimiters
used by one validate/compile call. MemberRegistry is the append-only builder
extensions use at startup; freeze() hands out the finished group.
"""""

from __future__ import annotations

import inspect
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field, model_validator

from . import ScientificEngine
from . import error as E

# Reserved characters used by the engine inside rewritten text
FUNCTION_MARKER = "@"
PLACEHOLDER_DELIMITER = "$"
ARGUMENT_DELIMITER = ","
DECIMAL_POINT = "."

RESERVED_CHARACTERS = (FUNCTION_MARKER, PLACEHOLDER_DELIMITER, ARGUMENT_DELIMITER, DECIMAL_POINT)

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_FUNCTION_SHORTHAND_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")


class EquationMember:
    """Shared behaviour of everything that appears in equation text by its shorthand."""

    def matches(self, text):
        return self.shorthand.lower() == text.lower()


# -----------------------------
# Variables, constants, equations
# -----------------------------

class Variable(BaseModel, EquationMember):
    shorthand: str = Field(..., pattern=r"^[A-Za-z]+$")
    name: str = "Variable"

    model_config = {"frozen": True}

    @classmethod
    def create(cls, shorthand, name="Variable"):
        return cls(shorthand=shorthand, name=name)

    def __str__(self):
        return self.shorthand


class Constant(Variable):
    """A named sub-expression. ``value`` is either a plain number ("55.7") or expression text ("X - 5")."""

    value: str
    name: str = "Constant"

    @classmethod
    def create(cls, shorthand, value, name="Constant"):
        return cls(shorthand=shorthand, value=value, name=name)

    @property
    def is_number(self):
        text = self.value.strip()
        if not _NUMBER_PATTERN.match(text):
            return False
        return math.isfinite(float(text))


X_VARIABLE = Variable(shorthand="X")
Y_VARIABLE = Variable(shorthand="Y")


class Equation(BaseModel):
    text: str
    constants: tuple[Constant, ...] = ()
    variables: tuple[Variable, ...] = (X_VARIABLE,)

    model_config = {"frozen": True}

    @classmethod
    def create(cls, text, constants=None, variables=None):
        return cls(
            text=text,
            constants=tuple(constants or ()),
            variables=tuple(variables) if variables is not None else (X_VARIABLE,),
        )

    @model_validator(mode="after")
    def check_unique_shorthands(self):
        seen = set()
        for member in self.variables + self.constants:
            key = member.shorthand.lower()
            if key in seen:
                raise ValueError(f"duplicate shorthand '{member.shorthand}' in equation")
            seen.add(key)
        return self

    def visible_constants(self, target=None):
        """Constants a target may reference: all of them for the equation, earlier ones for a constant."""
        if target is None:
            return self.constants
        index = self.constants.index(target)
        return self.constants[:index]


# -----------------------------
# Registry members
# -----------------------------

class OperatorKind(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MODULO = "modulo"
    POWER = "power"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Operator(EquationMember):
    """Binary operator. Higher ``order`` binds tighter."""

    name: str
    shorthand: str
    order: int
    kind: OperatorKind = OperatorKind.CUSTOM
    method: Optional[Callable[[float, float], float]] = field(default=None, compare=False)

    def apply(self, left, right):
        if self.kind is OperatorKind.ADD:
            return left + right
        elif self.kind is OperatorKind.SUBTRACT:
            return left - right
        elif self.kind is OperatorKind.MULTIPLY:
            return left * right
        elif self.kind is OperatorKind.DIVIDE:
            return ScientificEngine.divide(left, right)
        elif self.kind is OperatorKind.MODULO:
            return ScientificEngine.modulo(left, right)
        elif self.kind is OperatorKind.POWER:
            return ScientificEngine.power(left, right)
        else:
            return float(self.method(left, right))


@dataclass(frozen=True)
class Function(EquationMember):
    name: str
    shorthand: str
    method: Callable = field(compare=False)
    arity: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "arity", _count_arguments(self.shorthand, self.method))


def _count_arguments(shorthand, method):
    try:
        parameters = inspect.signature(method).parameters.values()
    except (TypeError, ValueError):
        raise E.RegistrationError(f"Cannot inspect function '{shorthand}'.", code="1002")

    count = 0
    for parameter in parameters:
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            raise E.RegistrationError(f"Function '{shorthand}' must have a fixed argument count.", code="1002")
        if parameter.kind is parameter.KEYWORD_ONLY:
            continue
        count += 1
    if count == 0:
        raise E.RegistrationError(f"Function '{shorthand}' declares no arguments.", code="1002")
    return count


@dataclass(frozen=True)
class SubExpressionDelimiter(EquationMember):
    left: str
    right: str
    name: str = "Delimiter"

    @classmethod
    def from_shorthand(cls, shorthand):
        """Build from the comma form, e.g. "(,)"."""
        left, separator, right = shorthand.partition(",")
        if not separator or not left or not right:
            raise ValueError("shorthand must contain a single comma between the left and right values")
        return cls(left, right)

    @property
    def shorthand(self):
        return f"{self.left},{self.right}"

    def __getitem__(self, left_side):
        return self.left if left_side else self.right


DEFAULT_OPERATORS = (
    Operator("Addition", "+", 0, OperatorKind.ADD),
    Operator("Subtraction", "-", 0, OperatorKind.SUBTRACT),
    Operator("Multiplication", "*", 1, OperatorKind.MULTIPLY),
    Operator("Division", "/", 1, OperatorKind.DIVIDE),
    Operator("Modulo", "%", 1, OperatorKind.MODULO),
    Operator("Exponent", "^", 2, OperatorKind.POWER),
)

DEFAULT_FUNCTIONS = (
    Function("Square Root", "sqrt", ScientificEngine.square_root),
    Function("Max", "max", ScientificEngine.maximum),
    Function("Log10", "log10", ScientificEngine.log_10),
    Function("Round", "round", ScientificEngine.round_away_from_zero),
)

DEFAULT_DELIMITERS = (
    SubExpressionDelimiter.from_shorthand("(,)"),
    SubExpressionDelimiter.from_shorthand("[,]"),
)

_REQUIRED_OPERATOR_KINDS = (OperatorKind.ADD, OperatorKind.SUBTRACT, OperatorKind.MULTIPLY)


class MemberGroup:
    """Immutable snapshot of the operators, functions and delimiters for one call."""

    def __init__(self, name, members):
        self.name = name
        operators, functions, delimiters = _sort_members(members)
        _check_tokens(operators, functions, delimiters)

        self._operators = tuple(operators)
        # longest first so "log10" is matched before a shorter "log"
        self._functions = tuple(sorted(functions, key=lambda f: len(f.shorthand), reverse=True))
        self._delimiters = tuple(delimiters)

        by_kind = {op.kind: op for op in self._operators if op.kind is not OperatorKind.CUSTOM}
        for kind in _REQUIRED_OPERATOR_KINDS:
            if kind not in by_kind:
                raise E.RegistrationError(f"Member group '{name}' has no {kind.value} operator.", code="1004")
        self._by_kind = by_kind

        orders = sorted({op.order for op in self._operators}, reverse=True)
        self._operator_groups = tuple(
            tuple(op for op in self._operators if op.order == order) for order in orders
        )

    @property
    def operators(self):
        return self._operators

    @property
    def functions(self):
        return self._functions

    @property
    def delimiters(self):
        return self._delimiters

    @property
    def operator_groups(self):
        """Operators grouped by order, tightest-binding group first."""
        return self._operator_groups

    @property
    def addition(self):
        return self._by_kind[OperatorKind.ADD]

    @property
    def subtraction(self):
        return self._by_kind[OperatorKind.SUBTRACT]

    @property
    def multiplication(self):
        return self._by_kind[OperatorKind.MULTIPLY]

    def members_of(self, member_type):
        return tuple(m for m in self if isinstance(m, member_type))

    def shorthands(self):
        """Every token text in the group, lower-cased."""
        tokens = {m.shorthand.lower() for m in self._operators + self._functions}
        for delimiter in self._delimiters:
            tokens.update((delimiter.left.lower(), delimiter.right.lower()))
        return tokens

    def __iter__(self):
        return iter(self._operators + self._functions + self._delimiters)

    def __repr__(self):
        return f"MemberGroup({self.name!r}, {len(self._operators)} operators, {len(self._functions)} functions, {len(self._delimiters)} delimiters)"


def _sort_members(members):
    operators, functions, delimiters = [], [], []
    for member in members:
        if isinstance(member, Operator):
            if member.kind is OperatorKind.CUSTOM and member.method is None:
                raise E.RegistrationError(f"Operator '{member.shorthand}' has no method.", code="1003")
            operators.append(member)
        elif isinstance(member, Function):
            functions.append(member)
        elif isinstance(member, SubExpressionDelimiter):
            delimiters.append(member)
        else:
            raise E.RegistrationError(f"Unsupported member: {member!r}", code="1003")
    return operators, functions, delimiters


def _check_symbol(token):
    if not token or any(c.isalnum() or c.isspace() or c in RESERVED_CHARACTERS for c in token):
        raise E.RegistrationError(f"Invalid shorthand: '{token}'", code="1003")


def _check_tokens(operators, functions, delimiters):
    seen = set()

    def claim(token):
        key = token.lower()
        if key in seen:
            raise E.RegistrationError(f"Duplicate shorthand: '{token}'", code="1000")
        seen.add(key)

    for op in operators:
        _check_symbol(op.shorthand)
        claim(op.shorthand)
    for delimiter in delimiters:
        for token in (delimiter.left, delimiter.right):
            _check_symbol(token)
            claim(token)
    for function in functions:
        if not _FUNCTION_SHORTHAND_PATTERN.match(function.shorthand):
            raise E.RegistrationError(f"Invalid shorthand: '{function.shorthand}'", code="1003")
        claim(function.shorthand)


DEFAULT_MEMBERS = MemberGroup("Default", DEFAULT_OPERATORS + DEFAULT_FUNCTIONS + DEFAULT_DELIMITERS)


class MemberRegistry:
    """Append-only builder for a MemberGroup, seeded with a base group.

    Extensions register their operators and functions at startup; freeze()
    returns the immutable group and closes the registry.
    """

    def __init__(self, name="Default", base=DEFAULT_MEMBERS):
        self.name = name
        self._members = list(base) if base is not None else []
        self._frozen = None

    def register(self, member):
        if self._frozen is not None:
            raise E.RegistrationError("Registry is frozen.", code="1001")
        # token rules are checked now, the required operators only at freeze()
        _check_tokens(*_sort_members(self._members + [member]))
        self._members.append(member)
        return member

    def freeze(self):
        if self._frozen is None:
            self._frozen = MemberGroup(self.name, self._members)
        return self._frozen
