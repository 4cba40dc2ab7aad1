# ExpressionCompiler.py
"""""
Turns flat fragments into expression trees and wraps the result in a callable.

Pipeline
--------
1) Tokenize a delimiter-free fragment into leaves (numbers, variables,
   constants, placeholders) separated by operators.
2) Reduce operator groups tightest first, left to right: each operator and
   its two neighbouring leaves become one BinOp leaf.
3) CompiledEquation evaluates the root for concrete variable values.

Negative operands
-----------------
The normalizer writes a minus after another operator as '-1*' ('6/-2' is
'6/-1*2'). The compiler reads that prefix as "negate the next operand".
The negation binds looser than operators above multiplication and tighter
than everything else, so '6/-2' is -3, '2*-3^2' is -18 and '2^-1' is 0.5.
"""""

import logging
import math

from . import error as E
from .Lexer import TokenKind, placeholder_name

logger = logging.getLogger(__name__)


# -----------------------------
# Expression tree nodes
# -----------------------------

class Number:
    """Numeric literal."""
    def __init__(self, value):
        self.value = float(value)

    def evaluate(self, values):
        return self.value

    def __repr__(self):
        return f"Number({self.value!r})"


class VariableReference:
    """A variable; its value sits in the argument slot of the same index."""
    def __init__(self, shorthand, slot):
        self.shorthand = shorthand
        self.slot = slot

    def evaluate(self, values):
        return values[self.slot]

    def __repr__(self):
        return f"Variable('{self.shorthand}')"


class ConstantReference:
    """An expression constant, evaluated once per call into its slot before the equation runs."""
    def __init__(self, shorthand, slot):
        self.shorthand = shorthand
        self.slot = slot

    def evaluate(self, values):
        return values[self.slot]

    def __repr__(self):
        return f"Constant('{self.shorthand}')"


class Negate:
    def __init__(self, operand):
        self.operand = operand

    def evaluate(self, values):
        return -self.operand.evaluate(values)

    def __repr__(self):
        return f"Negate({self.operand})"


class BinOp:
    """AST node for a binary operation: left <operator> right."""
    def __init__(self, left, operator, right):
        self.left = left
        self.operator = operator
        self.right = right

    def evaluate(self, values):
        left_value = self.left.evaluate(values)
        right_value = self.right.evaluate(values)
        try:
            return self.operator.apply(left_value, right_value)
        except (ArithmeticError, ValueError) as exc:
            # only custom operators can get here, built-in ones follow IEEE rules
            logger.debug("Operator '%s' failed: %s", self.operator.shorthand, exc)
            return math.nan

    def __repr__(self):
        return f"BinOp({self.operator.shorthand!r}, left={self.left}, right={self.right})"


class FunctionCall:
    def __init__(self, function, arguments):
        self.function = function
        self.arguments = tuple(arguments)

    def evaluate(self, values):
        arguments = [argument.evaluate(values) for argument in self.arguments]
        try:
            return float(self.function.method(*arguments))
        except (ArithmeticError, ValueError) as exc:
            logger.debug("Function '%s' failed: %s", self.function.shorthand, exc)
            return math.nan

    def __repr__(self):
        arguments = ", ".join(repr(argument) for argument in self.arguments)
        return f"FunctionCall({self.function.shorthand!r}, {arguments})"


# -----------------------------
# Fragment compiler
# -----------------------------

class ExpressionCompiler:
    """Compiles the flat fragments of one target.

    ``references`` maps lower-cased variable/constant shorthands to the node
    that stands for them. Resolved sub-expressions are registered as
    placeholders and can then appear in later fragments.
    """

    def __init__(self, members, lexer, references):
        self.members = members
        self.lexer = lexer
        self.references = references
        self.placeholders = {}

    def register(self, node):
        name = placeholder_name(len(self.placeholders))
        self.placeholders[name] = node
        logger.debug("Placeholder %s = %r", name, node)
        return name

    def compile_fragment(self, fragment):
        if not fragment:
            raise E.CompilationError(E.ERROR_MESSAGES["3201"] + repr(fragment), code="3201")

        subtraction = self.members.subtraction
        if fragment.startswith(subtraction.shorthand):
            # a leading sign is read as a subtraction from zero
            fragment = "0" + fragment

        leaves, negated, operators = self._split(self.lexer.scan(fragment), fragment)
        return self._reduce(leaves, negated, operators, fragment)

    def _split(self, tokens, fragment):
        """Check the leaf (operator leaf)* shape and pull out '-1*' negation prefixes."""
        leaves = []
        negated = []
        operators = []
        negate_next = False
        expecting_leaf = True
        index = 0
        while index < len(tokens):
            token = tokens[index]
            index += 1
            if expecting_leaf:
                leaves.append(self._leaf(token, fragment))
                negated.append(negate_next)
                negate_next = False
                expecting_leaf = False
                continue

            if token.kind is not TokenKind.OPERATOR:
                raise E.CompilationError(E.ERROR_MESSAGES["3200"] + repr(token.text), code="3200")
            operators.append(token.member)
            if token.member is not self.members.subtraction and self._is_negation(tokens, index):
                negate_next = True
                index += 3
            expecting_leaf = True

        if expecting_leaf:
            raise E.CompilationError(E.ERROR_MESSAGES["3201"] + repr(fragment), code="3201")
        return leaves, negated, operators

    def _is_negation(self, tokens, index):
        if index + 3 >= len(tokens):
            return False
        sign, one, times = tokens[index:index + 3]
        return (sign.member is self.members.subtraction
                and one.kind is TokenKind.NUMBER and one.text == "1"
                and times.member is self.members.multiplication)

    def _leaf(self, token, fragment):
        if token.kind is TokenKind.PLACEHOLDER:
            return self.placeholders[token.text]
        elif token.kind is TokenKind.NUMBER:
            return Number(token.text)
        elif token.kind is TokenKind.IDENTIFIER:
            return self.references[token.member.shorthand.lower()]
        else:
            raise E.CompilationError(E.ERROR_MESSAGES["3200"] + repr(token.text), code="3200")

    def _reduce(self, leaves, negated, operators, fragment):
        multiply_order = self.members.multiplication.order
        pending = True

        for group in self.members.operator_groups:
            order = group[0].order
            if pending and order <= multiply_order:
                leaves = _apply_negations(leaves, negated)
                negated = [False] * len(leaves)
                pending = False

            index = 0
            while index < len(operators):
                operator = operators[index]
                if operator not in group:
                    index += 1
                    continue
                right = leaves[index + 1]
                if order > multiply_order and negated[index + 1]:
                    right = Negate(right)
                leaves[index:index + 2] = [BinOp(leaves[index], operator, right)]
                # a negated left operand stays negated as part of the result
                negated[index:index + 2] = [negated[index]]
                del operators[index]

        if pending:
            leaves = _apply_negations(leaves, negated)

        if len(leaves) != 1:
            raise E.CompilationError(E.ERROR_MESSAGES["3201"] + repr(fragment), code="3201")
        return leaves[0]


def _apply_negations(leaves, negated):
    return [Negate(leaf) if negate else leaf for leaf, negate in zip(leaves, negated)]


# -----------------------------
# Compiled callable
# -----------------------------

class CompiledEquation:
    """The compiled equation: call it with one number per variable, in declaration order.

    Holds no state between calls, so one instance can be shared between threads.
    """

    def __init__(self, equation, root, constants=()):
        self.equation = equation
        self.variables = tuple(variable.shorthand for variable in equation.variables)
        self.root = root
        # (slot, node) pairs in declaration order
        self._constants = tuple(constants)

    @property
    def arity(self):
        return len(self.variables)

    def __call__(self, *args):
        if len(args) != len(self.variables):
            raise TypeError(f"equation '{self.equation.text}' takes {len(self.variables)} argument(s) ({len(args)} given)")

        values = [float(arg) for arg in args] + [math.nan] * len(self._constants)
        for slot, node in self._constants:
            values[slot] = node.evaluate(values)
        return float(self.root.evaluate(values))

    def __repr__(self):
        return f"CompiledEquation({self.equation.text!r}, variables={list(self.variables)})"
