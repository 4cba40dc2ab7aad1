# EquationValidator.py
"""""
Finds every defect in an equation before anything is compiled.

Each target (the equation text, and every constant whose value is an
expression) goes through the same stages:

1) Character check      characters no member can use are InvalidText and removed
2) Whitespace           interior spaces must touch an operator, ',' or a delimiter; all spaces are stripped
3) Function names       'sqrt(' becomes the one-character marker, a name without '(' is an error
4) Identifiers          letter runs must be made of visible variable/constant shorthands
5) Normalization        decimal completion, '--', implicit '*'
6) Structure            delimiters, empty bodies, leading/trailing operators, arguments,
                        operator runs and number literals

Positions found in later stages are mapped back through the OffsetMap, so
every ErrorInfo offset points into the text the user typed. The report keeps
one error per offset (first found wins) and is sorted by offset.
"""""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

from . import error as E
from .EquationMembers import ARGUMENT_DELIMITER, DECIMAL_POINT, FUNCTION_MARKER, Constant
from .Lexer import Lexer, SpanArena, TokenKind
from .OffsetMap import Edit, OffsetMap
from .TextNormalizer import TextNormalizer

logger = logging.getLogger(__name__)

ErrorKind = E.ErrorKind

_LETTER_RUN = re.compile(r"[A-Za-z]+")
_WHITESPACE_RUN = re.compile(r"\s+")
_ASCII_ALPHANUMERIC = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")


@dataclass
class ValidationResult:
    """Outcome for one target. ``text`` is fully normalized and only meaningful when there are no errors."""

    target: Optional[Constant]
    text: str
    offsets: OffsetMap
    identifiers: tuple
    functions: list = field(default_factory=list)
    errors: list = field(default_factory=list)

    @property
    def is_valid(self):
        return not self.errors

    @property
    def target_name(self):
        return self.target.shorthand if self.target is not None else None


class _ErrorCollector:
    def __init__(self, target_name):
        self.target_name = target_name
        self.offsets = OffsetMap()
        self._errors = {}

    def add(self, kind, position, text):
        """Record an error at a position of the current (rewritten) text."""
        offset = self.offsets.to_original(position)
        if offset not in self._errors:
            logger.debug("%s at %d: %r", kind.value, offset, text)
            self._errors[offset] = E.ErrorInfo(kind, offset, text, self.target_name)

    def sorted(self):
        return sorted(self._errors.values(), key=lambda error: error.offset)


class EquationValidator:
    def __init__(self, members):
        self.members = members

        symbols = set()
        for op in members.operators:
            symbols.update(op.shorthand)
        for delimiter in members.delimiters:
            symbols.update(delimiter.left + delimiter.right)
        self._symbol_characters = frozenset(symbols)

    def validate(self, equation):
        """Validate every expression constant (declaration order), then the equation itself."""
        results = [self.validate_target(equation, constant) for constant in equation.constants if not constant.is_number]
        results.append(self.validate_target(equation, None))
        return results

    def validate_target(self, equation, target=None):
        text = equation.text if target is None else target.value
        identifiers = tuple(equation.variables) + tuple(equation.visible_constants(target))
        lexer = Lexer(self.members, identifiers)
        normalizer = TextNormalizer(self.members, lexer)
        collector = _ErrorCollector(target.shorthand if target is not None else None)

        text = self._remove_invalid_characters(text, collector)
        text = self._strip_whitespace(text, collector)
        text, functions = self._mark_functions(text, collector)
        self._check_identifiers(text, lexer, collector)

        text, collector.offsets = normalizer.clarify(text, collector.offsets)
        self._check_structure(text, lexer.scan(text), functions, collector)

        text, collector.offsets = normalizer.canonicalize(text, collector.offsets)

        errors = collector.sorted()
        return ValidationResult(target, text, collector.offsets, identifiers, functions, errors)

    # -----------------------------
    # Lexical stages
    # -----------------------------

    def _is_valid_character(self, char):
        return (char in _ASCII_ALPHANUMERIC or char.isspace() or char in self._symbol_characters
                or char in (DECIMAL_POINT, ARGUMENT_DELIMITER))

    def _remove_invalid_characters(self, text, collector):
        edits = []
        position = 0
        while position < len(text):
            if self._is_valid_character(text[position]):
                position += 1
                continue
            end = position
            while end < len(text) and not self._is_valid_character(text[end]):
                end += 1
            collector.add(ErrorKind.INVALID_TEXT, position, text[position:end])
            edits.append(Edit(position, end - position, ""))
            position = end

        text, collector.offsets = collector.offsets.apply(text, edits)
        return text

    def _space_allowed(self, left, right):
        for op in self.members.operators:
            if left.endswith(op.shorthand) or right.startswith(op.shorthand):
                return True
        if left.endswith(ARGUMENT_DELIMITER) or right.startswith(ARGUMENT_DELIMITER):
            return True
        for delimiter in self.members.delimiters:
            if left.endswith(delimiter.left) or right.startswith(delimiter.right):
                return True
        return False

    def _strip_whitespace(self, text, collector):
        edits = []
        for match in _WHITESPACE_RUN.finditer(text):
            start, end = match.span()
            # leading and trailing whitespace is always fine
            if 0 < start and end < len(text) and not self._space_allowed(text[:start], text[end:]):
                collector.add(ErrorKind.INVALID_SPACING, start, match.group())
            edits.append(Edit(start, end - start, ""))

        text, collector.offsets = collector.offsets.apply(text, edits)
        return text

    def _function_at(self, text, position):
        for function in self.members.functions:
            if function.matches(text[position:position + len(function.shorthand)]):
                return function
        return None

    def _mark_functions(self, text, collector):
        edits = []
        functions = []
        position = 0
        while position < len(text):
            function = self._function_at(text, position)
            if function is None:
                position += 1
                continue
            end = position + len(function.shorthand)
            if any(text.startswith(delimiter.left, end) for delimiter in self.members.delimiters):
                edits.append(Edit(position, end - position, FUNCTION_MARKER))
                functions.append(function)
            else:
                collector.add(ErrorKind.FUNCTION_WITHOUT_SUB_EXPRESSION, position, text[position:end])
            position = end

        text, collector.offsets = collector.offsets.apply(text, edits)
        return text, functions

    def _check_identifiers(self, text, lexer, collector):
        for match in _LETTER_RUN.finditer(text):
            position = match.start()
            while position < match.end():
                member = lexer.match_identifier(text, position)
                if member is None:
                    # the error points at the first letter that is not a visible shorthand
                    collector.add(ErrorKind.INVALID_TEXT, position, text[position:match.end()])
                    break
                position += len(member.shorthand)

    # -----------------------------
    # Structural stage
    # -----------------------------

    def _check_structure(self, text, tokens, functions, collector):
        arena = SpanArena.build(text, tokens, functions)
        for problem in arena.problems:
            if problem.kind == "mismatched":
                collector.add(ErrorKind.NON_MATCHING_SUB_EXPRESSION_DELIMITERS, problem.position, problem.text)
            else:
                collector.add(ErrorKind.MISSING_SUB_EXPRESSION_DELIMITER, problem.position, problem.text)

        self._check_fragment(tokens, 0, len(text), collector)
        for span in arena.spans:
            if span.function is None:
                self._check_fragment(tokens, span.body_start, span.end, collector)
            else:
                self._check_arguments(span, tokens, arena, collector)

        for token in tokens:
            if token.kind is TokenKind.COMMA:
                owner = arena.innermost_at(token.start)
                if owner is None or owner.function is None:
                    collector.add(ErrorKind.INVALID_TEXT, token.start, token.text)
            elif token.kind is TokenKind.UNKNOWN:
                collector.add(ErrorKind.INVALID_TEXT, token.start, token.text)

        self._check_operator_runs(text, tokens, collector)
        self._check_numbers(tokens, collector)

    def _is_sign(self, token, following):
        """A minus directly in front of a number is a sign, not a missing operand."""
        return (token.member is self.members.subtraction
                and following is not None and following.kind is TokenKind.NUMBER)

    def _check_fragment(self, tokens, start, end, collector):
        inside = [token for token in tokens if start <= token.start and token.end <= end]
        if not inside:
            collector.add(ErrorKind.EMPTY_SUB_EXPRESSION, start, "")
            return

        first, last = inside[0], inside[-1]
        following = inside[1] if len(inside) > 1 else None
        if first.kind is TokenKind.OPERATOR and not self._is_sign(first, following):
            collector.add(ErrorKind.LEADING_OPERATOR, first.start, first.text)
        if last.kind is TokenKind.OPERATOR:
            collector.add(ErrorKind.TRAILING_OPERATOR, last.start, last.text)

    def _check_arguments(self, span, tokens, arena, collector):
        if span.body_start == span.end:
            collector.add(ErrorKind.EMPTY_SUB_EXPRESSION, span.body_start, "")
            return

        commas = [token for token in tokens
                  if token.kind is TokenKind.COMMA and arena.innermost_at(token.start) is span]
        starts = [span.body_start] + [comma.end for comma in commas]
        ends = [comma.start for comma in commas] + [span.end]
        for start, end in zip(starts, ends):
            self._check_fragment(tokens, start, end, collector)

        if len(starts) != span.function.arity:
            collector.add(ErrorKind.ARGUMENT_COUNT_MISMATCH, span.function_start, span.function.shorthand)

    def _check_operator_runs(self, text, tokens, collector):
        run = []
        for token in tokens + [None]:
            if token is not None and token.kind is TokenKind.OPERATOR:
                run.append(token)
                continue
            if len(run) > 1 and not self._is_signed_operand(run):
                collector.add(ErrorKind.MULTIPLE_SEQUENTIAL_OPERATORS, run[0].start, text[run[0].start:run[-1].end])
            run = []

    def _is_signed_operand(self, run):
        """'3*-5' is an operator followed by a negative operand."""
        subtraction = self.members.subtraction
        return len(run) == 2 and run[0].member is not subtraction and run[1].member is subtraction

    def _check_numbers(self, tokens, collector):
        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.NUMBER:
                continue
            number = token.text

            if ".." in number:
                start = number.index("..")
                end = start
                while end < len(number) and number[end] == DECIMAL_POINT:
                    end += 1
                collector.add(ErrorKind.TOO_MANY_DECIMAL_PLACES, token.start + start, number[start:end])
            elif number.count(DECIMAL_POINT) > 1:
                collector.add(ErrorKind.TOO_MANY_DECIMAL_PLACES, token.start, number)
            elif number == DECIMAL_POINT:
                following = tokens[index + 1] if index + 1 < len(tokens) else None
                if following is None or following.kind in (TokenKind.CLOSE, TokenKind.COMMA):
                    collector.add(ErrorKind.TRAILING_DECIMAL, token.start, number)
                else:
                    collector.add(ErrorKind.DECIMAL_BETWEEN_NON_NUMBERS, token.start, number)
            elif math.isinf(float(number)):
                collector.add(ErrorKind.NUMBER_TOO_LARGE, token.start, number)
