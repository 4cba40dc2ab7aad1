# TextNormalizer.py
"""""
Rewrites equation text into a form with one meaning per token.

Three batches, each applied through the OffsetMap so positions can still be
traced back to what the user typed:

1) Decimal completion ('.5' -> '0.5', '5.' -> '5') and doubled minus ('--' -> '+')
2) Implicit multiplication ('2X' -> '2*X', '(1)(2)' -> '(1)*(2)', 'Xsqrt(4)' -> 'X*sqrt(4)')
3) Unary minus after an operator ('3*-5' -> '3*-1*5'), so every other minus is a subtraction
"""""

import logging
import re

from .Lexer import TokenKind
from .OffsetMap import Edit

logger = logging.getLogger(__name__)

_MISSING_LEADING_ZERO = re.compile(r"(?<![\d.])\.(?=\d)")
_DANGLING_DECIMAL_POINT = re.compile(r"(?<=\d)\.(?![\d.])")


def _ends_operand(token):
    if token.kind is TokenKind.NUMBER:
        return token.text[-1].isdigit()
    return token.kind in (TokenKind.IDENTIFIER, TokenKind.CLOSE, TokenKind.PLACEHOLDER)


def _starts_operand(token):
    if token.kind is TokenKind.NUMBER:
        return token.text[0].isdigit()
    return token.kind in (TokenKind.IDENTIFIER, TokenKind.OPEN, TokenKind.FUNCTION, TokenKind.PLACEHOLDER)


class TextNormalizer:
    def __init__(self, members, lexer):
        self.members = members
        self.lexer = lexer

    def normalize(self, text, offsets):
        """Return (normalized_text, offsets) with one OffsetMap layer per batch."""
        text, offsets = self.clarify(text, offsets)
        return self.canonicalize(text, offsets)

    def clarify(self, text, offsets):
        """Batches 1 and 2. The validator checks this form, so errors point at what the user wrote."""
        edits = self.complete_decimals(text) + self.collapse_double_negatives(text)
        text, offsets = offsets.apply(text, edits)
        text, offsets = offsets.apply(text, self.insert_multiplication(text))
        logger.debug("Clarified text: %s", text)
        return text, offsets

    def canonicalize(self, text, offsets):
        """Batch 3."""
        text, offsets = offsets.apply(text, self.canonicalize_unary_minus(text))
        logger.debug("Normalized text: %s", text)
        return text, offsets

    def complete_decimals(self, text):
        edits = [Edit(m.start(), 0, "0") for m in _MISSING_LEADING_ZERO.finditer(text)]
        # a decimal point with nothing after it is noise
        edits += [Edit(m.start(), 1, "") for m in _DANGLING_DECIMAL_POINT.finditer(text)]
        return edits

    def collapse_double_negatives(self, text):
        minus = re.escape(self.members.subtraction.shorthand)
        pattern = re.compile("(?:" + minus + "){2}")
        return [Edit(m.start(), len(m.group()), self.members.addition.shorthand) for m in pattern.finditer(text)]

    def insert_multiplication(self, text):
        times = self.members.multiplication.shorthand
        tokens = self.lexer.scan(text)
        edits = []
        for left, right in zip(tokens, tokens[1:]):
            if _ends_operand(left) and _starts_operand(right):
                edits.append(Edit(right.start, 0, times))
        return edits

    def canonicalize_unary_minus(self, text):
        minus = self.members.subtraction
        replacement = minus.shorthand + "1" + self.members.multiplication.shorthand
        tokens = self.lexer.scan(text)
        edits = []
        for left, right in zip(tokens, tokens[1:]):
            if (left.kind is TokenKind.OPERATOR and left.member is not minus
                    and right.kind is TokenKind.OPERATOR and right.member is minus):
                edits.append(Edit(right.start, right.end - right.start, replacement))
        return edits
