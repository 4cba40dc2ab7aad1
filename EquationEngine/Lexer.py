# Lexer.py
"""""
Token scanner shared by the normalizer, the validator and the compiler.

The scanner never fails: characters it cannot place become UNKNOWN tokens,
and it is up to the validator to report them. Number tokens are whole runs
of digits and decimal points, malformed or not, for the same reason.

SpanArena
---------
Matched delimiter pairs found in a token list. Spans are stored flat and
indexed by depth; each one knows its parent, so shifting offsets after a
splice is plain index arithmetic.
"""""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .EquationMembers import ARGUMENT_DELIMITER, FUNCTION_MARKER, PLACEHOLDER_DELIMITER

PLACEHOLDER_WIDTH = 6
PLACEHOLDER_PATTERN = re.compile(re.escape(PLACEHOLDER_DELIMITER) + r"\d{%d}" % PLACEHOLDER_WIDTH + re.escape(PLACEHOLDER_DELIMITER))
_NUMBER_RUN = re.compile(r"[0-9.]+")
_LETTER_RUN = re.compile(r"[A-Za-z]+")


def placeholder_name(index):
    return f"{PLACEHOLDER_DELIMITER}{index:0{PLACEHOLDER_WIDTH}d}{PLACEHOLDER_DELIMITER}"


class TokenKind(Enum):
    NUMBER = "number"
    IDENTIFIER = "identifier"
    FUNCTION = "function"
    PLACEHOLDER = "placeholder"
    OPEN = "open"
    CLOSE = "close"
    OPERATOR = "operator"
    COMMA = "comma"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    start: int
    end: int
    text: str
    member: object = None

    def __repr__(self):
        return f"Token({self.kind.name}, {self.start}, {self.text!r})"


class Lexer:
    def __init__(self, members, identifiers=()):
        self.members = members
        self.operators = sorted(members.operators, key=lambda op: len(op.shorthand), reverse=True)
        self.identifiers = sorted(identifiers, key=lambda m: len(m.shorthand), reverse=True)

        delimiter_tokens = []
        for delimiter in members.delimiters:
            delimiter_tokens.append((delimiter.left, TokenKind.OPEN, delimiter))
            delimiter_tokens.append((delimiter.right, TokenKind.CLOSE, delimiter))
        self.delimiter_tokens = sorted(delimiter_tokens, key=lambda t: len(t[0]), reverse=True)

    def match_identifier(self, text, position):
        """Return the variable/constant whose shorthand starts at position (case-insensitive), or None."""
        for member in self.identifiers:
            length = len(member.shorthand)
            if member.matches(text[position:position + length]):
                return member
        return None

    def scan(self, text):
        tokens = []
        position = 0
        while position < len(text):
            token = self._next_token(text, position)
            tokens.append(token)
            position = token.end
        return tokens

    def _next_token(self, text, position):
        char = text[position]

        placeholder = PLACEHOLDER_PATTERN.match(text, position)
        if placeholder:
            return Token(TokenKind.PLACEHOLDER, position, placeholder.end(), placeholder.group())

        if char == FUNCTION_MARKER:
            return Token(TokenKind.FUNCTION, position, position + 1, char)

        run = _NUMBER_RUN.match(text, position)
        if run:
            return Token(TokenKind.NUMBER, position, run.end(), run.group())

        run = _LETTER_RUN.match(text, position)
        if run:
            member = self.match_identifier(text, position)
            if member is not None:
                end = position + len(member.shorthand)
                return Token(TokenKind.IDENTIFIER, position, end, text[position:end], member)
            return Token(TokenKind.UNKNOWN, position, run.end(), run.group())

        if char == ARGUMENT_DELIMITER:
            return Token(TokenKind.COMMA, position, position + 1, char)

        for token_text, kind, delimiter in self.delimiter_tokens:
            if text.startswith(token_text, position):
                return Token(kind, position, position + len(token_text), token_text, delimiter)

        for op in self.operators:
            if text.startswith(op.shorthand, position):
                return Token(TokenKind.OPERATOR, position, position + len(op.shorthand), op.shorthand, op)

        return Token(TokenKind.UNKNOWN, position, position + 1, char)


# -----------------------------
# Sub-expression spans
# -----------------------------

@dataclass(eq=False)
class Span:
    """One delimited group. ``start`` is the opening token offset, ``end`` the closing token offset
    (or the end of the text when the group was never closed)."""

    delimiter: object
    start: int
    depth: int
    parent: Optional[int]
    end: int = -1
    closed: bool = False
    function: object = None
    function_start: int = -1
    children: list = field(default_factory=list)

    @property
    def body_start(self):
        return self.start + len(self.delimiter.left)

    @property
    def region_start(self):
        """Where the span's text begins, including an attached function marker."""
        return self.function_start if self.function is not None else self.start

    @property
    def region_end(self):
        return self.end + (len(self.delimiter.right) if self.closed else 0)

    def body(self, text):
        return text[self.body_start:self.end]


@dataclass
class DelimiterProblem:
    kind: str  # "unopened", "mismatched" or "unclosed"
    position: int
    text: str


class SpanArena:
    """All spans of a text, indexed by depth (0 = outermost)."""

    def __init__(self, spans, problems):
        self.spans = spans
        self.problems = problems

    @classmethod
    def build(cls, text, tokens, functions=()):
        """Pair up OPEN/CLOSE tokens. `functions` lists the Function for each FUNCTION token, in order."""
        spans = []
        problems = []
        stack = []
        function_ordinal = 0
        previous = None
        for token in tokens:
            if token.kind is TokenKind.OPEN:
                parent = stack[-1] if stack else None
                span = Span(token.member, token.start, len(stack), parent)
                if previous is not None and previous.kind is TokenKind.FUNCTION and function_ordinal <= len(functions):
                    span.function = functions[function_ordinal - 1]
                    span.function_start = previous.start
                if parent is not None:
                    spans[parent].children.append(len(spans))
                stack.append(len(spans))
                spans.append(span)
            elif token.kind is TokenKind.CLOSE:
                if not stack:
                    problems.append(DelimiterProblem("unopened", token.start, token.text))
                else:
                    span = spans[stack.pop()]
                    if span.delimiter is not token.member:
                        problems.append(DelimiterProblem("mismatched", span.start, text[span.start:token.end]))
                        # a mismatched close still ends the group, measured with its own length
                        span.delimiter = _ClosedBy(span.delimiter, token.text)
                    span.end = token.start
                    span.closed = True
            elif token.kind is TokenKind.FUNCTION:
                function_ordinal += 1
            previous = token

        for index in stack:
            span = spans[index]
            span.end = len(text)
            problems.append(DelimiterProblem("unclosed", span.start, span.delimiter.left))

        return cls(spans, problems)

    @property
    def depth_count(self):
        return max((span.depth for span in self.spans), default=-1) + 1

    def at_depth(self, depth):
        return [span for span in self.spans if span.depth == depth]

    def innermost_at(self, position):
        """The deepest span whose body contains position, or None."""
        found = None
        for span in self.spans:
            if span.body_start <= position < span.end and (found is None or span.depth > found.depth):
                found = span
        return found

    def shift(self, after, delta):
        """Move every boundary past `after` by `delta` characters."""
        for span in self.spans:
            if span.start > after:
                span.start += delta
            if span.function is not None and span.function_start > after:
                span.function_start += delta
            if span.end > after:
                span.end += delta


@dataclass(frozen=True)
class _ClosedBy:
    """Delimiter stand-in for a group opened with one delimiter and closed with another."""

    opened: object
    right: str

    @property
    def left(self):
        return self.opened.left
