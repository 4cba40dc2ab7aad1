"""
Tests for the Lexer and SpanArena

Checks:
1. Token kinds for every kind of equation text
2. Identifier matching (case-insensitive, longest shorthand first)
3. Span pairing, depth indexing and delimiter problems
4. Function attachment and shifting after a splice
"""

from EquationEngine.EquationMembers import DEFAULT_MEMBERS, X_VARIABLE, Constant
from EquationEngine.Lexer import Lexer, SpanArena, TokenKind, placeholder_name

SQRT = next(f for f in DEFAULT_MEMBERS.functions if f.shorthand == "sqrt")
MAX = next(f for f in DEFAULT_MEMBERS.functions if f.shorthand == "max")


def kinds(tokens):
    return [token.kind for token in tokens]


def build_arena(text, functions=()):
    tokens = Lexer(DEFAULT_MEMBERS, [X_VARIABLE]).scan(text)
    return SpanArena.build(text, tokens, functions)


# =============================================================================
# TOKENS
# =============================================================================


class TestScan:
    """Tests for Lexer.scan"""

    def test_numbers_operators_identifiers(self) -> None:
        """A plain expression splits into number, operator and identifier tokens"""
        tokens = Lexer(DEFAULT_MEMBERS, [X_VARIABLE]).scan("12.5*X")
        assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.OPERATOR, TokenKind.IDENTIFIER]
        assert [t.text for t in tokens] == ["12.5", "*", "X"]
        assert tokens[2].member == X_VARIABLE

    def test_number_run_keeps_malformed_decimals(self) -> None:
        """Digits and points form one token so the validator can judge it"""
        tokens = Lexer(DEFAULT_MEMBERS).scan("1..2.3")
        assert len(tokens) == 1
        assert tokens[0].text == "1..2.3"

    def test_identifier_is_case_insensitive(self) -> None:
        """'x' matches the variable X"""
        tokens = Lexer(DEFAULT_MEMBERS, [X_VARIABLE]).scan("x")
        assert tokens[0].kind is TokenKind.IDENTIFIER
        assert tokens[0].member == X_VARIABLE

    def test_longest_identifier_first(self) -> None:
        """'AB' is one constant, not A followed by B"""
        a = Constant.create("A", "1")
        ab = Constant.create("AB", "2")
        tokens = Lexer(DEFAULT_MEMBERS, [a, ab]).scan("ABA")
        assert [t.member.shorthand for t in tokens] == ["AB", "A"]

    def test_unknown_letters(self) -> None:
        """Letters that are no shorthand become one UNKNOWN token"""
        tokens = Lexer(DEFAULT_MEMBERS, [X_VARIABLE]).scan("Qz+1")
        assert tokens[0].kind is TokenKind.UNKNOWN
        assert tokens[0].text == "Qz"

    def test_unknown_character(self) -> None:
        """Characters no member uses are UNKNOWN"""
        tokens = Lexer(DEFAULT_MEMBERS).scan("2#")
        assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.UNKNOWN]

    def test_placeholder_marker_comma(self) -> None:
        """Engine-internal tokens"""
        text = placeholder_name(1) + "+@(1,2)"
        tokens = Lexer(DEFAULT_MEMBERS).scan(text)
        assert kinds(tokens) == [
            TokenKind.PLACEHOLDER, TokenKind.OPERATOR, TokenKind.FUNCTION, TokenKind.OPEN,
            TokenKind.NUMBER, TokenKind.COMMA, TokenKind.NUMBER, TokenKind.CLOSE,
        ]
        assert tokens[0].text == "$000001$"

    def test_delimiter_tokens_carry_their_pair(self) -> None:
        """Open and close tokens know which delimiter pair they belong to"""
        tokens = Lexer(DEFAULT_MEMBERS).scan("[1)")
        square, round_ = DEFAULT_MEMBERS.delimiters[1], DEFAULT_MEMBERS.delimiters[0]
        assert tokens[0].member is square
        assert tokens[2].member is round_


# =============================================================================
# SPANS
# =============================================================================


class TestSpanArena:
    """Tests for SpanArena.build and its queries"""

    def test_nested_spans(self) -> None:
        """Spans are paired and indexed by depth"""
        arena = build_arena("(1+(2))")
        assert arena.depth_count == 2
        outer, inner = arena.spans
        assert (outer.start, outer.end, outer.depth) == (0, 6, 0)
        assert (inner.start, inner.end, inner.depth) == (3, 5, 1)
        assert inner.parent == 0
        assert outer.children == [1]
        assert outer.body("(1+(2))") == "1+(2)"
        assert arena.problems == []

    def test_at_depth(self) -> None:
        """Siblings share a depth"""
        arena = build_arena("(1)*(2)")
        assert [span.start for span in arena.at_depth(0)] == [0, 4]
        assert arena.at_depth(1) == []

    def test_unopened_and_unclosed(self) -> None:
        """A close with nothing open and an open that never closes"""
        arena = build_arena(")(")
        assert [(p.kind, p.position) for p in arena.problems] == [("unopened", 0), ("unclosed", 1)]
        assert arena.spans[0].end == 2
        assert not arena.spans[0].closed

    def test_mismatched(self) -> None:
        """A close of the wrong kind still ends the group"""
        arena = build_arena("(2]")
        assert [(p.kind, p.position, p.text) for p in arena.problems] == [("mismatched", 0, "(2]")]
        span = arena.spans[0]
        assert span.closed
        assert span.region_end == 3

    def test_function_attached_to_span(self) -> None:
        """A function marker in front of an open token belongs to that span"""
        arena = build_arena("@(1,2)+@(4)", [MAX, SQRT])
        first, second = arena.spans
        assert first.function is MAX
        assert first.function_start == 0
        assert (first.region_start, first.region_end) == (0, 6)
        assert second.function is SQRT
        assert second.region_start == 7

    def test_innermost_at(self) -> None:
        """The deepest span whose body contains the position"""
        arena = build_arena("(1,(2,3))")
        assert arena.innermost_at(2) is arena.spans[0]
        assert arena.innermost_at(5) is arena.spans[1]
        assert arena.innermost_at(0) is None

    def test_shift(self) -> None:
        """Boundaries after the splice point move, the others stay"""
        arena = build_arena("(1)+(2)")
        arena.shift(3, 5)
        first, second = arena.spans
        assert (first.start, first.end) == (0, 2)
        assert (second.start, second.end) == (9, 11)
