# SubExpressionResolver.py
"""""
Flattens delimited groups, innermost first, until one flat fragment is left.

Each group (with its function marker, if it is a call) is compiled, replaced
by a placeholder, and every span boundary after the splice is moved by the
length difference. Groups are handled deepest first and right to left within
a depth, so the offsets of groups still waiting are never stale.
"""""

import logging

from .EquationMembers import ARGUMENT_DELIMITER
from .ExpressionCompiler import FunctionCall
from .Lexer import SpanArena

logger = logging.getLogger(__name__)


class SubExpressionResolver:
    def __init__(self, compiler):
        self.compiler = compiler

    def resolve(self, text, functions=()):
        """Compile normalized, validated text. Returns the root node."""
        arena = SpanArena.build(text, self.compiler.lexer.scan(text), functions)

        for depth in reversed(range(arena.depth_count)):
            for span in sorted(arena.at_depth(depth), key=lambda s: s.start, reverse=True):
                text = self._replace_span(text, span, arena)

        logger.debug("Top-level fragment: %s", text)
        return self.compiler.compile_fragment(text)

    def _replace_span(self, text, span, arena):
        body = span.body(text)
        if span.function is None:
            node = self.compiler.compile_fragment(body)
        else:
            # nested groups are placeholders by now, so every comma left belongs to this call
            arguments = [self.compiler.compile_fragment(argument) for argument in body.split(ARGUMENT_DELIMITER)]
            node = FunctionCall(span.function, arguments)

        name = self.compiler.register(node)
        start, end = span.region_start, span.region_end
        arena.shift(start, len(name) - (end - start))
        return text[:start] + name + text[end:]
