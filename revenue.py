"""
Revenue expression evaluator.

Cash totals are typed as free text such as "140+20+50". The text is reduced
to a safelist of characters (digits, + - * / . and whitespace), parsed by a
small recursive-descent parser into a Literal/BinaryOp tree and evaluated.
Nothing here ever raises to the caller: a malformed or non-finite expression
evaluates to 0.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Union

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^0-9+\-*/.\s]")
_TOKEN = re.compile(r"\s*(?:(\d+(?:\.\d*)?|\.\d+)|([+\-*/])|(\S))")


class ExpressionError(ValueError):
    pass


@dataclass(frozen=True)
class Literal:
    value: float


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Literal, BinaryOp]


def sanitize(text: str) -> str:
    return _UNSAFE.sub("", text)


def tokenize(text: str) -> List[str]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None or match.group(3):
            raise ExpressionError(f"unexpected character at {pos}")
        tokens.append(match.group(1) or match.group(2))
        pos = match.end()
    return tokens


class _Parser:
    """
    expr   := term (('+' | '-') term)*
    term   := factor (('*' | '/') factor)*
    factor := ('+' | '-')* NUMBER
    """

    def __init__(self, tokens: List[str]):
        self.tokens = tokens
        self.pos = 0

    def _peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self):
        tok = self._peek()
        if tok is None:
            raise ExpressionError("unexpected end of expression")
        self.pos += 1
        return tok

    def parse(self) -> Node:
        node = self._expr()
        if self._peek() is not None:
            raise ExpressionError(f"unexpected token {self._peek()!r}")
        return node

    def _expr(self) -> Node:
        node = self._term()
        while self._peek() in ("+", "-"):
            op = self._next()
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._factor()
        while self._peek() in ("*", "/"):
            op = self._next()
            node = BinaryOp(op, node, self._factor())
        return node

    def _factor(self) -> Node:
        negative = False
        while self._peek() in ("+", "-"):
            if self._next() == "-":
                negative = not negative
        tok = self._next()
        if tok in ("+", "-", "*", "/"):
            raise ExpressionError(f"expected a number, got {tok!r}")
        literal = Literal(float(tok))
        if negative:
            return BinaryOp("-", Literal(0.0), literal)
        return literal


def parse(text: str) -> Node:
    return _Parser(tokenize(text)).parse()


def evaluate(node: Node) -> float:
    if isinstance(node, Literal):
        return node.value
    left = evaluate(node.left)
    right = evaluate(node.right)
    if node.op == "+":
        return left + right
    if node.op == "-":
        return left - right
    if node.op == "*":
        return left * right
    if node.op == "/":
        if right == 0:
            raise ExpressionError("division by zero")
        return left / right
    raise ExpressionError(f"unknown operator {node.op!r}")


def evaluate_revenue(text) -> float:
    """Sanitise, parse and evaluate a revenue expression, rounded to 2 decimals."""
    if text is None:
        return 0.0
    cleaned = sanitize(str(text))
    if not cleaned.strip():
        return 0.0
    try:
        result = evaluate(parse(cleaned))
    except (ExpressionError, ValueError, OverflowError, RecursionError) as e:
        logger.debug("Revenue expression %r evaluated to 0: %s", cleaned, e)
        return 0.0
    if not math.isfinite(result):
        return 0.0
    return round(result, 2) + 0.0
