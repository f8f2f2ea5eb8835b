"""Restricted arithmetic evaluator used by the ``calculate`` tool.

Only numbers, ``+ - * / ( )`` and unary signs are understood; the input is
tokenized and parsed with a small recursive-descent parser, so no Python
code is ever executed.

Grammar::

    expression := term (("+" | "-") term)*
    term       := factor (("*" | "/") factor)*
    factor     := ("+" | "-") factor | NUMBER | "(" expression ")"
"""
from __future__ import annotations

import re
from typing import Iterator, Union

Number = Union[int, float]

_TOKEN = re.compile(r"\s*(?:(\d+\.\d*|\.\d+|\d+)|(.))")


class CalculationError(ValueError):
    """Raised when an expression cannot be evaluated."""


def _tokenize(expression: str) -> Iterator[str]:
    for match in _TOKEN.finditer(expression):
        number, symbol = match.groups()
        if number is not None:
            yield number
        elif symbol is not None and not symbol.isspace():
            if symbol not in "+-*/()":
                raise CalculationError(f"unexpected character {symbol!r}")
            yield symbol


class _Parser:
    def __init__(self, tokens: list[str], max_depth: int) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0
        self._max_depth = max_depth

    def parse(self) -> Number:
        if not self._tokens:
            raise CalculationError("empty expression")
        value = self._expression()
        if self._pos != len(self._tokens):
            raise CalculationError(f"unexpected token {self._tokens[self._pos]!r}")
        return value

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise CalculationError("unexpected end of expression")
        self._pos += 1
        return token

    def _expression(self) -> Number:
        value = self._term()
        while self._peek() in ("+", "-"):
            if self._take() == "+":
                value = value + self._term()
            else:
                value = value - self._term()
        return value

    def _term(self) -> Number:
        value = self._factor()
        while self._peek() in ("*", "/"):
            operator = self._take()
            right = self._factor()
            if operator == "*":
                value = value * right
            elif right == 0:
                raise CalculationError("division by zero")
            else:
                value = value / right
        return value

    def _factor(self) -> Number:
        self._depth += 1
        if self._depth > self._max_depth:
            raise CalculationError("expression is nested too deeply")
        try:
            token = self._take()
            if token == "+":
                return +self._factor()
            if token == "-":
                return -self._factor()
            if token == "(":
                value = self._expression()
                if self._take() != ")":
                    raise CalculationError("missing closing parenthesis")
                return value
            if token in "*/)":
                raise CalculationError(f"unexpected token {token!r}")
            return float(token) if "." in token else int(token)
        finally:
            self._depth -= 1


def format_number(value: Number) -> str:
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


class CalculatorEngine:
    """Evaluates arithmetic expressions with size limits."""

    def __init__(self, *, max_length: int = 256, max_depth: int = 64) -> None:
        self._max_length = max_length
        self._max_depth = max_depth

    def evaluate(self, expression: str) -> Number:
        if len(expression) > self._max_length:
            raise CalculationError(f"expression longer than {self._max_length} characters")
        tokens = list(_tokenize(expression))
        return _Parser(tokens, self._max_depth).parse()

    def run(self, expression: str) -> str:
        """Return ``"<expression> = <value>"`` for the ``calculate`` tool."""
        try:
            value = self.evaluate(expression)
        except (CalculationError, OverflowError) as exc:
            return f"Calculation error: {exc}"
        return f"{expression} = {format_number(value)}"
