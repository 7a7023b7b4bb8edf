"""
Rule expression evaluator.

Expressions are small arithmetic formulas over named parameters:

    basePrice * 0.20
    (transactionVolume - 100) * 0.5
    transactionVolume >= 500

Grammar (standard precedence, left-associative):

    comparison := additive [ ("<" | ">" | "<=" | ">=" | "==" | "!=") additive ]
    additive   := term ( ("+" | "-") term )*
    term       := unary ( ("*" | "/") unary )*
    unary      := ("-" | "+") unary | primary
    primary    := NUMBER | NAME | "(" comparison ")"

Expressions are parsed into an immutable AST and evaluated by walking it.
All arithmetic is Decimal. Comparisons evaluate to 1 or 0. There are no
function calls, no assignment and no eval().
"""

import string
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any

from vatpricing.engine import catalog
from vatpricing.engine.errors import (
    DivisionByZeroError,
    ExpressionSyntaxError,
    InvalidParameterValueError,
    UnknownParameterError,
)

_COMPARISON_OPS = ("<", ">", "<=", ">=", "==", "!=")
_TWO_CHAR_OPS = ("<=", ">=", "==", "!=")
_ONE = Decimal(1)
_ZERO = Decimal(0)

# ASCII only: str.isdigit() also accepts characters such as '²'
_DIGITS = frozenset(string.digits)
_NUMBER_CHARS = _DIGITS | {"."}
_NAME_START = frozenset(string.ascii_letters + "_")
_NAME_CHARS = _NAME_START | _DIGITS


# -----------------------
# AST
# -----------------------


@dataclass(frozen=True)
class Literal:
    value: Decimal


@dataclass(frozen=True)
class ParamRef:
    name: str
    position: int


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


Node = Literal | ParamRef | UnaryOp | BinaryOp


# -----------------------
# Tokenizer
# -----------------------


@dataclass(frozen=True)
class _Token:
    kind: str  # number | name | op | lparen | rparen | end
    text: str
    position: int


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    s = expression
    i = 0
    while i < len(s):
        c = s[i]
        if c.isspace():
            i += 1
        elif c in _NUMBER_CHARS:
            j = i
            seen_dot = False
            while j < len(s) and s[j] in _NUMBER_CHARS:
                if s[j] == ".":
                    if seen_dot:
                        raise ExpressionSyntaxError(j, "unexpected '.' in number")
                    seen_dot = True
                j += 1
            text = s[i:j]
            if text == ".":
                raise ExpressionSyntaxError(i, "invalid number '.'")
            tokens.append(_Token("number", text, i))
            i = j
        elif c in _NAME_START:
            j = i
            while j < len(s) and s[j] in _NAME_CHARS:
                j += 1
            tokens.append(_Token("name", s[i:j], i))
            i = j
        elif s[i : i + 2] in _TWO_CHAR_OPS:
            tokens.append(_Token("op", s[i : i + 2], i))
            i += 2
        elif c in "+-*/<>":
            tokens.append(_Token("op", c, i))
            i += 1
        elif c == "(":
            tokens.append(_Token("lparen", c, i))
            i += 1
        elif c == ")":
            tokens.append(_Token("rparen", c, i))
            i += 1
        else:
            raise ExpressionSyntaxError(i, f"unexpected character '{c}'")
    tokens.append(_Token("end", "", len(s)))
    return tokens


# -----------------------
# Parser (recursive descent)
# -----------------------


class _Parser:
    def __init__(self, tokens: list[_Token]):
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def _descend(self, tok: _Token) -> None:
        self._depth += 1
        if self._depth > catalog.MAX_EXPRESSION_DEPTH:
            raise ExpressionSyntaxError(tok.position, "expression nested too deeply")

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _consume(self) -> _Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def parse(self) -> Node:
        node = self._parse_comparison()
        tok = self._peek()
        if tok.kind != "end":
            raise ExpressionSyntaxError(tok.position, f"unexpected token '{tok.text}'")
        return node

    def _parse_comparison(self) -> Node:
        left = self._parse_additive()
        tok = self._peek()
        if tok.kind == "op" and tok.text in _COMPARISON_OPS:
            self._consume()
            right = self._parse_additive()
            return BinaryOp(tok.text, left, right)
        return left

    def _parse_additive(self) -> Node:
        left = self._parse_term()
        while self._peek().kind == "op" and self._peek().text in ("+", "-"):
            op = self._consume().text
            left = BinaryOp(op, left, self._parse_term())
        return left

    def _parse_term(self) -> Node:
        left = self._parse_unary()
        while self._peek().kind == "op" and self._peek().text in ("*", "/"):
            op = self._consume().text
            left = BinaryOp(op, left, self._parse_unary())
        return left

    def _parse_unary(self) -> Node:
        tok = self._peek()
        if tok.kind == "op" and tok.text in ("+", "-"):
            self._consume()
            self._descend(tok)
            node = UnaryOp(tok.text, self._parse_unary())
            self._depth -= 1
            return node
        return self._parse_primary()

    def _parse_primary(self) -> Node:
        tok = self._consume()
        if tok.kind == "number":
            try:
                return Literal(Decimal(tok.text))
            except InvalidOperation:
                raise ExpressionSyntaxError(tok.position, f"invalid number '{tok.text}'") from None
        if tok.kind == "name":
            return ParamRef(tok.text, tok.position)
        if tok.kind == "lparen":
            self._descend(tok)
            node = self._parse_comparison()
            closing = self._peek()
            if closing.kind != "rparen":
                raise ExpressionSyntaxError(closing.position, "expected ')'")
            self._consume()
            self._depth -= 1
            return node
        if tok.kind == "end":
            raise ExpressionSyntaxError(tok.position, "unexpected end of expression")
        raise ExpressionSyntaxError(tok.position, f"unexpected token '{tok.text}'")


@lru_cache(maxsize=1024)
def parse(expression: str) -> Node:
    """Parse an expression into its AST. Raises ExpressionSyntaxError."""
    if expression is None or not expression.strip():
        raise ExpressionSyntaxError(0, "expression is empty")
    return _Parser(_tokenize(expression)).parse()


def validate_expression(expression: str) -> bool:
    """Return True if the expression parses; raise ExpressionSyntaxError otherwise."""
    parse(expression)
    return True


def referenced_parameters(expression: str) -> frozenset[str]:
    """Names referenced by the expression."""
    names: set[str] = set()
    stack = [parse(expression)]
    while stack:
        node = stack.pop()
        if isinstance(node, ParamRef):
            names.add(node.name)
        elif isinstance(node, UnaryOp):
            stack.append(node.operand)
        elif isinstance(node, BinaryOp):
            stack.extend((node.left, node.right))
    return frozenset(names)


# -----------------------
# Evaluation
# -----------------------


def to_decimal(name: str, value: Any) -> Decimal:
    """Convert a bound value to Decimal for arithmetic."""
    if value is None:
        return _ZERO
    if isinstance(value, bool):
        return _ONE if value else _ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidParameterValueError(name, value) from None
    else:
        raise InvalidParameterValueError(name, value)
    if not result.is_finite():
        raise InvalidParameterValueError(name, value)
    return result


def _apply(op: str, left: Decimal, right: Decimal) -> Decimal:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        if right == 0:
            raise DivisionByZeroError()
        return left / right
    if op == "<":
        result = left < right
    elif op == ">":
        result = left > right
    elif op == "<=":
        result = left <= right
    elif op == ">=":
        result = left >= right
    elif op == "==":
        result = left == right
    else:
        result = left != right
    return _ONE if result else _ZERO


def _eval(root: Node, bindings: dict[str, Any]) -> Decimal:
    # Post-order walk with an explicit stack; long operator chains build deep trees
    values: list[Decimal] = []
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if isinstance(node, Literal):
            values.append(node.value)
        elif isinstance(node, ParamRef):
            if node.name not in bindings:
                raise UnknownParameterError(node.name)
            values.append(to_decimal(node.name, bindings[node.name]))
        elif not expanded:
            stack.append((node, True))
            if isinstance(node, UnaryOp):
                stack.append((node.operand, False))
            else:
                stack.append((node.right, False))
                stack.append((node.left, False))
        elif isinstance(node, UnaryOp):
            operand = values.pop()
            values.append(-operand if node.op == "-" else operand)
        else:
            right = values.pop()
            left = values.pop()
            values.append(_apply(node.op, left, right))
    return values.pop()


def evaluate(expression: str, bindings: dict[str, Any] | None = None) -> Decimal:
    """
    Evaluate an expression against a parameter binding.

    Raises ExpressionSyntaxError, UnknownParameterError, DivisionByZeroError
    or InvalidParameterValueError.
    """
    return _eval(parse(expression), bindings or {})


class EvaluationCache:
    """Memoizes evaluate() results. Create one per calculation request."""

    def __init__(self):
        self._results: dict[tuple, Decimal] = {}

    def evaluate(self, expression: str, bindings: dict[str, Any]) -> Decimal:
        key = (expression, tuple(sorted(bindings.items())))
        if key not in self._results:
            self._results[key] = evaluate(expression, bindings)
        return self._results[key]

    def __len__(self) -> int:
        return len(self._results)
