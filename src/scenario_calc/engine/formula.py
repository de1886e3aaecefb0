"""Formula evaluator — tokenizer, recursive-descent parser, tree evaluator.

Grammar (arithmetic only; no functions, comparisons or assignment):

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("-" | "+") unary | primary
    primary    := NUMBER | NAME | "(" expression ")"

``*`` and ``/`` bind tighter than ``+`` and ``-``; operators of equal
precedence associate left to right. Names are looked up in the
environment at evaluation time; formula text is never executed as code.

Example:
    evaluate("PARAM_BASELINE_VOORRAAD * (OUTPUT_A / 100)",
             {"PARAM_BASELINE_VOORRAAD": 10_000, "OUTPUT_A": 105})  → 10500.0
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Union

from scenario_calc.errors import (
    DivisionByZeroError,
    EvaluationError,
    FormulaParseError,
    UnknownIdentifierError,
)


# ═══════════════════════════════════════════════════════════════════════════
# Tokens
# ═══════════════════════════════════════════════════════════════════════════

NUMBER = "NUMBER"
NAME = "NAME"
OP = "OP"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
EOF = "EOF"

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>[+\-*/])
  | (?P<lparen>\()
  | (?P<rparen>\))
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


def tokenize(formula: str) -> list[Token]:
    """Split ``formula`` into tokens, ending with an EOF token.

    Raises ``FormulaParseError`` on the first character that starts no token.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(formula):
        match = _TOKEN_RE.match(formula, pos)
        if match is None:
            raise FormulaParseError(f"Unexpected character '{formula[pos]}'", formula, pos)
        kind = match.lastgroup
        text = match.group()
        if kind == "number":
            tokens.append(Token(NUMBER, text, pos))
        elif kind == "name":
            tokens.append(Token(NAME, text, pos))
        elif kind == "op":
            tokens.append(Token(OP, text, pos))
        elif kind == "lparen":
            tokens.append(Token(LPAREN, text, pos))
        elif kind == "rparen":
            tokens.append(Token(RPAREN, text, pos))
        pos = match.end()
    tokens.append(Token(EOF, "", len(formula)))
    return tokens


# ═══════════════════════════════════════════════════════════════════════════
# Expression tree
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Name:
    name: str
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Expression"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Expression"
    right: "Expression"


Expression = Union[Number, Name, UnaryOp, BinaryOp]


# ═══════════════════════════════════════════════════════════════════════════
# Parser
# ═══════════════════════════════════════════════════════════════════════════

class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, formula: str):
        self.formula = formula
        self.tokens = tokenize(formula)
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind != EOF:
            self.index += 1
        return token

    def _fail(self, message: str, token: Token) -> FormulaParseError:
        return FormulaParseError(message, self.formula, token.position)

    def parse(self) -> Expression:
        if self.current.kind == EOF:
            raise self._fail("Empty formula", self.current)
        node = self._expression()
        if self.current.kind != EOF:
            raise self._fail(f"Unexpected token '{self.current.text}'", self.current)
        return node

    def _expression(self) -> Expression:
        node = self._term()
        while self.current.kind == OP and self.current.text in "+-":
            op = self._advance().text
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Expression:
        node = self._unary()
        while self.current.kind == OP and self.current.text in "*/":
            op = self._advance().text
            node = BinaryOp(op, node, self._unary())
        return node

    def _unary(self) -> Expression:
        if self.current.kind == OP and self.current.text in "+-":
            op = self._advance().text
            return UnaryOp(op, self._unary())
        return self._primary()

    def _primary(self) -> Expression:
        token = self.current
        if token.kind == NUMBER:
            self._advance()
            return Number(float(token.text))
        if token.kind == NAME:
            self._advance()
            return Name(token.text, token.position)
        if token.kind == LPAREN:
            self._advance()
            node = self._expression()
            if self.current.kind != RPAREN:
                raise self._fail("Expected ')'", self.current)
            self._advance()
            return node
        if token.kind == EOF:
            raise self._fail("Unexpected end of formula", token)
        raise self._fail(f"Unexpected token '{token.text}'", token)


@lru_cache(maxsize=512)
def parse(formula: str) -> Expression:
    """Parse ``formula`` into an immutable expression tree (cached by text)."""
    try:
        return _Parser(formula).parse()
    except RecursionError as exc:
        raise _too_deep(formula) from exc


def _too_deep(formula: str, variable_name: str | None = None) -> FormulaParseError:
    # Parser and evaluator recurse once per tree level.
    return FormulaParseError("Formula nested too deeply", formula, variable_name=variable_name)


# ═══════════════════════════════════════════════════════════════════════════
# Evaluation
# ═══════════════════════════════════════════════════════════════════════════

def _eval(node: Expression, env: Mapping[str, float], formula: str, variable_name: str | None) -> float:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Name):
        if node.name not in env:
            raise UnknownIdentifierError(node.name, formula, variable_name)
        return float(env[node.name])
    if isinstance(node, UnaryOp):
        value = _eval(node.operand, env, formula, variable_name)
        return -value if node.op == "-" else value

    left = _eval(node.left, env, formula, variable_name)
    right = _eval(node.right, env, formula, variable_name)
    if node.op == "+":
        return left + right
    if node.op == "-":
        return left - right
    if node.op == "*":
        return left * right
    if right == 0:
        raise DivisionByZeroError(formula, variable_name)
    return left / right


def evaluate(formula: str, environment: Mapping[str, float], variable_name: str | None = None) -> float:
    """Evaluate ``formula`` against ``environment``.

    Parameters
    ----------
    formula : str
        Arithmetic expression over names and numeric literals.
    environment : Mapping[str, float]
        Known values: parameters, inputs and previously computed outputs.
    variable_name : str | None
        Variable being calculated; attached to raised errors for reporting.

    Returns
    -------
    float
        The result. Identical for identical arguments.

    Raises
    ------
    FormulaParseError, UnknownIdentifierError, DivisionByZeroError
    """
    try:
        tree = parse(formula)
    except EvaluationError as exc:
        exc.variable_name = variable_name
        raise
    try:
        return _eval(tree, environment, formula, variable_name)
    except RecursionError as exc:
        raise _too_deep(formula, variable_name) from exc


# ═══════════════════════════════════════════════════════════════════════════
# Introspection helpers
# ═══════════════════════════════════════════════════════════════════════════

def _walk_names(node: Expression, out: dict[str, None]) -> None:
    if isinstance(node, Name):
        out.setdefault(node.name, None)
    elif isinstance(node, UnaryOp):
        _walk_names(node.operand, out)
    elif isinstance(node, BinaryOp):
        _walk_names(node.left, out)
        _walk_names(node.right, out)


def extract_references(formula: str) -> list[str]:
    """Distinct identifiers in ``formula``, in order of first appearance."""
    names: dict[str, None] = {}
    try:
        _walk_names(parse(formula), names)
    except RecursionError as exc:
        raise _too_deep(formula) from exc
    return list(names)


@dataclass
class FormulaValidation:
    """Outcome of ``validate_formula``."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    position: int | None = None


def validate_formula(formula: str) -> FormulaValidation:
    """Check that ``formula`` parses; never raises."""
    try:
        refs = extract_references(formula)
    except FormulaParseError as exc:
        return FormulaValidation(valid=False, errors=[exc.message], position=exc.position)
    return FormulaValidation(valid=True, references=refs)
