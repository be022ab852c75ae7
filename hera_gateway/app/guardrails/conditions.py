"""
Posting Condition Expressions

Small parser for posting-rule conditions such as
"ai_confidence >= 0.9 AND total_amount <= 5000". Expressions are parsed into
a tree and evaluated against a closed set of variables; nothing is executed.

Grammar:
    expr       := or_expr
    or_expr    := and_expr ("OR" and_expr)*
    and_expr   := not_expr ("AND" not_expr)*
    not_expr   := "NOT" not_expr | atom
    atom       := "(" expr ")" | IDENT OP literal
    OP         := ">=" | "<=" | ">" | "<" | "==" | "!="
    literal    := NUMBER | 'string' | "string" | true | false
"""

import operator
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Tuple, Union

POSTING_VARIABLES: FrozenSet[str] = frozenset(
    {"total_amount", "line_count", "transaction_type", "currency", "ai_confidence"}
)

_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<number>-?\d+(?:\.\d+)?)
      | (?P<string>'[^']*'|"[^"]*")
      | (?P<op>>=|<=|==|!=|>|<)
      | (?P<paren>[()])
      | (?P<word>[A-Za-z_][A-Za-z0-9_]*)
    )
    """,
    re.VERBOSE,
)

_KEYWORDS = {"AND", "OR", "NOT"}


class ConditionError(ValueError):
    """Raised for malformed expressions or unknown variables"""


@dataclass(frozen=True)
class Comparison:
    variable: str
    op: str
    literal: Any

    def evaluate(self, variables: Mapping[str, Any]) -> bool:
        value = variables.get(self.variable)
        if value is None:
            return False
        literal = self.literal
        if isinstance(literal, (int, float)) and not isinstance(literal, bool):
            try:
                value = float(value)
            except (TypeError, ValueError):
                return False
        try:
            return bool(_COMPARATORS[self.op](value, literal))
        except TypeError:
            return False


@dataclass(frozen=True)
class Not:
    operand: "Node"

    def evaluate(self, variables: Mapping[str, Any]) -> bool:
        return not self.operand.evaluate(variables)


@dataclass(frozen=True)
class And:
    operands: Tuple["Node", ...]

    def evaluate(self, variables: Mapping[str, Any]) -> bool:
        return all(node.evaluate(variables) for node in self.operands)


@dataclass(frozen=True)
class Or:
    operands: Tuple["Node", ...]

    def evaluate(self, variables: Mapping[str, Any]) -> bool:
        return any(node.evaluate(variables) for node in self.operands)


Node = Union[Comparison, Not, And, Or]


def _tokenize(expression: str) -> List[Tuple[str, str]]:
    tokens = []
    position = 0
    stripped = expression.rstrip()
    while position < len(stripped):
        match = _TOKEN_RE.match(stripped, position)
        if match is None or match.end() == position:
            raise ConditionError(
                f"unexpected character at position {position} in {expression!r}"
            )
        kind = match.lastgroup
        text = match.group(kind)
        if kind == "word" and text.upper() in _KEYWORDS:
            kind, text = "keyword", text.upper()
        tokens.append((kind, text))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[Tuple[str, str]], allowed: FrozenSet[str]):
        self.tokens = tokens
        self.position = 0
        self.allowed = allowed

    def _peek(self) -> Tuple[str, str]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return ("end", "")

    def _take(self) -> Tuple[str, str]:
        token = self._peek()
        self.position += 1
        return token

    def parse(self) -> Node:
        if not self.tokens:
            raise ConditionError("empty expression")
        node = self._or()
        if self._peek()[0] != "end":
            raise ConditionError(f"unexpected token {self._peek()[1]!r}")
        return node

    def _or(self) -> Node:
        operands = [self._and()]
        while self._peek() == ("keyword", "OR"):
            self._take()
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else Or(tuple(operands))

    def _and(self) -> Node:
        operands = [self._not()]
        while self._peek() == ("keyword", "AND"):
            self._take()
            operands.append(self._not())
        return operands[0] if len(operands) == 1 else And(tuple(operands))

    def _not(self) -> Node:
        if self._peek() == ("keyword", "NOT"):
            self._take()
            return Not(self._not())
        return self._atom()

    def _atom(self) -> Node:
        kind, text = self._take()
        if (kind, text) == ("paren", "("):
            node = self._or()
            if self._take() != ("paren", ")"):
                raise ConditionError("missing closing parenthesis")
            return node
        if kind != "word":
            raise ConditionError(f"expected a variable name, got {text!r}")
        if text not in self.allowed:
            raise ConditionError(f"unknown variable {text!r}")

        op_kind, op = self._take()
        if op_kind != "op":
            raise ConditionError(f"expected a comparison after {text!r}")
        return Comparison(text, op, self._literal())

    def _literal(self) -> Any:
        kind, text = self._take()
        if kind == "number":
            return float(text)
        if kind == "string":
            return text[1:-1]
        if kind == "word" and text.lower() in ("true", "false"):
            return text.lower() == "true"
        raise ConditionError(f"expected a literal, got {text!r}")


def parse_condition(expression: str, allowed: FrozenSet[str] = POSTING_VARIABLES) -> Node:
    """Parse an expression into an evaluable tree, or raise ConditionError"""
    if not isinstance(expression, str):
        raise ConditionError("expression must be a string")
    return _Parser(_tokenize(expression), allowed).parse()


def evaluate_condition(
    expression: str,
    variables: Mapping[str, Any],
    allowed: FrozenSet[str] = POSTING_VARIABLES,
) -> bool:
    return parse_condition(expression, allowed).evaluate(variables)
