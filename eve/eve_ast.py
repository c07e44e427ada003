"""
Abstract syntax tree nodes for Eve.

Nodes are immutable once the parser builds them. The evaluator reads them
and the printer renders them back to canonical source text.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union


# =================================================================
# Expressions
# =================================================================

@dataclass(frozen=True)
class Identifier:
    value: str


@dataclass(frozen=True)
class NumberLiteral:
    value: float


@dataclass(frozen=True)
class StringLiteral:
    value: str


@dataclass(frozen=True)
class BooleanLiteral:
    value: bool


@dataclass(frozen=True)
class NullLiteral:
    pass


@dataclass(frozen=True)
class PrefixExpression:
    op: str
    right: 'Expression'


@dataclass(frozen=True)
class InfixExpression:
    op: str
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class AssignmentExpression:
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class CallExpression:
    fn: 'Expression'
    args: Tuple['Expression', ...]


@dataclass(frozen=True)
class PropertyAccess:
    """The bare field name on the right of `.`; never evaluated on its own."""
    value: str


@dataclass(frozen=True)
class IndexExpression:
    left: 'Expression'
    index: Union['Expression', PropertyAccess]


@dataclass(frozen=True)
class ArrayLiteral:
    elements: Tuple['Expression', ...]


@dataclass(frozen=True)
class HashLiteral:
    pairs: Tuple[Tuple['Expression', 'Expression'], ...]


@dataclass(frozen=True)
class Parameters:
    body: Tuple[Identifier, ...]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(ident.value for ident in self.body)


@dataclass(frozen=True)
class FunctionLiteral:
    params: Parameters
    body: 'BlockStatement'


Expression = Union[
    Identifier, NumberLiteral, StringLiteral, BooleanLiteral, NullLiteral,
    PrefixExpression, InfixExpression, AssignmentExpression, CallExpression,
    IndexExpression, ArrayLiteral, HashLiteral, FunctionLiteral,
]


# =================================================================
# Statements
# =================================================================

@dataclass(frozen=True)
class LetStatement:
    name: Identifier
    value: Optional[Expression] = None


@dataclass(frozen=True)
class ReturnStatement:
    expression: Expression


@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expression


@dataclass(frozen=True)
class BlockStatement:
    statements: Tuple['Statement', ...]


@dataclass(frozen=True)
class IfStatement:
    condition: Expression
    then_arm: 'Statement'
    else_arm: Optional['Statement'] = None


@dataclass(frozen=True)
class WhileStatement:
    condition: Expression
    body: 'Statement'


Statement = Union[
    LetStatement, ReturnStatement, ExpressionStatement,
    BlockStatement, IfStatement, WhileStatement,
]


@dataclass(frozen=True)
class Program:
    statements: Tuple[Statement, ...]
