"""
The core Eve interpreter: a tree-walking Evaluator.

Runtime failures are values. Every recursive `_eval` result is checked and
an `Error` is handed straight back up, so no Python exception crosses a
script-level failure.
"""
import math
import os
import sys
from typing import Any, List

from eve.eve_ast import (
    Program, LetStatement, ReturnStatement, ExpressionStatement, BlockStatement,
    IfStatement, WhileStatement, Identifier, NumberLiteral, StringLiteral,
    BooleanLiteral, NullLiteral, PrefixExpression, InfixExpression,
    AssignmentExpression, CallExpression, IndexExpression, PropertyAccess,
    ArrayLiteral, HashLiteral, FunctionLiteral,
)
from eve.eve_datatypes import (
    Environment, Closure, Value, Boolean, Number, String, Array, Hash,
    Function, Builtin, Return, Error, Null, NULL, FALSE,
    native_bool, is_truthy, is_error,
)
from eve.eve_printer import inspect as render
from eve.eve_stdlib import StdLib


# Helper: identify and unwrap control-flow "return" values
def is_return(x) -> bool:
    return isinstance(x, Return)


def unwrap_return(x):
    return x.value if is_return(x) else x


def _divide(a: float, b: float) -> float:
    """IEEE division: x/0 is a signed infinity and 0/0 is NaN."""
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


class Evaluator:
    """The Eve execution engine."""

    def __init__(self):
        self.stdlib = StdLib(self)
        # Output produced by the script, e.g. {'topics': ['stdout'], 'message': 'hi'}
        self.side_effects: List[dict] = []
        # Active script-level calls; left intact when the host stack overflows.
        self.call_stack: List[dict] = []

    def _push_frame(self, name, func, args):
        self.call_stack.append({'name': name, 'func': func, 'args': args})

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def _dbg(self, *parts):
        if os.environ.get("EVE_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def eval(self, node: Any, env: Environment) -> Value:
        """Public entry point for evaluation. Unwraps `return` values."""
        return unwrap_return(self._eval(node, env))

    def _eval(self, node: Any, env: Environment) -> Value:
        """Recursive dispatcher for evaluating any AST node."""
        match node:
            # Statements
            case Program(statements=statements):
                return self._eval_program(statements, env)

            case BlockStatement(statements=statements):
                return self._eval_block(statements, env)

            case ExpressionStatement(expression=expression):
                return self._eval(expression, env)

            case LetStatement(name=name, value=value_node):
                value = NULL if value_node is None else self._eval(value_node, env)
                if is_error(value):
                    return value
                return env.set(name.value, value)

            case ReturnStatement(expression=expression):
                value = self._eval(expression, env)
                if is_error(value):
                    return value
                return Return(value)

            case IfStatement():
                return self._eval_if(node, env)

            case WhileStatement():
                return self._eval_while(node, env)

            # Literals
            case NumberLiteral(value=value):
                return Number(value)

            case StringLiteral(value=value):
                return String(value)

            case BooleanLiteral(value=value):
                return native_bool(value)

            case NullLiteral():
                return NULL

            case ArrayLiteral(elements=elements):
                values = self._eval_expressions(elements, env)
                if is_error(values):
                    return values
                return Array(values)

            case HashLiteral(pairs=pairs):
                return self._eval_hash_literal(pairs, env)

            case FunctionLiteral(params=params, body=body):
                # Capture the defining scope, not the caller's.
                return Function(params, body, env)

            # Expressions
            case Identifier(value=name):
                return self._eval_identifier(name, env)

            case PrefixExpression(op=op, right=right_node):
                right = self._eval(right_node, env)
                if is_error(right):
                    return right
                return self.eval_prefix(op, right)

            case InfixExpression(op=op, left=left_node, right=right_node):
                left = self._eval(left_node, env)
                if is_error(left):
                    return left
                right = self._eval(right_node, env)
                if is_error(right):
                    return right
                return self.eval_infix(op, left, right)

            case AssignmentExpression():
                return self._eval_assignment(node, env)

            case CallExpression():
                return self._eval_call(node, env)

            case IndexExpression(left=left_node, index=index_node):
                left = self._eval(left_node, env)
                if is_error(left):
                    return left
                if isinstance(index_node, PropertyAccess):
                    return self.eval_property(left, index_node.value)
                index = self._eval(index_node, env)
                if is_error(index):
                    return index
                return self.eval_index(left, index)

        raise TypeError(f"cannot evaluate {type(node).__name__} node")

    # =================================================================
    # Statements
    # =================================================================

    def _eval_program(self, statements, env: Environment) -> Value:
        result = NULL
        for statement in statements:
            result = self._eval(statement, env)
            match result:
                case Return(value=value):
                    return value
                case Error():
                    return result
        return result

    def _eval_block(self, statements, env: Environment) -> Value:
        result = NULL
        for statement in statements:
            result = self._eval(statement, env)
            # Leave `return` wrapped so enclosing blocks stop too.
            if isinstance(result, (Return, Error)):
                return result
        return result

    def _eval_if(self, node: IfStatement, env: Environment) -> Value:
        condition = self._eval(node.condition, env)
        if is_error(condition):
            return condition
        if is_truthy(condition):
            return self._eval(node.then_arm, env)
        if node.else_arm is not None:
            return self._eval(node.else_arm, env)
        return NULL

    def _eval_while(self, node: WhileStatement, env: Environment) -> Value:
        result = NULL
        while True:
            condition = self._eval(node.condition, env)
            if is_error(condition):
                return condition
            if not is_truthy(condition):
                return result
            result = self._eval(node.body, env)
            if isinstance(result, (Return, Error)):
                return result

    # =================================================================
    # Names
    # =================================================================

    def _eval_identifier(self, name: str, env: Environment) -> Value:
        # Globals win over any user binding of the same name.
        builtin = self.stdlib.lookup_global(name)
        if builtin is not None:
            return builtin
        value = env.get(name)
        if value is None:
            return Error(f"{name} is not defined")
        return value

    def _eval_assignment(self, node: AssignmentExpression, env: Environment) -> Value:
        if not isinstance(node.left, Identifier):
            return Error(f"invalid assignment target: {render(node.left)}")
        value = self._eval(node.right, env)
        if is_error(value):
            return value
        name = node.left.value
        if env.assign(name, value) is None:
            return Error(f"{name} is not defined")
        return value

    # =================================================================
    # Operators
    # =================================================================

    def eval_prefix(self, op: str, right: Value) -> Value:
        match op, right:
            case '!', Boolean(value=b):
                return native_bool(not b)
            case '!', Null():
                return NULL
            case '!', _:
                return FALSE
            case '-', Number(value=v):
                return Number(-v)
            case '+', Number():
                return right
        return Error(f"unknown operator: {op}{right.type}")

    def eval_infix(self, op: str, left: Value, right: Value) -> Value:
        match left, right:
            case Number(value=a), Number(value=b):
                result = self._eval_number_infix(op, a, b)
                if result is not None:
                    return result
            case String(value=a), String(value=b) if op == '+':
                return String(a + b)

        # Equality works across any pair; differing types are never equal.
        if op == '==':
            return native_bool(left == right)
        if op == '!=':
            return native_bool(left != right)
        if left.type != right.type:
            return Error(f"type mismatch: {left.type} {op} {right.type}")
        return Error(f"unknown operator: {left.type} {op} {right.type}")

    def _eval_number_infix(self, op: str, a: float, b: float):
        match op:
            case '+':
                return Number(a + b)
            case '-':
                return Number(a - b)
            case '*':
                return Number(a * b)
            case '/':
                return Number(_divide(a, b))
            case '<':
                return native_bool(a < b)
            case '>':
                return native_bool(a > b)
            case '<=':
                return native_bool(a <= b)
            case '>=':
                return native_bool(a >= b)
            # Compared as floats: NaN is unequal to everything.
            case '==':
                return native_bool(a == b)
            case '!=':
                return native_bool(a != b)
        return None

    # =================================================================
    # Collections
    # =================================================================

    def _eval_expressions(self, nodes, env: Environment):
        """Evaluates left to right. Returns the first Error instead of a list."""
        values = []
        for node in nodes:
            value = self._eval(node, env)
            if is_error(value):
                return value
            values.append(value)
        return values

    def _eval_hash_literal(self, pairs, env: Environment) -> Value:
        result = {}
        for key_node, value_node in pairs:
            key = self._eval(key_node, env)
            if is_error(key):
                return key
            value = self._eval(value_node, env)
            if is_error(value):
                return value
            result[render(key)] = value
        return Hash(result)

    def eval_index(self, left: Value, index: Value) -> Value:
        """Index access never fails on arrays and hashes: misses are `null`."""
        match left:
            case Array(elements=elements):
                position = self._position(index, len(elements))
                return NULL if position is None else elements[position]
            case Hash(pairs=pairs):
                return pairs.get(render(index), NULL)
            case String(value=s):
                position = self._position(index, len(s))
                return NULL if position is None else String(s[position])
        return Error(f"index operator not supported: {left.type}")

    def _position(self, index: Value, size: int):
        if not isinstance(index, Number) or not index.value.is_integer():
            return None
        position = int(index.value)
        if 0 <= position < size:
            return position
        return None

    def eval_property(self, left: Value, name: str) -> Value:
        if isinstance(left, Hash) and name in left.pairs:
            return left.pairs[name]
        value = self.stdlib.get_property(left, name)
        return NULL if value is None else value

    # =================================================================
    # Calls
    # =================================================================

    def _eval_call(self, node: CallExpression, env: Environment) -> Value:
        fn = self._eval(node.fn, env)
        if is_error(fn):
            return fn
        args = self._eval_expressions(node.args, env)
        if is_error(args):
            return args

        name = render(node.fn)
        self._dbg("call", name, [render(arg) for arg in args])
        self._push_frame(name, fn, args)
        result = self.apply_function(fn, args)
        self._pop_frame()
        return result

    def apply_function(self, fn: Value, args: List[Value]) -> Value:
        match fn:
            case Function(params=params, body=body, env=defining_env):
                scope = Closure(defining_env)
                # Missing arguments stay unbound so lookups fall through to
                # the defining scope; extra ones are ignored.
                for name, arg in zip(params.names, args):
                    scope.set(name, arg)
                return unwrap_return(self._eval(body, scope))
            case Builtin():
                return fn(args)
        return Error(f"not a function: {fn.type}")
