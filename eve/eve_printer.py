"""
A printer for Eve syntax trees and runtime values.

AST nodes render as canonical, fully parenthesized source text; runtime
values render the way a script's result is displayed.
"""
import math

from eve.eve_ast import (
    Program, LetStatement, ReturnStatement, ExpressionStatement, BlockStatement,
    IfStatement, WhileStatement, Identifier, NumberLiteral, StringLiteral,
    BooleanLiteral, NullLiteral, PrefixExpression, InfixExpression,
    AssignmentExpression, CallExpression, IndexExpression, PropertyAccess,
    ArrayLiteral, HashLiteral, Parameters, FunctionLiteral,
)
from eve.eve_datatypes import (
    Null, Boolean, Number, String, Array, Hash, Function, Builtin, Return, Error,
)


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value.is_integer():
        return str(int(value))
    return repr(value)


class Printer:
    """Formats Eve nodes and values into text."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format a node or a value."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            # Default to Python's repr for unknown types
            return repr(obj)
        return handler(obj)

    def _create_handlers(self):
        return {
            # Syntax
            Program: self._pformat_program,
            LetStatement: self._pformat_let,
            ReturnStatement: self._pformat_return,
            ExpressionStatement: self._pformat_expression_statement,
            BlockStatement: self._pformat_block,
            IfStatement: self._pformat_if,
            WhileStatement: self._pformat_while,
            Identifier: self._pformat_identifier,
            NumberLiteral: self._pformat_number_literal,
            StringLiteral: self._pformat_string_literal,
            BooleanLiteral: self._pformat_boolean_literal,
            NullLiteral: self._pformat_null_literal,
            PrefixExpression: self._pformat_prefix,
            InfixExpression: self._pformat_infix,
            AssignmentExpression: self._pformat_assignment,
            CallExpression: self._pformat_call,
            IndexExpression: self._pformat_index,
            PropertyAccess: self._pformat_identifier,
            ArrayLiteral: self._pformat_array_literal,
            HashLiteral: self._pformat_hash_literal,
            Parameters: self._pformat_parameters,
            FunctionLiteral: self._pformat_function_literal,
            # Values
            Null: self._pformat_null,
            Boolean: self._pformat_boolean,
            Number: self._pformat_number,
            String: self._pformat_string,
            Array: self._pformat_array,
            Hash: self._pformat_hash,
            Function: self._pformat_function,
            Builtin: self._pformat_builtin,
            Return: self._pformat_return_value,
            Error: self._pformat_error,
        }

    # -----------------------------------------------------------------
    # Syntax
    # -----------------------------------------------------------------

    def _pformat_program(self, node):
        return "".join(self.pformat(stmt) for stmt in node.statements)

    def _pformat_let(self, node):
        if node.value is None:
            return f"let {node.name.value};"
        return f"let {node.name.value} = {self.pformat(node.value)};"

    def _pformat_return(self, node):
        return f"return {self.pformat(node.expression)};"

    def _pformat_expression_statement(self, node):
        return f"{self.pformat(node.expression)};"

    def _pformat_block(self, node):
        return f"{{ {''.join(self.pformat(stmt) for stmt in node.statements)} }}"

    def _pformat_if(self, node):
        text = f"if ({self.pformat(node.condition)}) {self.pformat(node.then_arm)}"
        if node.else_arm is not None:
            text += f" else {self.pformat(node.else_arm)}"
        return text

    def _pformat_while(self, node):
        return f"while ({self.pformat(node.condition)}) {self.pformat(node.body)}"

    def _pformat_identifier(self, node):
        return node.value

    def _pformat_number_literal(self, node):
        return format_number(node.value)

    def _pformat_string_literal(self, node):
        return f"'{node.value}'"

    def _pformat_boolean_literal(self, node):
        return 'true' if node.value else 'false'

    def _pformat_null_literal(self, node):
        return 'null'

    def _pformat_prefix(self, node):
        return f"({node.op}{self.pformat(node.right)})"

    def _pformat_infix(self, node):
        return f"({self.pformat(node.left)} {node.op} {self.pformat(node.right)})"

    def _pformat_assignment(self, node):
        return f"({self.pformat(node.left)} = {self.pformat(node.right)})"

    def _pformat_call(self, node):
        args = ", ".join(self.pformat(arg) for arg in node.args)
        return f"{self.pformat(node.fn)}({args})"

    def _pformat_index(self, node):
        if isinstance(node.index, PropertyAccess):
            return f"{self.pformat(node.left)}.{node.index.value}"
        return f"{self.pformat(node.left)}[{self.pformat(node.index)}]"

    def _pformat_array_literal(self, node):
        return f"[{', '.join(self.pformat(e) for e in node.elements)}]"

    def _pformat_hash_literal(self, node):
        pairs = ", ".join(f"{self.pformat(k)}: {self.pformat(v)}" for k, v in node.pairs)
        return f"{{{pairs}}}"

    def _pformat_parameters(self, node):
        return f"({', '.join(node.names)})"

    def _pformat_function_literal(self, node):
        return f"fn{self.pformat(node.params)} {self.pformat(node.body)}"

    # -----------------------------------------------------------------
    # Values
    # -----------------------------------------------------------------

    def _pformat_null(self, obj):
        return 'null'

    def _pformat_boolean(self, obj):
        return 'true' if obj.value else 'false'

    def _pformat_number(self, obj):
        return format_number(obj.value)

    def _pformat_string(self, obj):
        return obj.value

    def _pformat_array(self, obj):
        return f"[{','.join(self.pformat(e) for e in obj.elements)}]"

    def _pformat_hash(self, obj):
        pairs = ",".join(f"{key}: {self.pformat(value)}" for key, value in obj.pairs.items())
        return f"{{{pairs}}}"

    def _pformat_function(self, obj):
        return f"fn{self.pformat(obj.params)} {self.pformat(obj.body)}"

    def _pformat_builtin(self, obj):
        return f"builtin {obj.name}"

    def _pformat_return_value(self, obj):
        return self.pformat(obj.value)

    def _pformat_error(self, obj):
        return f"ERROR: {obj.message}"


_printer = Printer()


def inspect(value) -> str:
    """Renders a runtime value (or a syntax node) as display text."""
    return _printer.pformat(value)
