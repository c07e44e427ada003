"""
The Eve parser: recursive descent for statements, Pratt parsing for expressions.

Conventions: every `parse_*` method is entered with `cur_token` on the first
token of its construct and returns with `cur_token` on the last one. A
method returns None when a delimiter it expected is missing; the error is
recorded on `self.errors` and callers abandon the construct.
"""
from typing import Callable, Dict, List, Optional

from eve.eve_lexer import Lexer, SINGLE_CHAR_TOKENS
from eve.eve_token import Token, TokenType, ParseError
from eve.eve_ast import (
    Program, LetStatement, ReturnStatement, ExpressionStatement, BlockStatement,
    IfStatement, WhileStatement, Identifier, NumberLiteral, StringLiteral,
    BooleanLiteral, NullLiteral, PrefixExpression, InfixExpression,
    AssignmentExpression, CallExpression, IndexExpression, PropertyAccess,
    ArrayLiteral, HashLiteral, Parameters, FunctionLiteral,
)

# Precedences.
LOWEST = 0
ASSIGNMENT = 1   # a = b, x => y
CONDITIONAL = 2  # ==, !=, <, >, <=, >=
SUM = 3          # +, -
PRODUCT = 4      # *, /
PREFIX = 5       # -a, !a
CALL = 6         # f(x), a[i], a.b

PRECEDENCES = {
    TokenType.EQUAL: ASSIGNMENT,
    TokenType.ARROW: ASSIGNMENT,
    TokenType.EQUAL_EQUAL: CONDITIONAL,
    TokenType.BANG_EQUAL: CONDITIONAL,
    TokenType.LESS: CONDITIONAL,
    TokenType.LESS_EQUAL: CONDITIONAL,
    TokenType.GREATER: CONDITIONAL,
    TokenType.GREATER_EQUAL: CONDITIONAL,
    TokenType.PLUS: SUM,
    TokenType.MINUS: SUM,
    TokenType.STAR: PRODUCT,
    TokenType.SLASH: PRODUCT,
    TokenType.LEFT_PAREN: CALL,
    TokenType.LEFT_BRACKET: CALL,
    TokenType.PERIOD: CALL,
}

_SYMBOLS = {token_type: ch for ch, token_type in SINGLE_CHAR_TOKENS.items()}
_SYMBOLS.update({
    TokenType.EQUAL: '=',
    TokenType.ARROW: '=>',
    TokenType.IDENTIFIER: 'identifier',
    TokenType.EOF: 'end of input',
})


def describe(token_type: TokenType) -> str:
    return _SYMBOLS.get(token_type, token_type.name.lower())


def parse_number_literal(literal: str) -> float:
    """Reads the longest `digits[.digits]` prefix of a number lexeme."""
    whole, _, rest = literal.partition('.')
    fraction = rest.split('.', 1)[0]
    return float(f"{whole}.{fraction}") if fraction else float(whole)


class Parser:
    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.errors: List[ParseError] = []
        self.cur_token: Optional[Token] = None
        self.peek_token: Optional[Token] = None

        # Set cur/peek tokens
        self.advance()
        self.advance()

        self.prefix_parsers: Dict[TokenType, Callable[[], object]] = {
            TokenType.IDENTIFIER: self.parse_identifier,
            TokenType.NUMBER: self.parse_number,
            TokenType.STRING: self.parse_string,
            TokenType.TRUE: self.parse_boolean,
            TokenType.FALSE: self.parse_boolean,
            TokenType.NULL: self.parse_null,
            TokenType.MINUS: self.parse_prefix_expression,
            TokenType.PLUS: self.parse_prefix_expression,
            TokenType.BANG: self.parse_prefix_expression,
            TokenType.LEFT_PAREN: self.parse_group_expression,
            TokenType.FN: self.parse_function_literal,
            TokenType.LEFT_BRACKET: self.parse_array_literal,
            TokenType.LEFT_BRACE: self.parse_hash_literal,
        }
        self.infix_parsers: Dict[TokenType, Callable[[object], object]] = {
            TokenType.EQUAL: self.parse_assignment_expression,
            TokenType.ARROW: self.parse_lambda,
            TokenType.LEFT_PAREN: self.parse_call_expression,
            TokenType.LEFT_BRACKET: self.parse_index_expression,
            TokenType.PERIOD: self.parse_property_access,
        }
        for token_type in (
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
            TokenType.LESS, TokenType.LESS_EQUAL, TokenType.GREATER,
            TokenType.GREATER_EQUAL, TokenType.EQUAL_EQUAL, TokenType.BANG_EQUAL,
        ):
            self.infix_parsers[token_type] = self.parse_infix_expression

    # =================================================================
    # Token helpers
    # =================================================================

    def advance(self):
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.scan_token()

    def cur_is(self, *types: TokenType) -> bool:
        return self.cur_token.type in types

    def peek_is(self, *types: TokenType) -> bool:
        return self.peek_token.type in types

    def expect_peek(self, token_type: TokenType) -> bool:
        """Advances when the next token has the given type, else records an error."""
        if self.peek_is(token_type):
            self.advance()
            return True
        self._error(f"expected {describe(token_type)}, got {self._show(self.peek_token)}", self.peek_token)
        return False

    def peek_precedence(self) -> int:
        return PRECEDENCES.get(self.peek_token.type, LOWEST)

    def cur_precedence(self) -> int:
        return PRECEDENCES.get(self.cur_token.type, LOWEST)

    def skip_semicolon(self):
        if self.peek_is(TokenType.SEMICOLON):
            self.advance()

    def _show(self, token: Token) -> str:
        if token.type is TokenType.EOF:
            return 'end of input'
        return f'"{token.literal}"'

    def _error(self, message: str, token: Token):
        self.errors.append(ParseError(message, token.line, token.col))

    # =================================================================
    # Statements
    # =================================================================

    def parse_program(self) -> Program:
        """Parses the whole input. Raises ParseError on the first malformed statement."""
        statements = []
        while not self.cur_is(TokenType.EOF):
            if self.cur_is(TokenType.SEMICOLON):
                self.advance()
                continue
            statement = self.parse_statement()
            if statement is None:
                raise self.errors[-1]
            statements.append(statement)
            self.advance()
        return Program(tuple(statements))

    def parse_statement(self):
        match self.cur_token.type:
            case TokenType.LET:
                return self.parse_let_statement()
            case TokenType.RETURN:
                return self.parse_return_statement()
            case TokenType.IF:
                return self.parse_if_statement()
            case TokenType.WHILE:
                return self.parse_while_statement()
            case TokenType.LEFT_BRACE:
                return self.parse_block_statement()
            case _:
                return self.parse_expression_statement()

    def parse_let_statement(self) -> Optional[LetStatement]:
        if not self.expect_peek(TokenType.IDENTIFIER):
            return None
        name = Identifier(self.cur_token.literal)

        value = None
        if self.peek_is(TokenType.EQUAL):
            self.advance()
            self.advance()
            value = self.parse_expression()
            if value is None:
                return None

        self.skip_semicolon()
        return LetStatement(name, value)

    def parse_return_statement(self) -> Optional[ReturnStatement]:
        if self.peek_is(TokenType.SEMICOLON, TokenType.RIGHT_BRACE, TokenType.EOF):
            expression = NullLiteral()
        else:
            self.advance()
            expression = self.parse_expression()
            if expression is None:
                return None

        self.skip_semicolon()
        return ReturnStatement(expression)

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        expression = self.parse_expression()
        if expression is None:
            return None
        self.skip_semicolon()
        return ExpressionStatement(expression)

    def parse_block_statement(self) -> Optional[BlockStatement]:
        start = self.cur_token
        statements = []
        self.advance()

        while not self.cur_is(TokenType.RIGHT_BRACE):
            if self.cur_is(TokenType.EOF):
                self._error("expected } to close the block", start)
                return None
            if self.cur_is(TokenType.SEMICOLON):
                self.advance()
                continue
            statement = self.parse_statement()
            if statement is None:
                return None
            statements.append(statement)
            self.advance()

        return BlockStatement(tuple(statements))

    def parse_if_statement(self) -> Optional[IfStatement]:
        condition = self._parse_condition()
        if condition is None:
            return None

        self.advance()
        then_arm = self.parse_statement()
        if then_arm is None:
            return None

        else_arm = None
        if self.peek_is(TokenType.ELSE):
            # consume else
            self.advance()
            self.advance()
            else_arm = self.parse_statement()
            if else_arm is None:
                return None

        return IfStatement(condition, then_arm, else_arm)

    def parse_while_statement(self) -> Optional[WhileStatement]:
        condition = self._parse_condition()
        if condition is None:
            return None

        self.advance()
        body = self.parse_statement()
        if body is None:
            return None
        return WhileStatement(condition, body)

    def _parse_condition(self):
        """Parses `( expression )` following `if` or `while`."""
        if not self.expect_peek(TokenType.LEFT_PAREN):
            return None
        self.advance()
        condition = self.parse_expression()
        if condition is None or not self.expect_peek(TokenType.RIGHT_PAREN):
            return None
        return condition

    # =================================================================
    # Expressions
    # =================================================================

    def parse_expression(self, precedence: int = LOWEST):
        prefix = self.prefix_parsers.get(self.cur_token.type)
        if prefix is None:
            token = self.cur_token
            raise ParseError(f"unexpected token {self._show(token)}", token.line, token.col)

        left = prefix()
        while left is not None and precedence < self.peek_precedence():
            infix = self.infix_parsers.get(self.peek_token.type)
            if infix is None:
                return left
            self.advance()
            left = infix(left)

        return left

    def parse_identifier(self) -> Identifier:
        return Identifier(self.cur_token.literal)

    def parse_number(self) -> NumberLiteral:
        return NumberLiteral(parse_number_literal(self.cur_token.literal))

    def parse_string(self) -> StringLiteral:
        return StringLiteral(self.cur_token.literal)

    def parse_boolean(self) -> BooleanLiteral:
        return BooleanLiteral(self.cur_is(TokenType.TRUE))

    def parse_null(self) -> NullLiteral:
        return NullLiteral()

    def parse_prefix_expression(self) -> Optional[PrefixExpression]:
        op = self.cur_token.literal
        # Advance past the operator.
        self.advance()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return PrefixExpression(op, right)

    def parse_infix_expression(self, left) -> Optional[InfixExpression]:
        op = self.cur_token.literal
        precedence = self.cur_precedence()
        self.advance()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(op, left, right)

    def parse_assignment_expression(self, left) -> Optional[AssignmentExpression]:
        self.advance()
        # Right-associative: a = b = c is a = (b = c).
        right = self.parse_expression(ASSIGNMENT - 1)
        if right is None:
            return None
        return AssignmentExpression(left, right)

    def parse_group_expression(self):
        """Parses `( expr )`, or the parameter list of a lambda: `()`, `(a, b)`."""
        if self.peek_is(TokenType.RIGHT_PAREN):
            self.advance()
            return self._lambda_parameters([])

        self.advance()
        expression = self.parse_expression()
        if expression is None:
            return None

        if self.peek_is(TokenType.COMMA):
            items = [expression]
            while self.peek_is(TokenType.COMMA):
                self.advance()
                self.advance()
                item = self.parse_expression()
                if item is None:
                    return None
                items.append(item)
            if not self.expect_peek(TokenType.RIGHT_PAREN):
                return None
            return self._lambda_parameters(items)

        if not self.expect_peek(TokenType.RIGHT_PAREN):
            return None
        return expression

    def _lambda_parameters(self, items) -> Optional[Parameters]:
        if not all(isinstance(item, Identifier) for item in items):
            self._error("lambda parameters must be identifiers", self.cur_token)
            return None
        if not self.peek_is(TokenType.ARROW):
            self._error(f"expected => after parameter list, got {self._show(self.peek_token)}", self.peek_token)
            return None
        return Parameters(tuple(items))

    def parse_lambda(self, left) -> Optional[FunctionLiteral]:
        match left:
            case Identifier():
                params = Parameters((left,))
            case Parameters():
                params = left
            case _:
                self._error("lambda parameters must be identifiers", self.cur_token)
                return None

        self.advance()
        body = self.parse_expression()
        if body is None:
            return None
        return FunctionLiteral(params, BlockStatement((ReturnStatement(body),)))

    def parse_call_expression(self, fn) -> Optional[CallExpression]:
        args = self.parse_expression_list(TokenType.RIGHT_PAREN)
        if args is None:
            return None
        return CallExpression(fn, tuple(args))

    def parse_index_expression(self, left) -> Optional[IndexExpression]:
        self.advance()
        index = self.parse_expression()
        if index is None or not self.expect_peek(TokenType.RIGHT_BRACKET):
            return None
        return IndexExpression(left, index)

    def parse_property_access(self, left) -> Optional[IndexExpression]:
        if not self.expect_peek(TokenType.IDENTIFIER):
            return None
        return IndexExpression(left, PropertyAccess(self.cur_token.literal))

    def parse_expression_list(self, end: TokenType) -> Optional[list]:
        """Parses comma-separated expressions up to `end`. A trailing comma is allowed."""
        items = []
        if self.peek_is(end):
            self.advance()
            return items

        self.advance()
        item = self.parse_expression()
        if item is None:
            return None
        items.append(item)

        while self.peek_is(TokenType.COMMA):
            self.advance()
            if self.peek_is(end):
                break
            self.advance()
            item = self.parse_expression()
            if item is None:
                return None
            items.append(item)

        if not self.expect_peek(end):
            return None
        return items

    def parse_parameters(self) -> Optional[Parameters]:
        if self.peek_is(TokenType.RIGHT_PAREN):
            self.advance()
            return Parameters(())

        if not self.expect_peek(TokenType.IDENTIFIER):
            return None
        identifiers = [Identifier(self.cur_token.literal)]
        while self.peek_is(TokenType.COMMA):
            self.advance()
            if not self.expect_peek(TokenType.IDENTIFIER):
                return None
            identifiers.append(Identifier(self.cur_token.literal))

        if not self.expect_peek(TokenType.RIGHT_PAREN):
            return None
        return Parameters(tuple(identifiers))

    def parse_function_literal(self) -> Optional[FunctionLiteral]:
        if not self.expect_peek(TokenType.LEFT_PAREN):
            return None
        params = self.parse_parameters()
        if params is None or not self.expect_peek(TokenType.LEFT_BRACE):
            return None
        body = self.parse_block_statement()
        if body is None:
            return None
        return FunctionLiteral(params, body)

    def parse_array_literal(self) -> Optional[ArrayLiteral]:
        elements = self.parse_expression_list(TokenType.RIGHT_BRACKET)
        if elements is None:
            return None
        return ArrayLiteral(tuple(elements))

    def parse_hash_literal(self) -> Optional[HashLiteral]:
        """Parses `{ key: value, ... }`; keys are arbitrary expressions."""
        pairs = []
        while not self.peek_is(TokenType.RIGHT_BRACE):
            self.advance()
            key = self.parse_expression()
            if key is None or not self.expect_peek(TokenType.COLON):
                return None

            self.advance()
            value = self.parse_expression()
            if value is None:
                return None
            pairs.append((key, value))

            if not self.peek_is(TokenType.RIGHT_BRACE) and not self.expect_peek(TokenType.COMMA):
                return None

        if not self.expect_peek(TokenType.RIGHT_BRACE):
            return None
        return HashLiteral(tuple(pairs))
