"""
The Eve lexer. Turns source text into tokens, one `scan_token()` call at a time.

    let language = 'eve';  ->  LET IDENTIFIER EQUAL STRING SEMICOLON
"""
from typing import List, Optional

from eve.eve_token import Token, TokenType, LexError

SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    ';': TokenType.SEMICOLON,
    ':': TokenType.COLON,
    '.': TokenType.PERIOD,
    ',': TokenType.COMMA,
    '[': TokenType.LEFT_BRACKET,
    ']': TokenType.RIGHT_BRACKET,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
}

# First char -> (token alone, {second char: merged token})
TWO_CHAR_TOKENS = {
    '=': (TokenType.EQUAL, {'=': TokenType.EQUAL_EQUAL, '>': TokenType.ARROW}),
    '!': (TokenType.BANG, {'=': TokenType.BANG_EQUAL}),
    '<': (TokenType.LESS, {'=': TokenType.LESS_EQUAL}),
    '>': (TokenType.GREATER, {'=': TokenType.GREATER_EQUAL}),
}

WHITESPACE = (' ', '\t', '\n', '\r')


def is_digit(ch: Optional[str]) -> bool:
    return ch is not None and '0' <= ch <= '9'


def is_letter(ch: Optional[str]) -> bool:
    return ch is not None and (('a' <= ch <= 'z') or ('A' <= ch <= 'Z') or ch == '_')


class Lexer:
    """Position-based scanner with a single character of lookahead."""

    RESERVED_WORDS = {
        'let': TokenType.LET,
        'if': TokenType.IF,
        'else': TokenType.ELSE,
        'return': TokenType.RETURN,
        'fn': TokenType.FN,
        'while': TokenType.WHILE,
        'true': TokenType.TRUE,
        'false': TokenType.FALSE,
        'null': TokenType.NULL,
    }

    def __init__(self, source: str):
        self.source = source
        self.start = 0
        self.current = 0
        self.line = 1
        self.col = 1
        self._start_line = 1
        self._start_col = 1

    def scan_tokens(self) -> List[Token]:
        """Scans the whole input. The returned list always ends with one EOF token."""
        tokens = []
        while True:
            token = self.scan_token()
            tokens.append(token)
            if token.type is TokenType.EOF:
                return tokens

    def scan_token(self) -> Token:
        """Returns the next token. Keeps returning EOF once the input is exhausted."""
        while not self.is_at_end():
            self._mark_start()
            ch = self.consume()

            if ch in WHITESPACE:
                continue
            if ch == '/':
                if self.match('/'):
                    self.skip_comment()
                    continue
                return self.make_token(TokenType.SLASH)
            if ch in SINGLE_CHAR_TOKENS:
                return self.make_token(SINGLE_CHAR_TOKENS[ch])
            if ch in TWO_CHAR_TOKENS:
                alone, merged = TWO_CHAR_TOKENS[ch]
                nxt = self.peek()
                if nxt in merged:
                    self.consume()
                    return self.make_token(merged[nxt])
                return self.make_token(alone)
            if ch == "'":
                return self.scan_string()
            if is_digit(ch):
                return self.scan_number()
            if is_letter(ch):
                return self.scan_identifier()
            raise LexError(f'unrecognized token "{ch}"', self._start_line, self._start_col)

        self._mark_start()
        return Token(TokenType.EOF, '', self.line, self.col)

    def scan_number(self) -> Token:
        # `1.2.3` is one lexeme; the parser keeps the leading `1.2`.
        while is_digit(self.peek()) or self.peek() == '.':
            self.consume()
        return self.make_token(TokenType.NUMBER)

    def scan_identifier(self) -> Token:
        while is_letter(self.peek()) or is_digit(self.peek()):
            self.consume()
        text = self.source[self.start:self.current]
        return self.make_token(self.RESERVED_WORDS.get(text, TokenType.IDENTIFIER))

    def scan_string(self) -> Token:
        while not self.is_at_end() and self.peek() != "'":
            self.consume()
        if self.is_at_end():
            raise LexError("unterminated string", self._start_line, self._start_col)
        self.consume()
        # Strip the quotes.
        literal = self.source[self.start + 1:self.current - 1]
        return Token(TokenType.STRING, literal, self._start_line, self._start_col)

    def skip_comment(self):
        while not self.is_at_end() and self.peek() != '\n':
            self.consume()

    def make_token(self, token_type: TokenType) -> Token:
        literal = self.source[self.start:self.current]
        return Token(token_type, literal, self._start_line, self._start_col)

    def consume(self) -> str:
        ch = self.source[self.current]
        self.current += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def match(self, expected: str) -> bool:
        if self.peek() != expected:
            return False
        self.consume()
        return True

    def peek(self) -> Optional[str]:
        if self.is_at_end():
            return None
        return self.source[self.current]

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _mark_start(self):
        self.start = self.current
        self._start_line = self.line
        self._start_col = self.col
