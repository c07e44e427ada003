"""
Eve: a small dynamically-typed scripting language.
"""
from eve.eve_token import Token, TokenType, EveSyntaxError, LexError, ParseError
from eve.eve_lexer import Lexer
from eve.eve_parser import Parser
from eve.eve_datatypes import Environment, Closure
from eve.eve_interpreter import Evaluator
from eve.eve_runtime import ExecutionResult, ScriptRunner, parse, run
from eve.eve_printer import Printer, inspect

__all__ = [
    "Token", "TokenType", "EveSyntaxError", "LexError", "ParseError",
    "Lexer", "Parser", "Environment", "Closure", "Evaluator",
    "ExecutionResult", "ScriptRunner", "parse", "run", "Printer", "inspect",
]
