"""
Script execution for Eve: the embedding entry points and the ScriptRunner.
"""
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from eve.eve_lexer import Lexer
from eve.eve_parser import Parser
from eve.eve_token import EveSyntaxError
from eve.eve_ast import Program
from eve.eve_interpreter import Evaluator
from eve.eve_datatypes import Environment, Error, Value
from eve.eve_printer import Printer, inspect


def parse(source: str) -> Program:
    """Lexes and parses a whole program. Raises LexError or ParseError."""
    return Parser(Lexer(source)).parse_program()


def run(source: str, environment: Optional[Environment] = None) -> Value:
    """Parses and evaluates `source` in `environment` (a fresh one by default).

    Syntax failures raise; runtime failures come back as an `Error` value.
    Script output is written to stdout once evaluation finishes.
    """
    if environment is None:
        environment = Environment()
    program = parse(source)
    evaluator = Evaluator()
    result = evaluator.eval(program, environment)
    for effect in evaluator.side_effects:
        if effect.get('topics') == ['stdout']:
            print(effect.get('message', ''))
    return result


# ===================================================================
# Script Execution
# ===================================================================

Token = Dict[str, Any]


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_token: Optional[Token] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Formats an error message with line and column if available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")

        # Add a location prefix when we have a token; avoid duplicating the same prefix
        if self.error_token and self.error_token.get('line') is not None:
            line = self.error_token.get('line')
            col = self.error_token.get('col')
            if not msg.startswith("Error on line "):
                col_info = f", col {col}" if col is not None else ""
                return f"Error on line {line}{col_info}: {msg}"
        return msg


class ScriptRunner:
    """Parses and executes Eve code against a persistent global environment."""

    def __init__(self, environment: Optional[Environment] = None, recursion_limit: Optional[int] = None):
        self.environment = environment if environment is not None else Environment()
        # Host stack budget applied while evaluating; None keeps the interpreter default.
        self.recursion_limit = recursion_limit
        self.evaluator = Evaluator()
        self.printer = Printer()

    def _dbg(self, *parts):
        if os.environ.get("EVE_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def _format_syntax_error(self, e: EveSyntaxError, source: str) -> str:
        msg = f"SyntaxError: {e.message}"
        if e.line is not None:
            context = self._source_context(source, e.line, e.col)
            if context:
                msg = f"{msg}\n{context}"
        return msg

    def _source_context(self, source: str, line: int, col: Optional[int], radius: int = 2) -> str:
        lines = source.splitlines()
        if not line or line < 1 or line > len(lines):
            return ""
        start = max(1, line - radius)
        end = min(len(lines), line + radius)
        width = len(str(end))
        out = []
        for i in range(start, end + 1):
            prefix = ">" if i == line else " "
            ln = str(i).rjust(width)
            out.append(f"{prefix} {ln} | {lines[i - 1]}")
            if i == line and col is not None:
                caret = " " * max(col - 1, 0)
                out.append(f"  {' ' * width} | {caret}^")
        return "\n".join(out)

    def _format_stacktrace(self) -> str:
        frames = []
        for frame in self.evaluator.call_stack[-10:]:
            args = " ".join(self.printer.pformat(arg) for arg in frame.get('args') or [])
            frames.append(f"({frame.get('name') or '<call>'}{' ' + args if args else ''})")
        if not frames:
            return ""
        depth = len(self.evaluator.call_stack)
        return f"Eve stacktrace ({depth} frames, innermost last): " + " ".join(frames)

    def _error(self, msg: str, value: Any = None, token: Optional[Token] = None) -> ExecutionResult:
        self.evaluator.side_effects.append({'topics': ['stderr'], 'message': msg})
        return ExecutionResult(
            status='error',
            value=value,
            error_message=msg,
            error_token=token,
            side_effects=self.evaluator.side_effects,
        )

    def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script."""
        # Clear side effects for each run
        self.evaluator.side_effects = []
        self.evaluator.call_stack.clear()

        # 1. Parse
        try:
            program = parse(source_code)
        except EveSyntaxError as e:
            return self._error(
                self._format_syntax_error(e, source_code),
                token={'line': e.line, 'col': e.col},
            )
        self._dbg("parsed", self.printer.pformat(program))

        # 2. Evaluate
        previous_limit = sys.getrecursionlimit()
        try:
            if self.recursion_limit:
                sys.setrecursionlimit(self.recursion_limit)
            result = self.evaluator.eval(program, self.environment)
        except RecursionError:
            msg = "RecursionError: maximum recursion depth exceeded"
            st = self._format_stacktrace()
            if st:
                msg += "\n" + st
            return self._error(msg)
        finally:
            sys.setrecursionlimit(previous_limit)

        if isinstance(result, Error):
            return self._error(inspect(result), value=result)

        return ExecutionResult(
            status='success',
            value=result,
            side_effects=self.evaluator.side_effects,
        )
