"""
The `eve` command: runs a script file, or starts an interactive prompt.
"""
import sys
from pathlib import Path

from eve.eve_runtime import ScriptRunner
from eve.eve_printer import Printer

RECURSION_LIMIT = 10000


# A basic input prompt; tests replace it.
def read_line(prompt: str) -> str:
    return input(prompt)


def print_side_effects(result):
    for effect in result.side_effects:
        if effect.get('topics') == ['stdout']:
            print(effect.get('message', ''))


def run_script_file(file_path: str):
    """Run an Eve script file non-interactively and exit with appropriate status."""
    runner = ScriptRunner(recursion_limit=RECURSION_LIMIT)
    try:
        source = Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    result = runner.handle_script(source)
    print_side_effects(result)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)


def main(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) > 1:
        print("Usage: eve [script]", file=sys.stderr)
        raise SystemExit(64)
    if args:
        run_script_file(args[0])
        return

    print("Eve REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    # The environment persists across lines.
    runner = ScriptRunner(recursion_limit=RECURSION_LIMIT)
    printer = Printer()

    while True:
        try:
            line = read_line("> ").strip()
        except EOFError:
            print("\nExiting.")
            break

        if not line:
            continue
        if line == "exit":
            break

        result = runner.handle_script(line)
        print_side_effects(result)
        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)
            continue
        print(printer.pformat(result.value))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
