#!/usr/bin/env python3
"""
TEXALG Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    texalg                              # Start REPL
    texalg formulas.tex                 # Run script
    texalg -e "x + x"                   # Simplify one formula
    texalg -n -e "x^2" --let x=3        # Evaluate numerically
    echo "2x + 3x" | texalg             # Filter mode

Script Format:
    % comments start with % or #
    :let m 2
    :implicit off

    \\frac{1}{2} + \\frac{1}{3}
    :eval \\frac{1}{2}*m*v^2

REPL Commands:
    :help              Show help
    :implicit on|off   Toggle implicit multiplication
    :let NAME VALUE    Bind a name to a number
    :unset NAME        Remove a binding
    :vars              List bindings
    :constants NAME    Set constants table (physics, none, or path.py)
    :eval EXPR         Evaluate numerically
    :trace on|off      Toggle debug logging of simplification steps
    :quit              Exit
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

from . import __version__
from .constants import BUILTIN_CONSTANTS, load_custom_constants
from .engine import FormulaEngine
from .errors import TexalgError
from .latex import OPENING, CLOSING

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False

logger = logging.getLogger(__name__)


def format_number(value: float) -> str:
    """Format a float result: 9.0 -> '9', 0.1 -> '0.1'."""
    return f"{value:.15g}"


def parse_binding(text: str) -> Tuple[str, float]:
    """
    Parse a NAME=VALUE binding.

    Raises:
        ValueError: If the text is not NAME=VALUE with a numeric value
    """
    name, sep, value = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ValueError(f"Expected NAME=VALUE, got {text!r}")
    return name, float(value)


class TexalgCompleter:
    """Tab completer for TEXALG REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":implicit", ":let", ":unset", ":vars",
        ":constants", ":eval", ":trace",
    ]

    SWITCH_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'TexalgREPL'):
        self.repl = repl

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)

        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> list:
        line = line.lstrip()

        if line.startswith(":constants "):
            return [n for n in BUILTIN_CONSTANTS if n.startswith(text)]

        if line.startswith(":trace ") or line.startswith(":implicit "):
            return [o for o in self.SWITCH_OPTIONS if o.startswith(text)]

        if line.startswith(":unset "):
            return [n for n in sorted(self.repl.bindings) if n.startswith(text)]

        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]

        return []


def count_brackets(text: str) -> int:
    """Count unbalanced brackets. Returns >0 if more open than close."""
    depth = 0
    for c in text:
        if c in OPENING:
            depth += 1
        elif c in CLOSING:
            depth -= 1
    return depth


class TexalgREPL:
    """Interactive REPL for texalg."""

    def __init__(self, engine: Optional[FormulaEngine] = None):
        self.engine = engine if engine is not None else FormulaEngine()
        self.bindings: Dict[str, float] = {}
        self.evaluate_mode = False
        self.trace = False
        self.running = True
        self.last_failed = False
        self.multi_line_buffer = ""
        self._trace_handler: Optional[logging.Handler] = None
        self.completer: Optional[TexalgCompleter] = None
        self.history_file: Optional[Path] = None

    def setup_readline(self):
        """Set up readline history and completion."""
        if not HAS_READLINE:
            return
        self.history_file = Path.home() / ".texalg_history"
        try:
            readline.read_history_file(self.history_file)
        except FileNotFoundError:
            pass
        readline.set_history_length(1000)

        self.completer = TexalgCompleter(self)
        readline.set_completer(self.completer.complete)
        readline.parse_and_bind("tab: complete")
        readline.set_completer_delims(" \t\n")

    def save_history(self):
        """Save readline history."""
        if HAS_READLINE and self.history_file is not None:
            try:
                readline.write_history_file(self.history_file)
            except OSError as e:
                logger.debug("could not save history to %s: %s", self.history_file, e)

    def set_constants(self, name: str) -> bool:
        """Set the constants table by name or path."""
        name_lower = name.lower()

        if name_lower in BUILTIN_CONSTANTS:
            self.engine.with_constants(BUILTIN_CONSTANTS[name_lower])
            return True

        custom = load_custom_constants(name)
        if custom is not None:
            self.engine.with_constants(custom)
            return True

        return False

    def set_trace(self, enabled: bool):
        """Route texalg debug logging to stderr, or stop doing so."""
        self.trace = enabled
        package_logger = logging.getLogger("texalg")
        if enabled and self._trace_handler is None:
            self._trace_handler = logging.StreamHandler(sys.stderr)
            self._trace_handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
            package_logger.addHandler(self._trace_handler)
            package_logger.setLevel(logging.DEBUG)
        elif not enabled and self._trace_handler is not None:
            package_logger.removeHandler(self._trace_handler)
            package_logger.setLevel(logging.NOTSET)
            self._trace_handler = None

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            self.last_failed = True
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd == "quit" or cmd == "exit" or cmd == "q":
            self.running = False
            return None

        elif cmd == "implicit":
            if arg.lower() in ("on", "true", "1"):
                self.engine.with_implicit_multiplication(True)
            elif arg.lower() in ("off", "false", "0"):
                self.engine.with_implicit_multiplication(False)
            else:
                self.engine.with_implicit_multiplication(not self.engine.implicit_multiplication)
            state = "enabled" if self.engine.implicit_multiplication else "disabled"
            return f"Implicit multiplication {state}"

        elif cmd == "let":
            fields = arg.replace("=", " ").split()
            if len(fields) != 2:
                self.last_failed = True
                return "Usage: :let NAME VALUE"
            try:
                value = float(fields[1])
            except ValueError:
                self.last_failed = True
                return f"Error: not a number: {fields[1]}"
            self.bindings[fields[0]] = value
            return f"{fields[0]} = {format_number(value)}"

        elif cmd == "unset":
            if not arg:
                self.last_failed = True
                return "Usage: :unset NAME"
            if self.bindings.pop(arg, None) is None:
                return f"{arg} is not bound"
            return f"Unset {arg}"

        elif cmd == "vars":
            if not self.bindings:
                return "No bindings"
            return "\n".join(f"{name} = {format_number(value)}"
                             for name, value in sorted(self.bindings.items()))

        elif cmd == "constants":
            if not arg:
                constants = self.engine.constants
                if not constants:
                    available = ", ".join(BUILTIN_CONSTANTS)
                    return f"No constants\nAvailable: {available}\nOr provide a path to a .py file"
                return "\n".join(f"{name} = {format_number(value)}"
                                 for name, value in sorted(constants.items()))
            try:
                found = self.set_constants(arg)
            except Exception as e:
                self.last_failed = True
                return f"Error loading constants from {arg}: {e}"
            if found:
                return f"Constants set to: {arg}"
            self.last_failed = True
            return f"Unknown constants: {arg}"

        elif cmd == "eval":
            if not arg:
                self.last_failed = True
                return "Usage: :eval EXPR"
            return self.run_formula(arg, evaluate=True)

        elif cmd == "trace":
            if arg.lower() in ("on", "true", "1"):
                self.set_trace(True)
            elif arg.lower() in ("off", "false", "0"):
                self.set_trace(False)
            else:
                self.set_trace(not self.trace)
            return f"Tracing {'enabled' if self.trace else 'disabled'}"

        else:
            self.last_failed = True
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """TEXALG REPL Commands:
  :help              Show this help
  :implicit on|off   Toggle implicit multiplication (2x, ab)
  :let NAME VALUE    Bind a name to a number
  :unset NAME        Remove a binding
  :vars              List bindings
  :constants [NAME]  Show or set constants (physics, none, or path.py)
  :eval EXPR         Evaluate an expression numerically
  :trace on|off      Log simplification steps to stderr
  :quit              Exit

Syntax:
  x^2 + 2x + 1                 Simplify a formula
  \\frac{a}{b}  \\sqrt{x}        Fractions and roots
  \\ln(x)  \\sin(x)  \\cos(x)     Functions
  \\pi  e  \\hbar  x_0           Constants and names
"""

    def run_formula(self, text: str, evaluate: bool = False) -> str:
        """Simplify or evaluate a formula, returning the text to print."""
        try:
            if not evaluate:
                return self.engine.simplify(text)
            expr = self.engine.parse(text)
            missing = expr.letters() - set(self.bindings) - set(self.engine.constants)
            if missing:
                self.last_failed = True
                return f"Error: No value bound for {', '.join(sorted(missing))}"
            return format_number(self.engine.evaluate(expr, self.bindings))
        except TexalgError as e:
            self.last_failed = True
            return f"Error: {e}"

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        self.last_failed = False
        line = line.strip()

        # Empty line or comment
        if not line or line.startswith("%") or line.startswith("#"):
            return None

        if line.startswith(":"):
            return self.handle_command(line)

        return self.run_formula(line, evaluate=self.evaluate_mode)

    def run(self):
        """Run the REPL loop."""
        self.setup_readline()
        print("TEXALG - Exact algebra over a LaTeX subset")
        print("Type :help for help, :quit to exit")
        print("Multi-line input: formulas with unbalanced brackets continue on next line")
        print()

        while self.running:
            try:
                prompt = "...... " if self.multi_line_buffer else "texalg> "
                line = input(prompt)

                if self.multi_line_buffer:
                    self.multi_line_buffer += " " + line
                else:
                    self.multi_line_buffer = line

                depth = count_brackets(self.multi_line_buffer)
                if depth > 0:
                    continue
                elif depth < 0:
                    print("Error: Unbalanced brackets (too many closing)")
                    self.multi_line_buffer = ""
                    continue

                complete_input = self.multi_line_buffer
                self.multi_line_buffer = ""

                result = self.process_line(complete_input)
                if result:
                    print(result)

            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                if self.multi_line_buffer:
                    print("\nInput cancelled")
                    self.multi_line_buffer = ""
                else:
                    print()
                continue

        self.save_history()


class ScriptRunner:
    """Runs texalg scripts."""

    def __init__(self, repl: Optional[TexalgREPL] = None):
        self.repl = repl if repl is not None else TexalgREPL()

    def run_script(self, path: Path) -> int:
        """
        Run a script file.

        Args:
            path: Path to the script

        Returns:
            Exit code (0 for success)
        """
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1

        for lineno, line in enumerate(lines, 1):
            stripped = line.strip()
            result = self.repl.process_line(stripped)
            if self.repl.last_failed:
                print(f"{path}:{lineno}: {result}", file=sys.stderr)
                return 1
            # Command confirmations are not echoed in script mode
            if result and (not stripped.startswith(":") or stripped.startswith(":eval")):
                print(result)
            if not self.repl.running:
                break

        return 0

    def run_expression(self, text: str) -> int:
        """
        Simplify or evaluate a single formula.

        Returns:
            Exit code (0 for success)
        """
        result = self.repl.process_line(text)
        if result:
            print(result)
        return 1 if self.repl.last_failed else 0

    def run_stdin(self) -> int:
        """
        Read formulas from stdin, one per line.

        Returns:
            Exit code (0 for success)
        """
        for line in sys.stdin:
            result = self.repl.process_line(line)
            if result:
                print(result)
            if self.repl.last_failed:
                return 1
            if not self.repl.running:
                break

        return 0


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="texalg",
        description="TEXALG - Exact algebra over a LaTeX subset",
        epilog="Examples:\n"
               "  texalg                             Start REPL\n"
               "  texalg formulas.tex                Run script\n"
               "  texalg -e 'x + x'                  Simplify a formula\n"
               "  texalg -n -e 'x^2' --let x=3       Evaluate numerically\n"
               "  echo '2x + 3x' | texalg            Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Simplify (or with -n, evaluate) a single formula"
    )

    parser.add_argument(
        "-n", "--evaluate",
        action="store_true",
        help="Evaluate numerically instead of simplifying"
    )

    parser.add_argument(
        "--let",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Bind a name to a number (can be specified multiple times)"
    )

    parser.add_argument(
        "-c", "--constants",
        default="physics",
        help="Constants table (physics, none, or path.py)"
    )

    parser.add_argument(
        "--explicit",
        action="store_true",
        help="Disable implicit multiplication"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log simplification steps to stderr"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args(argv)

    runner = ScriptRunner()
    repl = runner.repl

    try:
        found = repl.set_constants(args.constants)
    except Exception as e:
        print(f"Error loading constants from {args.constants}: {e}", file=sys.stderr)
        return 1
    if not found:
        print(f"Unknown constants: {args.constants}", file=sys.stderr)
        return 1

    for binding in args.let:
        try:
            name, value = parse_binding(binding)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        repl.bindings[name] = value

    repl.engine.with_implicit_multiplication(not args.explicit)
    repl.evaluate_mode = args.evaluate
    repl.set_trace(args.verbose)

    if args.script:
        return runner.run_script(Path(args.script))
    elif args.expr:
        return runner.run_expression(args.expr)
    elif not sys.stdin.isatty():
        return runner.run_stdin()
    else:
        repl.run()
        return 0


if __name__ == "__main__":
    sys.exit(main())
