# polish_cli.py

"""
Overview of Implementation Approach
-----------------------------------
This file implements the command-line front end for the prefix (Polish) notation evaluator in
polish_evaluator.py. The evaluator itself performs no I/O; this module reads expressions, keeps the
variable mapping for the session, prints results with locale-aware formatting and reports errors.

Input is read through prompt_toolkit (file history and completion of operators and variable names)
when stdin is a terminal, falling back to plain input() otherwise or when --plain is given.
Settings come from defaults, POLISH_CALC_* environment variables (a .env file is honored) and
command-line flags, in increasing order of precedence, and are validated with pydantic.

Modules, Classes, and Functions Implemented
-------------------------------------------
- Settings: CalculatorSettings, settings_from_env, build_settings
- Argument parsing: parse_variable_assignment, build_arg_parser
- Output: format_result
- HelpHandler: HelpHandler
- CLIHandler: CLIHandler (main REPL loop)
- Main entry point: main()
"""

import argparse
import locale
import logging
import os
import sys
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory
from pydantic import BaseModel, Field, ValidationError, field_validator

from polish_evaluator import CalculatorError, evaluate, known_keywords, parse_number

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
# Words the REPL treats as commands; compared case-insensitively.
COMMAND_WORDS = ('help', 'vars', 'set', 'exit', 'quit')


# ---------------------------
# Settings
# ---------------------------

class CalculatorSettings(BaseModel):
    """Runtime settings for the calculator front end."""
    prompt: str = "> "
    history_file: str = Field(default_factory=lambda: os.path.expanduser("~/.polish_calc_history"))
    use_prompt_toolkit: bool = True
    ask_continue: bool = False
    log_level: str = "WARNING"
    variables: Dict[str, float] = Field(default_factory=dict)

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}', expected one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator('variables')
    @classmethod
    def variable_names_must_be_tokens(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name in v:
            if not name or name.split() != [name] or parse_number(name) is not None:
                raise ValueError(f"Invalid variable name '{name}'")
            if name.lower() in COMMAND_WORDS:
                raise ValueError(f"Variable name '{name}' is reserved for a command")
        return v


def settings_from_env() -> Dict[str, str]:
    """
    Collects settings overrides from POLISH_CALC_* environment variables.
    """
    env_map = {
        'POLISH_CALC_PROMPT': 'prompt',
        'POLISH_CALC_HISTORY_FILE': 'history_file',
        'POLISH_CALC_LOG_LEVEL': 'log_level',
    }
    return {field: os.environ[key] for key, field in env_map.items() if os.getenv(key)}


def parse_variable_assignment(text: str) -> Tuple[str, float]:
    """
    Parses a NAME=VALUE command-line variable definition.
    """
    name, sep, value = text.partition('=')
    name = name.strip()
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got '{text}'")
    number = parse_number(value.strip())
    if number is None:
        raise argparse.ArgumentTypeError(f"Value for '{name}' is not a number: '{value}'")
    return name, number


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polish-calc",
        description="Evaluate arithmetic expressions written in prefix (Polish) notation.",
    )
    parser.add_argument(
        "-e", "--expression",
        type=str,
        help="Evaluate a single expression, print the result and exit.",
    )
    parser.add_argument(
        "--var",
        dest="variables",
        action="append",
        type=parse_variable_assignment,
        default=[],
        metavar="NAME=VALUE",
        help="Define a variable (may be repeated).",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="Read input with plain input() instead of prompt_toolkit.",
    )
    parser.add_argument(
        "--ask-continue",
        action="store_true",
        help="Ask whether to continue after every result.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--history-file",
        type=str,
        help="File used to persist prompt history.",
    )
    return parser


def build_settings(args: argparse.Namespace) -> CalculatorSettings:
    """
    Merges environment overrides and parsed command-line arguments into validated settings.
    """
    values: Dict[str, object] = dict(settings_from_env())
    if args.log_level:
        values['log_level'] = args.log_level
    if args.history_file:
        values['history_file'] = args.history_file
    if args.plain:
        values['use_prompt_toolkit'] = False
    if args.ask_continue:
        values['ask_continue'] = True
    values['variables'] = dict(args.variables)
    return CalculatorSettings(**values)


# ---------------------------
# Output
# ---------------------------

def format_result(value: float) -> str:
    """
    Formats a result as the shortest text that round-trips to the same float, using the
    current locale's decimal separator. Integral values are printed without a fractional part.
    """
    text = repr(float(value))
    if text.endswith('.0'):
        text = text[:-2]
    return text.replace('.', locale.localeconv()['decimal_point'])


# ---------------------------
# Help Handler
# ---------------------------

class HelpHandler:
    """
    Prints usage instructions for the calculator.
    """
    HELP_TEXT = """
Prefix Notation Calculator Help
-------------------------------
Write the operator first, then its operands, separated by spaces.

Operators:
  - Addition:           + 5 3          -> 8
  - Subtraction:        - 9 4          -> 5
  - Multiplication:     * 2 3          -> 6
  - Division:           / 6 2          -> 3
  - Power:              ^ 2 10         -> 1024

Functions (angles in degrees):
  - Square root:        sqrt 16        -> 4
  - Sine/Cosine/Tangent: sin 90        -> 1

Nesting:
  - - / 6 2 3           -> (6 / 2) - 3 = 0

Special commands:
  - help              : Show this help message
  - vars              : List defined variables
  - set NAME VALUE    : Define a variable, e.g. 'set x 2' then '+ x 3'
  - exit/quit         : Exit the calculator

Notes:
  - A variable named like an operator or function replaces it.
  - help, vars, set, exit and quit are commands and cannot be variable names.
  - Anything after a complete expression is ignored ('+ 5 3 9' is 8).
"""

    @staticmethod
    def print_help():
        print(HelpHandler.HELP_TEXT.strip())


# ---------------------------
# CLI Handler (REPL)
# ---------------------------

class CLIHandler:
    """
    Handles the REPL loop, the session's variables and user interaction.
    """
    CONTINUE_PROMPT = "Would you like to continue? (y/n) "

    def __init__(self, settings: Optional[CalculatorSettings] = None):
        self.settings = settings or CalculatorSettings()
        self.variables: Dict[str, float] = dict(self.settings.variables)
        self.running = True
        self.session: Optional[PromptSession] = None
        self._setup_session()

    def _setup_session(self):
        """
        Creates a prompt_toolkit session with file history when input comes from a terminal.
        """
        if not self.settings.use_prompt_toolkit:
            return
        if not sys.stdin.isatty():
            logger.info("stdin is not a terminal, using plain input")
            return
        self.session = PromptSession(history=FileHistory(self.settings.history_file))

    def _read_line(self, prompt: str) -> str:
        if self.session is not None:
            completer = WordCompleter(known_keywords() + sorted(self.variables), ignore_case=False)
            return self.session.prompt(prompt, completer=completer)
        return input(prompt)

    def evaluate_line(self, line: str) -> float:
        """
        Evaluates one expression against the session's variables.
        """
        return evaluate(line, self.variables)

    def _set_variable(self, args: List[str]):
        if len(args) != 2:
            print("Usage: set NAME VALUE")
            return
        name, raw_value = args
        if parse_number(name) is not None:
            print(f"Error: '{name}' is a number and cannot be used as a variable name")
            return
        if name.lower() in COMMAND_WORDS:
            print(f"Error: '{name}' is a command and cannot be used as a variable name")
            return
        value = parse_number(raw_value)
        if value is None:
            print(f"Error: '{raw_value}' is not a number")
            return
        self.variables[name] = value
        print(f"{name} = {format_result(value)}")

    def _print_variables(self):
        if not self.variables:
            print("(no variables)")
            return
        for name in sorted(self.variables):
            print(f"{name} = {format_result(self.variables[name])}")

    def _ask_continue(self) -> bool:
        """
        Repeats the continue question until the answer is 'y' or 'n'.
        """
        while True:
            response = self._read_line(self.CONTINUE_PROMPT).strip().lower()
            if response in ('y', 'n'):
                return response == 'y'

    def run(self):
        """
        Main REPL loop.
        """
        while self.running:
            try:
                line = self._read_line(self.settings.prompt)
            except (EOFError, KeyboardInterrupt):
                print()  # Newline for clean exit
                break

            line = line.strip()
            if not line:
                continue

            # Handle special commands
            words = line.split()
            command = words[0].lower()
            if line.lower() in ('exit', 'quit'):
                self.running = False
                print("Goodbye!")
                break
            elif line.lower() == 'help':
                HelpHandler.print_help()
                continue
            elif line.lower() == 'vars':
                self._print_variables()
                continue
            elif command == 'set':
                self._set_variable(words[1:])
                continue

            # Evaluate the expression
            try:
                result = self.evaluate_line(line)
                print(f"Result = {format_result(result)}")
            except CalculatorError as e:
                logger.info(f"Evaluation of '{line}' failed: {e}")
                print(f"Error: {e}")
            except Exception as e:
                # Catch-all for unexpected errors
                logger.error(f"Unexpected error evaluating '{line}': {e}")
                print(f"Unexpected error: {e}")

            if self.settings.ask_continue:
                try:
                    if not self._ask_continue():
                        self.running = False
                        print("Goodbye!")
                except (EOFError, KeyboardInterrupt):
                    print()
                    break


# ---------------------------
# Main Entry Point
# ---------------------------

def configure_logging(level: str):
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)


def configure_locale():
    """
    Selects the user's locale so results use the local decimal separator.
    """
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error as e:
        logger.warning(f"Could not set locale from environment, using default: {e}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the calculator application.
    """
    load_dotenv()
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    configure_locale()

    if args.expression is not None:
        try:
            result = evaluate(args.expression, settings.variables)
        except CalculatorError as e:
            logger.info(f"Evaluation of '{args.expression}' failed: {e}")
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(format_result(result))
        return 0

    print("Welcome to the Prefix Notation Calculator!")
    print("Type 'help' for instructions, or 'exit' to quit.")
    cli = CLIHandler(settings)
    cli.run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
