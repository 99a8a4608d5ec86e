# polish_evaluator.py

"""
Prefix (Polish) Notation Evaluator
----------------------------------
Evaluates arithmetic expressions written in prefix notation, where every operator or function
precedes its operands (e.g. "- / 6 2 3" == 6 / 2 - 3 == 0). Tokens are separated by whitespace and
are numbers, variable names, binary operators (+ - * / ^) or unary functions (sqrt sin cos tan).
Trigonometric functions take their argument in degrees.

The evaluator is a single-pass recursive descent over the token list: no syntax tree is built, the
identity of each token decides how many operands it consumes, and the result is computed as the
tokens are read.

Known surprising behavior, kept on purpose:
- A variable whose name matches an operator or function shadows it ("sin" with {"sin": 7} is 7).
- Tokens left over after a complete expression are ignored ("+ 5 3 9" is 8).
- A bare number is rejected only when it is the very first token of a multi-token expression
  ("5 3"); once any operator has been read, numbers are accepted anywhere.
- Anything float() accepts is a number, including "inf", "infinity", "nan" and "1_000". Numbers
  are recognized before variables, so a variable with such a name can never be referenced.

Arithmetic follows IEEE 754 rather than raising: "sqrt -4" is nan, "^ 0 -1" and "^ 10 400" are
inf. Only division by exactly zero is an error.
"""

import logging
import math
from typing import List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


# ---------------------------
# Error Classes
# ---------------------------

class CalculatorError(Exception):
    """Base class for calculator errors."""
    pass

class MalformedExpressionError(CalculatorError):
    """Raised when the token sequence is not a valid prefix expression."""
    pass

class DivisionByZeroError(CalculatorError):
    """Raised when the denominator of a division is exactly zero."""
    pass


# ---------------------------
# Tokens
# ---------------------------

BINARY_OPERATORS = ('+', '-', '*', '/', '^')
UNARY_FUNCTIONS = ('sqrt', 'sin', 'cos', 'tan')


def tokenize(expression: str) -> List[str]:
    """Splits an expression on whitespace, dropping empty entries."""
    return expression.split()


def parse_number(token: str) -> Optional[float]:
    """Returns the token's value if it is a numeric literal, else None."""
    try:
        return float(token)
    except ValueError:
        return None


def power(base: float, exponent: float) -> float:
    """
    base raised to exponent, returning nan or a signed infinity where math.pow raises.
    """
    try:
        return math.pow(base, exponent)
    except (ValueError, OverflowError):
        odd_integer = exponent.is_integer() and exponent % 2 == 1
        if base == 0:
            # Zero base with a negative exponent.
            return math.copysign(math.inf, base) if odd_integer else math.inf
        if base < 0 and not exponent.is_integer():
            return math.nan
        return -math.inf if base < 0 and odd_integer else math.inf


class TokenCursor:
    """
    Walks a fixed token sequence from left to right. The position only ever moves forward.
    """
    def __init__(self, tokens: Sequence[str]):
        self.tokens = tuple(tokens)
        self.position = 0

    def __len__(self) -> int:
        return len(self.tokens)

    def exhausted(self) -> bool:
        return self.position >= len(self.tokens)

    def next(self) -> str:
        """
        Consumes and returns the current token.
        Raises MalformedExpressionError when no tokens remain.
        """
        if self.exhausted():
            raise MalformedExpressionError("Unexpected end of expression")
        token = self.tokens[self.position]
        self.position += 1
        return token

    def remaining(self) -> List[str]:
        return list(self.tokens[self.position:])


# ---------------------------
# Evaluator
# ---------------------------

class Evaluator:
    """
    Evaluates one prefix expression. Create a new instance per evaluation: the cursor and the
    expect_operator flag belong to a single run and are never reset.
    """
    def __init__(self, expression: str, variables: Optional[Mapping[str, float]] = None):
        self.cursor = TokenCursor(tokenize(expression))
        self.variables: Mapping[str, float] = variables if variables is not None else {}
        # Cleared the first time any operator or function is read, at any depth.
        self.expect_operator = True

    def evaluate(self) -> float:
        """
        Evaluates the whole expression and returns its value.
        """
        if self.cursor.exhausted():
            raise MalformedExpressionError("Empty expression")
        logger.debug(f"Evaluating {len(self.cursor)} tokens: {list(self.cursor.tokens)}")
        result = self._parse_next()
        if not self.cursor.exhausted():
            logger.debug(f"Ignoring trailing tokens: {self.cursor.remaining()}")
        logger.debug(f"Result: {result!r}")
        return result

    def _parse_next(self) -> float:
        """
        Reads one token and returns the value of the sub-expression it starts.
        """
        token = self.cursor.next()

        number = parse_number(token)
        if number is not None:
            if len(self.cursor) > 1 and self.expect_operator:
                raise MalformedExpressionError(
                    "Invalid expression: numbers must be prefixed with an operator in prefix notation")
            return number

        if token in self.variables:
            return float(self.variables[token])

        return self._apply(token)

    def _apply(self, token: str) -> float:
        """
        Applies an operator or function to the operand(s) that follow it.
        """
        self.expect_operator = False

        if token in BINARY_OPERATORS:
            left = self._parse_next()
            right = self._parse_next()
            if token == '+':
                return left + right
            elif token == '-':
                return left - right
            elif token == '*':
                return left * right
            elif token == '/':
                if right == 0:
                    raise DivisionByZeroError("Division by zero is not allowed")
                return left / right
            else:
                return power(left, right)

        if token in UNARY_FUNCTIONS:
            operand = self._parse_next()
            if token == 'sqrt':
                return math.nan if operand < 0 else math.sqrt(operand)
            radians = operand * math.pi / 180
            if math.isinf(radians):
                return math.nan
            if token == 'sin':
                return math.sin(radians)
            elif token == 'cos':
                return math.cos(radians)
            else:
                return math.tan(radians)

        raise MalformedExpressionError(f"Unknown operator or function: {token}")


def evaluate(expression: str, variables: Optional[Mapping[str, float]] = None) -> float:
    """
    Evaluates a prefix expression with the given variables.

    Only MalformedExpressionError and DivisionByZeroError ever escape; any other fault raised
    while evaluating (runaway recursion, non-numeric variable values) is reported as a
    MalformedExpressionError carrying the original message.
    """
    try:
        return Evaluator(expression, variables).evaluate()
    except CalculatorError:
        raise
    except Exception as e:
        raise MalformedExpressionError(f"Error evaluating expression: {e}") from e


def known_keywords() -> List[str]:
    """All operator and function tokens, in display order."""
    return list(BINARY_OPERATORS) + list(UNARY_FUNCTIONS)
