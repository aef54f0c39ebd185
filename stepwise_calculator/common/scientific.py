"""Single-operand scientific functions offered by the scientific keypad."""
from collections.abc import Callable
import math
import re
from typing import Dict

from stepwise_calculator.common.errors import InvalidExpressionError
from stepwise_calculator.common.models import Evaluation, FunctionStep


def factorial(n: float) -> float:
    """
    Iterative product from 2 to n.

    Negative operands give NaN. Fractional operands stop at the last integer
    not above n, so ``factorial(3.5) == 6``.
    """
    if math.isnan(n) or n < 0:
        return math.nan
    if math.isinf(n):
        return math.inf
    result = 1.0
    for i in range(2, math.floor(n) + 1):
        result *= i
        if math.isinf(result):
            break
    return result


def _log(fn: Callable[[float], float]) -> Callable[[float], float]:
    # math.log* raise on 0 where IEEE gives -Infinity
    def wrapped(v: float) -> float:
        return -math.inf if v == 0 else fn(v)
    return wrapped


def _square(v: float) -> float:
    # Multiplication overflows to Infinity; float ** raises OverflowError
    return v * v


# Function name (and keypad glyph) -> implementation
FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "log": _log(math.log10),
    "ln": _log(math.log),
    "√": math.sqrt,
    "sqrt": math.sqrt,
    "^": _square,
    "square": _square,
    "!": factorial,
    "factorial": factorial,
    "π": lambda _: math.pi,
    "pi": lambda _: math.pi,
    "e": lambda _: math.e,
}


# Decimal or exponent notation, or a signed Infinity; no underscores, no "nan"
OPERAND_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity")


def parse_operand(text: str) -> float:
    """
    Read the input buffer as a single number.

    A blank buffer reads as 0, anything that is not a number reads as NaN.

    :param str text: Current input buffer

    :return: Operand value
    :rtype: float
    """
    text = text.strip()
    if not text:
        return 0.0
    if not OPERAND_PATTERN.fullmatch(text):
        return math.nan
    return float(text)


def apply_function(name: str, operand: float) -> Evaluation:
    """
    Apply a scientific function to one operand.

    Domain errors give NaN (or an infinity) instead of raising, so that
    ``sqrt(-1)`` and ``ln(-1)`` display ``NaN``.

    :param str name: Function name or keypad glyph
    :param float operand: Operand, ignored by the constants π and e

    :return: Result with a single FunctionStep
    :rtype: Evaluation
    :raises InvalidExpressionError: If the function is unknown
    """
    try:
        fn = FUNCTIONS[name]
    except KeyError:
        raise InvalidExpressionError(f"Unknown function: {name!r}") from None

    try:
        result = fn(operand)
    except ValueError:
        # math domain error
        result = math.nan

    return Evaluation(
        value=result,
        steps=[FunctionStep(function=name, operand=operand, result=result)],
    )
