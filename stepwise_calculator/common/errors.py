"""Errors raised while evaluating calculator input."""


class CalculatorError(ValueError):
    """Base class for every failure of the calculator core."""

    kind: str = "CalculatorError"


class InvalidExpressionError(CalculatorError):
    """The input contains disallowed characters or yields no tokens."""

    kind = "InvalidExpression"


class MalformedExpressionError(CalculatorError):
    """The postfix sequence cannot be reduced to a single value."""

    kind = "MalformedExpression"
