"""Render numbers the way the calculator display shows them."""
import math


# Above this magnitude integral values switch to exponent notation
_EXPONENT_THRESHOLD: float = 1e21


def format_number(value: float) -> str:
    """
    Render a float for display in steps, results and history.

    Integral values lose their trailing ``.0``, non-finite values render as
    ``Infinity``, ``-Infinity`` and ``NaN``.

    :param float value: Number to render

    :return: Display text
    :rtype: str
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < _EXPONENT_THRESHOLD:
        return str(int(value))
    return repr(value)
