"""Clean-up of text produced by an LLM.

Strips injected ``/nonce <token>`` control sequences and stray whitespace.
When the user's own input was a two-operand arithmetic expression, the
locally computed value replaces the model's answer.
"""

from __future__ import annotations

import operator
import re
from typing import Any, Callable

_NONCE_RE = re.compile(r"/nonce\s+\w+", re.I)
_EXTRA_WHITESPACE_RE = re.compile(r"\s{2,}")
_WHITESPACE_RE = re.compile(r"\s+")
_MATH_EXPRESSION_RE = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*([+\-*/])\s*(\d+(?:\.\d+)?)\s*$"
)

_OPERATORS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}


def evaluate_math_expression(expression: str) -> float | None:
    """Evaluate ``"N op N"`` (``op`` in ``+ - * /``).

    Returns:
        The result, or ``None`` if *expression* is not exactly a
        two-operand expression or divides by zero.
    """
    match = _MATH_EXPRESSION_RE.match(expression or "")
    if not match:
        return None

    left, op, right = float(match.group(1)), match.group(2), float(match.group(3))
    if op == "/" and right == 0:
        return None
    return _OPERATORS[op](left, right)


def format_number(value: float) -> str:
    """Format *value* as an integer when whole, else rounded to 4 places."""
    rounded = round(value, 4)
    if rounded.is_integer():
        return str(int(rounded))
    return repr(rounded)


def sanitize_ai_output(output: Any, *, user_input: str = "", verbose: bool = False) -> Any:
    """Clean an LLM text response.

    Args:
        output: The model's text.  Non-string values are returned untouched.
        user_input: The user's original input.  If it is a two-operand
            arithmetic expression, its computed value replaces *output*.
        verbose: Append ``" (from <expression>)"`` to a computed value.

    Returns:
        The cleaned text, or the computed arithmetic result.
    """
    if not isinstance(output, str):
        return output

    cleaned = _NONCE_RE.sub("", output)
    cleaned = _EXTRA_WHITESPACE_RE.sub(" ", cleaned).strip()

    result = evaluate_math_expression(user_input)
    if result is None:
        return cleaned

    formatted = format_number(result)
    if verbose:
        expression = _WHITESPACE_RE.sub("", user_input)
        return f"{formatted} (from {expression})"
    return formatted
