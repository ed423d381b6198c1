"""Utility helpers for calculator modules."""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from numbers import Real

from kenpayroll.backend.config.rate_config import PayeBracket


class InvalidInputError(ValueError):
    """Raised when a salary figure is negative or not a number."""


def ensure_salary(value: object, field_name: str = "gross_salary") -> float:
    """Return ``value`` as a float, rejecting negative and non-numeric input."""

    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(f"Field '{field_name}' must be numeric")
    amount = float(value)
    if math.isnan(amount) or math.isinf(amount):
        raise InvalidInputError(f"Field '{field_name}' must be a finite number")
    if amount < 0:
        raise InvalidInputError(f"Field '{field_name}' cannot be negative")
    return amount


def format_percentage(value: float) -> str:
    """Return a human-readable percentage label for ``value``."""

    percentage = value * 100
    if float(int(percentage)) == percentage:
        return f"{int(percentage)}%"
    return f"{percentage:.2f}%"


def format_kes(amount: float) -> str:
    """Return ``amount`` as a shilling label, e.g. ``KES 1,700``."""

    if float(amount).is_integer():
        return f"KES {amount:,.0f}"
    return f"KES {amount:,.2f}"


def calculate_progressive_tax(amount: float, brackets: Sequence[PayeBracket]) -> float:
    """Calculate progressive tax for ``amount`` using ``brackets``."""

    if amount <= 0:
        return 0.0

    total = 0.0
    lower_bound = 0.0

    for bracket in brackets:
        upper = bracket.upper_bound
        if upper is None or amount < upper:
            total += (amount - lower_bound) * bracket.rate
            break

        total += (upper - lower_bound) * bracket.rate
        lower_bound = upper

    return total


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)


def round_whole_currency(value: float) -> float:
    """Round to whole shillings, halves away from zero."""

    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
