"""Money / rounding helpers.

Centralized so validation, persistence and comparison use identical
rounding semantics (4 decimal places, half-up).
"""

from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Sequence

from remit_rates.models.constants import RATE_DECIMAL_PLACES

RATE_QUANTUM = Decimal(1).scaleb(-RATE_DECIMAL_PLACES)


def to_decimal(value: Any) -> Decimal:
    """Coerce ``value`` to a finite Decimal without losing precision.

    Floats go through ``str`` so 280.5 becomes Decimal("280.5") rather than
    its binary expansion. Raises ValueError for anything non-numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"not a number: {value!r}") from e
    else:
        raise ValueError(f"not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def round4(value: Any) -> Decimal:
    return to_decimal(value).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def average(values: Sequence[Decimal]) -> Decimal:
    return round4(sum(values) / len(values))


def median(values: Sequence[Decimal]) -> Decimal:
    """Median by numeric order; an even count averages the middle pair."""
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return round4(ordered[mid])
    return round4((ordered[mid - 1] + ordered[mid]) / 2)
