#!/usr/bin/env python3
"""
Currency Conversion and Handling Utilities

All money in the reconciliation engine is fixed-point with two decimal places.
Values arrive from JSON as numbers or strings and are converted to integer
cents immediately; every calculation after that uses integer arithmetic.

Currency Systems:
- Stored rows carry `valor` / `saldo` as JSON numbers (reais, e.g. 49.9)
- Internal calculations use cents: 100 cents = R$1.00
- Display uses strings: "R$12.34"

Key Principles:
- Never use floating-point arithmetic for currency calculations
- Round to the cent exactly once, when a value enters the system
- Per-unit shares are floored, the last share absorbs the remainder
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

CENT = Decimal("0.01")


def to_cents(value: Union[int, float, str, Decimal]) -> int:
    """
    Convert a monetary amount in reais to integer cents.

    Floats are converted through their shortest repr so that 0.1 stays 0.1,
    then rounded half-up to the cent. Strings use "." as the decimal
    separator; a string containing a comma ("12,50" or "1,250") is rejected.

    Args:
        value: Amount like 49.9, "49.90", Decimal("49.9") or 50

    Returns:
        Amount in cents

    Raises:
        ValueError: If the value is not a finite number or contains a comma

    Examples:
        to_cents(49.9) -> 4990
        to_cents("R$1234.56") -> 123456
        to_cents(0.005) -> 1
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")

    try:
        if isinstance(value, Decimal):
            decimal_amount = value
        elif isinstance(value, (int, float)):
            decimal_amount = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
        else:
            clean_str = str(value).replace("R$", "").replace("$", "").strip()
            if "," in clean_str:
                raise ValueError(f"Use '.' as the decimal separator: {value!r}")
            decimal_amount = Decimal(clean_str)
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Not a monetary amount: {value!r}") from e

    if not decimal_amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")

    return int((decimal_amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def safe_to_cents(value: Any) -> int | None:
    """
    Convert to cents, returning None for missing or unparseable input.

    Used where a row may carry garbage and the caller decides what that means
    (the validator reports it, the duplicate detector ignores the row).
    """
    if value is None or value == "":
        return None
    try:
        return to_cents(value)
    except (ValueError, TypeError):
        return None


def cents_to_decimal(cents: int) -> Decimal:
    """Convert cents to a two-place Decimal amount."""
    return (Decimal(cents) / 100).quantize(CENT)


def cents_to_number(cents: int) -> int | float:
    """
    Convert cents to the JSON number stored in rows.

    Whole amounts become ints so they serialize as `5000` rather than `5000.0`.

    Example:
        cents_to_number(500000) -> 5000
        cents_to_number(4990) -> 49.9
    """
    if cents % 100 == 0:
        return cents // 100
    return float(cents_to_decimal(cents))


def cents_to_reais_str(cents: int) -> str:
    """
    Convert cents to a plain amount string using pure integer arithmetic.

    Example:
        cents_to_reais_str(4599) -> "45.99"
    """
    is_negative = cents < 0
    abs_cents = abs(int(cents))

    reais = abs_cents // 100
    remainder = abs_cents % 100

    if is_negative:
        return f"-{reais}.{remainder:02d}"
    return f"{reais}.{remainder:02d}"


def format_cents(cents: int) -> str:
    """Format cents as a display string with the R$ prefix."""
    if cents < 0:
        return f"-R${cents_to_reais_str(-cents)}"
    return f"R${cents_to_reais_str(cents)}"


def split_evenly(total_cents: int, parts: int) -> list[int]:
    """
    Split an amount into equal shares, floored to the cent.

    The last share absorbs the remainder so the shares always sum to the total.

    Args:
        total_cents: Amount to split in cents
        parts: Number of shares (must be positive)

    Returns:
        List of share amounts in cents

    Example:
        split_evenly(10000, 3) -> [3333, 3333, 3334]
    """
    if parts <= 0:
        raise ValueError(f"Cannot split into {parts} parts")

    per_unit = total_cents // parts
    return allocate_remainder([per_unit] * parts, total_cents)


def allocate_remainder(amounts: list[int], total: int) -> list[int]:
    """
    Allocate remainder from integer division to ensure exact sum.

    The last item gets any remainder to guarantee the sum equals the total.

    Args:
        amounts: List of calculated amounts before remainder allocation
        total: Target total that amounts should sum to

    Returns:
        List of amounts with remainder allocated to last item
    """
    if not amounts:
        return amounts

    amounts_copy = amounts.copy()
    current_sum = sum(amounts_copy[:-1])
    amounts_copy[-1] = total - current_sum
    return amounts_copy


def validate_sum_equals_total(amounts: list[int], total_cents: int, tolerance: int = 0) -> bool:
    """
    Validate that split amounts sum exactly to the total.

    Args:
        amounts: Share amounts in cents
        total_cents: Expected total in cents
        tolerance: Allowed difference in cents (default: 0 for exact match)

    Returns:
        True if sum matches within tolerance
    """
    return abs(sum(amounts) - total_cents) <= tolerance
