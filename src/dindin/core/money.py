#!/usr/bin/env python3
"""
Money Primitive Type

Immutable currency value wrapper that uses integer cents internally.
Prevents floating-point errors and provides type-safe currency operations.
"""

from dataclasses import dataclass
from decimal import Decimal

from .currency import (
    cents_to_decimal,
    cents_to_number,
    format_cents,
    split_evenly,
    to_cents,
)

@dataclass(frozen=True)
class Money:
    """
    Immutable money value in cents (BRL).

    Account balances may be negative (credit cards); transaction values are
    always positive and carry their direction in the transaction type.

    Examples:
        >>> price = Money.from_value(49.9)
        >>> str(price)
        'R$49.90'
        >>> price.to_number()
        49.9

        >>> Money.from_value(100).split(3)
        [Money(cents=3333), Money(cents=3333), Money(cents=3334)]
    """

    cents: int

    @classmethod
    def from_cents(cls, cents: int) -> "Money":
        """Create Money from cents."""
        return cls(cents=cents)

    @classmethod
    def from_value(cls, value: int | float | str | Decimal) -> "Money":
        """
        Create Money from an amount in reais, rounding half-up to the cent.

        Args:
            value: JSON number, numeric string or Decimal

        Returns:
            Money object

        Raises:
            ValueError: If the value is not a number
        """
        return cls(cents=to_cents(value))

    def to_cents(self) -> int:
        """Get value in cents."""
        return self.cents

    def to_decimal(self) -> Decimal:
        """Get value as a two-place Decimal."""
        return cents_to_decimal(self.cents)

    def to_number(self) -> int | float:
        """Get value as the JSON number stored in rows."""
        return cents_to_number(self.cents)

    def is_positive(self) -> bool:
        """Check whether the amount is greater than zero."""
        return self.cents > 0

    def split(self, parts: int) -> list["Money"]:
        """
        Split into equal floored shares, the last share absorbing the remainder.

        Args:
            parts: Number of shares

        Returns:
            List of Money shares summing exactly to this amount
        """
        return [Money(cents=c) for c in split_evenly(self.cents, parts)]

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, Money):
            return NotImplemented
        return self.cents == other.cents

    def __hash__(self) -> int:
        return hash(self.cents)

    def __str__(self) -> str:
        """Format as display string."""
        return format_cents(self.cents)

    def __repr__(self) -> str:
        """Repr format."""
        return f"Money(cents={self.cents})"
