"""Conversion between major units (request/response) and minor units (storage)."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal


def to_minor(amount: Decimal, minor_per_major: int = 100) -> int:
    """Convert a major-unit amount to integer minor units, truncating toward zero."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    scaled = amount * minor_per_major
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def to_major(amount: int, minor_per_major: int = 100) -> Decimal:
    return (Decimal(amount) / Decimal(minor_per_major)).quantize(Decimal("0.01"))
