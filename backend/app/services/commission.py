"""Money helpers shared by the purchase and settlement paths.

All amounts are ``Decimal`` in major currency units with two decimal places.
The platform fee is rounded half-up to the cent and the seller receives the
remainder, so the two parts always add back to the total exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, float, int, str]


def to_decimal(value: Number) -> Decimal:
    """Coerce *value* to a cent-quantized ``Decimal``.

    Floats go through ``str`` first so 0.1 becomes ``Decimal("0.1")`` rather
    than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Number) -> int:
    """Convert a major-unit price to the integer minor units the gateway expects."""
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CommissionSplit:
    total_amount: Decimal
    platform_fee: Decimal
    seller_amount: Decimal


def split_commission(total: Number, rate: Number) -> CommissionSplit:
    """Split *total* into platform fee and seller net for a commission *rate*.

    Raises
    ------
    ValueError
        If the total is negative or the rate is outside ``[0, 1]``.
    """
    total_amount = to_decimal(total)
    rate_value = Decimal(str(rate)) if isinstance(rate, float) else Decimal(rate)

    if total_amount < 0:
        raise ValueError(f"total must be non-negative, got {total_amount}")
    if not ZERO <= rate_value <= 1:
        raise ValueError(f"commission rate must be between 0 and 1, got {rate_value}")

    platform_fee = (total_amount * rate_value).quantize(CENT, rounding=ROUND_HALF_UP)
    seller_amount = total_amount - platform_fee
    return CommissionSplit(
        total_amount=total_amount,
        platform_fee=platform_fee,
        seller_amount=seller_amount,
    )


FREE_SPLIT = CommissionSplit(total_amount=ZERO, platform_fee=ZERO, seller_amount=ZERO)
