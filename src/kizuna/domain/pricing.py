"""Booking price arithmetic.

``total = unit_price * participants - discount + tax``

Amounts are rounded to cents. A negative result is a pricing error, not
a refund, and is reported as :class:`ValueError`.
"""

from __future__ import annotations


def booking_total(
    unit_price: float,
    participants: int,
    *,
    discount: float = 0.0,
    tax: float = 0.0,
) -> float:
    """Compute a booking total from its price components.

    Raises:
        ValueError: If any component is negative or the total falls below zero.

    Examples:
        >>> booking_total(100.0, 3)
        300.0
        >>> booking_total(100.0, 2, discount=20.0, tax=8.5)
        188.5
    """
    if unit_price < 0:
        raise ValueError("Unit price cannot be negative")
    if participants < 1:
        raise ValueError("Participants must be at least 1")
    if discount < 0 or tax < 0:
        raise ValueError("Discount and tax cannot be negative")

    total = round(unit_price * participants - discount + tax, 2)
    if total < 0:
        raise ValueError("Discount exceeds the booking subtotal")
    return total
