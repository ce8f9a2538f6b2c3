"""
Money unit conversion between decimal currency amounts and integer cents.

Every balance and amount inside the core is an integer number of minor units
(cents). Floating point never touches money arithmetic: $19.99 is 1999, not
1998.9999999999998 rounded one way or the other.

Decimal amounts only exist at the edges, where users type "19.99" or a legacy
field holds a decimal. amount_to_cents() is the single way in; cents_to_amount()
is the single way out, used for display only.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def amount_to_cents(amount: Decimal | str | int | float) -> int:
    """
    Convert a decimal currency amount to integer cents, rounding half-up.

    Strings and ints are parsed exactly. A float is first turned into its
    shortest repr string, so 19.99 is read as "19.99" rather than as the
    binary value 19.989999999999998436805981327779591083526611328125.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(amount, float):
        amount = repr(amount)
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid currency amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid currency amount: {amount!r}")

    return int(value.quantize(CENT, rounding=ROUND_HALF_UP) * 100)


def cents_to_amount(cents: int | None) -> Decimal:
    """Convert integer cents back to a two-place Decimal (display only)."""
    return Decimal(cents or 0).scaleb(-2).quantize(CENT)
