"""Integer money helpers.

Prices are stored and computed as int cents (10.00 -> 1000); never float.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def validate_price_cents(price_cents: int) -> None:
    """Listing prices may be zero (giveaways) but never negative."""
    if price_cents < 0:
        raise ValueError(f"Price must be non-negative, got {price_cents} cents")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 1000 -> '$10.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def decimal_to_cents(amount: Decimal | str) -> int:
    """'10.00' -> 1000. Rounds half-up to the cent."""
    try:
        value = Decimal(amount)
    except InvalidOperation as exc:
        raise ValueError(f"Not a decimal amount: {amount!r}") from exc
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
