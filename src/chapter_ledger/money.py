"""Integer-cent conversion helpers.

Every amount entering the ledger core is converted to an integer number of
minor units (cents) here, and converted back to a 2-dp Decimal only on the way
out. No arithmetic in the core happens on Decimal or float values.
"""

from decimal import ROUND_HALF_UP, Decimal

CENTS_PER_UNIT = 100
CENT = Decimal("0.01")

# A balance whose magnitude is below this many cents counts as settled.
SETTLED_EPSILON_CENTS = 1

# Custom split shares may differ from the expense total by at most this much.
SPLIT_TOLERANCE_CENTS = 1


def to_cents(amount: Decimal | int | str | float) -> int:
    """
    Convert a currency amount to integer cents.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Amount in currency units (floats are converted via str())

    Returns:
        Amount in cents (integer)
    """
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    cents = amount * CENTS_PER_UNIT
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a Decimal with exactly 2 decimal places."""
    return (Decimal(cents) / CENTS_PER_UNIT).quantize(CENT)


def is_settled(cents: int) -> bool:
    """True if a balance in cents is zero within the settlement epsilon."""
    return abs(cents) < SETTLED_EPSILON_CENTS


def member_sort_key(member_id: int | str) -> tuple[int, int | str]:
    """
    Stable ordering key for opaque member ids.

    Integer ids sort numerically and before string ids, which sort
    lexicographically. Mixed id types therefore never compare directly.
    """
    if isinstance(member_id, int):
        return (0, member_id)
    return (1, str(member_id))


def is_whole_cents(amount: Decimal | int | str | float) -> bool:
    """True if an amount has no precision below one cent."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount == amount.quantize(CENT)
