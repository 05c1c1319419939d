from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Tuple, Union

from app.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, str, int]


def to_money(value: MoneyLike) -> Decimal:
    """Parse a price into a Decimal with exactly two places.

    Floats are rejected on purpose; callers hand over strings or Decimals.
    """
    if isinstance(value, float):
        raise TypeError("Money values must not be floats")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValidationError(f"Invalid amount: {value!r}")
        # Raises InvalidOperation when the amount has more digits than the context allows
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")


def line_subtotal(unit_price: MoneyLike, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * quantity)


def sum_lines(lines: Iterable[Tuple[MoneyLike, int]]) -> Decimal:
    """Total of (unit_price, quantity) pairs, accumulated in Decimal."""
    total = ZERO
    for unit_price, quantity in lines:
        total += line_subtotal(unit_price, quantity)
    return to_money(total)


def format_amount(amount: MoneyLike) -> str:
    """Human readable amount with thousands separators and no cents, e.g. 2,500."""
    value = to_money(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{value:,}"
