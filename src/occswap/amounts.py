"""Token amount conversion.

Amounts typed by the user are human readable (``1.5``). The swap API and
the chain expect integers in the token's smallest unit (yoctoNEAR for
NEAR, 24 decimals). Conversion goes through ``Decimal`` and ``int`` so
no float rounding or exponent notation leaks into the result.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Union

from occswap.errors import OccSwapError

AmountLike = Union[Decimal, int, float, str]


class InvalidAmountError(OccSwapError, ValueError):
    """Raised when an amount cannot be converted."""
    pass


def parse_amount(value: AmountLike) -> Decimal:
    """Parse a user supplied amount into a finite, non-negative Decimal."""
    if isinstance(value, Decimal):
        amount = value
    else:
        # str() of a float is its shortest repr, so 0.1 stays 0.1
        text = str(value).strip()
        # Decimal() accepts "1_000"; amounts are plain digits only
        if "_" in text:
            raise InvalidAmountError(f"Invalid amount: {value!r}")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(f"Invalid amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"Amount must be a finite number, got {value!r}")
    if amount < 0:
        raise InvalidAmountError(f"Amount must not be negative, got {value!r}")
    return amount


def to_smallest_unit(amount: AmountLike, decimals: int) -> str:
    """Convert a human readable amount to an integer string in smallest units.

    Args:
        amount: Amount in token units (e.g. ``Decimal("1.5")``)
        decimals: Token decimal precision

    Returns:
        Digits only, no leading zeros ("0" for zero)

    Raises:
        InvalidAmountError: For negative or non-finite amounts and
            negative precision
    """
    if decimals < 0:
        raise InvalidAmountError(f"Decimals must not be negative, got {decimals}")

    value = parse_amount(amount)

    with localcontext() as ctx:
        # quantize fails once the result needs more digits than prec
        ctx.prec = max(ctx.prec, value.adjusted() + decimals + 2)
        quantum = Decimal(1).scaleb(-decimals)
        fixed = format(value.quantize(quantum, rounding=ROUND_HALF_UP), "f")

    whole, _, fraction = fixed.partition(".")
    fraction = fraction.ljust(decimals, "0")[:decimals]

    return str(int((whole or "0") + fraction))


def from_smallest_unit(raw: Union[str, int], decimals: int) -> Decimal:
    """Convert an integer amount in smallest units back to token units."""
    try:
        units = int(raw)
    except (TypeError, ValueError):
        raise InvalidAmountError(f"Invalid integer amount: {raw!r}")

    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(abs(units))) + 2)
        return Decimal(units).scaleb(-decimals)
