from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from engine.exceptions import ValidationError

CENTS = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round to whole cents. Only used at display and storage boundaries."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, symbol: str = "$") -> str:
    """Format an amount as currency string, e.g. '$1,234.56'."""
    value = to_cents(amount)
    if value < 0:
        return f"-{symbol}{abs(value):,.2f}"
    return f"{symbol}{value:,.2f}"


def format_signed(amount: Decimal, symbol: str = "$") -> str:
    """Format with +/- sign."""
    value = to_cents(amount)
    sign = "+" if value >= 0 else "-"
    return f"{sign}{symbol}{abs(value):,.2f}"


def to_decimal(value) -> Decimal:
    """Convert a stored or user-entered amount without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def parse_amount(value, record_id=None, label: str = "amount") -> Decimal:
    """Parse a user-entered amount. NaN and infinities are rejected."""
    try:
        amount = to_decimal(value)
    except InvalidOperation:
        raise ValidationError(f"Invalid {label} {value!r}.", record_id)
    if not amount.is_finite():
        raise ValidationError(f"Invalid {label} {value!r}.", record_id)
    return amount
