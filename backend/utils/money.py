"""Fixed-point money helpers. Amounts are Decimals quantized to cents."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from utils.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Currency symbols for formatting
CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "CA$",
}


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value) -> Decimal:
    """
    Parse a monetary amount into a Decimal with two places.

    Strings such as "12.50" are the expected input. Floats go through str()
    first so their binary representation never leaks into the ledger.

    Raises:
        ValidationError: if the value is empty, not numeric or not finite.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"Invalid amount: {value!r}")
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"Invalid amount: {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return quantize(amount)


def share_of(amount: Decimal, percentage: int) -> Decimal:
    """A member's share of an amount for an integer percentage."""
    return quantize(amount * Decimal(percentage) / Decimal(100))


def to_storage(amount: Decimal) -> str:
    """Amounts are stored as decimal strings."""
    return str(quantize(amount))


def format_amount(amount: Decimal, currency: str = "USD") -> str:
    """
    Format an amount with its currency symbol.

    Examples:
        format_amount(Decimal("12.3")) -> "$12.30"
        format_amount(Decimal("-5"), "EUR") -> "-€5.00"
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    amount = quantize(amount)
    if amount < 0:
        return f"-{symbol}{abs(amount)}"
    return f"{symbol}{amount}"
