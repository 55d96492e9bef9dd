"""Currency table and display helpers.

All computation happens in the base currency (USD). Display values are
obtained by multiplying with a fixed conversion constant; rates are never
fetched or configured at runtime, so supporting a new currency means adding
a row to ``CONVERSION_RATES`` and ``CURRENCY_SYMBOLS``.
"""

from decimal import ROUND_HALF_UP, Decimal

BASE_CURRENCY = "USD"

CONVERSION_RATES: dict[str, Decimal] = {
    "USD": Decimal('1'),
    "NGN": Decimal('1650'),
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "NGN": "₦",
}

DISPLAY_PLACES = 2
DISPLAY_QUANTUM = Decimal('1').scaleb(-DISPLAY_PLACES)


class InvalidCurrencyError(ValueError):
    """Raised when asked to convert into a currency outside the table."""

    def __init__(self, currency):
        self.currency = currency
        supported = ", ".join(CONVERSION_RATES)
        super().__init__(
            f"Unsupported currency: {currency!r} (supported: {supported})"
        )


def normalize_currency(currency) -> str:
    """Return the canonical upper-case code for a supported currency.

    Raises:
        InvalidCurrencyError: If the code is not in the conversion table.
    """
    if not isinstance(currency, str):
        raise InvalidCurrencyError(currency)
    code = currency.strip().upper()
    if code not in CONVERSION_RATES:
        raise InvalidCurrencyError(currency)
    return code


def get_conversion_rate(currency: str) -> Decimal:
    return CONVERSION_RATES[normalize_currency(currency)]


def convert(amount: Decimal, currency: str) -> Decimal:
    """Convert a base-currency amount into ``currency`` without rounding."""
    return amount * get_conversion_rate(currency)


def to_base(amount: Decimal, currency: str) -> Decimal:
    """Convert a display-currency amount back into the base currency."""
    return amount / get_conversion_rate(currency)


def round_display(amount: Decimal) -> Decimal:
    return amount.quantize(DISPLAY_QUANTUM, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal, currency: str) -> str:
    """Format an already-converted amount, e.g. ``₦44,343,750.00``."""
    code = normalize_currency(currency)
    return f"{CURRENCY_SYMBOLS[code]}{round_display(amount):,.{DISPLAY_PLACES}f}"
