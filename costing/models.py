"""Data models for the tailoring cost and invoice engine.

This module defines line items, additive charges, tax and currency
settings, and the breakdown produced by the engine. Numeric fields are
coerced on construction so that half-typed form input never leaks
``NaN`` or ``Infinity`` into a total.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from . import currency as currencies

ZERO = Decimal('0')
HUNDRED = Decimal('100')

# Ceilings keep Decimal arithmetic clear of overflow for absurd entries.
MAX_AMOUNT = Decimal('1e15')
MAX_QUANTITY = 1_000_000

MATERIAL_CATEGORIES = (
    "Fabric & Main Materials",
    "Sewing Essentials",
    "Embellishments & Decorative Materials",
    "Cutting & Measuring Tools",
    "Sewing Tools & Equipment",
    "Stitching & Holding Accessories",
    "Support & Reinforcement Materials",
    "Packaging & Labeling Materials",
)


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Best-effort conversion to a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(',', '')
        for symbol in currencies.CURRENCY_SYMBOLS.values():
            text = text.replace(symbol, '')
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite():
        return None
    return number


def coerce_amount(value: Any) -> Decimal:
    """Coerce a cost or charge entry to a non-negative Decimal.

    Empty, non-numeric, non-finite and negative input all degrade to 0.
    """
    number = _to_decimal(value)
    if number is None or number < ZERO:
        return ZERO
    return min(number, MAX_AMOUNT)


def coerce_quantity(value: Any) -> int:
    """Coerce a quantity entry to a positive integer, defaulting to 1.

    Fractional entries are truncated, as a number input parsed with
    ``parseInt`` would be.
    """
    number = _to_decimal(value)
    if number is None or number < 1:
        return 1
    return int(min(number, Decimal(MAX_QUANTITY)))


def coerce_rate(value: Any) -> Decimal:
    """Coerce a tax rate entry to a percentage within 0-100."""
    number = _to_decimal(value)
    if number is None or number < ZERO:
        return ZERO
    return min(number, HUNDRED)


def coerce_category(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip() or None


def _new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass
class LineItem:
    """A single priced material, fabric or product row.

    Attributes:
        label: Display name (may be empty while being edited)
        unit_cost: Cost per unit in the base currency
        quantity: Number of units (yards for fabric)
        category: Material category, or None for order/invoice items
        id: Opaque identifier, stable for the editing session
    """
    label: str
    unit_cost: Decimal
    quantity: int = 1
    category: Optional[str] = None
    id: str = field(default_factory=_new_item_id)

    def __post_init__(self):
        self.label = "" if self.label is None else str(self.label)
        self.unit_cost = coerce_amount(self.unit_cost)
        self.quantity = coerce_quantity(self.quantity)
        self.category = coerce_category(self.category)
        self.id = str(self.id)

    @property
    def line_total(self) -> Decimal:
        # Fields are edited in place between computations; re-coerce.
        return coerce_amount(self.unit_cost) * coerce_quantity(self.quantity)


@dataclass
class AdditiveCharges:
    """Flat, quantity-independent add-ons to an order."""
    workmanship: Decimal = ZERO
    profit_margin: Decimal = ZERO
    shipping_or_handling: Decimal = ZERO

    def __post_init__(self):
        self.workmanship = coerce_amount(self.workmanship)
        self.profit_margin = coerce_amount(self.profit_margin)
        self.shipping_or_handling = coerce_amount(self.shipping_or_handling)


@dataclass
class TaxSpec:
    """Tax (VAT) settings.

    A disabled tax produces no tax line at all, which is different from
    an enabled tax at rate 0.
    """
    rate: Decimal = ZERO
    enabled: bool = False

    def __post_init__(self):
        self.rate = coerce_rate(self.rate)
        self.enabled = bool(self.enabled)


@dataclass(frozen=True)
class BreakdownOptions:
    """Which optional fields a flow includes.

    Attributes:
        include_shipping: Shipping/handling is shown and charged
        include_tax: A VAT line may be produced (still subject to
            ``TaxSpec.enabled``)
        tax_shipping: Shipping is part of the taxable base; when False it
            is added after tax
    """
    include_shipping: bool = True
    include_tax: bool = True
    tax_shipping: bool = True


@dataclass(frozen=True)
class CurrencyContext:
    """The display currency for a computation."""
    display_currency: str = currencies.BASE_CURRENCY

    def __post_init__(self):
        object.__setattr__(
            self,
            'display_currency',
            currencies.normalize_currency(self.display_currency),
        )

    @property
    def conversion_rate(self) -> Decimal:
        return currencies.get_conversion_rate(self.display_currency)


@dataclass(frozen=True)
class Money:
    """A base-currency amount together with its display rendition.

    Attributes:
        raw: Amount in the base currency
        display: Amount converted into the display currency (unrounded)
        formatted: Rounded, symbol-prefixed display string
        currency: Display currency code
    """
    raw: Decimal
    display: Decimal
    formatted: str
    currency: str

    @classmethod
    def from_raw(cls, raw: Decimal, currency: str) -> 'Money':
        display = currencies.convert(raw, currency)
        return cls(
            raw=raw,
            display=display,
            formatted=currencies.format_amount(display, currency),
            currency=currency,
        )

    def to_dict(self) -> dict:
        return {
            'raw': str(self.raw),
            'display': str(currencies.round_display(self.display)),
            'formatted': self.formatted,
        }


@dataclass(frozen=True)
class InvoiceBreakdown:
    """Fully itemized result of a cost computation.

    Attributes:
        category_totals: Category -> summed line totals, in order of first
            appearance; empty when no item is categorized
        items_subtotal: Sum of all line totals
        charges: Included additive charges by name (shipping is absent
            when hidden)
        additive_charges_total: Sum of included charges
        taxable_base: Amount the tax rate applies to
        tax_rate: Applied rate, or None when tax is disabled
        tax_amount: Tax, or None when tax is disabled
        grand_total: Final amount due
        currency: Display currency code
        untaxed_charges: Names of included charges added after tax
    """
    category_totals: dict[str, Money]
    items_subtotal: Money
    charges: dict[str, Money]
    additive_charges_total: Money
    taxable_base: Money
    tax_rate: Optional[Decimal]
    tax_amount: Optional[Money]
    grand_total: Money
    currency: str
    untaxed_charges: tuple[str, ...] = ()

    @property
    def tax_enabled(self) -> bool:
        return self.tax_amount is not None

    def to_dict(self) -> dict:
        """Convert the breakdown to a JSON-ready dictionary.

        Tax fields are left out entirely when tax is disabled, rather
        than reported as zero.
        """
        result = {
            'currency': self.currency,
            'conversion_rate': str(currencies.get_conversion_rate(self.currency)),
            'category_totals': {
                name: money.to_dict()
                for name, money in self.category_totals.items()
            },
            'items_subtotal': self.items_subtotal.to_dict(),
            'charges': {
                name: money.to_dict() for name, money in self.charges.items()
            },
            'additive_charges_total': self.additive_charges_total.to_dict(),
            'taxable_base': self.taxable_base.to_dict(),
            'untaxed_charges': list(self.untaxed_charges),
        }
        if self.tax_enabled:
            result['tax_rate'] = str(self.tax_rate)
            result['tax_amount'] = self.tax_amount.to_dict()
        result['grand_total'] = self.grand_total.to_dict()
        return result
