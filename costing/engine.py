"""Cost and invoice total computation.

``compute_breakdown`` is the single pure function every flow (standalone
cost calculator, order wizard, order edit, invoice generator) uses to turn
line items, additive charges and a tax setting into an itemized breakdown.
``InvoiceCalculator`` layers the per-flow presets, the text summary and the
save payload on top of it.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Optional, Union

from .models import (
    HUNDRED,
    ZERO,
    AdditiveCharges,
    BreakdownOptions,
    CurrencyContext,
    InvoiceBreakdown,
    LineItem,
    Money,
    TaxSpec,
    coerce_amount,
    coerce_category,
    coerce_quantity,
    coerce_rate,
)

logger = logging.getLogger(__name__)

WORKMANSHIP = 'workmanship'
PROFIT_MARGIN = 'profit_margin'
SHIPPING_OR_HANDLING = 'shipping_or_handling'

CHARGE_LABELS = {
    WORKMANSHIP: "Workmanship",
    PROFIT_MARGIN: "Profit",
    SHIPPING_OR_HANDLING: "Handling & Shipping",
}

# One entry per screen that historically computed its own totals.
FLOW_PRESETS: dict[str, BreakdownOptions] = {
    'costing': BreakdownOptions(),
    'costing_no_vat': BreakdownOptions(include_tax=False),
    'order_wizard': BreakdownOptions(include_shipping=False, include_tax=False),
    'order_edit': BreakdownOptions(tax_shipping=False),
    'invoice': BreakdownOptions(include_tax=False),
}

CurrencyArg = Union[CurrencyContext, str, None]


class UnknownFlowError(ValueError):
    """Raised when a flow name has no preset."""


def _currency_context(currency: CurrencyArg) -> CurrencyContext:
    if isinstance(currency, CurrencyContext):
        return currency
    if currency is None:
        return CurrencyContext()
    return CurrencyContext(currency)


def compute_breakdown(
    items: Iterable[LineItem],
    charges: Optional[AdditiveCharges] = None,
    tax: Optional[TaxSpec] = None,
    currency: CurrencyArg = None,
    options: Optional[BreakdownOptions] = None,
) -> InvoiceBreakdown:
    """Compute the itemized cost breakdown for a set of line items.

    Args:
        items: Line items; may be empty.
        charges: Workmanship, profit margin and shipping. Defaults to zero.
        tax: Tax settings. Defaults to no tax.
        currency: Display currency code or context. Defaults to USD.
        options: Which optional fields the calling flow includes.

    Returns:
        An InvoiceBreakdown. Inputs are never mutated.

    Raises:
        InvalidCurrencyError: If the display currency is not supported.
    """
    charges = charges if charges is not None else AdditiveCharges()
    tax = tax if tax is not None else TaxSpec()
    options = options if options is not None else BreakdownOptions()
    code = _currency_context(currency).display_currency

    category_totals: dict[str, Decimal] = {}
    items_subtotal = ZERO
    for item in items:
        line_total = item.line_total
        items_subtotal += line_total
        category = coerce_category(item.category)
        if category is not None:
            category_totals[category] = (
                category_totals.get(category, ZERO) + line_total
            )

    shipping = coerce_amount(charges.shipping_or_handling)
    included = {
        WORKMANSHIP: coerce_amount(charges.workmanship),
        PROFIT_MARGIN: coerce_amount(charges.profit_margin),
    }
    if options.include_shipping:
        included[SHIPPING_OR_HANDLING] = shipping
    additive_total = sum(included.values(), ZERO)

    untaxed_charges = ()
    untaxed = ZERO
    if options.include_shipping and not options.tax_shipping:
        untaxed_charges = (SHIPPING_OR_HANDLING,)
        untaxed = shipping
    taxable_base = items_subtotal + additive_total - untaxed

    tax_rate = coerce_rate(tax.rate)
    tax_applies = bool(tax.enabled) and options.include_tax
    tax_amount = taxable_base * tax_rate / HUNDRED if tax_applies else ZERO
    grand_total = taxable_base + tax_amount + untaxed

    logger.debug(
        "Computed breakdown: %d categories, subtotal=%s, total=%s %s",
        len(category_totals), items_subtotal, grand_total, code,
    )

    def money(raw: Decimal) -> Money:
        return Money.from_raw(raw, code)

    return InvoiceBreakdown(
        category_totals={
            name: money(total) for name, total in category_totals.items()
        },
        items_subtotal=money(items_subtotal),
        charges={name: money(value) for name, value in included.items()},
        additive_charges_total=money(additive_total),
        taxable_base=money(taxable_base),
        tax_rate=tax_rate if tax_applies else None,
        tax_amount=money(tax_amount) if tax_applies else None,
        grand_total=money(grand_total),
        currency=code,
        untaxed_charges=untaxed_charges,
    )


class InvoiceCalculator:
    """Computes breakdowns for the individual order and invoice flows.

    The calculator holds no state; it exists so that every flow resolves
    its options, renders its summary and builds its save payload the
    same way.
    """

    def options_for(self, flow: str) -> BreakdownOptions:
        """Return the preset options for a named flow.

        Raises:
            UnknownFlowError: If the flow is unknown.
        """
        try:
            return FLOW_PRESETS[flow]
        except KeyError:
            raise UnknownFlowError(f"Unknown flow: {flow!r}") from None

    def resolve_options(
        self,
        flow: Optional[str] = None,
        overrides: Optional[dict] = None,
    ) -> BreakdownOptions:
        """Combine a flow preset with explicit per-field overrides."""
        options = self.options_for(flow) if flow else BreakdownOptions()
        if overrides:
            options = replace(options, **overrides)
        return options

    def compute(
        self,
        items: Iterable[LineItem],
        charges: Optional[AdditiveCharges] = None,
        tax: Optional[TaxSpec] = None,
        currency: CurrencyArg = None,
        flow: Optional[str] = None,
    ) -> InvoiceBreakdown:
        return compute_breakdown(
            items, charges, tax, currency, self.resolve_options(flow)
        )

    def to_save_payload(
        self,
        items: list[LineItem],
        charges: AdditiveCharges,
        breakdown: InvoiceBreakdown,
    ) -> dict:
        """Build the record stored alongside an order or invoice.

        ``overallCost`` is the breakdown's grand total in the base
        currency, so a saved order never disagrees with what was shown.
        """
        return {
            'items': [
                {
                    'id': item.id,
                    'name': item.label,
                    'cost': str(coerce_amount(item.unit_cost)),
                    'quantity': coerce_quantity(item.quantity),
                    'category': coerce_category(item.category),
                }
                for item in items
            ],
            'workmanship': str(coerce_amount(charges.workmanship)),
            'profitMargin': str(coerce_amount(charges.profit_margin)),
            'overallCost': str(breakdown.grand_total.raw),
            'breakdown': breakdown.to_dict(),
        }

    def get_formatted_summary(
        self,
        breakdown: InvoiceBreakdown,
        items: Iterable[LineItem] = (),
    ) -> str:
        """Generate a plain-text cost summary.

        Args:
            breakdown: A breakdown returned by ``compute_breakdown``.
            items: The line items it was computed from, listed with their
                individual subtotals when given.

        Returns:
            Multi-line summary. The VAT line appears only when tax is
            enabled; shipping only when the flow includes it.
        """
        code = breakdown.currency
        lines = [
            f"Cost Summary ({code})",
            "=" * 50,
        ]

        items = list(items)
        if items:
            lines.append("Items:")
            lines.append("-" * 50)
            for index, item in enumerate(items, start=1):
                subtotal = Money.from_raw(item.line_total, code)
                lines.append(
                    f"  {index}. {item.label or '(unnamed)'}: "
                    f"{coerce_quantity(item.quantity)} x "
                    f"{Money.from_raw(coerce_amount(item.unit_cost), code).formatted} = "
                    f"{subtotal.formatted}"
                )
            lines.append("")

        if breakdown.category_totals:
            lines.append("Category Totals:")
            lines.append("-" * 50)
            for name, total in breakdown.category_totals.items():
                lines.append(f"  {name}: {total.formatted}")
            lines.append("")

        lines.append(f"Material Cost: {breakdown.items_subtotal.formatted}")
        untaxed = breakdown.untaxed_charges
        for name, value in breakdown.charges.items():
            if name not in untaxed:
                lines.append(f"{CHARGE_LABELS[name]}: {value.formatted}")
        lines.append("-" * 50)
        subtotal_label = "Taxable Subtotal" if untaxed else "Subtotal"
        lines.append(f"{subtotal_label}: {breakdown.taxable_base.formatted}")
        if breakdown.tax_enabled:
            lines.append(
                f"VAT ({breakdown.tax_rate.normalize():f}%): "
                f"{breakdown.tax_amount.formatted}"
            )
        # Untaxed charges are listed after the tax line.
        for name in untaxed:
            lines.append(
                f"{CHARGE_LABELS[name]}: {breakdown.charges[name].formatted}"
            )
        lines.append(f"Total Price: {breakdown.grand_total.formatted}")

        return "\n".join(lines)
