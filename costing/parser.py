"""Request payload parsing.

This module turns the loosely typed payloads sent by the order and invoice
forms into model objects. Numeric fields are sanitized rather than
rejected; only structural problems (wrong container types, unknown option
names) raise.
"""

import json
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from .currency import BASE_CURRENCY
from .models import (
    AdditiveCharges,
    BreakdownOptions,
    CurrencyContext,
    LineItem,
    TaxSpec,
)

OPTION_NAMES = frozenset(f.name for f in fields(BreakdownOptions))

# Field names used by the different screens for the same value.
LABEL_KEYS = ('label', 'name')
COST_KEYS = ('unit_cost', 'unitCost', 'cost', 'price', 'unitPrice')
CHARGE_KEYS = {
    'workmanship': ('workmanship',),
    'profit_margin': ('profit_margin', 'profitMargin', 'profit'),
    'shipping_or_handling': (
        'shipping_or_handling',
        'shippingOrHandling',
        'shippingCost',
        'handlingShipping',
    ),
}


def _first(data: dict, keys: tuple, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass
class BreakdownRequest:
    """Everything needed for one ``compute_breakdown`` call.

    Attributes:
        items: Parsed line items
        charges: Additive charges
        tax: Tax settings
        currency: Display currency
        flow: Named flow preset, if any
        option_overrides: Explicit per-field option values
    """
    items: list[LineItem] = field(default_factory=list)
    charges: AdditiveCharges = field(default_factory=AdditiveCharges)
    tax: TaxSpec = field(default_factory=TaxSpec)
    currency: CurrencyContext = field(default_factory=CurrencyContext)
    flow: Optional[str] = None
    option_overrides: dict[str, bool] = field(default_factory=dict)


class PayloadParser:
    """Parses breakdown requests from dictionaries and JSON."""

    def __init__(
        self,
        default_currency: str = BASE_CURRENCY,
        default_vat_rate: Any = 0,
    ):
        self.default_currency = default_currency
        self.default_vat_rate = default_vat_rate

    def parse_dict(self, data: dict[str, Any]) -> BreakdownRequest:
        """Parse a breakdown request from a dictionary.

        Args:
            data: Dictionary with optional keys:
                - items: List of line item dicts
                - charges: Dict of workmanship / profit / shipping values
                - tax: Dict with ``rate`` and ``enabled``
                - currency: Display currency code
                - flow: Name of a flow preset
                - options: Dict of boolean option overrides

        Returns:
            A BreakdownRequest.

        Raises:
            ValueError: If the payload is structurally invalid.
            InvalidCurrencyError: If the currency is not supported.
        """
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")

        flow = data.get('flow')
        if flow is not None and not isinstance(flow, str):
            raise ValueError("flow must be a string")

        return BreakdownRequest(
            items=self._parse_line_items(data.get('items') or []),
            charges=self._parse_charges(data.get('charges') or {}),
            tax=self._parse_tax(data.get('tax') or {}),
            currency=CurrencyContext(
                data.get('currency') or self.default_currency
            ),
            flow=flow or None,
            option_overrides=self._parse_options(data.get('options') or {}),
        )

    def parse_json(self, json_str: str) -> BreakdownRequest:
        """Parse a breakdown request from a JSON string.

        Raises:
            ValueError: If the JSON is invalid or structurally wrong.
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e

        return self.parse_dict(data)

    def _parse_line_items(self, items_data: Any) -> list[LineItem]:
        if not isinstance(items_data, list):
            raise ValueError("items must be a list")

        line_items = []
        for index, item in enumerate(items_data):
            if not isinstance(item, dict):
                raise ValueError(f"items[{index}] must be an object")
            kwargs = dict(
                label=_first(item, LABEL_KEYS, ''),
                unit_cost=_first(item, COST_KEYS),
                quantity=item.get('quantity'),
                category=item.get('category'),
            )
            if item.get('id') is not None:
                kwargs['id'] = item['id']
            line_items.append(LineItem(**kwargs))

        return line_items

    @staticmethod
    def _parse_charges(charges_data: Any) -> AdditiveCharges:
        if not isinstance(charges_data, dict):
            raise ValueError("charges must be an object")
        return AdditiveCharges(**{
            name: _first(charges_data, keys)
            for name, keys in CHARGE_KEYS.items()
        })

    def _parse_tax(self, tax_data: Any) -> TaxSpec:
        if not isinstance(tax_data, dict):
            raise ValueError("tax must be an object")
        return TaxSpec(
            rate=tax_data.get('rate', self.default_vat_rate),
            enabled=tax_data.get('enabled') is True,
        )

    @staticmethod
    def _parse_options(options_data: Any) -> dict[str, bool]:
        """Validate option overrides.

        Unknown names and non-boolean values are rejected so that a typo
        can never silently switch a charge off.
        """
        if not isinstance(options_data, dict):
            raise ValueError("options must be an object")

        unknown = sorted(set(options_data) - OPTION_NAMES)
        if unknown:
            raise ValueError(f"Unknown options: {', '.join(unknown)}")

        for name, value in options_data.items():
            if not isinstance(value, bool):
                raise ValueError(f"Option {name} must be true or false")

        return dict(options_data)
