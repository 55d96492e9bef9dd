"""Tests for cost engine data models."""

from decimal import Decimal

import pytest

from costing.currency import InvalidCurrencyError
from costing.models import (
    MAX_AMOUNT,
    MAX_QUANTITY,
    AdditiveCharges,
    BreakdownOptions,
    CurrencyContext,
    LineItem,
    Money,
    TaxSpec,
    coerce_amount,
    coerce_quantity,
    coerce_rate,
)


class TestCoercion:
    """Tests for numeric input sanitization."""

    @pytest.mark.parametrize("value", ["", "   ", "abc", None, "1.2.3", [], True])
    def test_malformed_amount_is_zero(self, value):
        """Test that unparseable amounts degrade to zero."""
        assert coerce_amount(value) == Decimal('0')

    @pytest.mark.parametrize("value", [float('nan'), float('inf'), "NaN", "-Infinity"])
    def test_non_finite_amount_is_zero(self, value):
        """Test that NaN and Infinity never survive coercion."""
        assert coerce_amount(value) == Decimal('0')

    def test_negative_amount_is_zero(self):
        """Test negative costs are clamped."""
        assert coerce_amount(-5) == Decimal('0')
        assert coerce_amount("-12.50") == Decimal('0')

    def test_amount_with_symbols_and_commas(self):
        """Test parsing amounts typed with currency symbols."""
        assert coerce_amount("$1,234.50") == Decimal('1234.50')
        assert coerce_amount("₦10,000") == Decimal('10000')

    def test_amount_numeric_types(self):
        """Test int, float and Decimal input."""
        assert coerce_amount(100) == Decimal('100')
        assert coerce_amount(99.99) == Decimal('99.99')
        assert coerce_amount(Decimal('42.50')) == Decimal('42.50')

    def test_huge_amount_is_capped(self):
        """Test absurd entries are capped instead of overflowing."""
        assert coerce_amount("1e999999999") == MAX_AMOUNT

    @pytest.mark.parametrize("value", ["", None, "abc", 0, -3, "-1", "0.5"])
    def test_quantity_defaults_to_one(self, value):
        """Test missing and non-positive quantities become 1."""
        assert coerce_quantity(value) == 1

    def test_quantity_truncates_fractions(self):
        """Test fractional quantities are truncated."""
        assert coerce_quantity("2.7") == 2
        assert coerce_quantity(3.99) == 3

    def test_quantity_is_capped(self):
        """Test absurd quantities are capped."""
        assert coerce_quantity("1e50") == MAX_QUANTITY

    def test_rate_is_clamped(self):
        """Test tax rates are kept within 0-100."""
        assert coerce_rate("7.5") == Decimal('7.5')
        assert coerce_rate(-1) == Decimal('0')
        assert coerce_rate(250) == Decimal('100')
        assert coerce_rate("") == Decimal('0')


class TestLineItem:
    """Tests for LineItem model."""

    def test_create_line_item(self):
        """Test creating a basic line item."""
        item = LineItem(label="Lace", unit_cost=Decimal('5000'), quantity=2,
                        category="Fabric & Main Materials")

        assert item.label == "Lace"
        assert item.unit_cost == Decimal('5000')
        assert item.quantity == 2
        assert item.category == "Fabric & Main Materials"
        assert item.line_total == Decimal('10000')

    def test_line_item_defaults(self):
        """Test quantity and category defaults and generated id."""
        item = LineItem(label="Button", unit_cost=50)

        assert item.quantity == 1
        assert item.category is None
        assert item.id

    def test_ids_are_unique(self):
        """Test generated ids differ between items."""
        assert LineItem("A", 1).id != LineItem("A", 1).id

    def test_malformed_input_is_sanitized(self):
        """Test half-typed form input never produces NaN."""
        item = LineItem(label=None, unit_cost="", quantity="")

        assert item.label == ""
        assert item.unit_cost == Decimal('0')
        assert item.quantity == 1
        assert item.line_total == Decimal('0')

    def test_blank_category_is_none(self):
        """Test an empty category counts as uncategorized."""
        assert LineItem("A", 1, category="  ").category is None


class TestChargesAndTax:
    """Tests for AdditiveCharges and TaxSpec."""

    def test_charges_default_to_zero(self):
        """Test all charges default to zero."""
        charges = AdditiveCharges()

        assert charges.workmanship == Decimal('0')
        assert charges.profit_margin == Decimal('0')
        assert charges.shipping_or_handling == Decimal('0')

    def test_charges_are_sanitized(self):
        """Test malformed charges degrade to zero."""
        charges = AdditiveCharges(workmanship="abc", profit_margin=-10,
                                  shipping_or_handling="1500")

        assert charges.workmanship == Decimal('0')
        assert charges.profit_margin == Decimal('0')
        assert charges.shipping_or_handling == Decimal('1500')

    def test_tax_defaults_to_disabled(self):
        """Test tax is off unless enabled."""
        tax = TaxSpec()

        assert tax.enabled is False
        assert tax.rate == Decimal('0')

    def test_options_default_to_all_included(self):
        """Test default options include every field."""
        options = BreakdownOptions()

        assert options.include_shipping is True
        assert options.include_tax is True
        assert options.tax_shipping is True


class TestCurrencyContext:
    """Tests for CurrencyContext and Money."""

    def test_default_currency(self):
        """Test the base currency is the default."""
        ctx = CurrencyContext()

        assert ctx.display_currency == "USD"
        assert ctx.conversion_rate == Decimal('1')

    def test_currency_code_is_normalized(self):
        """Test lower-case codes are accepted."""
        assert CurrencyContext("ngn").display_currency == "NGN"

    def test_unknown_currency_raises(self):
        """Test unsupported currencies fail loudly."""
        with pytest.raises(InvalidCurrencyError):
            CurrencyContext("EUR")

    def test_money_from_raw(self):
        """Test converting a raw amount for display."""
        money = Money.from_raw(Decimal('26875'), "NGN")

        assert money.raw == Decimal('26875')
        assert money.display == Decimal('26875') * 1650
        assert money.formatted == "₦44,343,750.00"

    def test_money_to_dict(self):
        """Test the JSON projection of an amount."""
        money = Money.from_raw(Decimal('10.005'), "USD")

        assert money.to_dict() == {
            'raw': '10.005',
            'display': '10.01',
            'formatted': '$10.01',
        }
