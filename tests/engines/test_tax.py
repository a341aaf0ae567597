"""
Tests for the Tax Engine.

Covers:
- VAT, withholding and exempt line calculation
- Unknown tax codes (pass-through and strict mode)
- Invoice aggregation
- Edge cases: zero quantity, fractional values, empty invoice
"""

from decimal import Decimal

import pytest

from tax_engines.tax import (
    InvoiceTotals,
    aggregate_invoice,
    calculate_line_item,
    calculate_line_items,
    compute_tax_amounts,
)
from tax_kernel.domain.line_item import LineItem
from tax_kernel.domain.tax_codes import TaxCode, TaxType
from tax_kernel.domain.values import Money
from tax_kernel.exceptions import (
    AmountOutOfRangeError,
    CurrencyMismatchError,
    UnknownTaxCodeError,
)


def rwf(amount) -> Money:
    return Money.of(str(amount), "RWF")


class TestCalculateLineItem:
    """Tests for single line calculation against the shipped catalog."""

    def test_vat_line(self, tax_codes, make_item):
        """2 x 500,000 at VAT 18%."""
        item = make_item(tax_code_id="VAT_18", quantity="2", unit_price="500000")

        result = calculate_line_item(item, tax_codes)

        assert result.amount == rwf(1000000)
        assert result.vat_amount == rwf(180000)
        assert result.wht_amount == rwf(0)

    def test_withholding_line(self, tax_codes, make_item):
        """1 x 2,000,000 at WHT 15%."""
        item = make_item(tax_code_id="WHT_15", quantity="1", unit_price="2000000")

        result = calculate_line_item(item, tax_codes)

        assert result.amount == rwf(2000000)
        assert result.vat_amount == rwf(0)
        assert result.wht_amount == rwf(300000)

    def test_zero_rated_vat(self, tax_codes, make_item):
        item = make_item(tax_code_id="VAT_0", quantity="3", unit_price="1000")

        result = calculate_line_item(item, tax_codes)

        assert result.amount == rwf(3000)
        assert result.vat_amount.is_zero
        assert result.wht_amount.is_zero

    def test_exempt_line(self, tax_codes, make_item):
        item = make_item(tax_code_id="VAT_EXEMPT", quantity="1", unit_price="50000")

        result = calculate_line_item(item, tax_codes)

        assert result.amount == rwf(50000)
        assert result.vat_amount.is_zero
        assert result.wht_amount.is_zero

    def test_exempt_ignores_stored_rate(self, custom_tax_codes, make_item):
        """An EXEMPT code with a non-zero rate still taxes nothing."""
        item = make_item(tax_code_id="EXEMPT_X", quantity="1", unit_price="1000")

        result = calculate_line_item(item, custom_tax_codes)

        assert result.vat_amount.is_zero
        assert result.wht_amount.is_zero

    def test_zero_quantity(self, tax_codes, make_item):
        item = make_item(tax_code_id="VAT_18", quantity="0", unit_price="500000")

        result = calculate_line_item(item, tax_codes)

        assert result.amount.is_zero
        assert result.vat_amount.is_zero

    def test_fractional_values_not_rounded(self, custom_tax_codes, make_item):
        """1.5 x 333 at 10% keeps full precision."""
        item = make_item(tax_code_id="VAT_10", quantity="1.5", unit_price="333")

        result = calculate_line_item(item, custom_tax_codes)

        assert result.amount.amount == Decimal("499.5")
        assert result.vat_amount.amount == Decimal("49.95")

    def test_inputs_preserved(self, tax_codes, make_item):
        item = LineItem.create(
            "7", "VAT_18", "RWF", description="Consulting", quantity=2, unit_price=10
        )

        result = calculate_line_item(item, tax_codes)

        assert result.id == "7"
        assert result.description == "Consulting"
        assert result.quantity == Decimal("2")
        assert result.unit_price == rwf(10)
        assert result.tax_code_id == "VAT_18"

    def test_input_not_mutated(self, tax_codes, make_item):
        item = make_item(tax_code_id="VAT_18", quantity="2", unit_price="500000")

        calculate_line_item(item, tax_codes)

        assert item.amount.is_zero
        assert item.vat_amount.is_zero

    def test_stale_derived_values_replaced(self, tax_codes, make_item):
        """Amounts left over from an earlier tax code are recomputed."""
        item = make_item(tax_code_id="VAT_18", quantity="1", unit_price="1000")
        item = calculate_line_item(item, tax_codes)
        assert item.vat_amount == rwf(180)

        switched = calculate_line_item(
            item.with_changes(tax_code_id="WHT_5"), tax_codes
        )

        assert switched.vat_amount.is_zero
        assert switched.wht_amount == rwf(50)

    def test_usd_line(self, tax_codes):
        item = LineItem.create("1", "VAT_18", "USD", quantity=3, unit_price="19.99")

        result = calculate_line_item(item, tax_codes)

        assert result.amount == Money.of("59.97", "USD")
        assert result.vat_amount == Money.of("10.7946", "USD")


class TestUnknownTaxCode:
    """Unknown tax codes pass through unless strict."""

    def test_pass_through_returns_item_unchanged(self, tax_codes, make_item):
        item = make_item(tax_code_id="NOPE", quantity="2", unit_price="500000")

        result = calculate_line_item(item, tax_codes)

        assert result is item
        assert result.amount.is_zero

    def test_pass_through_keeps_previous_values(self, tax_codes, make_item):
        item = make_item(tax_code_id="NOPE", quantity="1", unit_price="100")
        item = item.with_derived(rwf(100), rwf(18), rwf(0))

        result = calculate_line_item(item, tax_codes)

        assert result.vat_amount == rwf(18)

    def test_pass_through_logs_warning(self, tax_codes, make_item, captured_logs):
        calculate_line_item(make_item(tax_code_id="NOPE"), tax_codes)

        records = [r for r in captured_logs() if r["message"] == "tax_code_not_found"]
        assert len(records) == 1
        assert records[0]["level"] == "WARNING"
        assert records[0]["tax_code"] == "NOPE"
        assert "VAT_18" in records[0]["available_codes"]

    def test_strict_raises(self, tax_codes, make_item):
        item = make_item(item_id="4", tax_code_id="NOPE")

        with pytest.raises(UnknownTaxCodeError) as exc_info:
            calculate_line_item(item, tax_codes, strict=True)

        assert exc_info.value.tax_code_id == "NOPE"
        assert exc_info.value.line_item_id == "4"
        assert exc_info.value.code == "UNKNOWN_TAX_CODE"
        assert "WHT_15" in exc_info.value.available_codes

    def test_empty_catalog(self, make_item):
        item = make_item(tax_code_id="VAT_18", quantity="1", unit_price="100")
        assert calculate_line_item(item, {}) is item


class TestComputeTaxAmounts:

    def test_vat(self):
        code = TaxCode("VAT_18", "VAT 18%", Decimal("18"), TaxType.VAT)
        assert compute_tax_amounts(rwf(1000), code) == (rwf(180), rwf(0))

    def test_wht(self):
        code = TaxCode("WHT_15", "WHT 15%", Decimal("15"), TaxType.WHT)
        assert compute_tax_amounts(rwf(1000), code) == (rwf(0), rwf(150))


class TestAggregateInvoice:
    """Tests for invoice totals."""

    def test_mixed_invoice(self, tax_codes, make_item):
        """VAT line plus WHT line: WHT reduces the total."""
        items = calculate_line_items([
            make_item("1", "VAT_18", "2", "500000"),
            make_item("2", "WHT_15", "1", "2000000"),
        ], tax_codes)

        totals = aggregate_invoice(items)

        assert totals.subtotal == rwf(3000000)
        assert totals.total_vat == rwf(180000)
        assert totals.total_wht == rwf(300000)
        assert totals.total == rwf(2880000)
        assert totals.line_count == 2
        assert totals.has_withholding

    def test_empty_invoice(self):
        totals = aggregate_invoice([])

        assert totals == InvoiceTotals.zero("RWF")
        assert totals.total.is_zero
        assert totals.line_count == 0
        assert not totals.has_withholding

    def test_empty_invoice_in_other_currency(self):
        assert aggregate_invoice([], "USD").currency.code == "USD"

    def test_total_identity(self, tax_codes, make_item):
        items = calculate_line_items([
            make_item("1", "VAT_18", "3", "1234"),
            make_item("2", "WHT_5", "7", "999"),
            make_item("3", "VAT_EXEMPT", "1", "50"),
        ], tax_codes)

        totals = aggregate_invoice(items)

        assert totals.total == totals.subtotal + totals.total_vat - totals.total_wht

    def test_order_independent(self, tax_codes, make_item):
        items = calculate_line_items([
            make_item("1", "VAT_18", "2", "500000"),
            make_item("2", "WHT_15", "1", "2000000"),
            make_item("3", "VAT_0", "4", "25000"),
        ], tax_codes)

        assert aggregate_invoice(items) == aggregate_invoice(list(reversed(items)))

    def test_uses_existing_derived_values(self, make_item):
        """Aggregation sums what is on the lines; it does not recalculate."""
        item = make_item("1", "VAT_18", "2", "500000")

        totals = aggregate_invoice([item])

        assert totals.subtotal.is_zero

    def test_currency_mismatch_rejected(self, tax_codes, make_item):
        items = [
            make_item("1", "VAT_18", "1", "100"),
            make_item("2", "VAT_18", "1", "100", currency="USD"),
        ]

        with pytest.raises(CurrencyMismatchError) as exc_info:
            aggregate_invoice(items, "RWF")

        assert exc_info.value.received == "USD"

    def test_accepts_generator(self, tax_codes, make_item):
        items = calculate_line_items([make_item("1", "VAT_18", "1", "100")], tax_codes)

        totals = aggregate_invoice(item for item in items)

        assert totals.total == rwf(118)

    def test_as_dict(self, tax_codes, make_item):
        items = calculate_line_items([make_item("1", "VAT_18", "2", "500000")], tax_codes)

        data = aggregate_invoice(items).as_dict()

        assert data == {
            "currency": "RWF",
            "subtotal": "1000000",
            "total_vat": "180000",
            "total_wht": "0",
            "total": "1180000",
        }

    def test_logs_aggregate(self, captured_logs):
        aggregate_invoice([])

        records = [r for r in captured_logs() if r["message"] == "invoice_aggregated"]
        assert records
        assert records[0]["line_count"] == 0
        assert records[0]["currency"] == "RWF"


class TestAmountOutOfRange:
    """Overflowing arithmetic surfaces as a typed error, not a decimal signal."""

    def test_overflowing_line_amount(self, tax_codes, make_item):
        item = make_item(item_id="7", quantity="1e600000", unit_price="1e600000")

        with pytest.raises(AmountOutOfRangeError) as exc_info:
            calculate_line_item(item, tax_codes)

        assert exc_info.value.code == "AMOUNT_OUT_OF_RANGE"
        assert exc_info.value.line_item_id == "7"

    def test_large_but_finite_line_still_calculates(self, tax_codes, make_item):
        item = calculate_line_item(
            make_item(quantity="1000000000", unit_price="1000000000000"), tax_codes
        )
        assert item.vat_amount.amount == Decimal("1.8E+20")
