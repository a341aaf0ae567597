"""
Unit tests for LineItem, TaxCode and Customer value objects.
"""

from decimal import Decimal

import pytest

from tax_kernel.domain.line_item import EDITABLE_FIELDS, LineItem
from tax_kernel.domain.parties import Customer, EntityType
from tax_kernel.domain.tax_codes import TaxCode, TaxType
from tax_kernel.domain.values import Money
from tax_kernel.exceptions import CurrencyMismatchError, UnsupportedLineItemFieldError


class TestLineItemCreate:
    """Tests for LineItem.create."""

    def test_derived_amounts_start_at_zero(self):
        item = LineItem.create("1", "VAT_18", "RWF", quantity=2, unit_price=500000)
        assert item.amount == Money.zero("RWF")
        assert item.vat_amount == Money.zero("RWF")
        assert item.wht_amount == Money.zero("RWF")

    def test_quantity_is_decimal(self):
        item = LineItem.create("1", "VAT_18", "RWF", quantity="2.5")
        assert item.quantity == Decimal("2.5")
        assert isinstance(item.quantity, Decimal)

    def test_float_quantity_rejected(self):
        with pytest.raises(TypeError):
            LineItem.create("1", "VAT_18", "RWF", quantity=2.5)

    def test_currency_follows_unit_price(self):
        item = LineItem.create("1", "VAT_18", "USD", unit_price="10.50")
        assert item.currency.code == "USD"

    def test_mismatched_derived_currency_rejected(self):
        with pytest.raises(CurrencyMismatchError):
            LineItem(
                id="1",
                description="",
                quantity=Decimal("1"),
                unit_price=Money.of("1", "RWF"),
                tax_code_id="VAT_18",
                amount=Money.of("1", "USD"),
            )

    def test_unit_price_must_be_money(self):
        with pytest.raises(TypeError):
            LineItem(
                id="1",
                description="",
                quantity=Decimal("1"),
                unit_price=Decimal("1"),
                tax_code_id="VAT_18",
            )


class TestLineItemEdits:
    """Tests for with_changes and with_derived."""

    def test_with_changes_returns_new_item(self):
        item = LineItem.create("1", "VAT_18", "RWF", quantity=1)
        edited = item.with_changes(quantity=Decimal("3"))
        assert edited.quantity == Decimal("3")
        assert item.quantity == Decimal("1")

    @pytest.mark.parametrize("field", ["amount", "vat_amount", "wht_amount", "id"])
    def test_derived_and_identity_fields_not_editable(self, field):
        item = LineItem.create("1", "VAT_18", "RWF")
        with pytest.raises(UnsupportedLineItemFieldError) as exc_info:
            item.with_changes(**{field: Money.zero("RWF")})
        assert exc_info.value.field_name == field
        assert exc_info.value.editable_fields == list(EDITABLE_FIELDS)

    def test_price_in_new_currency_redenominates_derived(self):
        item = LineItem.create("1", "VAT_18", "RWF", quantity=1, unit_price=100)
        item = item.with_derived(
            Money.of("100", "RWF"), Money.of("18", "RWF"), Money.zero("RWF")
        )
        moved = item.with_changes(unit_price=Money.of("100", "USD"))
        assert moved.currency.code == "USD"
        assert moved.vat_amount == Money.of("18", "USD")

    def test_price_must_be_money(self):
        item = LineItem.create("1", "VAT_18", "RWF", quantity=1, unit_price=100)
        with pytest.raises(TypeError):
            item.with_changes(unit_price=Decimal("5"))

    def test_with_derived(self):
        item = LineItem.create("1", "VAT_18", "RWF", quantity=2, unit_price=500000)
        calculated = item.with_derived(
            Money.of("1000000", "RWF"), Money.of("180000", "RWF"), Money.zero("RWF")
        )
        assert calculated.amount == Money.of("1000000", "RWF")
        assert calculated.quantity == item.quantity

    def test_immutable(self):
        item = LineItem.create("1", "VAT_18", "RWF")
        with pytest.raises(AttributeError):
            item.quantity = Decimal("5")


class TestTaxCode:
    """Tests for TaxCode."""

    def test_rate_coerced_to_decimal(self):
        code = TaxCode("VAT_18", "VAT 18%", "18", TaxType.VAT)
        assert code.rate == Decimal("18")

    def test_float_rate_rejected(self):
        with pytest.raises(TypeError):
            TaxCode("VAT_18", "VAT 18%", 18.0, TaxType.VAT)

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            TaxCode("BAD", "Bad", Decimal("-1"), TaxType.VAT)

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            TaxCode("  ", "Blank", Decimal("0"), TaxType.VAT)

    def test_type_coerced_from_string(self):
        assert TaxCode("WHT_15", "WHT", Decimal("15"), "WHT").type == TaxType.WHT

    def test_exempt_effective_rate_is_zero(self):
        code = TaxCode("EX", "Exempt", Decimal("18"), TaxType.EXEMPT)
        assert code.effective_rate == Decimal("0")
        assert not code.is_vat
        assert not code.is_withholding

    def test_regime_flags(self):
        assert TaxCode("V", "V", Decimal("18"), TaxType.VAT).is_vat
        assert TaxCode("W", "W", Decimal("15"), TaxType.WHT).is_withholding


class TestCustomer:
    """Tests for Customer."""

    def test_vat_registered(self):
        customer = Customer("1", "Kigali Tech Solutions Ltd", "KG 123 St", "company",
                            vat_number="VAT-001234567")
        assert customer.entity_type is EntityType.COMPANY
        assert customer.is_vat_registered

    def test_not_vat_registered(self):
        customer = Customer("3", "Ministry of ICT", "Government Ave",
                            EntityType.GOVERNMENT)
        assert not customer.is_vat_registered

    def test_unknown_entity_type(self):
        with pytest.raises(ValueError):
            Customer("9", "Someone", "", "partnership")
