"""
Tax Engine - Calculate VAT and withholding tax for invoice line items.

Each line is taxed by exactly one regime: VAT (added to what the customer
owes), WHT (withheld from what the seller receives) or exempt. Pure functions
with no I/O - the tax code catalog is passed in as read-only reference data.

Usage:
    from decimal import Decimal
    from tax_engines.tax import aggregate_invoice, calculate_line_item
    from tax_kernel.domain import LineItem, TaxCode, TaxType

    catalog = {
        "VAT_18": TaxCode("VAT_18", "VAT 18%", Decimal("18"), TaxType.VAT),
    }
    item = LineItem.create("1", "VAT_18", "RWF", quantity=2, unit_price=500000)

    item = calculate_line_item(item, catalog)
    print(item.vat_amount)  # Money: 180000 RWF

    totals = aggregate_invoice([item])
    print(totals.total)  # Money: 1180000 RWF
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, DecimalException

from tax_engines.tracer import traced_engine
from tax_kernel.domain.line_item import LineItem
from tax_kernel.domain.tax_codes import TaxCode, TaxType
from tax_kernel.domain.values import Currency, Money
from tax_kernel.exceptions import (
    AmountOutOfRangeError,
    CurrencyMismatchError,
    UnknownTaxCodeError,
)
from tax_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

DEFAULT_CURRENCY = "RWF"

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InvoiceTotals:
    """
    Invoice-level aggregate.

    Derived view over the current line items; never stored.
    ``total = subtotal + total_vat - total_wht``.
    """

    subtotal: Money
    total_vat: Money
    total_wht: Money
    total: Money
    line_count: int = 0

    @classmethod
    def zero(cls, currency: str | Currency) -> InvoiceTotals:
        zero = Money.zero(currency)
        return cls(subtotal=zero, total_vat=zero, total_wht=zero, total=zero)

    @property
    def currency(self) -> Currency:
        return self.subtotal.currency

    @property
    def has_withholding(self) -> bool:
        return self.total_wht.is_positive

    def as_dict(self) -> dict[str, str]:
        """Amounts as strings, for JSON output."""
        return {
            "currency": self.currency.code,
            "subtotal": str(self.subtotal.amount),
            "total_vat": str(self.total_vat.amount),
            "total_wht": str(self.total_wht.amount),
            "total": str(self.total.amount),
        }


def compute_tax_amounts(subtotal: Money, tax_code: TaxCode) -> tuple[Money, Money]:
    """
    Split the tax on a subtotal into (vat_amount, wht_amount).

    Only the regime of ``tax_code`` receives a non-zero amount; EXEMPT and
    unrecognised types yield zero for both. No rounding is applied.
    """
    zero = Money.zero(subtotal.currency)
    tax = subtotal * tax_code.effective_rate / _HUNDRED
    if tax_code.type == TaxType.VAT:
        return tax, zero
    if tax_code.type == TaxType.WHT:
        return zero, tax
    return zero, zero


@traced_engine("line_item_tax", "1.0", fingerprint_fields=("item", "catalog", "strict"))
def calculate_line_item(
    item: LineItem,
    catalog: Mapping[str, TaxCode],
    *,
    strict: bool = False,
) -> LineItem:
    """
    Calculate taxable amount, VAT and withholding for one line item.

    Args:
        item: Line item with its current quantity, unit price and tax code.
        catalog: Tax codes by id. Read only.
        strict: Raise instead of passing an unknown tax code through.

    Returns:
        A new LineItem with ``amount = quantity x unit_price`` and the tax
        amounts for its regime. When the tax code is unknown and ``strict``
        is False, ``item`` itself is returned unchanged.

    Raises:
        UnknownTaxCodeError: If the tax code is not in the catalog and
            ``strict`` is True.
        AmountOutOfRangeError: If the line amount overflows the decimal
            context.
    """
    tax_code = catalog.get(item.tax_code_id)
    if tax_code is None:
        if strict:
            logger.error("tax_code_not_found", extra={
                "tax_code": item.tax_code_id,
                "line_item": item.id,
                "available_codes": sorted(catalog),
            })
            raise UnknownTaxCodeError(item.tax_code_id, list(catalog), item.id)
        logger.warning("tax_code_not_found", extra={
            "tax_code": item.tax_code_id,
            "line_item": item.id,
            "available_codes": sorted(catalog),
        })
        return item

    try:
        subtotal = item.unit_price * item.quantity
        vat_amount, wht_amount = compute_tax_amounts(subtotal, tax_code)
    except DecimalException as e:
        raise AmountOutOfRangeError(
            "amount", f"{item.quantity} x {item.unit_price.amount}", line_item_id=item.id,
        ) from e

    logger.debug("line_item_calculated", extra={
        "line_item": item.id,
        "tax_code": tax_code.id,
        "tax_type": tax_code.type.value,
        "amount": str(subtotal.amount),
        "vat_amount": str(vat_amount.amount),
        "wht_amount": str(wht_amount.amount),
    })

    return item.with_derived(subtotal, vat_amount, wht_amount)


def calculate_line_items(
    items: Iterable[LineItem],
    catalog: Mapping[str, TaxCode],
    *,
    strict: bool = False,
) -> tuple[LineItem, ...]:
    """Recalculate every item, preserving order."""
    return tuple(calculate_line_item(item, catalog, strict=strict) for item in items)


@traced_engine("invoice_aggregate", "1.0", fingerprint_fields=("items", "currency"))
def aggregate_invoice(
    items: Iterable[LineItem],
    currency: str | Currency = DEFAULT_CURRENCY,
) -> InvoiceTotals:
    """
    Sum the derived amounts of already-calculated line items.

    Items are not recalculated here; the caller recalculates edited rows
    first. Order does not affect the totals.

    Args:
        items: Calculated line items.
        currency: Invoice currency; also the currency of all-zero totals
            for an empty sequence.

    Raises:
        CurrencyMismatchError: If an item is in another currency.
    """
    if isinstance(currency, str):
        currency = Currency(currency)

    subtotal = total_vat = total_wht = Money.zero(currency)
    count = 0
    for item in items:
        if item.currency != currency:
            logger.error("invoice_currency_mismatch", extra={
                "line_item": item.id,
                "invoice_currency": currency.code,
                "line_currency": item.currency.code,
            })
            raise CurrencyMismatchError(currency.code, item.currency.code, "aggregate")
        subtotal = subtotal + item.amount
        total_vat = total_vat + item.vat_amount
        total_wht = total_wht + item.wht_amount
        count += 1

    totals = InvoiceTotals(
        subtotal=subtotal,
        total_vat=total_vat,
        total_wht=total_wht,
        total=subtotal + total_vat - total_wht,
        line_count=count,
    )

    logger.info("invoice_aggregated", extra={
        "line_count": count,
        "currency": currency.code,
        "subtotal": str(subtotal.amount),
        "total_vat": str(total_vat.amount),
        "total_wht": str(total_wht.amount),
        "total": str(totals.total.amount),
    })

    return totals
