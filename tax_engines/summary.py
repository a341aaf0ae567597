"""
Tax summary -- per tax code breakdown of an invoice.

Feeds the VAT return and WHT register views: for every tax code used on
the invoice, how many lines carry it, the taxable base and the tax.
Lines must already be calculated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from tax_engines.tracer import traced_engine
from tax_kernel.domain.line_item import LineItem
from tax_kernel.domain.tax_codes import TaxCode, TaxType
from tax_kernel.domain.values import Currency, Money
from tax_kernel.exceptions import CurrencyMismatchError
from tax_kernel.logging_config import get_logger

logger = get_logger("engines.summary")


@dataclass(frozen=True)
class TaxCodeSummary:
    """Totals for one tax code on one invoice."""

    tax_code_id: str
    tax_name: str
    tax_type: TaxType
    line_count: int
    taxable_amount: Money
    tax_amount: Money


@dataclass(frozen=True)
class TaxSummary:
    """Per tax code breakdown, in order of first appearance on the invoice."""

    currency: Currency
    lines: tuple[TaxCodeSummary, ...]

    def tax_by_type(self, tax_type: TaxType) -> Money:
        """
        Sum of tax amounts for one regime.

        Equals the matching ``aggregate_invoice`` total whenever every line
        carries a catalog tax code. A line passed through with an unknown
        code is summarized with zero tax, while ``aggregate_invoice`` still
        counts whatever derived amounts that line carried in.
        """
        total = Money.zero(self.currency)
        for line in self.lines:
            if line.tax_type == tax_type:
                total = total + line.tax_amount
        return total

    def for_code(self, tax_code_id: str) -> TaxCodeSummary | None:
        for line in self.lines:
            if line.tax_code_id == tax_code_id:
                return line
        return None


@traced_engine("tax_summary", "1.0", fingerprint_fields=("items", "catalog", "currency"))
def summarize_by_tax_code(
    items: Iterable[LineItem],
    catalog: Mapping[str, TaxCode],
    currency: str | Currency,
) -> TaxSummary:
    """
    Group calculated line items by tax code.

    Items whose tax code is not in the catalog are grouped under their raw
    id as EXEMPT with zero tax, even when they carry stale derived amounts
    from an earlier calculation.

    Raises:
        CurrencyMismatchError: If an item is in another currency.
    """
    if isinstance(currency, str):
        currency = Currency(currency)

    order: list[str] = []
    counts: dict[str, int] = {}
    taxable: dict[str, Money] = {}
    taxed: dict[str, Money] = {}

    for item in items:
        if item.currency != currency:
            raise CurrencyMismatchError(currency.code, item.currency.code, "summarize")
        key = item.tax_code_id
        if key not in counts:
            order.append(key)
            counts[key] = 0
            taxable[key] = Money.zero(currency)
            taxed[key] = Money.zero(currency)
        counts[key] += 1
        taxable[key] = taxable[key] + item.amount
        if key in catalog:
            taxed[key] = taxed[key] + item.vat_amount + item.wht_amount

    lines = []
    for key in order:
        code = catalog.get(key)
        lines.append(TaxCodeSummary(
            tax_code_id=key,
            tax_name=code.name if code else key,
            tax_type=code.type if code else TaxType.EXEMPT,
            line_count=counts[key],
            taxable_amount=taxable[key],
            tax_amount=taxed[key],
        ))

    logger.debug("tax_summary_built", extra={
        "currency": currency.code,
        "tax_code_count": len(lines),
    })

    return TaxSummary(currency=currency, lines=tuple(lines))
