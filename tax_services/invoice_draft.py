"""
InvoiceDraftService -- line-item lifecycle of an invoice being composed.

Responsibility:
    Owns the editable state the presentation layer works on: the invoice
    header and its ordered line items. Every field edit is coerced,
    validated, and the whole line is recalculated through the tax engine;
    totals are always re-aggregated from the current lines.

Architecture position:
    Services -- imperative shell over tax_engines.
    Receives the reference catalog and a Clock by constructor injection.

Invariants enforced:
    - An invoice always retains at least one line item.
    - Line item ids stay unique, also after removals.
    - Negative or oversized quantity or unit price never reaches the engine.
    - An unknown tax code on an edited line is rejected (strict engine mode).
    - Totals are never cached.

Failure modes:
    - LineItemNotFoundError, LastLineItemError on line management.
    - NegativeQuantityError, NegativeUnitPriceError, AmountOutOfRangeError,
      UnknownTaxCodeError, UnsupportedLineItemFieldError on line edits.
    - UnknownCustomerError, UnsupportedCurrencyError, InvalidCurrencyError,
      InvalidDueDateError on header edits.

Non-goals:
    - Does NOT persist, send or number invoices.
    - Does NOT convert between currencies.
    - Not thread-safe; a draft belongs to one caller.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal, DecimalException
from typing import Any

from tax_config.schema import TaxCatalog
from tax_engines.summary import TaxSummary, summarize_by_tax_code
from tax_engines.tax import InvoiceTotals, aggregate_invoice, calculate_line_item
from tax_engines.validation import require_valid_line_item
from tax_kernel.domain.clock import Clock, SystemClock
from tax_kernel.domain.line_item import EDITABLE_FIELDS, LineItem
from tax_kernel.domain.parties import Customer
from tax_kernel.domain.values import Currency, Money
from tax_kernel.exceptions import (
    InvalidDueDateError,
    LastLineItemError,
    LineItemNotFoundError,
    UnknownCustomerError,
    UnsupportedCurrencyError,
    UnsupportedLineItemFieldError,
)
from tax_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.invoice_draft")

_HEADER_FIELDS = ("number", "issue_date", "due_date", "notes")

_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def coerce_number(value: Any) -> Decimal:
    """
    Turn raw numeric form input into a Decimal.

    Text is read up to the end of its leading number, as the invoice form
    does: ``"12abc"`` is 12. Blank, unparseable and non-finite input
    becomes zero. Negative values pass through; validation rejects them.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        number = value
    else:
        match = _LEADING_NUMBER.match(str(value).lstrip())
        if match is None:
            return Decimal("0")
        try:
            number = Decimal(match.group())
        except DecimalException:
            return Decimal("0")
    if not number.is_finite():
        return Decimal("0")
    return number


@dataclass(frozen=True)
class InvoiceHeader:
    """Invoice header fields carried alongside the line items."""

    number: str
    issue_date: date
    due_date: date
    currency: str
    notes: str = ""
    customer: Customer | None = None


class InvoiceDraft:
    """
    An invoice being composed.

    Contract:
        Line items are immutable values; each edit replaces one item with
        its recalculated successor, in place in the ordering.
    """

    def __init__(
        self,
        catalog: TaxCatalog,
        header: InvoiceHeader,
        line_items: list[LineItem] | None = None,
    ):
        self._catalog = catalog
        self._header = header
        self._items: list[LineItem] = list(line_items or [])
        if not self._items:
            self._items.append(self._default_line_item("1"))

    # -- read side ---------------------------------------------------------

    @property
    def header(self) -> InvoiceHeader:
        return self._header

    @property
    def currency(self) -> Currency:
        return Currency(self._header.currency)

    @property
    def line_items(self) -> tuple[LineItem, ...]:
        return tuple(self._items)

    def get_line_item(self, item_id: str) -> LineItem:
        return self._items[self._index_of(item_id)]

    def totals(self) -> InvoiceTotals:
        """Aggregate of the current line items."""
        with LogContext.bind(invoice_number=self._header.number):
            return aggregate_invoice(self._items, self.currency)

    def tax_summary(self) -> TaxSummary:
        """Per tax code breakdown of the current line items."""
        return summarize_by_tax_code(self._items, self._catalog.tax_codes, self.currency)

    @property
    def has_withholding(self) -> bool:
        return self.totals().has_withholding

    # -- line items --------------------------------------------------------

    def add_line_item(self) -> LineItem:
        """Append a line with the catalog defaults and return it."""
        item = self._default_line_item(self._next_id())
        self._items.append(item)
        logger.info("line_item_added", extra={
            "invoice_number": self._header.number,
            "line_item": item.id,
            "line_count": len(self._items),
        })
        return item

    def remove_line_item(self, item_id: str) -> None:
        """
        Remove a line.

        Raises:
            LineItemNotFoundError: No line with that id.
            LastLineItemError: It is the only line left.
        """
        index = self._index_of(item_id)
        if len(self._items) == 1:
            logger.warning("line_item_remove_refused", extra={
                "invoice_number": self._header.number,
                "line_item": item_id,
            })
            raise LastLineItemError(item_id)
        del self._items[index]
        logger.info("line_item_removed", extra={
            "invoice_number": self._header.number,
            "line_item": item_id,
            "line_count": len(self._items),
        })

    def update_line_item(self, item_id: str, field: str, value: Any) -> LineItem:
        """
        Edit one field of a line and recalculate the whole line.

        Args:
            item_id: Line to edit.
            field: One of description, quantity, unit_price, tax_code_id.
            value: Raw input. Numeric fields are coerced (unparseable -> 0).

        Returns:
            The recalculated line item.
        """
        if field not in EDITABLE_FIELDS:
            raise UnsupportedLineItemFieldError(field, list(EDITABLE_FIELDS))

        index = self._index_of(item_id)
        current = self._items[index]

        if field == "quantity":
            change: Any = coerce_number(value)
        elif field == "unit_price":
            change = Money.of(coerce_number(value), self.currency)
        else:
            change = "" if value is None else str(value)

        candidate = current.with_changes(**{field: change})

        with LogContext.bind(invoice_number=self._header.number, line_item_id=item_id):
            require_valid_line_item(candidate, self._catalog.tax_codes)
            updated = calculate_line_item(candidate, self._catalog.tax_codes, strict=True)

        self._items[index] = updated
        logger.debug("line_item_updated", extra={
            "invoice_number": self._header.number,
            "line_item": item_id,
            "field": field,
        })
        return updated

    # -- header ------------------------------------------------------------

    def select_customer(self, customer_id: str) -> Customer:
        """Attach a catalog customer to the invoice."""
        customer = self._catalog.get_customer(customer_id)
        if customer is None:
            raise UnknownCustomerError(customer_id)
        self._header = replace(self._header, customer=customer)
        logger.info("customer_selected", extra={
            "invoice_number": self._header.number,
            "customer_id": customer.id,
            "entity_type": customer.entity_type.value,
        })
        return customer

    def set_currency(self, code: str) -> None:
        """
        Change the invoice currency.

        Unit prices keep their amounts; no conversion takes place.

        Raises:
            InvalidCurrencyError: Not an ISO 4217 code.
            UnsupportedCurrencyError: Not offered by the catalog.
        """
        currency = Currency(code)
        if not self._catalog.supports_currency(currency.code):
            raise UnsupportedCurrencyError(currency.code, list(self._catalog.currencies))
        if currency == self.currency:
            return

        self._items = [
            calculate_line_item(
                item.with_changes(unit_price=item.unit_price.with_currency(currency)),
                self._catalog.tax_codes,
            )
            for item in self._items
        ]
        self._header = replace(self._header, currency=currency.code)
        logger.info("invoice_currency_changed", extra={
            "invoice_number": self._header.number,
            "currency": currency.code,
        })

    def update_header(self, **changes: Any) -> InvoiceHeader:
        """Edit number, issue_date, due_date or notes."""
        for name in changes:
            if name not in _HEADER_FIELDS:
                raise ValueError(
                    f"Header field '{name}' cannot be edited here; "
                    f"editable fields: {', '.join(_HEADER_FIELDS)}"
                )
        header = replace(self._header, **changes)
        if header.due_date < header.issue_date:
            raise InvalidDueDateError(
                header.issue_date.isoformat(), header.due_date.isoformat()
            )
        self._header = header
        return header

    # -- output ------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view of the draft; amounts as strings."""
        header = self._header
        customer = header.customer
        return {
            "number": header.number,
            "issue_date": header.issue_date.isoformat(),
            "due_date": header.due_date.isoformat(),
            "currency": header.currency,
            "notes": header.notes,
            "customer": None if customer is None else {
                "id": customer.id,
                "name": customer.name,
                "vat_number": customer.vat_number,
                "address": customer.address,
                "entity_type": customer.entity_type.value,
            },
            "line_items": [
                {
                    "id": item.id,
                    "description": item.description,
                    "quantity": str(item.quantity),
                    "unit_price": str(item.unit_price.amount),
                    "tax_code_id": item.tax_code_id,
                    "amount": str(item.amount.amount),
                    "vat_amount": str(item.vat_amount.amount),
                    "wht_amount": str(item.wht_amount.amount),
                }
                for item in self._items
            ],
            "totals": self.totals().as_dict(),
        }

    # -- internals ---------------------------------------------------------

    def _index_of(self, item_id: str) -> int:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        raise LineItemNotFoundError(item_id)

    def _next_id(self) -> str:
        numeric = [int(item.id) for item in self._items if item.id.isdigit()]
        return str(max(numeric, default=0) + 1)

    def _default_line_item(self, item_id: str) -> LineItem:
        defaults = self._catalog.line_defaults
        item = LineItem.create(
            item_id,
            defaults.tax_code_id,
            self._header.currency,
            quantity=defaults.quantity,
            unit_price=defaults.unit_price,
        )
        return calculate_line_item(item, self._catalog.tax_codes)


class InvoiceDraftService:
    """
    Creates invoice drafts from the reference catalog.

    Contract:
        Dates come from the injected Clock; the due date is the issue date
        plus the catalog's payment terms.
    """

    def __init__(self, catalog: TaxCatalog, clock: Clock | None = None):
        self._catalog = catalog
        self._clock = clock or SystemClock()

    @property
    def catalog(self) -> TaxCatalog:
        return self._catalog

    def new_draft(
        self,
        number: str,
        *,
        currency: str | None = None,
        customer_id: str | None = None,
        notes: str = "",
    ) -> InvoiceDraft:
        """Start a draft holding one default line item."""
        issue_date = self._clock.today()
        header = InvoiceHeader(
            number=number,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=self._catalog.payment_terms_days),
            currency=self._catalog.default_currency,
            notes=notes,
        )
        draft = InvoiceDraft(self._catalog, header)
        if currency is not None:
            draft.set_currency(currency)
        if customer_id is not None:
            draft.select_customer(customer_id)

        logger.info("invoice_draft_created", extra={
            "invoice_number": number,
            "currency": draft.header.currency,
            "catalog_id": self._catalog.catalog_id,
            "catalog_checksum": self._catalog.checksum,
        })
        return draft
