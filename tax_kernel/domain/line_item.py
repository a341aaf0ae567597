"""
Line item -- one billable invoice row.

Contract:
    ``quantity``, ``unit_price`` and ``tax_code_id`` are set by the caller.
    ``amount``, ``vat_amount`` and ``wht_amount`` are derived: only the tax
    engine produces them (via ``with_derived``), and ``with_changes`` refuses
    to set them. A fresh line item carries zero derived amounts.

Guarantees:
    - Immutable (frozen dataclass); every edit returns a new LineItem.
    - All Money fields share the unit price's currency.
    - quantity is always a Decimal (never float).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any

from tax_kernel.domain.values import Currency, Money
from tax_kernel.exceptions import CurrencyMismatchError, UnsupportedLineItemFieldError

EDITABLE_FIELDS: tuple[str, ...] = ("description", "quantity", "unit_price", "tax_code_id")


@dataclass(frozen=True)
class LineItem:
    """One invoice row with its derived tax amounts."""

    id: str
    description: str
    quantity: Decimal
    unit_price: Money
    tax_code_id: str
    amount: Money | None = None
    vat_amount: Money | None = None
    wht_amount: Money | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.quantity, Decimal):
            if isinstance(self.quantity, float):
                raise TypeError(f"Quantity must not be float: {self.quantity!r}")
            try:
                object.__setattr__(self, "quantity", Decimal(str(self.quantity)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid quantity: {self.quantity}") from e
        if not isinstance(self.unit_price, Money):
            raise TypeError(f"unit_price must be Money, got {type(self.unit_price)}")

        currency = self.unit_price.currency
        for name in ("amount", "vat_amount", "wht_amount"):
            value = getattr(self, name)
            if value is None:
                object.__setattr__(self, name, Money.zero(currency))
            elif value.currency != currency:
                raise CurrencyMismatchError(currency.code, value.currency.code)

    @classmethod
    def create(
        cls,
        id: str,
        tax_code_id: str,
        currency: str | Currency,
        *,
        description: str = "",
        quantity: Decimal | str | int = Decimal("0"),
        unit_price: Decimal | str | int = Decimal("0"),
    ) -> LineItem:
        """New line item with zero derived amounts."""
        return cls(
            id=id,
            description=description,
            quantity=quantity,
            unit_price=Money.of(unit_price, currency),
            tax_code_id=tax_code_id,
        )

    @property
    def currency(self) -> Currency:
        return self.unit_price.currency

    def with_changes(self, **changes: Any) -> LineItem:
        """Copy with caller-editable fields replaced.

        Derived amounts are carried over as-is; the caller recalculates.
        """
        for name in changes:
            if name not in EDITABLE_FIELDS:
                raise UnsupportedLineItemFieldError(name, list(EDITABLE_FIELDS))
        new_price = changes.get("unit_price")
        if new_price is not None and not isinstance(new_price, Money):
            raise TypeError(f"unit_price must be Money, got {type(new_price)}")
        if new_price is not None and new_price.currency != self.currency:
            # Re-denominate derived amounts with the price; they are stale anyway.
            changes.update(
                amount=self.amount.with_currency(new_price.currency),
                vat_amount=self.vat_amount.with_currency(new_price.currency),
                wht_amount=self.wht_amount.with_currency(new_price.currency),
            )
        return replace(self, **changes)

    def with_derived(self, amount: Money, vat_amount: Money, wht_amount: Money) -> LineItem:
        """Copy carrying freshly computed derived amounts. Engine use only."""
        return replace(self, amount=amount, vat_amount=vat_amount, wht_amount=wht_amount)
