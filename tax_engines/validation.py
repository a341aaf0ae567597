"""
Line item validation -- checks run before input reaches the tax engine.

The engine itself trusts its numeric input. A negative quantity or price
would understate or misstate tax liability, so callers that accept edits
(the invoice draft service) run these checks first and reject the edit.
Oversized quantities and prices are rejected too, so every line amount and
invoice total still rounds exactly for display.

Pure checks with no I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from tax_kernel.domain.line_item import LineItem
from tax_kernel.domain.tax_codes import TaxCode
from tax_kernel.exceptions import (
    AmountOutOfRangeError,
    NegativeQuantityError,
    NegativeUnitPriceError,
    UnknownTaxCodeError,
)

MAX_QUANTITY = Decimal("1e9")
MAX_UNIT_PRICE = Decimal("1e12")


@dataclass(frozen=True)
class ValidationError:
    """One problem found on a line item, keyed by an exception code."""

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Every problem found on one line item. Truthy when there are none."""

    errors: tuple[ValidationError, ...] = ()

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        return cls(errors=errors)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self.errors)

    def __bool__(self) -> bool:
        return self.is_valid


def validate_line_item(
    item: LineItem,
    catalog: Mapping[str, TaxCode] | None = None,
) -> ValidationResult:
    """
    Collect every problem with a line item.

    The tax code is only checked when a catalog is given.
    """
    errors: list[ValidationError] = []

    if item.quantity < 0:
        errors.append(ValidationError(
            code=NegativeQuantityError.code,
            message=f"Quantity must not be negative: {item.quantity}",
            field="quantity",
            details={"line_item_id": item.id, "quantity": str(item.quantity)},
        ))

    if item.quantity > MAX_QUANTITY:
        errors.append(ValidationError(
            code=AmountOutOfRangeError.code,
            message=f"Quantity exceeds {MAX_QUANTITY}: {item.quantity}",
            field="quantity",
            details={"line_item_id": item.id, "quantity": str(item.quantity)},
        ))

    if item.unit_price.is_negative:
        errors.append(ValidationError(
            code=NegativeUnitPriceError.code,
            message=f"Unit price must not be negative: {item.unit_price}",
            field="unit_price",
            details={"line_item_id": item.id, "unit_price": str(item.unit_price.amount)},
        ))

    if item.unit_price.amount > MAX_UNIT_PRICE:
        errors.append(ValidationError(
            code=AmountOutOfRangeError.code,
            message=f"Unit price exceeds {MAX_UNIT_PRICE}: {item.unit_price.amount}",
            field="unit_price",
            details={"line_item_id": item.id, "unit_price": str(item.unit_price.amount)},
        ))

    if catalog is not None and item.tax_code_id not in catalog:
        errors.append(ValidationError(
            code=UnknownTaxCodeError.code,
            message=f"Tax code not found: {item.tax_code_id}",
            field="tax_code_id",
            details={"line_item_id": item.id, "tax_code_id": item.tax_code_id},
        ))

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success()


def require_valid_line_item(
    item: LineItem,
    catalog: Mapping[str, TaxCode] | None = None,
) -> None:
    """Raise the typed error for the first problem found, if any.

    Raises:
        NegativeQuantityError, NegativeUnitPriceError, AmountOutOfRangeError,
        UnknownTaxCodeError
    """
    if item.quantity < 0:
        raise NegativeQuantityError(item.id, str(item.quantity))
    if item.unit_price.is_negative:
        raise NegativeUnitPriceError(item.id, str(item.unit_price.amount))
    if item.quantity > MAX_QUANTITY:
        raise AmountOutOfRangeError(
            "quantity", str(item.quantity), str(MAX_QUANTITY), item.id
        )
    if item.unit_price.amount > MAX_UNIT_PRICE:
        raise AmountOutOfRangeError(
            "unit_price", str(item.unit_price.amount), str(MAX_UNIT_PRICE), item.id
        )
    if catalog is not None and item.tax_code_id not in catalog:
        raise UnknownTaxCodeError(item.tax_code_id, list(catalog), item.id)
