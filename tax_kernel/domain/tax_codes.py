"""
Tax codes -- static reference rules pairing a rate with a tax regime.

A tax code is applied to exactly one line item at a time, and a line is
taxed by one regime only: VAT, withholding (WHT), or exempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum


class TaxType(str, Enum):
    """Tax regime of a tax code."""

    VAT = "VAT"  # Added to the amount owed by the customer
    WHT = "WHT"  # Deducted from the amount payable to the seller
    EXEMPT = "EXEMPT"


@dataclass(frozen=True)
class TaxCode:
    """
    Named, rated tax rule.

    Contract:
        ``rate`` is a percentage (18 means 18%), stored as a non-negative
        Decimal. Defined once in the reference catalog; immutable at runtime.

    Guarantees:
        - ``effective_rate`` is zero for EXEMPT codes whatever ``rate`` holds.
    """

    id: str
    name: str
    rate: Decimal
    type: TaxType
    description: str = ""

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("Tax code id is required")
        if not isinstance(self.rate, Decimal):
            if isinstance(self.rate, float):
                raise TypeError(f"Tax rate must not be float: {self.rate!r}")
            try:
                object.__setattr__(self, "rate", Decimal(str(self.rate)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid tax rate for {self.id}: {self.rate}") from e
        if self.rate < Decimal("0"):
            raise ValueError(f"Tax rate cannot be negative: {self.id} ({self.rate})")
        if not isinstance(self.type, TaxType):
            object.__setattr__(self, "type", TaxType(self.type))

    @property
    def effective_rate(self) -> Decimal:
        """Rate actually applied, as a percentage."""
        if self.type == TaxType.EXEMPT:
            return Decimal("0")
        return self.rate

    @property
    def is_vat(self) -> bool:
        return self.type == TaxType.VAT

    @property
    def is_withholding(self) -> bool:
        return self.type == TaxType.WHT
