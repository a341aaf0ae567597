"""
Reference catalog schema (``tax_config.schema``).

The parsed, frozen form of a catalog YAML file: the tax codes and sample
customers an invoice may reference, plus the invoicing defaults for the
jurisdiction. Loaded once at process start and passed by reference.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from tax_kernel.domain.parties import Customer
from tax_kernel.domain.tax_codes import TaxCode


@dataclass(frozen=True)
class LineDefaults:
    """Values a newly added invoice line starts with."""

    tax_code_id: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")


@dataclass(frozen=True)
class TaxCatalog:
    """
    Static reference data for one jurisdiction.

    Contract
    --------
    * ``tax_codes`` and ``customers`` are read-only mappings keyed by id,
      in file order.
    * ``checksum`` is the SHA-256 of the canonical source document.
    """

    catalog_id: str
    version: int
    jurisdiction: str
    default_currency: str
    currencies: tuple[str, ...]
    line_defaults: LineDefaults
    payment_terms_days: int
    tax_codes: Mapping[str, TaxCode] = field(default_factory=dict)
    customers: Mapping[str, Customer] = field(default_factory=dict)
    checksum: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "tax_codes", MappingProxyType(dict(self.tax_codes)))
        object.__setattr__(self, "customers", MappingProxyType(dict(self.customers)))

    @property
    def default_tax_code(self) -> TaxCode | None:
        return self.tax_codes.get(self.line_defaults.tax_code_id)

    def get_tax_code(self, tax_code_id: str) -> TaxCode | None:
        return self.tax_codes.get(tax_code_id)

    def get_customer(self, customer_id: str) -> Customer | None:
        return self.customers.get(customer_id)

    def supports_currency(self, code: str) -> bool:
        return code.upper().strip() in self.currencies
