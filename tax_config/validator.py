"""
Catalog Validator (``tax_config.validator``).

Validates a parsed ``TaxCatalog`` (and its raw document, for duplicate
detection) before it is handed to any service.

Failure modes
-------------
* Errors (``CatalogValidationResult.errors``) -> the catalog MUST NOT be
  used.
* Warnings -> the catalog is usable but should be reviewed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from tax_config.schema import TaxCatalog
from tax_kernel.domain.currency import CurrencyRegistry
from tax_kernel.domain.tax_codes import TaxType


@dataclass
class CatalogValidationResult:
    """
    Result of catalog validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_catalog(
    catalog: TaxCatalog,
    raw: dict[str, Any] | None = None,
) -> CatalogValidationResult:
    """Validate a catalog; ``raw`` enables duplicate id detection."""
    result = CatalogValidationResult()

    if raw is not None:
        _validate_unique_ids(raw, "tax_codes", "tax code", result)
        _validate_unique_ids(raw, "customers", "customer", result)
    _validate_tax_codes_present(catalog, result)
    _validate_line_defaults(catalog, result)
    _validate_currencies(catalog, result)
    _validate_exempt_rates(catalog, result)
    _validate_payment_terms(catalog, result)

    return result


def _validate_unique_ids(
    raw: dict[str, Any], section: str, label: str, result: CatalogValidationResult
) -> None:
    counts = Counter(str(entry.get("id")) for entry in raw.get(section, []))
    for entry_id, count in sorted(counts.items()):
        if count > 1:
            result.add_error(f"Duplicate {label}: {entry_id} appears {count} times")


def _validate_tax_codes_present(
    catalog: TaxCatalog, result: CatalogValidationResult
) -> None:
    if not catalog.tax_codes:
        result.add_error("Catalog defines no tax codes")


def _validate_line_defaults(
    catalog: TaxCatalog, result: CatalogValidationResult
) -> None:
    defaults = catalog.line_defaults
    if defaults.tax_code_id not in catalog.tax_codes:
        result.add_error(
            f"Default tax code '{defaults.tax_code_id}' is not defined"
        )
    if defaults.quantity < 0:
        result.add_error(f"Default quantity is negative: {defaults.quantity}")
    if defaults.unit_price < 0:
        result.add_error(f"Default unit price is negative: {defaults.unit_price}")


def _validate_currencies(catalog: TaxCatalog, result: CatalogValidationResult) -> None:
    for code in catalog.currencies:
        if not CurrencyRegistry.is_valid(code):
            result.add_error(f"Invalid ISO 4217 currency code: {code}")
    if catalog.default_currency not in catalog.currencies:
        result.add_error(
            f"Default currency '{catalog.default_currency}' is not in the "
            f"supported currencies {list(catalog.currencies)}"
        )


def _validate_exempt_rates(catalog: TaxCatalog, result: CatalogValidationResult) -> None:
    for code in catalog.tax_codes.values():
        if code.type == TaxType.EXEMPT and code.rate != 0:
            result.add_warning(
                f"Exempt tax code '{code.id}' stores rate {code.rate}; "
                f"it is applied as zero"
            )


def _validate_payment_terms(catalog: TaxCatalog, result: CatalogValidationResult) -> None:
    if catalog.payment_terms_days < 0:
        result.add_error(
            f"Payment terms cannot be negative: {catalog.payment_terms_days} days"
        )
