"""
Module: tax_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines. This is the import surface for the service layer
    and the presentation layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import tax_kernel. MUST NOT import tax_services or tax_config.

Invariants enforced:
    - Purity: engines never call ``datetime.now()`` or ``date.today()``.
    - Decimal-only arithmetic: monetary amounts are Money, floats are refused.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from tax_engines import aggregate_invoice, calculate_line_item
    from tax_engines import summarize_by_tax_code, validate_line_item
"""

from tax_engines.summary import TaxCodeSummary, TaxSummary, summarize_by_tax_code
from tax_engines.tax import (
    DEFAULT_CURRENCY,
    InvoiceTotals,
    aggregate_invoice,
    calculate_line_item,
    calculate_line_items,
    compute_tax_amounts,
)
from tax_engines.tracer import compute_input_fingerprint, traced_engine
from tax_engines.validation import (
    MAX_QUANTITY,
    MAX_UNIT_PRICE,
    ValidationError,
    ValidationResult,
    require_valid_line_item,
    validate_line_item,
)

__all__ = [
    "DEFAULT_CURRENCY",
    "InvoiceTotals",
    "aggregate_invoice",
    "calculate_line_item",
    "calculate_line_items",
    "compute_tax_amounts",
    "TaxCodeSummary",
    "TaxSummary",
    "summarize_by_tax_code",
    "compute_input_fingerprint",
    "traced_engine",
    "MAX_QUANTITY",
    "MAX_UNIT_PRICE",
    "ValidationError",
    "ValidationResult",
    "require_valid_line_item",
    "validate_line_item",
]
