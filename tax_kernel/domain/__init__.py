"""
Pure domain layer.

This module contains immutable value objects and reference data types
with NO dependencies on:
- Configuration files
- Time/clock (except the Clock abstraction itself)
- I/O

All domain objects are immutable and deterministic.
"""

from tax_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from tax_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from tax_kernel.domain.line_item import LineItem
from tax_kernel.domain.parties import Customer, EntityType
from tax_kernel.domain.tax_codes import TaxCode, TaxType
from tax_kernel.domain.values import Currency, Money

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "LineItem",
    "Customer",
    "EntityType",
    "TaxCode",
    "TaxType",
    "Currency",
    "Money",
]
