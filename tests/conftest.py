"""
Pytest fixtures for the tax kernel test suite.

Provides:
- The shipped Rwanda reference catalog and its tax code mapping
- A deterministic clock and a draft service wired to it
- Structured log capture
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from tax_config import TaxCatalog, get_active_catalog
from tax_kernel.domain.clock import DeterministicClock
from tax_kernel.domain.line_item import LineItem
from tax_kernel.domain.tax_codes import TaxCode, TaxType
from tax_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from tax_services import InvoiceDraftService

# 15 January 2024, mid-morning in Kigali
TEST_NOW = datetime(2024, 1, 15, 8, 30, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture tax_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            aggregate_invoice([])
            logs = captured_logs()
            assert any(r["message"] == "invoice_aggregated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("tax_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture(scope="session")
def catalog() -> TaxCatalog:
    """The shipped Rwanda catalog."""
    return get_active_catalog("RW")


@pytest.fixture(scope="session")
def tax_codes(catalog):
    """Tax codes by id."""
    return catalog.tax_codes


@pytest.fixture
def custom_tax_codes() -> dict[str, TaxCode]:
    """A small hand-built catalog, independent of the YAML file."""
    return {
        "VAT_10": TaxCode("VAT_10", "VAT 10%", Decimal("10"), TaxType.VAT),
        "WHT_3": TaxCode("WHT_3", "WHT 3%", Decimal("3"), TaxType.WHT),
        "EXEMPT_X": TaxCode("EXEMPT_X", "Exempt", Decimal("12"), TaxType.EXEMPT),
    }


@pytest.fixture
def make_item():
    """Factory for RWF line items."""

    def _make(
        item_id: str = "1",
        tax_code_id: str = "VAT_18",
        quantity="1",
        unit_price="0",
        currency: str = "RWF",
    ) -> LineItem:
        return LineItem.create(
            item_id,
            tax_code_id,
            currency,
            quantity=quantity,
            unit_price=unit_price,
        )

    return _make


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def draft_service(catalog, clock) -> InvoiceDraftService:
    return InvoiceDraftService(catalog, clock)


@pytest.fixture
def draft(draft_service):
    """A fresh RWF draft holding one default line."""
    return draft_service.new_draft("INV-2024-003")
