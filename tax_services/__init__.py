"""
tax_services -- imperative shell over the pure tax engines.

The presentation layer talks to these services: it creates an invoice
draft, edits its lines and header, and renders the returned totals.
"""

from tax_services.formatting import format_deduction, format_money
from tax_services.invoice_draft import (
    InvoiceDraft,
    InvoiceDraftService,
    InvoiceHeader,
    coerce_number,
)

__all__ = [
    "InvoiceDraft",
    "InvoiceDraftService",
    "InvoiceHeader",
    "coerce_number",
    "format_deduction",
    "format_money",
]
