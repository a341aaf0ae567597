#!/usr/bin/env python3
"""
Compose an invoice from the command line and print its tax breakdown.

Loads the active tax catalog, builds a draft from --line arguments and
prints the calculated lines, the per tax code summary and the totals.

Usage:
    python3 scripts/invoice_demo.py
    python3 scripts/invoice_demo.py --line 2:500000:VAT_18 --line 1:2000000:WHT_15
    python3 scripts/invoice_demo.py --customer 3 --currency USD --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from tax_config import get_active_catalog  # noqa: E402
from tax_kernel.exceptions import TaxKernelError  # noqa: E402
from tax_kernel.logging_config import configure_logging  # noqa: E402
from tax_services import InvoiceDraftService, format_deduction, format_money  # noqa: E402

DEFAULT_LINES = ["2:500000:VAT_18", "1:2000000:WHT_15"]


def parse_line(spec: str) -> tuple[str, str, str]:
    """Split QTY:PRICE:TAX_CODE."""
    parts = spec.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(
            f"expected QTY:PRICE:TAX_CODE, got {spec!r}"
        )
    return parts[0], parts[1], parts[2]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--line", dest="lines", action="append", type=parse_line,
        help="line item as QTY:PRICE:TAX_CODE (repeatable)",
    )
    parser.add_argument("--number", default="INV-0001", help="invoice number")
    parser.add_argument("--customer", help="customer id from the catalog")
    parser.add_argument("--currency", help="invoice currency (default: catalog default)")
    parser.add_argument("--jurisdiction", default="RW")
    parser.add_argument("--json", action="store_true", help="print JSON")
    parser.add_argument("--verbose", action="store_true", help="structured logs to stderr")
    return parser


def print_text(draft) -> None:
    header = draft.header
    print(f"Invoice {header.number}  issued {header.issue_date}  due {header.due_date}")
    if header.customer is not None:
        print(f"Customer: {header.customer.name} ({header.customer.entity_type.value})")
    print()
    for item in draft.line_items:
        print(
            f"  [{item.id}] {item.quantity} x {format_money(item.unit_price)}"
            f"  {item.tax_code_id:<10}  {format_money(item.amount)}"
        )
        if item.vat_amount.is_positive:
            print(f"        VAT: {format_money(item.vat_amount)}")
        if item.wht_amount.is_positive:
            print(f"        WHT: {format_deduction(item.wht_amount)}")
    print()
    for line in draft.tax_summary().lines:
        print(
            f"  {line.tax_name:<12} lines={line.line_count}"
            f"  base={format_money(line.taxable_amount)}"
            f"  tax={format_money(line.tax_amount)}"
        )
    totals = draft.totals()
    print()
    print(f"  Subtotal:  {format_money(totals.subtotal)}")
    print(f"  VAT:       {format_money(totals.total_vat)}")
    if totals.has_withholding:
        print(f"  WHT:       {format_deduction(totals.total_wht)}")
    print(f"  Total:     {format_money(totals.total)}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        catalog = get_active_catalog(args.jurisdiction)
        draft = InvoiceDraftService(catalog).new_draft(
            args.number, currency=args.currency, customer_id=args.customer,
        )
        lines = args.lines or [parse_line(s) for s in DEFAULT_LINES]
        for index, (qty, price, code) in enumerate(lines):
            item = draft.line_items[0] if index == 0 else draft.add_line_item()
            draft.update_line_item(item.id, "tax_code_id", code)
            draft.update_line_item(item.id, "quantity", qty)
            draft.update_line_item(item.id, "unit_price", price)
    except TaxKernelError as e:
        print(f"error [{e.code}]: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(draft.to_dict(), indent=2))
    else:
        print_text(draft)
    return 0


if __name__ == "__main__":
    sys.exit(main())
