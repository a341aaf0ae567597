"""
Catalog Loader (``tax_config.loader``).

Responsibility
--------------
Loads a catalog YAML file and parses it into the typed, frozen
``tax_config.schema.TaxCatalog``. Services never call this directly; the
runtime entry point is ``tax_config.get_active_catalog()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid rate, tax type or entity type  -> ``ValueError``.

Rates and amounts are read through ``str`` into ``Decimal`` so a YAML
float such as ``18.5`` never enters the engine as binary floating point.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tax_config.schema import LineDefaults, TaxCatalog
from tax_kernel.domain.parties import Customer, EntityType
from tax_kernel.domain.tax_codes import TaxCode, TaxType


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a YAML scalar into a Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{name}: expected a number, got {value!r}") from e


def parse_tax_code(data: dict[str, Any]) -> TaxCode:
    """Parse a TaxCode from a dict."""
    code_id = data["id"]
    return TaxCode(
        id=code_id,
        name=data.get("name", code_id),
        rate=parse_decimal(data["rate"], f"tax code {code_id} rate"),
        type=TaxType(str(data["type"]).upper()),
        description=data.get("description", ""),
    )


def parse_customer(data: dict[str, Any]) -> Customer:
    """Parse a Customer from a dict."""
    return Customer(
        id=str(data["id"]),
        name=data["name"],
        address=data.get("address", ""),
        entity_type=EntityType(str(data["entity_type"]).lower()),
        vat_number=data.get("vat_number") or None,
    )


def parse_line_defaults(data: dict[str, Any]) -> LineDefaults:
    return LineDefaults(
        tax_code_id=data["tax_code"],
        quantity=parse_decimal(data.get("quantity", 1), "line_defaults.quantity"),
        unit_price=parse_decimal(data.get("unit_price", 0), "line_defaults.unit_price"),
    )


def parse_catalog(data: dict[str, Any]) -> TaxCatalog:
    """
    Parse a full ``TaxCatalog`` from a loaded YAML document.

    Duplicate ids are kept out of the mappings (first one wins); the
    validator reports them from the raw document.
    """
    header = data["catalog"]

    tax_codes: dict[str, TaxCode] = {}
    for entry in data.get("tax_codes", []):
        code = parse_tax_code(entry)
        tax_codes.setdefault(code.id, code)

    customers: dict[str, Customer] = {}
    for entry in data.get("customers", []):
        customer = parse_customer(entry)
        customers.setdefault(customer.id, customer)

    default_currency = str(header.get("default_currency", "RWF")).upper()
    currencies = tuple(
        str(c).upper() for c in header.get("currencies", [default_currency])
    )

    return TaxCatalog(
        catalog_id=header["id"],
        version=int(header.get("version", 1)),
        jurisdiction=header["jurisdiction"],
        default_currency=default_currency,
        currencies=currencies,
        line_defaults=parse_line_defaults(header["line_defaults"]),
        payment_terms_days=int(header.get("payment_terms_days", 30)),
        tax_codes=tax_codes,
        customers=customers,
        checksum=compute_checksum(data),
    )


def load_catalog_file(path: Path) -> tuple[TaxCatalog, dict[str, Any]]:
    """Load and parse a catalog file. Returns the catalog and the raw document."""
    data = load_yaml_file(path)
    return parse_catalog(data), data


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
