"""
tax_config -- single public entrypoint for the tax reference catalog.

Responsibility:
    Provides the ONLY way to obtain the tax code catalog at runtime through
    ``get_active_catalog()``. YAML loading and validation are internal;
    callers receive a frozen ``TaxCatalog`` and pass it by reference.

Architecture position:
    Configuration -- sits above ``tax_kernel`` and below ``tax_services``.
    The kernel and the engines MUST NEVER import from ``tax_config``.

Failure modes:
    - ``FileNotFoundError`` -- no catalog for the requested jurisdiction.
    - ``CatalogValidationError`` -- the catalog failed validation.

Audit relevance:
    Every successful ``get_active_catalog()`` call emits a
    ``TAX_CATALOG_TRACE`` log entry with the catalog id, version and
    checksum, tying each computed invoice to the rates that governed it.
"""

from __future__ import annotations

from pathlib import Path

from tax_config.loader import load_catalog_file
from tax_config.schema import LineDefaults, TaxCatalog
from tax_config.validator import CatalogValidationResult, validate_catalog
from tax_kernel.exceptions import CatalogValidationError
from tax_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default catalog sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

_CATALOG_FILE = "catalog.yaml"

__all__ = [
    "CatalogValidationResult",
    "LineDefaults",
    "TaxCatalog",
    "get_active_catalog",
]


def get_active_catalog(
    jurisdiction: str = "RW",
    config_dir: Path | None = None,
) -> TaxCatalog:
    """The ONLY public catalog entrypoint.

    Args:
        jurisdiction: Jurisdiction code the catalog declares (e.g. "RW").
        config_dir: Override path to the catalog sets directory.
            Defaults to tax_config/sets/.

    Returns:
        TaxCatalog -- frozen, validated reference data.

    Raises:
        FileNotFoundError: If no catalog declares ``jurisdiction``.
        CatalogValidationError: If the catalog has validation errors.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR

    catalog, raw = _find_catalog(sets_dir, jurisdiction)

    validation = validate_catalog(catalog, raw)
    for warning in validation.warnings:
        _logger.warning("catalog_validation_warning", extra={
            "catalog_id": catalog.catalog_id,
            "warning": warning,
        })
    if not validation.is_valid:
        _logger.error("catalog_validation_failed", extra={
            "catalog_id": catalog.catalog_id,
            "errors": validation.errors,
        })
        raise CatalogValidationError(catalog.catalog_id, validation.errors)

    _logger.info(
        "TAX_CATALOG_TRACE",
        extra={
            "trace_type": "TAX_CATALOG_TRACE",
            "catalog_id": catalog.catalog_id,
            "catalog_version": catalog.version,
            "checksum": catalog.checksum,
            "jurisdiction": catalog.jurisdiction,
            "tax_code_count": len(catalog.tax_codes),
            "customer_count": len(catalog.customers),
        },
    )

    return catalog


def _find_catalog(sets_dir: Path, jurisdiction: str) -> tuple[TaxCatalog, dict]:
    """Find the highest-version catalog declaring ``jurisdiction``.

    Scans every subdirectory of ``sets_dir`` holding a ``catalog.yaml``.

    Raises:
        FileNotFoundError: If ``sets_dir`` does not exist or nothing matches.
    """
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Catalog sets directory not found: {sets_dir}")

    candidates = []
    for subdir in sorted(sets_dir.iterdir()):
        catalog_file = subdir / _CATALOG_FILE
        if not subdir.is_dir() or not catalog_file.exists():
            continue
        catalog, raw = load_catalog_file(catalog_file)
        if catalog.jurisdiction.upper() == jurisdiction.upper():
            candidates.append((catalog, raw))

    if not candidates:
        raise FileNotFoundError(
            f"No tax catalog found for jurisdiction='{jurisdiction}' in {sets_dir}"
        )

    return max(candidates, key=lambda pair: pair[0].version)
