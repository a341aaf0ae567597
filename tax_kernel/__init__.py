"""
Tax Kernel - invoice taxation core

Immutable domain values and typed errors for invoice tax calculation:
- Decimal-only Money paired with an ISO 4217 Currency
- Static tax code catalog types (VAT, WHT, EXEMPT)
- Line items whose derived amounts only the engine produces
- Structured JSON logging
"""

__version__ = "0.1.0"
