"""
Typed exception hierarchy for the tax kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A tax system must tell its caller exactly what went wrong with an invoice
line so the caller can surface it to the user. Callers catch by type and read
structured attributes; they never parse message strings.

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes

Example:
    try:
        draft.update_line_item("2", "tax_code_id", "VAT_25")
    except UnknownTaxCodeError as e:
        show_error(code=e.code, tax_code=e.tax_code_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TaxKernelError (base)
    |
    +-- LineItemError
    |   +-- UnknownTaxCodeError
    |   +-- NegativeQuantityError
    |   +-- NegativeUnitPriceError
    |   +-- UnsupportedLineItemFieldError
    |
    +-- InvoiceError
    |   +-- LineItemNotFoundError
    |   +-- LastLineItemError
    |   +-- InvalidDueDateError
    |   +-- UnknownCustomerError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |   +-- UnsupportedCurrencyError
    |
    +-- AmountOutOfRangeError
    |
    +-- CatalogError
        +-- CatalogValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                         | When Raised
-----------|------------------------------|--------------------------------------
Line item  | UNKNOWN_TAX_CODE             | Tax code id not in the catalog
           | NEGATIVE_QUANTITY            | Quantity below zero
           | NEGATIVE_UNIT_PRICE          | Unit price below zero
           | UNSUPPORTED_LINE_ITEM_FIELD  | Editing a derived or unknown field
-----------|------------------------------|--------------------------------------
Invoice    | LINE_ITEM_NOT_FOUND          | No line item with that id
           | LAST_LINE_ITEM               | Removing the only remaining line
           | INVALID_DUE_DATE             | Due date before issue date
           | UNKNOWN_CUSTOMER             | Customer id not in the catalog
-----------|------------------------------|--------------------------------------
Currency   | INVALID_CURRENCY             | Not a registered ISO 4217 code
           | CURRENCY_MISMATCH            | Mixed currencies in one operation
           | UNSUPPORTED_CURRENCY         | Currency not offered by the catalog
-----------|------------------------------|--------------------------------------
Magnitude  | AMOUNT_OUT_OF_RANGE          | Amount too large to calculate or round
-----------|------------------------------|--------------------------------------
Catalog    | CATALOG_VALIDATION_FAILED    | Reference catalog failed validation

UnknownTaxCodeError is recoverable: the caller shows it and lets the user pick
another tax code. Line validation errors are raised before the engine runs,
so a rejected edit never produces a tax amount.
"""


class TaxKernelError(Exception):
    """
    Base exception for all tax kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TAX_KERNEL_ERROR"


# Line item exceptions


class LineItemError(TaxKernelError):
    """Base exception for line item errors."""

    code: str = "LINE_ITEM_ERROR"


class UnknownTaxCodeError(LineItemError):
    """Tax code id is not present in the tax code catalog."""

    code: str = "UNKNOWN_TAX_CODE"

    def __init__(
        self,
        tax_code_id: str,
        available_codes: list[str] | None = None,
        line_item_id: str | None = None,
    ):
        self.tax_code_id = tax_code_id
        self.available_codes = sorted(available_codes or [])
        self.line_item_id = line_item_id
        where = f" on line item {line_item_id}" if line_item_id else ""
        super().__init__(f"Tax code not found{where}: {tax_code_id}")


class NegativeQuantityError(LineItemError):
    """Line item quantity is below zero."""

    code: str = "NEGATIVE_QUANTITY"

    def __init__(self, line_item_id: str, quantity: str):
        self.line_item_id = line_item_id
        self.quantity = quantity
        super().__init__(
            f"Quantity must not be negative on line item {line_item_id}: {quantity}"
        )


class NegativeUnitPriceError(LineItemError):
    """Line item unit price is below zero."""

    code: str = "NEGATIVE_UNIT_PRICE"

    def __init__(self, line_item_id: str, unit_price: str):
        self.line_item_id = line_item_id
        self.unit_price = unit_price
        super().__init__(
            f"Unit price must not be negative on line item {line_item_id}: {unit_price}"
        )


class UnsupportedLineItemFieldError(LineItemError):
    """Attempt to edit a field that is derived or does not exist."""

    code: str = "UNSUPPORTED_LINE_ITEM_FIELD"

    def __init__(self, field_name: str, editable_fields: list[str]):
        self.field_name = field_name
        self.editable_fields = editable_fields
        super().__init__(
            f"Line item field '{field_name}' cannot be edited; "
            f"editable fields: {', '.join(editable_fields)}"
        )


# Invoice exceptions


class InvoiceError(TaxKernelError):
    """Base exception for invoice draft errors."""

    code: str = "INVOICE_ERROR"


class LineItemNotFoundError(InvoiceError):
    """No line item with the given id exists on the invoice."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__(f"Line item not found: {line_item_id}")


class LastLineItemError(InvoiceError):
    """An invoice must always retain at least one line item."""

    code: str = "LAST_LINE_ITEM"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__(
            f"Cannot remove line item {line_item_id}: "
            f"an invoice must keep at least one line item"
        )


class InvalidDueDateError(InvoiceError):
    """Due date falls before the issue date."""

    code: str = "INVALID_DUE_DATE"

    def __init__(self, issue_date: str, due_date: str):
        self.issue_date = issue_date
        self.due_date = due_date
        super().__init__(
            f"Due date {due_date} is before issue date {issue_date}"
        )


class UnknownCustomerError(InvoiceError):
    """Customer id is not present in the reference catalog."""

    code: str = "UNKNOWN_CUSTOMER"

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer not found: {customer_id}")


# Currency exceptions


class CurrencyError(TaxKernelError):
    """Base exception for currency errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError, ValueError):
    """Currency code is not a registered ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: {currency}")


class CurrencyMismatchError(CurrencyError, ValueError):
    """Two amounts in different currencies were combined."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, expected: str, received: str, operation: str = "combine"):
        self.expected = expected
        self.received = received
        self.operation = operation
        super().__init__(
            f"Cannot {operation} Money with different currencies: "
            f"{expected} and {received}"
        )


class UnsupportedCurrencyError(CurrencyError):
    """Currency is valid but not offered for invoicing by the catalog."""

    code: str = "UNSUPPORTED_CURRENCY"

    def __init__(self, currency: str, supported: list[str]):
        self.currency = currency
        self.supported = supported
        super().__init__(
            f"Currency {currency} is not supported for invoicing; "
            f"supported: {', '.join(supported)}"
        )


# Magnitude exceptions


class AmountOutOfRangeError(TaxKernelError):
    """A quantity or amount is too large to calculate with or round exactly."""

    code: str = "AMOUNT_OUT_OF_RANGE"

    def __init__(
        self,
        field_name: str,
        value: str,
        limit: str | None = None,
        line_item_id: str | None = None,
    ):
        self.field_name = field_name
        self.value = value
        self.limit = limit
        self.line_item_id = line_item_id
        where = f" on line item {line_item_id}" if line_item_id else ""
        bound = f" (limit {limit})" if limit else ""
        super().__init__(f"{field_name} out of range{where}: {value}{bound}")


# Catalog exceptions


class CatalogError(TaxKernelError):
    """Base exception for reference catalog errors."""

    code: str = "CATALOG_ERROR"


class CatalogValidationError(CatalogError):
    """Reference catalog failed structural validation."""

    code: str = "CATALOG_VALIDATION_FAILED"

    def __init__(self, catalog_id: str, errors: list[str]):
        self.catalog_id = catalog_id
        self.errors = errors
        super().__init__(
            f"Catalog '{catalog_id}' failed validation:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )
