"""
Currency registry -- the ISO 4217 codes an invoice may be denominated in.

Each entry records the currency's minor-unit digits, which fix the
precision used when an amount is rounded for display (0 for RWF, 2 for
USD). Lookups are case-insensitive and ignore surrounding whitespace.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

# code, minor-unit digits, name
_ISO_4217 = (
    # East African Community and neighbours
    ("RWF", 0, "Rwandan Franc"),
    ("BIF", 0, "Burundian Franc"),
    ("UGX", 0, "Ugandan Shilling"),
    ("KES", 2, "Kenyan Shilling"),
    ("TZS", 2, "Tanzanian Shilling"),
    ("CDF", 2, "Congolese Franc"),
    ("SSP", 2, "South Sudanese Pound"),
    ("XAF", 0, "Central African CFA Franc"),
    ("XOF", 0, "West African CFA Franc"),
    ("ZAR", 2, "South African Rand"),
    # Supplier billing currencies
    ("USD", 2, "US Dollar"),
    ("EUR", 2, "Euro"),
    ("GBP", 2, "Pound Sterling"),
    ("CHF", 2, "Swiss Franc"),
    ("CNY", 2, "Chinese Yuan"),
    ("AED", 2, "UAE Dirham"),
    ("INR", 2, "Indian Rupee"),
    ("JPY", 0, "Japanese Yen"),
    ("KWD", 3, "Kuwaiti Dinar"),
    ("BHD", 3, "Bahraini Dinar"),
)


@dataclass(frozen=True)
class CurrencyInfo:
    """One registry entry."""

    code: str
    decimal_places: int
    name: str

    @property
    def quantum(self) -> Decimal:
        """Smallest representable unit: 1 for RWF, 0.01 for USD."""
        return Decimal(1).scaleb(-self.decimal_places)

    @property
    def rounding_tolerance(self) -> Decimal:
        """Largest difference display rounding can introduce per amount."""
        return self.quantum


def _normalize(code: object) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


class CurrencyRegistry:
    """Read-only lookup over the supported ISO 4217 codes."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        code: CurrencyInfo(code, places, name) for code, places, name in _ISO_4217
    }

    # Precision assumed for a code that is not registered
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(_normalize(code))

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return cls.get_info(code) is not None

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        if info is None:
            return cls.DEFAULT_DECIMAL_PLACES
        return info.decimal_places

    @classmethod
    def get_rounding_tolerance(cls, code: str) -> Decimal:
        return Decimal(1).scaleb(-cls.get_decimal_places(code))

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES)
