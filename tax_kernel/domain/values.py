"""
Monetary values for the tax kernel.

Every price, taxable amount and tax figure on an invoice is a ``Money``:
an exact Decimal tied to a ``Currency``. Arithmetic refuses to mix
currencies and never rounds on its own; the display layer rounds
explicitly with ``Money.round()``.

Failure modes:
    - InvalidCurrencyError for a code missing from CurrencyRegistry.
    - TypeError for a float amount or scalar.
    - ValueError for an amount that does not parse as a number.
    - CurrencyMismatchError when two currencies meet in one operation.
    - AmountOutOfRangeError when rounding needs more digits than the
      decimal context holds.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from tax_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from tax_kernel.exceptions import (
    AmountOutOfRangeError,
    CurrencyMismatchError,
    InvalidCurrencyError,
)


def _exact(value: Decimal | int | str) -> Decimal:
    """Decimal from Decimal, int or numeric text. Floats are refused."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (float, bool)):
        raise TypeError(
            f"Monetary values take Decimal, int or str, not {type(value).__name__}: "
            f"{value!r}"
        )
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e


def _scalar(value: object) -> Decimal | None:
    """Factor for multiplication or division, or None when unsupported."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return _exact(value)
    return None


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 code, normalized to upper case.

    Only codes known to CurrencyRegistry can be constructed, so every
    Currency has a defined precision.
    """

    code: str

    def __post_init__(self) -> None:
        info = CurrencyRegistry.get_info(self.code)
        if info is None:
            raise InvalidCurrencyError(self.code)
        object.__setattr__(self, "code", info.code)

    @classmethod
    def of(cls, value: str | Currency) -> Currency:
        if isinstance(value, Currency):
            return value
        return cls(value)

    @property
    def info(self) -> CurrencyInfo:
        return CurrencyRegistry.get_info(self.code)

    @property
    def decimal_places(self) -> int:
        return self.info.decimal_places

    @property
    def quantum(self) -> Decimal:
        return self.info.quantum

    @property
    def name(self) -> str:
        return self.info.name

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    An exact amount in one currency.

    Equality is numeric (``Money.of("1", "RWF") == Money.of("1.0", "RWF")``)
    and instances are hashable.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _exact(self.amount))
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(
                f"currency must be Currency or str, got {type(self.currency).__name__}"
            )

    @classmethod
    def of(cls, amount: Decimal | int | str, currency: str | Currency) -> Money:
        return cls(_exact(amount), Currency.of(currency))

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        return cls(Decimal("0"), Currency.of(currency))

    @property
    def is_zero(self) -> bool:
        return self.amount.is_zero()

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Amount quantized to the currency's minor unit.

        Raises:
            AmountOutOfRangeError: If the rounded amount has more digits
                than the decimal context can hold.
        """
        try:
            amount = self.amount.quantize(self.currency.quantum, rounding=rounding)
        except InvalidOperation as e:
            raise AmountOutOfRangeError("amount", str(self.amount)) from e
        return Money(amount, self.currency)

    def with_currency(self, currency: str | Currency) -> Money:
        """Same number in another currency. This is a relabel, not a conversion."""
        return Money(self.amount, Currency.of(currency))

    def _other_amount(self, other: Money, operation: str) -> Decimal:
        if other.currency != self.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code, operation)
        return other.amount

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + self._other_amount(other, "add"), self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount - self._other_amount(other, "subtract"), self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __abs__(self) -> Money:
        return Money(abs(self.amount), self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        scalar = _scalar(factor)
        if scalar is None:
            return NotImplemented
        return Money(self.amount * scalar, self.currency)

    __rmul__ = __mul__

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        scalar = _scalar(divisor)
        if scalar is None:
            return NotImplemented
        return Money(self.amount / scalar, self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount < self._other_amount(other, "compare")

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount <= self._other_amount(other, "compare")

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount > self._other_amount(other, "compare")

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount >= self._other_amount(other, "compare")

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
