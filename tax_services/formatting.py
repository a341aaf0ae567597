"""Display formatting for invoice amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP

from tax_kernel.domain.values import Money


def format_money(money: Money, *, with_code: bool = True) -> str:
    """
    Render an amount for display, rounded to the currency's precision.

    >>> format_money(Money.of("1000000", "RWF"))
    'RWF 1,000,000'
    >>> format_money(Money.of("1250.5", "USD"))
    'USD 1,250.50'
    """
    rounded = money.round(ROUND_HALF_UP)
    places = money.currency.decimal_places
    text = f"{rounded.amount:,.{places}f}"
    if with_code:
        return f"{money.currency.code} {text}"
    return text


def format_deduction(money: Money, *, with_code: bool = True) -> str:
    """Render a withheld amount with a leading minus sign."""
    return "-" + format_money(abs(money), with_code=with_code)
