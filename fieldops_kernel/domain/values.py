"""
Values -- Currency and Money.

Responsibility:
    Engines compute with ``Money``; ORM columns store the bare Decimal
    amount, and services convert at the boundary with ``Money.of``.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Depends only on the currency
    registry.

Invariants enforced:
    - Amounts are Decimal, never float.
    - Arithmetic and comparison never mix currencies.
    - Rounding precision comes from the currency, and only happens when a
      caller asks for it with ``round()``.

Failure modes:
    - ValueError on a float or unparseable amount, an unsupported currency,
      or arithmetic across currencies.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fieldops_kernel.domain.currency import CurrencyRegistry


@dataclass(frozen=True, slots=True)
class Currency:
    """A supported ISO 4217 code, normalized to uppercase."""

    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", CurrencyRegistry.validate(self.code))

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def quantum(self) -> Decimal:
        return CurrencyRegistry.get_info(self.code).quantum

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


def _as_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (float, bool)) or not isinstance(value, (int, str)):
        raise ValueError(f"Money amount must be Decimal, int or str, got {value!r}")
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None


@functools.total_ordering
@dataclass(frozen=True, slots=True)
class Money:
    """
    A Decimal amount in one currency.

    Not rounded on construction or arithmetic; a split that needs cents
    calls ``round()`` (half-up) or quantizes with ``currency.quantum``.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _as_decimal(self.amount))
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        return Money(self.amount.quantize(self.currency.quantum, rounding=rounding), self.currency)

    def _same_currency(self, other: Money, op: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {op} Money with different currencies: {self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if isinstance(factor, float) or not isinstance(factor, (Decimal, int, str)):
            return NotImplemented
        return Money(self.amount * _as_decimal(factor), self.currency)

    __rmul__ = __mul__

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other, "compare")
        return self.amount < other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
