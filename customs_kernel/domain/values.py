"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides the value types used across the valuation pipeline:
    Currency, Money and ExchangeRate. Amounts are always ``Decimal``
    paired with an ISO 4217 currency.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except customs_kernel.domain.currency.

Invariants enforced:
    - Decimal-only amounts: floats are converted through ``str`` so that
      binary drift never enters a computation.
    - Currency codes are validated at construction time.
    - Arithmetic never mixes currencies silently.
    - Money is never auto-rounded; callers round explicitly at
      presentation time with ``Money.round()``.

Failure modes:
    - ValueError on construction with invalid amounts, currencies or rates.
    - ValueError when arithmetic or comparison mixes currencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from customs_kernel.domain.currency import CurrencyRegistry


def to_decimal(value: Decimal | str | int | float) -> Decimal:
    """Coerce a numeric input to Decimal without passing through binary float."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid decimal value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid decimal value: {value!r}") from e
    # NaN and infinities cannot be ordered against thresholds
    if not result.is_finite():
        raise ValueError(f"Invalid decimal value: {value!r}")
    return result


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Normalized (uppercased, stripped) on construction; unknown codes are
    rejected immediately.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def name(self) -> str:
        info = CurrencyRegistry.get_info(self.code)
        return info.name if info else self.code

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency -- they are never separated.

    Guarantees:
        - Immutable and hashable
        - amount is always a Decimal
        - Same-currency constraint on arithmetic and comparison

    Non-goals:
        - Does NOT perform currency conversion (use ExchangeRate.convert)
        - Does NOT auto-round
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """Factory method for creating Money."""
        return cls(amount=to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's minor unit. Returns a new Money."""
        info = CurrencyRegistry.get_info(self.currency.code)
        return Money(
            amount=self.amount.quantize(info.quantize_exponent, rounding=rounding),
            currency=self.currency,
        )

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {operation} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if isinstance(factor, (int, str)) and not isinstance(factor, bool):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """
    Exchange rate between two currencies.

    Represents: 1 unit of from_currency = rate units of to_currency.
    The rate must be a positive Decimal.
    """

    from_currency: Currency
    to_currency: Currency
    rate: Decimal

    def __post_init__(self) -> None:
        if isinstance(self.from_currency, str):
            object.__setattr__(self, "from_currency", Currency(self.from_currency))
        if isinstance(self.to_currency, str):
            object.__setattr__(self, "to_currency", Currency(self.to_currency))

        if not isinstance(self.rate, Decimal):
            object.__setattr__(self, "rate", to_decimal(self.rate))

        if self.rate <= Decimal("0"):
            raise ValueError(f"Exchange rate must be positive: {self.rate}")

    @classmethod
    def of(
        cls,
        from_currency: str | Currency,
        to_currency: str | Currency,
        rate: Decimal | str | int,
    ) -> ExchangeRate:
        return cls(from_currency=from_currency, to_currency=to_currency, rate=to_decimal(rate))

    def convert(self, money: Money) -> Money:
        """
        Convert money from from_currency into to_currency.

        Raises:
            ValueError: If money currency doesn't match from_currency.
        """
        if money.currency != self.from_currency:
            raise ValueError(
                f"Money currency {money.currency} doesn't match "
                f"rate from_currency {self.from_currency}"
            )
        return Money(amount=money.amount * self.rate, currency=self.to_currency)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_currency.code, self.to_currency.code)

    def __str__(self) -> str:
        return f"{self.from_currency}/{self.to_currency} = {self.rate}"
