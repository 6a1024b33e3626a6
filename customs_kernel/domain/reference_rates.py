"""
ReferenceRateTable -- published exchange rates into the local currency.

The declaration form pre-fills the exchange rate from the declaration
currency chosen by the user. This table holds those reference rates so
callers can build a complete ValuationRequest; the valuation engine
itself never looks rates up.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from customs_kernel.domain.values import Currency, ExchangeRate
from customs_kernel.exceptions import ExchangeRateNotFoundError


@dataclass(frozen=True)
class ReferenceRateTable:
    """
    Immutable table of ``1 unit of currency = rate units of local_currency``.

    The local currency always converts to itself at 1.
    """

    local_currency: str
    rates: tuple[ExchangeRate, ...] = ()

    def __post_init__(self) -> None:
        local = Currency(self.local_currency)
        object.__setattr__(self, "local_currency", local.code)
        for rate in self.rates:
            if rate.to_currency != local:
                raise ValueError(
                    f"Reference rate {rate} does not convert into {local.code}"
                )
        codes = [rate.from_currency.code for rate in self.rates]
        if len(codes) != len(set(codes)):
            raise ValueError("Duplicate currency in reference rate table")

    @classmethod
    def from_mapping(
        cls, local_currency: str, rates: Mapping[str, Decimal | str | int]
    ) -> ReferenceRateTable:
        """Build a table from ``{currency_code: rate}``, sorted by code."""
        return cls(
            local_currency=local_currency,
            rates=tuple(
                ExchangeRate.of(code, local_currency, value)
                for code, value in sorted(rates.items())
            ),
        )

    def rate_for(self, currency: str) -> ExchangeRate:
        """
        Return the reference rate from ``currency`` into the local currency.

        Raises:
            ExchangeRateNotFoundError: If the table has no rate for it.
        """
        code = currency.upper().strip() if currency else ""
        for rate in self.rates:
            if rate.from_currency.code == code:
                return rate
        if code == self.local_currency:
            return ExchangeRate.of(code, code, 1)
        raise ExchangeRateNotFoundError(code or repr(currency), self.local_currency)

    @property
    def currencies(self) -> tuple[str, ...]:
        return tuple(rate.from_currency.code for rate in self.rates)
