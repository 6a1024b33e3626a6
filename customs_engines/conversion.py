"""
Currency Converter - local-currency totals for a declaration.

Pure functions with no I/O. The exchange rate is supplied by the caller
(typically from the reference rate table of the active policy set).

Freight and insurance enter the taxable base only for INCOTERMs where the
seller bears them up to destination. For the other terms the amounts
remain on the request for display but convert to zero here.

All arithmetic is Decimal and nothing is rounded between stages.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from customs_kernel.domain.values import ExchangeRate, Money
from customs_kernel.exceptions import InvalidRateError
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.conversion")


class Incoterm(str, Enum):
    """INCOTERMS accepted on an import declaration."""

    FOB = "FOB"  # Free On Board
    CIF = "CIF"  # Cost, Insurance and Freight
    FAS = "FAS"  # Free Alongside Ship
    CFR = "CFR"  # Cost and Freight
    CIP = "CIP"  # Carriage and Insurance Paid
    CPT = "CPT"  # Carriage Paid To
    DAP = "DAP"  # Delivered At Place
    DPU = "DPU"  # Delivered at Place Unloaded
    DDP = "DDP"  # Delivered Duty Paid
    EXW = "EXW"  # Ex Works
    FCA = "FCA"  # Free Carrier

    @property
    def includes_freight_and_insurance(self) -> bool:
        return self in FREIGHT_INSURANCE_INCLUSIVE


FREIGHT_INSURANCE_INCLUSIVE: frozenset[Incoterm] = frozenset({
    Incoterm.CIF,
    Incoterm.CFR,
    Incoterm.CIP,
    Incoterm.CPT,
    Incoterm.DAP,
    Incoterm.DPU,
    Incoterm.DDP,
})


@dataclass(frozen=True)
class ConvertedTotals:
    """
    Declaration totals after conversion.

    Attributes:
        total_fob_local: (FOB + FOB charges) in local currency
        total_freight_insurance_local: freight + insurance in local currency,
            zero for non-inclusive INCOTERMs
        grand_total_local: total_fob_local + total_freight_insurance_local
        total_amount_declaration: the same base in declaration currency
    """

    total_fob_local: Money
    total_freight_insurance_local: Money
    grand_total_local: Money
    total_amount_declaration: Money


def validate_rate(rate: Decimal) -> None:
    """
    Raises:
        InvalidRateError: If the rate is zero or negative.
    """
    if rate <= Decimal("0"):
        logger.error("exchange_rate_invalid", extra={"rate": str(rate)})
        raise InvalidRateError(str(rate), "exchange rate must be positive")


def convert_totals(
    total_fob_declaration: Money,
    fob_charges: Decimal,
    freight_amount: Decimal,
    insurance_amount: Decimal,
    exchange_rate_to_local: Decimal,
    incoterm: Incoterm,
    local_currency: str,
) -> ConvertedTotals:
    """
    Convert aggregated declaration totals into the local currency.

    Pure function.

    Args:
        total_fob_declaration: Sum of extended FOB values (declaration currency)
        fob_charges: Charges to bring goods FOB (declaration currency)
        freight_amount: International freight (declaration currency)
        insurance_amount: Cargo insurance (declaration currency)
        exchange_rate_to_local: Local units per 1 declaration unit
        incoterm: Trade term deciding whether freight/insurance count
        local_currency: Settlement currency code

    Returns:
        ConvertedTotals

    Raises:
        InvalidRateError: If exchange_rate_to_local <= 0
    """
    validate_rate(exchange_rate_to_local)

    currency = total_fob_declaration.currency
    rate = ExchangeRate.of(currency, local_currency, exchange_rate_to_local)

    fob_base = total_fob_declaration + Money.of(fob_charges, currency)
    if incoterm.includes_freight_and_insurance:
        freight_insurance = Money.of(freight_amount + insurance_amount, currency)
    else:
        freight_insurance = Money.zero(currency)

    total_fob_local = rate.convert(fob_base)
    total_freight_insurance_local = rate.convert(freight_insurance)
    grand_total_local = total_fob_local + total_freight_insurance_local

    logger.debug("totals_converted", extra={
        "incoterm": incoterm.value,
        "rate": str(exchange_rate_to_local),
        "from_currency": currency.code,
        "to_currency": local_currency,
        "freight_insurance_included": incoterm.includes_freight_and_insurance,
        "total_fob_local": str(total_fob_local.amount),
        "grand_total_local": str(grand_total_local.amount),
    })

    return ConvertedTotals(
        total_fob_local=total_fob_local,
        total_freight_insurance_local=total_freight_insurance_local,
        grand_total_local=grand_total_local,
        total_amount_declaration=fob_base + freight_insurance,
    )
