"""
Fee & Channel Calculator - inspection fee, fiscal stamp and payment channel.

Pure functions with no I/O. Policy amounts are provided as parameters.

Fee rules:
    - PVI-exempt declarations pay no inspection fee, whatever the routing.
    - SGS: max(FOB local x SGS rate, SGS minimum).
    - CUSTOMS: flat fee.
    - The fiscal stamp is always charged, exempt or not.

Payment channel is chosen from the grand total (FOB plus freight and
insurance where the INCOTERM includes them), not from the FOB-only figure
used for routing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from customs_engines.routing import RoutingDestination
from customs_kernel.domain.routing_policy import RoutingPolicy
from customs_kernel.domain.values import Money
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.fees")


class PaymentChannel(str, Enum):
    """Where declaration fees are paid."""

    CASH_COUNTER = "CASH_COUNTER"  # Post office / chamber counters
    BANK = "BANK"  # Online bank payment


class InspectionFeeBasis(str, Enum):
    """Which fee rule produced the inspection fee."""

    EXEMPT = "exempt"
    SGS_RATE = "sgs_rate"
    SGS_MINIMUM = "sgs_minimum"
    CUSTOMS_FLAT = "customs_flat"


@dataclass(frozen=True)
class FeeBreakdown:
    """
    Fees due on a declaration, in local currency.

    Attributes:
        inspection_fee: Inspection fee after exemption and floor
        fiscal_stamp: Fixed, non-waivable stamp
        basis: Rule that produced the inspection fee
    """

    inspection_fee: Money
    fiscal_stamp: Money
    basis: InspectionFeeBasis

    @property
    def total_fees(self) -> Money:
        return self.inspection_fee + self.fiscal_stamp


def calculate_inspection_fee(
    routing_destination: RoutingDestination,
    total_fob_local: Money,
    is_pvi_exempt: bool,
    policy: RoutingPolicy,
) -> tuple[Money, InspectionFeeBasis]:
    """
    Calculate the inspection fee.

    Pure function.

    Returns:
        Tuple of (inspection_fee, basis)
    """
    if is_pvi_exempt:
        return Money.zero(policy.local_currency), InspectionFeeBasis.EXEMPT

    if routing_destination == RoutingDestination.SGS:
        proportional = total_fob_local * policy.sgs_fee_rate
        minimum = policy.local(policy.sgs_fee_minimum_local)
        if proportional < minimum:
            logger.debug("sgs_fee_floor_applied", extra={
                "proportional_fee": str(proportional.amount),
                "minimum_fee": str(minimum.amount),
            })
            return minimum, InspectionFeeBasis.SGS_MINIMUM
        return proportional, InspectionFeeBasis.SGS_RATE

    return policy.local(policy.customs_flat_fee_local), InspectionFeeBasis.CUSTOMS_FLAT


def calculate_fees(
    routing_destination: RoutingDestination,
    total_fob_local: Money,
    is_pvi_exempt: bool,
    policy: RoutingPolicy,
) -> FeeBreakdown:
    """
    Calculate the inspection fee and the fiscal stamp.

    Pure function. Total over validated input: it cannot fail.

    Args:
        routing_destination: Outcome of routing classification
        total_fob_local: FOB + FOB charges in local currency
        is_pvi_exempt: Exemption from the import verification programme
        policy: Active routing policy

    Returns:
        FeeBreakdown
    """
    inspection_fee, basis = calculate_inspection_fee(
        routing_destination, total_fob_local, is_pvi_exempt, policy
    )
    breakdown = FeeBreakdown(
        inspection_fee=inspection_fee,
        fiscal_stamp=policy.local(policy.fiscal_stamp_local),
        basis=basis,
    )

    logger.info("fees_calculated", extra={
        "routing_destination": routing_destination.value,
        "is_pvi_exempt": is_pvi_exempt,
        "basis": basis.value,
        "inspection_fee": str(breakdown.inspection_fee.amount),
        "fiscal_stamp": str(breakdown.fiscal_stamp.amount),
        "total_fees": str(breakdown.total_fees.amount),
    })

    return breakdown


def select_payment_channel(grand_total_local: Money, policy: RoutingPolicy) -> PaymentChannel:
    """BANK at or above the bank threshold, CASH_COUNTER below it."""
    threshold = policy.local(policy.bank_payment_threshold_local)
    if grand_total_local >= threshold:
        return PaymentChannel.BANK
    return PaymentChannel.CASH_COUNTER
