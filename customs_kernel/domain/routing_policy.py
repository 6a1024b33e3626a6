"""
RoutingPolicy -- thresholds, rates and flat fees for one country/tenant.

Responsibility:
    Carries every policy constant the valuation pipeline needs. The
    policy is supplied to the engine per call and never looked up from
    global state during a computation, so a policy change cannot affect
    an evaluation already in flight.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.
    Built by ``customs_config`` from YAML policy sets, or directly by
    callers and tests.

Failure modes:
    - ValueError on construction with a negative amount, a rate outside
      [0, 1] or an unknown local currency. These are configuration
      defects, not user-correctable input errors.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal

from customs_kernel.domain.values import Currency, Money, to_decimal

_AMOUNT_FIELDS = (
    "sgs_value_threshold_local",
    "sgs_fee_minimum_local",
    "customs_flat_fee_local",
    "fiscal_stamp_local",
    "bank_payment_threshold_local",
)


@dataclass(frozen=True)
class RoutingPolicy:
    """
    Immutable routing and fee policy.

    All ``*_local`` amounts are in ``local_currency``.
    ``sgs_fee_rate`` is a decimal fraction (0.0095 for 0.95%).
    """

    sgs_value_threshold_local: Decimal
    sgs_fee_rate: Decimal
    sgs_fee_minimum_local: Decimal
    customs_flat_fee_local: Decimal
    fiscal_stamp_local: Decimal
    bank_payment_threshold_local: Decimal
    local_currency: str = "XAF"
    policy_id: str | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name in _AMOUNT_FIELDS or f.name == "sgs_fee_rate":
                object.__setattr__(self, f.name, to_decimal(getattr(self, f.name)))

        for name in _AMOUNT_FIELDS:
            if getattr(self, name) < Decimal("0"):
                raise ValueError(f"{name} cannot be negative")

        if not (Decimal("0") <= self.sgs_fee_rate <= Decimal("1")):
            raise ValueError("sgs_fee_rate must be between 0 and 1")

        object.__setattr__(self, "local_currency", Currency(self.local_currency).code)

    def local(self, amount: Decimal) -> Money:
        """Wrap a policy amount as Money in the local currency."""
        return Money.of(amount, self.local_currency)

    @property
    def sgs_fee_rate_percent(self) -> Decimal:
        return self.sgs_fee_rate * Decimal("100")
