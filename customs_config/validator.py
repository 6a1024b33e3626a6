"""
Policy Set Validator (``customs_config.validator``).

Validates an assembled ``PolicySetDefinition`` before it is turned into
kernel values.

Errors block use of the set. Warnings flag settings that are legal but
unusual and deserve review.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from customs_config.schema import PolicySetDefinition
from customs_kernel.domain.currency import CurrencyRegistry


@dataclass
class ConfigValidationResult:
    """``is_valid`` is True only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_policy_set(policy_set: PolicySetDefinition) -> ConfigValidationResult:
    """Check scope, routing constants and reference rates of a set."""
    result = ConfigValidationResult()
    scope = policy_set.scope

    if not CurrencyRegistry.is_valid(scope.currency):
        result.add_error(f"scope.currency {scope.currency!r} is not a supported ISO 4217 code")

    if scope.effective_to is not None and scope.effective_to < scope.effective_from:
        result.add_error(
            f"scope.effective_to {scope.effective_to} precedes "
            f"effective_from {scope.effective_from}"
        )

    rp = policy_set.routing_policy
    for name in (
        "sgs_value_threshold",
        "sgs_fee_minimum",
        "customs_flat_fee",
        "fiscal_stamp",
        "bank_payment_threshold",
    ):
        if getattr(rp, name) < Decimal("0"):
            result.add_error(f"routing_policy.{name} cannot be negative")

    if not (Decimal("0") <= rp.sgs_fee_rate <= Decimal("1")):
        result.add_error("routing_policy.sgs_fee_rate must be a fraction between 0 and 1")
    elif rp.sgs_fee_rate > Decimal("0.1"):
        # 0.95 instead of 0.0095 is the usual authoring mistake
        result.add_warning(
            f"routing_policy.sgs_fee_rate {rp.sgs_fee_rate} exceeds 10%; "
            "rates are fractions, not percentages"
        )

    if rp.bank_payment_threshold < rp.sgs_value_threshold:
        result.add_warning("bank_payment_threshold is below sgs_value_threshold")

    for ref in policy_set.reference_rates:
        if not CurrencyRegistry.is_valid(ref.currency):
            result.add_error(f"reference_rates: unsupported currency {ref.currency!r}")
        if ref.rate <= Decimal("0"):
            result.add_error(f"reference_rates.{ref.currency} must be positive")
        if ref.currency == scope.currency and ref.rate != Decimal("1"):
            result.add_error(
                f"reference_rates.{ref.currency} is the local currency and must be 1"
            )

    return result
