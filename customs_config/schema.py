"""
Policy set schema.

Two artifacts:
  PolicySetDefinition = source artifact (human-authored YAML, versioned)
  PolicyPack          = runtime artifact (kernel value objects, frozen)

YAML fragments are parsed into the definition types by the loader,
composed by the assembler, and turned into a PolicyPack by the bridges.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from customs_config.lifecycle import ConfigStatus
from customs_kernel.domain.reference_rates import ReferenceRateTable
from customs_kernel.domain.routing_policy import RoutingPolicy

# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PolicyScope:
    """Where and when a policy set applies."""

    country: str  # ISO 3166-1 alpha-2, e.g. CM
    tenant: str  # "*" for every tenant of the country
    currency: str  # Local settlement currency
    effective_from: date
    effective_to: date | None = None

    def covers(self, country: str, tenant: str, as_of_date: date) -> bool:
        if self.country != country:
            return False
        if self.tenant not in ("*", tenant):
            return False
        if as_of_date < self.effective_from:
            return False
        return self.effective_to is None or as_of_date <= self.effective_to


# ---------------------------------------------------------------------------
# Source definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RoutingPolicyDef:
    """Routing and fee constants as authored in routing_policy.yaml."""

    sgs_value_threshold: Decimal
    sgs_fee_rate: Decimal
    sgs_fee_minimum: Decimal
    customs_flat_fee: Decimal
    fiscal_stamp: Decimal
    bank_payment_threshold: Decimal


@dataclass(frozen=True)
class ReferenceRateDef:
    """One published reference rate: 1 ``currency`` = ``rate`` local units."""

    currency: str
    rate: Decimal


@dataclass(frozen=True)
class PolicySetDefinition:
    """Assembled policy set, before conversion to kernel values."""

    config_id: str
    version: int
    checksum: str
    scope: PolicyScope
    status: ConfigStatus
    routing_policy: RoutingPolicyDef
    reference_rates: tuple[ReferenceRateDef, ...] = ()
    predecessor: str | None = None
    description: str = ""


# ---------------------------------------------------------------------------
# Runtime artifact
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PolicyPack:
    """
    The policy callers hand to the valuation engine.

    ``checksum`` ties every valuation back to the exact policy set it was
    computed under.
    """

    config_id: str
    version: int
    checksum: str
    scope: PolicyScope
    routing_policy: RoutingPolicy
    reference_rates: ReferenceRateTable
