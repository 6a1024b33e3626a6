"""
Config -> Kernel Bridges.

Convert an assembled PolicySetDefinition into the kernel value objects
the valuation engine consumes. They live here (the producer) because
neither the kernel nor the engines may import customs_config.

Usage:
    from customs_config.bridges import build_policy_pack

    pack = build_policy_pack(policy_set)
    result = evaluate(request, pack.routing_policy)
"""

from __future__ import annotations

from customs_config.schema import PolicyPack, PolicySetDefinition
from customs_kernel.domain.reference_rates import ReferenceRateTable
from customs_kernel.domain.routing_policy import RoutingPolicy


def build_routing_policy(policy_set: PolicySetDefinition) -> RoutingPolicy:
    """RoutingPolicy in the scope's local currency, tagged with the set id."""
    rp = policy_set.routing_policy
    return RoutingPolicy(
        sgs_value_threshold_local=rp.sgs_value_threshold,
        sgs_fee_rate=rp.sgs_fee_rate,
        sgs_fee_minimum_local=rp.sgs_fee_minimum,
        customs_flat_fee_local=rp.customs_flat_fee,
        fiscal_stamp_local=rp.fiscal_stamp,
        bank_payment_threshold_local=rp.bank_payment_threshold,
        local_currency=policy_set.scope.currency,
        policy_id=f"{policy_set.config_id}@v{policy_set.version}",
    )


def build_reference_rates(policy_set: PolicySetDefinition) -> ReferenceRateTable:
    return ReferenceRateTable.from_mapping(
        policy_set.scope.currency,
        {ref.currency: ref.rate for ref in policy_set.reference_rates},
    )


def build_policy_pack(policy_set: PolicySetDefinition) -> PolicyPack:
    return PolicyPack(
        config_id=policy_set.config_id,
        version=policy_set.version,
        checksum=policy_set.checksum,
        scope=policy_set.scope,
        routing_policy=build_routing_policy(policy_set),
        reference_rates=build_reference_rates(policy_set),
    )
