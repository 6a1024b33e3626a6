"""
Routing Classifier - decides where a declaration is inspected.

Pure decision table over the goods lines and the FOB value in local
currency. Rules are evaluated in priority order and the first match
wins:

    1. special merchandise on any line  -> CUSTOMS  SPECIAL_MERCHANDISE
    2. FOB local > SGS threshold         -> SGS      VALUE_ABOVE_THRESHOLD
    3. otherwise                         -> CUSTOMS  VALUE_AT_OR_BELOW_THRESHOLD

Classification uses the FOB-only local figure (FOB + FOB charges), never
freight or insurance.

Reason codes are displayed verbatim by consumers. New rules append new
codes; existing codes are never repurposed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from customs_engines.normalizer import GoodsLine
from customs_kernel.domain.routing_policy import RoutingPolicy
from customs_kernel.domain.values import Money
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.routing")


class RoutingDestination(str, Enum):
    """Inspection destination."""

    SGS = "SGS"  # Third-party verification agent
    CUSTOMS = "CUSTOMS"  # Direct customs handling


class RoutingReason(str, Enum):
    """Stable reason codes for a routing decision."""

    SPECIAL_MERCHANDISE = "SPECIAL_MERCHANDISE"
    VALUE_ABOVE_THRESHOLD = "VALUE_ABOVE_THRESHOLD"
    VALUE_AT_OR_BELOW_THRESHOLD = "VALUE_AT_OR_BELOW_THRESHOLD"


@dataclass(frozen=True)
class RoutingFacts:
    """Inputs every routing rule is evaluated against."""

    lines: tuple[GoodsLine, ...]
    total_fob_local: Money
    sgs_threshold: Money

    @property
    def special_line_indexes(self) -> tuple[int, ...]:
        return tuple(i for i, line in enumerate(self.lines) if line.has_special_flag)


@dataclass(frozen=True)
class RoutingRule:
    """One row of the routing decision table."""

    reason: RoutingReason
    destination: RoutingDestination
    matches: Callable[[RoutingFacts], bool]


# Priority order. The last rule always matches.
ROUTING_RULES: tuple[RoutingRule, ...] = (
    RoutingRule(
        reason=RoutingReason.SPECIAL_MERCHANDISE,
        destination=RoutingDestination.CUSTOMS,
        matches=lambda facts: any(line.has_special_flag for line in facts.lines),
    ),
    RoutingRule(
        reason=RoutingReason.VALUE_ABOVE_THRESHOLD,
        destination=RoutingDestination.SGS,
        matches=lambda facts: facts.total_fob_local > facts.sgs_threshold,
    ),
    RoutingRule(
        reason=RoutingReason.VALUE_AT_OR_BELOW_THRESHOLD,
        destination=RoutingDestination.CUSTOMS,
        matches=lambda facts: True,
    ),
)


@dataclass(frozen=True)
class RoutingDecision:
    """
    Outcome of the routing classification.

    Attributes:
        destination: SGS or CUSTOMS
        reason: Stable reason code
        sgs_threshold: Threshold the FOB value was compared against
        special_line_indexes: Goods lines carrying a special-merchandise flag
    """

    destination: RoutingDestination
    reason: RoutingReason
    sgs_threshold: Money
    special_line_indexes: tuple[int, ...] = ()

    @property
    def message(self) -> str:
        """Human-readable reason for display."""
        threshold = _format_amount(self.sgs_threshold)
        if self.reason == RoutingReason.SPECIAL_MERCHANDISE:
            return "Special merchandise (used vehicles, poultry chicks, eggs)"
        if self.reason == RoutingReason.VALUE_ABOVE_THRESHOLD:
            return f"FOB value > {threshold}"
        return f"FOB value <= {threshold}"


def _format_amount(money: Money) -> str:
    rounded = money.round()
    return f"{rounded.amount:,}".replace(",", " ") + f" {rounded.currency.code}"


def classify_routing(
    goods_lines: Sequence[GoodsLine],
    total_fob_local: Money,
    policy: RoutingPolicy,
) -> RoutingDecision:
    """
    Decide the inspection destination.

    Pure function. Total over validated input: it cannot fail.

    Args:
        goods_lines: Validated goods lines
        total_fob_local: FOB + FOB charges in local currency
        policy: Active routing policy

    Returns:
        RoutingDecision from the first matching rule
    """
    facts = RoutingFacts(
        lines=tuple(goods_lines),
        total_fob_local=total_fob_local,
        sgs_threshold=policy.local(policy.sgs_value_threshold_local),
    )

    rule = next(r for r in ROUTING_RULES if r.matches(facts))

    decision = RoutingDecision(
        destination=rule.destination,
        reason=rule.reason,
        sgs_threshold=facts.sgs_threshold,
        special_line_indexes=facts.special_line_indexes,
    )

    logger.info("routing_classified", extra={
        "destination": decision.destination.value,
        "reason": decision.reason.value,
        "total_fob_local": str(total_fob_local.amount),
        "sgs_threshold": str(policy.sgs_value_threshold_local),
        "special_line_count": len(decision.special_line_indexes),
    })

    return decision
