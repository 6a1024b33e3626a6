"""
customs_engines.rerate -- Re-evaluate many declarations under one policy.

Responsibility:
    Run ``evaluate`` for every declaration of a batch (typically after a
    policy change) and collect a per-declaration outcome. One bad
    declaration never aborts the batch: a ``ValuationError`` is recorded
    on its item with the error code and message.

Architecture position:
    Engines -- pure orchestration over ``customs_engines.valuation``.
    No persistence and no clock; the caller stores the report.

Failure modes:
    - ValuationError on an item: recorded, batch continues.
    - Any other exception propagates. It signals a defect, not bad input.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from customs_engines.valuation import ValuationRequest, ValuationResult, evaluate
from customs_kernel.domain.routing_policy import RoutingPolicy
from customs_kernel.exceptions import ValuationError
from customs_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.rerate")


class RerateItemStatus(str, Enum):
    """Outcome of re-evaluating one declaration."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RerateStatus(str, Enum):
    """Outcome of the whole batch."""

    COMPLETED = "completed"  # Every declaration succeeded
    PARTIALLY_COMPLETED = "partially_completed"  # Some declarations failed
    FAILED = "failed"  # No declaration succeeded


@dataclass(frozen=True)
class RerateItem:
    """Result of re-evaluating a single declaration."""

    item_index: int
    declaration_ref: str
    status: RerateItemStatus
    result: ValuationResult | None = None
    error_code: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class RerateReport:
    """Immutable result of a re-rating run, items in input order."""

    status: RerateStatus
    items: tuple[RerateItem, ...] = ()
    policy_id: str | None = None

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.status == RerateItemStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if item.status == RerateItemStatus.FAILED)

    def results(self) -> dict[str, ValuationResult]:
        """Successful results keyed by declaration reference."""
        return {
            item.declaration_ref: item.result
            for item in self.items
            if item.result is not None
        }


def _overall_status(succeeded: int, failed: int) -> RerateStatus:
    if failed == 0:
        return RerateStatus.COMPLETED
    if succeeded == 0:
        return RerateStatus.FAILED
    return RerateStatus.PARTIALLY_COMPLETED


def rerate_declarations(
    requests: Mapping[str, ValuationRequest],
    policy: RoutingPolicy,
) -> RerateReport:
    """
    Re-evaluate every declaration in ``requests`` under ``policy``.

    Args:
        requests: Declaration reference -> request, iterated in mapping order
        policy: Policy applied to every declaration

    Returns:
        RerateReport. An empty batch is COMPLETED.
    """
    t0 = time.monotonic()
    logger.info("rerate_started", extra={
        "declaration_count": len(requests),
        "policy_id": policy.policy_id,
    })

    items: list[RerateItem] = []
    for index, (ref, request) in enumerate(requests.items()):
        with LogContext.bind(declaration_ref=ref, policy_id=policy.policy_id):
            try:
                result = evaluate(request, policy)
            except ValuationError as exc:
                logger.warning("rerate_item_failed", exc_info=True, extra={
                    "item_index": index,
                })
                items.append(RerateItem(
                    item_index=index,
                    declaration_ref=ref,
                    status=RerateItemStatus.FAILED,
                    error_code=exc.code,
                    error_message=str(exc),
                ))
                continue

        items.append(RerateItem(
            item_index=index,
            declaration_ref=ref,
            status=RerateItemStatus.SUCCEEDED,
            result=result,
        ))

    report = RerateReport(
        status=_overall_status(
            succeeded=sum(1 for i in items if i.status == RerateItemStatus.SUCCEEDED),
            failed=sum(1 for i in items if i.status == RerateItemStatus.FAILED),
        ),
        items=tuple(items),
        policy_id=policy.policy_id,
    )

    logger.info("rerate_completed", extra={
        "status": report.status.value,
        "total": report.total,
        "succeeded": report.succeeded,
        "failed": report.failed,
        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
    })

    return report
