"""
Module: customs_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    valuation pipeline. This is the import surface for declaration forms,
    submission validators and re-rating jobs.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import customs_kernel (and sibling engine modules).
    MUST NOT import customs_config; the policy arrives as a parameter.

Invariants enforced:
    - Purity: engines never read the clock, files or environment.
    - Decimal-only arithmetic: floats are converted through ``str``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    ``evaluate`` is traced via ``@traced_engine`` (see
    ``customs_engines.tracer``), emitting CUSTOMS_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from customs_engines import ValuationRequest, evaluate
    from customs_engines.rerate import rerate_declarations
"""

from customs_kernel.logging_config import get_logger

logger = get_logger("engines")

from customs_engines.conversion import (  # noqa: E402
    FREIGHT_INSURANCE_INCLUSIVE,
    ConvertedTotals,
    Incoterm,
    convert_totals,
)
from customs_engines.fees import (  # noqa: E402
    FeeBreakdown,
    InspectionFeeBasis,
    PaymentChannel,
    calculate_fees,
    select_payment_channel,
)
from customs_engines.normalizer import (  # noqa: E402
    GoodsLine,
    NormalizedLines,
    normalize_lines,
)
from customs_engines.rerate import (  # noqa: E402
    RerateItem,
    RerateItemStatus,
    RerateReport,
    RerateStatus,
    rerate_declarations,
)
from customs_engines.routing import (  # noqa: E402
    ROUTING_RULES,
    RoutingDecision,
    RoutingDestination,
    RoutingReason,
    classify_routing,
)
from customs_engines.tracer import traced_engine  # noqa: E402
from customs_engines.valuation import (  # noqa: E402
    ValuationRequest,
    ValuationResult,
    evaluate,
)

__all__ = [
    # Normalizer
    "GoodsLine",
    "NormalizedLines",
    "normalize_lines",
    # Conversion
    "Incoterm",
    "FREIGHT_INSURANCE_INCLUSIVE",
    "ConvertedTotals",
    "convert_totals",
    # Routing
    "RoutingDestination",
    "RoutingReason",
    "RoutingDecision",
    "ROUTING_RULES",
    "classify_routing",
    # Fees
    "PaymentChannel",
    "InspectionFeeBasis",
    "FeeBreakdown",
    "calculate_fees",
    "select_payment_channel",
    # Valuation
    "ValuationRequest",
    "ValuationResult",
    "evaluate",
    # Re-rating
    "RerateItem",
    "RerateItemStatus",
    "RerateReport",
    "RerateStatus",
    "rerate_declarations",
    # Tracer
    "traced_engine",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 6,
    "modules": [
        "normalizer", "conversion", "routing", "fees", "valuation", "rerate",
    ],
})
