"""
Valuation Engine - totals, inspection routing, fees and payment channel
for one import declaration.

Pure function composition with no I/O, no clock and no randomness:

    normalize -> convert -> classify -> compute fees

Calling ``evaluate`` twice with identical input yields identical output.
The caller supplies both the request and the policy active for its
country/tenant; nothing is looked up during computation.

Usage:
    from decimal import Decimal
    from customs_engines.valuation import ValuationRequest, evaluate
    from customs_engines.normalizer import GoodsLine
    from customs_engines.conversion import Incoterm
    from customs_kernel.domain.routing_policy import RoutingPolicy

    policy = RoutingPolicy(
        sgs_value_threshold_local=Decimal("1000000"),
        sgs_fee_rate=Decimal("0.0095"),
        sgs_fee_minimum_local=Decimal("110000"),
        customs_flat_fee_local=Decimal("6000"),
        fiscal_stamp_local=Decimal("1500"),
        bank_payment_threshold_local=Decimal("2000000"),
    )
    request = ValuationRequest(
        goods_lines=(GoodsLine(hs_code="8471.30", quantity=Decimal("1"),
                               unit_fob_value=Decimal("500")),),
        declaration_currency="EUR",
        exchange_rate_to_local=Decimal("655.957"),
        incoterm=Incoterm.EXW,
    )
    result = evaluate(request, policy)
    print(result.routing_destination)  # RoutingDestination.CUSTOMS
    print(result.total_fees_local)     # Money: 7500 XAF
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from decimal import Decimal
from typing import Any

from customs_engines.conversion import Incoterm, convert_totals
from customs_engines.fees import PaymentChannel, calculate_fees, select_payment_channel
from customs_engines.normalizer import GoodsLine, normalize_lines
from customs_engines.routing import RoutingDestination, RoutingReason, classify_routing
from customs_engines.tracer import traced_engine
from customs_kernel.domain.currency import CurrencyRegistry
from customs_kernel.domain.routing_policy import RoutingPolicy
from customs_kernel.domain.values import Money, to_decimal
from customs_kernel.exceptions import InvalidRateError, ValidationError
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.valuation")

ENGINE_VERSION = "1.0"

_DECLARATION_AMOUNT_FIELDS = ("fob_charges", "freight_amount", "insurance_amount")


# ============================================================================
# Request
# ============================================================================


@dataclass(frozen=True)
class ValuationRequest:
    """
    Complete input for one valuation.

    Attributes:
        goods_lines: Declared articles (1..N, order irrelevant to results)
        declaration_currency: ISO 4217 code of the invoice amounts
        exchange_rate_to_local: Local units per 1 declaration unit
        incoterm: Trade term deciding whether freight/insurance count
        fob_charges: Charges to bring goods FOB (declaration currency)
        freight_amount: International freight (declaration currency)
        insurance_amount: Cargo insurance (declaration currency)
        is_pvi_exempt: Exempt from the import verification programme fee
    """

    goods_lines: tuple[GoodsLine, ...]
    declaration_currency: str
    exchange_rate_to_local: Decimal
    incoterm: Incoterm
    fob_charges: Decimal = Decimal("0")
    freight_amount: Decimal = Decimal("0")
    insurance_amount: Decimal = Decimal("0")
    is_pvi_exempt: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "goods_lines", tuple(self.goods_lines))

        if not isinstance(self.incoterm, Incoterm):
            raw = self.incoterm
            try:
                object.__setattr__(self, "incoterm", Incoterm(str(raw).upper().strip()))
            except ValueError as e:
                raise ValidationError("incoterm", f"unknown INCOTERM {raw!r}") from e

        for name in _DECLARATION_AMOUNT_FIELDS:
            raw = getattr(self, name)
            try:
                object.__setattr__(self, name, to_decimal(raw))
            except ValueError as e:
                raise ValidationError(name, f"not a number: {raw!r}") from e

        raw_rate = self.exchange_rate_to_local
        try:
            object.__setattr__(self, "exchange_rate_to_local", to_decimal(raw_rate))
        except ValueError as e:
            raise InvalidRateError(str(raw_rate), "not a number") from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValuationRequest:
        """
        Build a request from a plain mapping (camelCase or snake_case keys).

        Raises:
            ValidationError: If a required key is missing or malformed
        """
        raw_lines = _pick(data, "goods_lines", "goodsLines", "items")
        if not isinstance(raw_lines, (list, tuple)):
            raise ValidationError("goods_lines", "must be a list of goods lines")

        lines = tuple(_goods_line_from_dict(item, i) for i, item in enumerate(raw_lines))

        return cls(
            goods_lines=lines,
            declaration_currency=_pick(data, "declaration_currency", "declarationCurrency", "currency"),
            exchange_rate_to_local=_pick(data, "exchange_rate_to_local", "exchangeRateToLocal", "exchangeRate"),
            incoterm=_pick(data, "incoterm"),
            fob_charges=_pick(data, "fob_charges", "fobCharges", default="0"),
            freight_amount=_pick(data, "freight_amount", "freightAmount", default="0"),
            insurance_amount=_pick(data, "insurance_amount", "insuranceAmount", default="0"),
            is_pvi_exempt=_as_bool(_pick(data, "is_pvi_exempt", "isPviExempt", default=False)),
        )


_MISSING = object()


def _pick(data: Mapping[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    if default is _MISSING:
        raise ValidationError(keys[0], "is required")
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y", "on")
    return bool(value)


def _goods_line_from_dict(data: Mapping[str, Any], index: int) -> GoodsLine:
    if not isinstance(data, Mapping):
        raise ValidationError("goods_lines", "must be a mapping", line_index=index)
    try:
        return GoodsLine(
            hs_code=str(_pick(data, "hs_code", "hsCode", default="")),
            quantity=_pick(data, "quantity"),
            unit_fob_value=_pick(data, "unit_fob_value", "unitFobValue"),
            is_used_vehicle=_as_bool(_pick(data, "is_used_vehicle", "isUsedVehicle", default=False)),
            is_poultry_chicks=_as_bool(_pick(data, "is_poultry_chicks", "isPoultryChicks", default=False)),
            is_eggs=_as_bool(_pick(data, "is_eggs", "isEggs", default=False)),
            designation=str(_pick(data, "designation", default="")),
        )
    except ValidationError as e:
        raise ValidationError(e.field, e.reason, line_index=index) from e


# ============================================================================
# Result
# ============================================================================


@dataclass(frozen=True)
class ValuationResult:
    """
    Complete valuation outcome.

    Immutable value object. Monetary fields are unrounded; use
    ``rounded()`` for presentation.

    Attributes:
        total_fob_declaration: Sum of extended FOB values (declaration currency)
        total_amount_declaration: FOB + charges (+ freight/insurance when the
            INCOTERM includes them), declaration currency
        total_fob_local: (FOB + FOB charges) x rate
        total_freight_insurance_local: (freight + insurance) x rate, or zero
        grand_total_local: total_fob_local + total_freight_insurance_local
        routing_destination: SGS or CUSTOMS
        routing_reason: Stable reason code
        routing_message: Human-readable reason
        inspection_fee_local: Inspection fee
        fiscal_stamp_local: Fiscal stamp
        total_fees_local: inspection_fee_local + fiscal_stamp_local
        payment_channel: CASH_COUNTER or BANK
        policy_id: Identifier of the policy applied, when it has one
    """

    total_fob_declaration: Money
    total_amount_declaration: Money
    total_fob_local: Money
    total_freight_insurance_local: Money
    grand_total_local: Money
    routing_destination: RoutingDestination
    routing_reason: RoutingReason
    routing_message: str
    inspection_fee_local: Money
    fiscal_stamp_local: Money
    total_fees_local: Money
    payment_channel: PaymentChannel
    policy_id: str | None = None

    def rounded(self) -> ValuationResult:
        """Copy with every monetary field rounded to its currency's minor unit."""
        changes = {
            f.name: getattr(self, f.name).round()
            for f in fields(self)
            if isinstance(getattr(self, f.name), Money)
        }
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-ready representation (amounts as strings)."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Money):
                out[f.name] = {"amount": str(value.amount), "currency": value.currency.code}
            elif isinstance(value, (RoutingDestination, RoutingReason, PaymentChannel)):
                out[f.name] = value.value
            else:
                out[f.name] = value
        return out


# ============================================================================
# Engine
# ============================================================================


def _validate_request(request: ValuationRequest) -> None:
    """Checks that are not specific to a single goods line."""
    if not CurrencyRegistry.is_valid(request.declaration_currency):
        raise ValidationError(
            "declaration_currency",
            f"unsupported ISO 4217 code {request.declaration_currency!r}",
        )
    for name in _DECLARATION_AMOUNT_FIELDS:
        value = getattr(request, name)
        if value < Decimal("0"):
            raise ValidationError(name, f"cannot be negative, got {value}")


@traced_engine("valuation", ENGINE_VERSION, fingerprint_fields=("request", "policy"))
def evaluate(request: ValuationRequest, policy: RoutingPolicy) -> ValuationResult:
    """
    Evaluate one import declaration.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        request: Complete valuation input
        policy: Routing and fee policy for the declaring country/tenant

    Returns:
        ValuationResult

    Raises:
        ValidationError: Malformed input (empty goods list, quantity <= 0,
            negative unit value or charges, unsupported currency)
        InvalidRateError: exchange_rate_to_local <= 0
    """
    t0 = time.monotonic()
    logger.info("valuation_started", extra={
        "line_count": len(request.goods_lines),
        "declaration_currency": request.declaration_currency,
        "local_currency": policy.local_currency,
        "incoterm": request.incoterm.value,
        "is_pvi_exempt": request.is_pvi_exempt,
        "policy_id": policy.policy_id,
    })

    try:
        _validate_request(request)
    except ValidationError:
        logger.warning("valuation_request_rejected", exc_info=True)
        raise

    normalized = normalize_lines(request.goods_lines, request.declaration_currency)

    totals = convert_totals(
        total_fob_declaration=normalized.total_fob_declaration,
        fob_charges=request.fob_charges,
        freight_amount=request.freight_amount,
        insurance_amount=request.insurance_amount,
        exchange_rate_to_local=request.exchange_rate_to_local,
        incoterm=request.incoterm,
        local_currency=policy.local_currency,
    )

    routing = classify_routing(normalized.lines, totals.total_fob_local, policy)

    fees = calculate_fees(
        routing_destination=routing.destination,
        total_fob_local=totals.total_fob_local,
        is_pvi_exempt=request.is_pvi_exempt,
        policy=policy,
    )

    channel = select_payment_channel(totals.grand_total_local, policy)

    result = ValuationResult(
        total_fob_declaration=normalized.total_fob_declaration,
        total_amount_declaration=totals.total_amount_declaration,
        total_fob_local=totals.total_fob_local,
        total_freight_insurance_local=totals.total_freight_insurance_local,
        grand_total_local=totals.grand_total_local,
        routing_destination=routing.destination,
        routing_reason=routing.reason,
        routing_message=routing.message,
        inspection_fee_local=fees.inspection_fee,
        fiscal_stamp_local=fees.fiscal_stamp,
        total_fees_local=fees.total_fees,
        payment_channel=channel,
        policy_id=policy.policy_id,
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("valuation_completed", extra={
        "total_fob_local": str(result.total_fob_local.amount),
        "grand_total_local": str(result.grand_total_local.amount),
        "routing_destination": result.routing_destination.value,
        "routing_reason": result.routing_reason.value,
        "total_fees_local": str(result.total_fees_local.amount),
        "payment_channel": result.payment_channel.value,
        "duration_ms": duration_ms,
    })

    return result
