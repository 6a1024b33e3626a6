"""
Pytest fixtures for the customs valuation test suite.

Provides:
- The reference policy (threshold 1,000,000 XAF; SGS 0.95%, minimum
  110,000; flat fee 6,000; stamp 1,500; bank threshold 2,000,000)
- Goods line and request factories
- Log capture wired to the structured JSON formatter
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from customs_engines.conversion import Incoterm
from customs_engines.normalizer import GoodsLine
from customs_engines.valuation import ValuationRequest
from customs_kernel.domain.routing_policy import RoutingPolicy
from customs_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


def make_policy(**overrides) -> RoutingPolicy:
    values = dict(
        sgs_value_threshold_local=Decimal("1000000"),
        sgs_fee_rate=Decimal("0.0095"),
        sgs_fee_minimum_local=Decimal("110000"),
        customs_flat_fee_local=Decimal("6000"),
        fiscal_stamp_local=Decimal("1500"),
        bank_payment_threshold_local=Decimal("2000000"),
        local_currency="XAF",
        policy_id="TEST-POLICY",
    )
    values.update(overrides)
    return RoutingPolicy(**values)


@pytest.fixture
def policy() -> RoutingPolicy:
    """Reference policy used by the worked scenarios."""
    return make_policy()


@pytest.fixture
def make_line():
    """Factory for GoodsLine with sensible defaults."""

    def _make(quantity="1", unit_fob_value="100", hs_code="8471.30", **flags) -> GoodsLine:
        return GoodsLine(
            hs_code=hs_code,
            quantity=Decimal(quantity),
            unit_fob_value=Decimal(unit_fob_value),
            **flags,
        )

    return _make


@pytest.fixture
def make_request(make_line):
    """Factory for ValuationRequest; one default line when none given."""

    def _make(
        lines=None,
        currency="EUR",
        rate="655.957",
        incoterm=Incoterm.FOB,
        **amounts,
    ) -> ValuationRequest:
        return ValuationRequest(
            goods_lines=tuple(lines) if lines is not None else (make_line(),),
            declaration_currency=currency,
            exchange_rate_to_local=Decimal(rate),
            incoterm=incoterm,
            **amounts,
        )

    return _make


class LogCapture:
    """Collects JSON log lines written under the customs_kernel namespace."""

    def __init__(self) -> None:
        self.stream = StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(StructuredFormatter())

    @property
    def records(self) -> list[dict]:
        lines = self.stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    def messages(self) -> list[str]:
        return [r["message"] for r in self.records]

    def find(self, message: str) -> list[dict]:
        return [r for r in self.records if r["message"] == message]


@pytest.fixture
def log_capture():
    """Structured logging at DEBUG into an in-memory stream."""
    reset_logging()
    LogContext.clear()
    capture = LogCapture()
    configure_logging(level=logging.DEBUG, handler=capture.handler)
    yield capture
    LogContext.clear()
    reset_logging()


@pytest.fixture
def policy_factory():
    """Build a RoutingPolicy from the reference values plus overrides."""
    return make_policy
