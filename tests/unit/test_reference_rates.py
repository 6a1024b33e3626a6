"""Unit tests for ReferenceRateTable and RoutingPolicy."""

from decimal import Decimal

import pytest

from customs_kernel.domain.reference_rates import ReferenceRateTable
from customs_kernel.domain.routing_policy import RoutingPolicy
from customs_kernel.domain.values import ExchangeRate, Money
from customs_kernel.exceptions import ExchangeRateNotFoundError, ReferenceDataError


class TestReferenceRateTable:
    """Tests for reference rate lookups."""

    def setup_method(self):
        self.table = ReferenceRateTable.from_mapping(
            "XAF",
            {"USD": "600", "EUR": "655.957", "GBP": "760", "CNY": "85"},
        )

    def test_rate_for_known_currency(self):
        rate = self.table.rate_for("eur")
        assert rate.rate == Decimal("655.957")
        assert rate.pair == ("EUR", "XAF")

    def test_sorted_by_code(self):
        assert self.table.currencies == ("CNY", "EUR", "GBP", "USD")

    def test_local_currency_is_identity(self):
        assert self.table.rate_for("XAF").rate == Decimal("1")

    def test_unknown_currency(self):
        with pytest.raises(ExchangeRateNotFoundError) as exc_info:
            self.table.rate_for("JPY")
        assert exc_info.value.code == "EXCHANGE_RATE_NOT_FOUND"
        assert exc_info.value.from_currency == "JPY"
        assert isinstance(exc_info.value, ReferenceDataError)

    def test_rate_into_other_currency_rejected(self):
        with pytest.raises(ValueError):
            ReferenceRateTable("XAF", (ExchangeRate.of("EUR", "USD", "1.1"),))

    def test_duplicate_currency_rejected(self):
        with pytest.raises(ValueError):
            ReferenceRateTable(
                "XAF",
                (ExchangeRate.of("EUR", "XAF", "655"), ExchangeRate.of("EUR", "XAF", "656")),
            )


class TestRoutingPolicy:
    """Tests for RoutingPolicy construction."""

    def test_values_coerced_to_decimal(self):
        policy = RoutingPolicy(
            sgs_value_threshold_local="1000000",
            sgs_fee_rate="0.0095",
            sgs_fee_minimum_local=110000,
            customs_flat_fee_local="6000",
            fiscal_stamp_local="1500",
            bank_payment_threshold_local="2000000",
        )
        assert policy.sgs_fee_rate == Decimal("0.0095")
        assert policy.sgs_fee_minimum_local == Decimal("110000")
        assert policy.local_currency == "XAF"
        assert policy.sgs_fee_rate_percent == Decimal("0.95")

    def test_local_wraps_money(self, policy):
        assert policy.local(policy.fiscal_stamp_local) == Money.of("1500", "XAF")

    def test_negative_amount_rejected(self, policy_factory):
        with pytest.raises(ValueError):
            policy_factory(fiscal_stamp_local=Decimal("-1"))

    def test_rate_above_one_rejected(self, policy_factory):
        with pytest.raises(ValueError):
            policy_factory(sgs_fee_rate=Decimal("95"))

    def test_unknown_local_currency_rejected(self, policy_factory):
        with pytest.raises(ValueError):
            policy_factory(local_currency="ZZZ")
