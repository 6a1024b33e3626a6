"""
Tests for the valuation engine.

Covers:
- Worked declaration scenarios end to end
- Request validation and error propagation
- Presentation rounding and serialization
- Request parsing from plain mappings
- Determinism and tracing
"""

from decimal import Decimal

import pytest

from customs_engines.conversion import Incoterm
from customs_engines.fees import PaymentChannel
from customs_engines.routing import RoutingDestination, RoutingReason
from customs_engines.valuation import ValuationRequest, ValuationResult, evaluate
from customs_kernel.domain.values import Money
from customs_kernel.exceptions import InvalidRateError, ValidationError


def _xaf(amount: str) -> Money:
    return Money.of(amount, "XAF")


class TestScenarios:
    """Worked declarations under the reference policy."""

    def setup_method(self):
        self.cif_freight = {
            "incoterm": Incoterm.CIF,
            "freight_amount": Decimal("2000"),
            "insurance_amount": Decimal("500"),
        }

    def test_small_exw_declaration(self, make_request, make_line, policy):
        """Low value: customs flat fee, cash counter."""
        request = make_request(
            lines=[make_line(quantity="1", unit_fob_value="500")],
            incoterm=Incoterm.EXW,
        )
        result = evaluate(request, policy)

        assert result.total_fob_local == _xaf("327978.5")
        assert result.rounded().total_fob_local == _xaf("327979")
        assert result.routing_destination == RoutingDestination.CUSTOMS
        assert result.routing_reason == RoutingReason.VALUE_AT_OR_BELOW_THRESHOLD
        assert result.inspection_fee_local == _xaf("6000")
        assert result.total_fees_local == _xaf("7500")
        assert result.payment_channel == PaymentChannel.CASH_COUNTER

    def test_cif_declaration_above_threshold(self, make_request, make_line, policy):
        """High value: SGS minimum fee, bank channel from grand total."""
        request = make_request(
            lines=[make_line(quantity="100", unit_fob_value="100")],
            **self.cif_freight,
        )
        result = evaluate(request, policy)

        assert result.total_fob_local == _xaf("6559570")
        assert result.total_freight_insurance_local == _xaf("1639892.5")
        assert result.grand_total_local == _xaf("8199462.5")
        assert result.routing_destination == RoutingDestination.SGS
        assert result.routing_reason == RoutingReason.VALUE_ABOVE_THRESHOLD
        # proportional fee 62,315.915 falls under the minimum
        assert result.inspection_fee_local == _xaf("110000")
        assert result.total_fees_local == _xaf("111500")
        assert result.payment_channel == PaymentChannel.BANK

    def test_used_vehicle_forces_customs(self, make_request, make_line, policy):
        """Special merchandise wins over value."""
        request = make_request(
            lines=[make_line(quantity="100", unit_fob_value="100", is_used_vehicle=True)],
            **self.cif_freight,
        )
        result = evaluate(request, policy)

        assert result.routing_destination == RoutingDestination.CUSTOMS
        assert result.routing_reason == RoutingReason.SPECIAL_MERCHANDISE
        assert result.total_fees_local == _xaf("7500")

    def test_pvi_exempt_pays_stamp_only(self, make_request, make_line, policy):
        """Exemption zeroes the inspection fee without changing routing."""
        request = make_request(
            lines=[make_line(quantity="100", unit_fob_value="100")],
            is_pvi_exempt=True,
            **self.cif_freight,
        )
        result = evaluate(request, policy)

        assert result.inspection_fee_local.is_zero
        assert result.total_fees_local == _xaf("1500")
        assert result.routing_destination == RoutingDestination.SGS

    def test_zero_quantity_rejected(self, make_request, make_line, policy):
        request = make_request(lines=[make_line(quantity="0")])
        with pytest.raises(ValidationError) as exc_info:
            evaluate(request, policy)
        assert exc_info.value.field == "quantity"

    def test_zero_rate_rejected(self, make_request, policy):
        request = make_request(rate="0")
        with pytest.raises(InvalidRateError):
            evaluate(request, policy)


class TestRequestValidation:
    """Tests for request-level validation."""

    def test_empty_goods_list(self, make_request, policy):
        with pytest.raises(ValidationError) as exc_info:
            evaluate(make_request(lines=[]), policy)
        assert exc_info.value.field == "goods_lines"

    @pytest.mark.parametrize("field", ["fob_charges", "freight_amount", "insurance_amount"])
    def test_negative_charges_rejected(self, make_request, policy, field):
        request = make_request(**{field: Decimal("-1")})
        with pytest.raises(ValidationError) as exc_info:
            evaluate(request, policy)
        assert exc_info.value.field == field

    def test_unknown_currency_rejected(self, make_request, policy):
        with pytest.raises(ValidationError) as exc_info:
            evaluate(make_request(currency="ZZZ"), policy)
        assert exc_info.value.field == "declaration_currency"

    def test_unknown_incoterm_rejected(self, make_line):
        with pytest.raises(ValidationError) as exc_info:
            ValuationRequest(
                goods_lines=(make_line(),),
                declaration_currency="EUR",
                exchange_rate_to_local=Decimal("655.957"),
                incoterm="XYZ",
            )
        assert exc_info.value.field == "incoterm"

    def test_incoterm_string_coerced(self, make_line):
        request = ValuationRequest(
            goods_lines=[make_line()],
            declaration_currency="EUR",
            exchange_rate_to_local="655.957",
            incoterm="cif",
        )
        assert request.incoterm == Incoterm.CIF
        assert isinstance(request.goods_lines, tuple)
        assert request.exchange_rate_to_local == Decimal("655.957")

    def test_non_numeric_rate_rejected(self, make_line):
        with pytest.raises(InvalidRateError):
            ValuationRequest(
                goods_lines=(make_line(),),
                declaration_currency="EUR",
                exchange_rate_to_local="abc",
                incoterm=Incoterm.FOB,
            )

    def test_negative_rate_rejected(self, make_request, policy):
        with pytest.raises(InvalidRateError):
            evaluate(make_request(rate="-1"), policy)


class TestResultPresentation:
    """Tests for rounding and serialization."""

    def test_raw_result_is_unrounded(self, make_request, make_line, policy):
        result = evaluate(make_request(lines=[make_line(unit_fob_value="500")]), policy)
        assert result.total_fob_local.amount == Decimal("327978.500")

    def test_rounded_uses_currency_minor_units(self, make_request, make_line, policy):
        request = make_request(lines=[make_line(unit_fob_value="10.005")], incoterm=Incoterm.EXW)
        rounded = evaluate(request, policy).rounded()

        assert rounded.total_fob_declaration.amount == Decimal("10.01")
        assert rounded.total_fob_local.amount == Decimal("6563")

    def test_rounded_keeps_non_money_fields(self, make_request, policy):
        result = evaluate(make_request(), policy)
        rounded = result.rounded()

        assert rounded.routing_destination == result.routing_destination
        assert rounded.routing_message == result.routing_message
        assert rounded.policy_id == "TEST-POLICY"

    def test_to_dict(self, make_request, make_line, policy):
        result = evaluate(make_request(lines=[make_line(unit_fob_value="500")]), policy)
        data = result.rounded().to_dict()

        assert data["total_fob_local"] == {"amount": "327979", "currency": "XAF"}
        assert data["routing_destination"] == "CUSTOMS"
        assert data["routing_reason"] == "VALUE_AT_OR_BELOW_THRESHOLD"
        assert data["payment_channel"] == "CASH_COUNTER"
        assert data["routing_message"] == "FOB value <= 1 000 000 XAF"
        assert data["policy_id"] == "TEST-POLICY"

    def test_total_amount_declaration(self, make_request, make_line, policy):
        request = make_request(
            lines=[make_line(quantity="100", unit_fob_value="100")],
            incoterm=Incoterm.CIF,
            fob_charges=Decimal("100"),
            freight_amount=Decimal("2000"),
            insurance_amount=Decimal("500"),
        )
        result = evaluate(request, policy)
        assert result.total_amount_declaration == Money.of("12600", "EUR")


class TestFromDict:
    """Tests for ValuationRequest.from_dict."""

    def test_camel_case_payload(self):
        request = ValuationRequest.from_dict({
            "goodsLines": [
                {"hsCode": "8703.23", "quantity": "1", "unitFobValue": "4500", "isUsedVehicle": True},
            ],
            "declarationCurrency": "EUR",
            "exchangeRateToLocal": "655.957",
            "incoterm": "CIF",
            "freightAmount": "800",
            "isPviExempt": "false",
        })

        assert request.goods_lines[0].is_used_vehicle is True
        assert request.goods_lines[0].unit_fob_value == Decimal("4500")
        assert request.incoterm == Incoterm.CIF
        assert request.freight_amount == Decimal("800")
        assert request.insurance_amount == Decimal("0")
        assert request.is_pvi_exempt is False

    def test_snake_case_payload(self):
        request = ValuationRequest.from_dict({
            "goods_lines": [{"hs_code": "0407.11", "quantity": 300, "unit_fob_value": "1.20"}],
            "declaration_currency": "USD",
            "exchange_rate_to_local": "600",
            "incoterm": "FOB",
            "is_pvi_exempt": True,
        })

        assert request.declaration_currency == "USD"
        assert request.is_pvi_exempt is True
        assert request.goods_lines[0].extended_fob_value == Decimal("360.00")

    def test_missing_rate(self):
        with pytest.raises(ValidationError) as exc_info:
            ValuationRequest.from_dict({
                "goods_lines": [],
                "declaration_currency": "EUR",
                "incoterm": "FOB",
            })
        assert exc_info.value.field == "exchange_rate_to_local"

    def test_line_error_carries_index(self):
        with pytest.raises(ValidationError) as exc_info:
            ValuationRequest.from_dict({
                "goods_lines": [
                    {"hs_code": "1", "quantity": "1", "unit_fob_value": "1"},
                    {"hs_code": "2", "quantity": "x", "unit_fob_value": "1"},
                ],
                "declaration_currency": "EUR",
                "exchange_rate_to_local": "1",
                "incoterm": "FOB",
            })
        assert exc_info.value.line_index == 1
        assert exc_info.value.field == "quantity"

    def test_goods_lines_must_be_list(self):
        with pytest.raises(ValidationError):
            ValuationRequest.from_dict({
                "goods_lines": "not a list",
                "declaration_currency": "EUR",
                "exchange_rate_to_local": "1",
                "incoterm": "FOB",
            })


class TestDeterminismAndTracing:
    """Tests for engine determinism and the trace record."""

    def test_same_input_same_output(self, make_request, policy):
        request = make_request(incoterm=Incoterm.CIF, freight_amount=Decimal("10"))
        assert evaluate(request, policy) == evaluate(request, policy)

    def test_result_is_frozen(self, make_request, policy):
        result = evaluate(make_request(), policy)
        assert isinstance(result, ValuationResult)
        with pytest.raises(AttributeError):
            result.payment_channel = PaymentChannel.BANK

    def test_emits_engine_trace(self, make_request, policy, log_capture):
        evaluate(make_request(), policy)

        traces = log_capture.find("CUSTOMS_ENGINE_TRACE")
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "valuation"
        assert traces[0]["engine_version"] == "1.0"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_fingerprint_stable_across_calls(self, make_request, policy, log_capture):
        evaluate(make_request(), policy)
        evaluate(request=make_request(), policy=policy)

        fps = [t["input_fingerprint"] for t in log_capture.find("CUSTOMS_ENGINE_TRACE")]
        assert fps[0] == fps[1]

    def test_logs_started_and_completed(self, make_request, policy, log_capture):
        evaluate(make_request(), policy)

        messages = log_capture.messages()
        assert messages.index("valuation_started") < messages.index("valuation_completed")
        completed = log_capture.find("valuation_completed")[0]
        assert completed["routing_destination"] == "CUSTOMS"
        assert completed["payment_channel"] == "CASH_COUNTER"
        assert "duration_ms" in completed

    def test_rejection_logged(self, make_request, policy, log_capture):
        with pytest.raises(ValidationError):
            evaluate(make_request(fob_charges=Decimal("-5")), policy)

        rejected = log_capture.find("valuation_request_rejected")
        assert rejected[0]["error"]["code"] == "VALIDATION_ERROR"
        assert rejected[0]["error"]["field"] == "fob_charges"
        assert rejected[0]["error"]["line_index"] is None
