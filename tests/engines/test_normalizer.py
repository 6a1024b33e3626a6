"""
Tests for the line-item normalizer.

Covers:
- Extended FOB value and aggregation
- Order independence of the total
- Line validation (HS code, quantity, unit value)
- Coercion of numeric input
"""

from decimal import Decimal

import pytest

from customs_engines.normalizer import GoodsLine, normalize_lines, validate_line
from customs_engines.valuation import evaluate
from customs_kernel.domain.values import Money
from customs_kernel.exceptions import ValidationError


class TestExtendedValue:
    """Tests for per-line extended FOB value."""

    def test_extended_value_is_quantity_times_unit(self):
        line = GoodsLine(hs_code="8703.23", quantity=Decimal("2"), unit_fob_value=Decimal("4500"))
        assert line.extended_fob_value == Decimal("9000")

    def test_fractional_quantity(self):
        line = GoodsLine(hs_code="1006.30", quantity=Decimal("2.5"), unit_fob_value=Decimal("0.40"))
        assert line.extended_fob_value == Decimal("1.000")

    def test_string_inputs_are_coerced(self):
        line = GoodsLine(hs_code="1006.30", quantity="3", unit_fob_value="1.10")
        assert line.quantity == Decimal("3")
        assert line.unit_fob_value == Decimal("1.10")

    def test_float_inputs_do_not_drift(self):
        line = GoodsLine(hs_code="1006.30", quantity=3, unit_fob_value=0.1)
        assert line.extended_fob_value == Decimal("0.3")

    def test_non_numeric_quantity_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            GoodsLine(hs_code="1006.30", quantity="three", unit_fob_value="1")
        assert exc_info.value.field == "quantity"

    def test_special_flag(self):
        plain = GoodsLine(hs_code="8471.30", quantity=1, unit_fob_value=1)
        eggs = GoodsLine(hs_code="0407.11", quantity=1, unit_fob_value=1, is_eggs=True)
        assert plain.has_special_flag is False
        assert eggs.has_special_flag is True


class TestNormalizeLines:
    """Tests for normalize_lines aggregation."""

    def test_total_in_declaration_currency(self, make_line):
        lines = (
            make_line(quantity="2", unit_fob_value="4500"),
            make_line(quantity="300", unit_fob_value="1.20", hs_code="0407.11"),
        )
        result = normalize_lines(lines, "EUR")

        assert result.total_fob_declaration == Money.of("9360.00", "EUR")
        assert result.line_count == 2
        assert result.extended_values == (
            Money.of("9000", "EUR"),
            Money.of("360.00", "EUR"),
        )

    def test_order_does_not_change_total(self, make_line):
        lines = [
            make_line(quantity="3", unit_fob_value="17.33"),
            make_line(quantity="11", unit_fob_value="0.07"),
            make_line(quantity="1", unit_fob_value="999.99"),
        ]
        forward = normalize_lines(lines, "USD")
        backward = normalize_lines(list(reversed(lines)), "USD")

        assert forward.total_fob_declaration == backward.total_fob_declaration

    def test_zero_unit_value_allowed(self, make_line):
        result = normalize_lines((make_line(unit_fob_value="0"),), "EUR")
        assert result.total_fob_declaration.is_zero

    def test_empty_list_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_lines((), "EUR")
        assert exc_info.value.field == "goods_lines"
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_zero_quantity_rejected_with_line_index(self, make_line):
        lines = (make_line(), make_line(quantity="0"))
        with pytest.raises(ValidationError) as exc_info:
            normalize_lines(lines, "EUR")
        assert exc_info.value.field == "quantity"
        assert exc_info.value.line_index == 1
        assert "goods line 1" in str(exc_info.value)

    def test_negative_unit_value_rejected(self, make_line):
        with pytest.raises(ValidationError) as exc_info:
            normalize_lines((make_line(unit_fob_value="-5"),), "EUR")
        assert exc_info.value.field == "unit_fob_value"
        assert exc_info.value.line_index == 0


class TestValidateLine:
    """Tests for single-line validation."""

    def test_blank_hs_code_rejected(self):
        line = GoodsLine(hs_code="   ", quantity=1, unit_fob_value=1)
        with pytest.raises(ValidationError) as exc_info:
            validate_line(line, 4)
        assert exc_info.value.field == "hs_code"
        assert exc_info.value.line_index == 4

    def test_numeric_hs_code_rejected(self):
        line = GoodsLine(hs_code=8703, quantity=1, unit_fob_value=1)
        with pytest.raises(ValidationError) as exc_info:
            validate_line(line, 2)
        assert exc_info.value.field == "hs_code"
        assert exc_info.value.line_index == 2
        assert "int" in exc_info.value.reason

    def test_missing_hs_code_rejected(self):
        line = GoodsLine(hs_code=None, quantity=1, unit_fob_value=1)
        with pytest.raises(ValidationError) as exc_info:
            validate_line(line, 0)
        assert exc_info.value.reason == "HS code is required"

    def test_numeric_hs_code_rejected_by_evaluate(self, make_request, make_line, policy):
        request = make_request(lines=[make_line(), make_line(hs_code=407)])
        with pytest.raises(ValidationError) as exc_info:
            evaluate(request, policy)
        assert exc_info.value.field == "hs_code"
        assert exc_info.value.line_index == 1

    def test_negative_quantity_rejected(self):
        line = GoodsLine(hs_code="8471.30", quantity=-1, unit_fob_value=1)
        with pytest.raises(ValidationError):
            validate_line(line, 0)

    def test_valid_line_passes(self):
        validate_line(GoodsLine(hs_code="8471.30", quantity=1, unit_fob_value=0), 0)
