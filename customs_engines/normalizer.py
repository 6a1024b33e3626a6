"""
Line-Item Normalizer - extended FOB value per goods line and the FOB total.

Pure functions with no I/O. No currency conversion happens here; every
amount stays in the declaration currency.

Usage:
    from customs_engines.normalizer import GoodsLine, normalize_lines

    lines = (
        GoodsLine(hs_code="8703.23", quantity=Decimal("2"), unit_fob_value=Decimal("4500")),
        GoodsLine(hs_code="0407.11", quantity=Decimal("300"), unit_fob_value=Decimal("1.20"),
                  is_eggs=True),
    )
    normalized = normalize_lines(lines, currency="EUR")
    print(normalized.total_fob_declaration)  # Money: 9360.00 EUR
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from customs_kernel.domain.values import Money, to_decimal
from customs_kernel.exceptions import ValidationError
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.normalizer")


@dataclass(frozen=True)
class GoodsLine:
    """
    One declared article.

    ``extended_fob_value`` is derived on access and never stored, so it
    cannot drift from quantity and unit value.
    """

    hs_code: str
    quantity: Decimal
    unit_fob_value: Decimal
    is_used_vehicle: bool = False
    is_poultry_chicks: bool = False
    is_eggs: bool = False
    designation: str = ""

    def __post_init__(self) -> None:
        for name in ("quantity", "unit_fob_value"):
            raw = getattr(self, name)
            try:
                object.__setattr__(self, name, to_decimal(raw))
            except ValueError as e:
                raise ValidationError(name, f"not a number: {raw!r}") from e

    @property
    def extended_fob_value(self) -> Decimal:
        return self.quantity * self.unit_fob_value

    @property
    def has_special_flag(self) -> bool:
        """Used vehicle, poultry chicks or eggs."""
        return self.is_used_vehicle or self.is_poultry_chicks or self.is_eggs


@dataclass(frozen=True)
class NormalizedLines:
    """Validated goods lines with their extended values, in input order."""

    lines: tuple[GoodsLine, ...]
    extended_values: tuple[Money, ...]
    total_fob_declaration: Money

    @property
    def line_count(self) -> int:
        return len(self.lines)


def validate_line(line: GoodsLine, index: int) -> None:
    """
    Check the shape of one goods line.

    Raises:
        ValidationError: blank or non-text HS code, quantity <= 0 or
            unit value < 0.
    """
    if line.hs_code is not None and not isinstance(line.hs_code, str):
        # numeric codes lose their leading zeros (0407 -> 407)
        raise ValidationError(
            "hs_code",
            f"must be text, got {type(line.hs_code).__name__} {line.hs_code!r}",
            line_index=index,
        )
    if not line.hs_code or not line.hs_code.strip():
        raise ValidationError("hs_code", "HS code is required", line_index=index)
    if line.quantity <= Decimal("0"):
        raise ValidationError(
            "quantity", f"must be greater than zero, got {line.quantity}", line_index=index
        )
    if line.unit_fob_value < Decimal("0"):
        raise ValidationError(
            "unit_fob_value",
            f"cannot be negative, got {line.unit_fob_value}",
            line_index=index,
        )


def normalize_lines(goods_lines: Sequence[GoodsLine], currency: str) -> NormalizedLines:
    """
    Validate goods lines and aggregate their FOB value.

    Pure function.

    Args:
        goods_lines: Declared articles (1..N, order irrelevant to totals)
        currency: Declaration currency code

    Returns:
        NormalizedLines with per-line extended values and the total

    Raises:
        ValidationError: If the list is empty or any line is malformed
    """
    if not goods_lines:
        logger.warning("goods_lines_empty", extra={"currency": currency})
        raise ValidationError("goods_lines", "at least one goods line is required")

    extended: list[Money] = []
    total = Money.zero(currency)
    for index, line in enumerate(goods_lines):
        try:
            validate_line(line, index)
        except ValidationError as e:
            logger.warning("goods_line_rejected", extra={
                "line_index": index,
                "field": e.field,
                "reason": e.reason,
            })
            raise
        value = Money.of(line.extended_fob_value, currency)
        extended.append(value)
        total = total + value

    logger.debug("goods_lines_normalized", extra={
        "line_count": len(extended),
        "total_fob_declaration": str(total.amount),
        "currency": total.currency.code,
    })

    return NormalizedLines(
        lines=tuple(goods_lines),
        extended_values=tuple(extended),
        total_fob_declaration=total,
    )
