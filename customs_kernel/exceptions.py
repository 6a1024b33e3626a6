"""
Typed Exception Hierarchy for the Customs Kernel.

Every error has a typed class (catch by type, not message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
(never parse the message string).

    CustomsKernelError (base)
    |
    +-- ValuationError
    |   +-- ValidationError        malformed declaration input (4xx, user-correctable)
    |   +-- InvalidRateError       non-positive exchange rate (reference-data problem)
    |
    +-- ReferenceDataError
        +-- ExchangeRateNotFoundError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Valuation       | VALIDATION_ERROR            | Empty goods list, quantity <= 0,
                |                             | negative unit value / charges, bad currency
                | INVALID_EXCHANGE_RATE       | Exchange rate to local currency <= 0
----------------|-----------------------------|-----------------------------------------
Reference data  | EXCHANGE_RATE_NOT_FOUND     | No reference rate for a declaration currency

Handling pattern::

    try:
        result = evaluate(request, policy)
    except ValidationError as e:
        form.set_error(e.field, e.reason, line=e.line_index)
    except InvalidRateError as e:
        block_submission(code=e.code, rate=e.rate_value)
"""

from __future__ import annotations

from typing import Any


class CustomsKernelError(Exception):
    """
    Base exception for all customs kernel errors.

    All subclasses must have a ``code`` class attribute. Subclasses that
    carry structured attributes name them in ``detail_fields`` so that
    logs and API payloads can report them without parsing the message.
    """

    code: str = "CUSTOMS_KERNEL_ERROR"
    detail_fields: tuple[str, ...] = ()

    def details(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.detail_fields}


# Valuation


class ValuationError(CustomsKernelError):
    """Base exception for errors raised by the valuation pipeline."""

    code: str = "VALUATION_ERROR"


class ValidationError(ValuationError):
    """
    Declaration input is malformed.

    The caller surfaces it as a form-field error; the offending line is
    never dropped silently.
    """

    code: str = "VALIDATION_ERROR"
    detail_fields = ("field", "reason", "line_index")

    def __init__(self, field: str, reason: str, line_index: int | None = None):
        self.field = field
        self.reason = reason
        self.line_index = line_index
        location = f" (goods line {line_index})" if line_index is not None else ""
        super().__init__(f"Invalid {field}{location}: {reason}")


class InvalidRateError(ValuationError):
    """
    Exchange rate to the local currency is zero, negative or unusable.

    Indicates stale or missing reference data rather than a user typo.
    """

    code: str = "INVALID_EXCHANGE_RATE"
    detail_fields = ("rate_value", "reason")

    def __init__(self, rate_value: str, reason: str):
        self.rate_value = rate_value
        self.reason = reason
        super().__init__(f"Invalid exchange rate value {rate_value}: {reason}")


# Reference data


class ReferenceDataError(CustomsKernelError):
    """Base exception for reference-data lookups."""

    code: str = "REFERENCE_DATA_ERROR"


class ExchangeRateNotFoundError(ReferenceDataError):
    """No reference exchange rate for the requested currency pair."""

    code: str = "EXCHANGE_RATE_NOT_FOUND"
    detail_fields = ("from_currency", "to_currency")

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(
            f"No reference exchange rate for {from_currency}/{to_currency}"
        )
