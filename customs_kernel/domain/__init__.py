"""
Pure domain layer.

This module contains immutable value objects with NO dependencies on:
- Configuration files
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from customs_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from customs_kernel.domain.reference_rates import ReferenceRateTable
from customs_kernel.domain.routing_policy import RoutingPolicy
from customs_kernel.domain.values import Currency, ExchangeRate, Money

__all__ = [
    "CurrencyInfo",
    "CurrencyRegistry",
    "Currency",
    "Money",
    "ExchangeRate",
    "RoutingPolicy",
    "ReferenceRateTable",
]
