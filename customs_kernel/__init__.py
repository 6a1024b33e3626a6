"""
Customs Kernel - shared domain layer for import declaration valuation.

Provides:
- ISO 4217 currency registry and Money / ExchangeRate value objects
- The RoutingPolicy value injected into every valuation
- Reference exchange-rate tables
- Typed, coded exceptions
- Structured JSON logging
"""

__version__ = "0.1.0"
