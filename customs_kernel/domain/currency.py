"""Currency -- ISO 4217 registry for declaration and settlement currencies."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def quantize_exponent(self) -> Decimal:
        """Exponent for Decimal.quantize() at this currency's minor unit."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """Registry of ISO 4217 currencies accepted on import declarations."""

    # Settlement currencies of the single window and the currencies
    # invoices are commonly issued in.
    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # CFA zones (settlement)
        "XAF": CurrencyInfo("XAF", 0, "Central African CFA Franc"),
        "XOF": CurrencyInfo("XOF", 0, "West African CFA Franc"),
        # Major invoicing currencies
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee"),
        "TRY": CurrencyInfo("TRY", 2, "Turkish Lira"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
        "BRL": CurrencyInfo("BRL", 2, "Brazilian Real"),
        "ZAR": CurrencyInfo("ZAR", 2, "South African Rand"),
        # Regional trading partners
        "NGN": CurrencyInfo("NGN", 2, "Nigerian Naira"),
        "GHS": CurrencyInfo("GHS", 2, "Ghanaian Cedi"),
        "CDF": CurrencyInfo("CDF", 2, "Congolese Franc"),
        "MAD": CurrencyInfo("MAD", 2, "Moroccan Dirham"),
        "EGP": CurrencyInfo("EGP", 2, "Egyptian Pound"),
        "TND": CurrencyInfo("TND", 3, "Tunisian Dinar"),
        "KES": CurrencyInfo("KES", 2, "Kenyan Shilling"),
    }

    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is known."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Minor-unit decimal places, falling back to the default."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise ValueError(f"Invalid currency code: {code!r}")

        normalized = code.upper().strip()
        if len(normalized) != 3:
            raise ValueError(f"Currency code must be 3 characters: {code!r}")
        if normalized not in cls._CURRENCIES:
            raise ValueError(f"Unsupported ISO 4217 currency code: {code!r}")
        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES.keys())
