"""Currency -- code registry, reference currency and display precision."""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

REFERENCE_CURRENCY = "CFA"

_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places

    @property
    def display_step(self) -> Decimal:
        """Smallest displayable unit of this currency."""
        return Decimal(self.quantize_string)


class CurrencyRegistry:
    """Registry of known currencies with display decimal places.

    Secondary currencies are open-ended (any three-letter code configured in
    the settings store is usable); the registry only knows how to display
    the common ones and falls back to two decimal places otherwise.
    """

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Reference currency. Amounts are shown without decimals.
        "CFA": CurrencyInfo("CFA", 0, "Franc CFA"),
        "XOF": CurrencyInfo("XOF", 0, "West African CFA Franc"),
        "XAF": CurrencyInfo("XAF", 0, "Central African CFA Franc"),
        # Usual secondary currencies
        "MAD": CurrencyInfo("MAD", 2, "Moroccan Dirham"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        "TRY": CurrencyInfo("TRY", 2, "Turkish Lira"),
        "DZD": CurrencyInfo("DZD", 2, "Algerian Dinar"),
        "TND": CurrencyInfo("TND", 3, "Tunisian Dinar"),
        "GNF": CurrencyInfo("GNF", 0, "Guinean Franc"),
    }

    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def normalize(cls, code: str) -> str:
        """Uppercase and strip a code without validating it."""
        if not code or not isinstance(code, str):
            return ""
        return code.upper().strip()

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a code is a well-formed three-letter currency code."""
        return bool(_CODE_PATTERN.match(cls.normalize(code)))

    @classmethod
    def is_reference(cls, code: str) -> bool:
        return cls.normalize(code) == REFERENCE_CURRENCY

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        return cls._CURRENCIES.get(cls.normalize(code))

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise ValueError(f"Invalid currency code: {code!r}")

        normalized = cls.normalize(code)
        if len(normalized) != 3:
            raise ValueError(f"Currency code must be 3 characters: {code!r}")
        if not _CODE_PATTERN.match(normalized):
            raise ValueError(f"Currency code must be alphabetic: {code!r}")
        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES.keys())
