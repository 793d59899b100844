"""
Tests for currency codes and the reference currency.

Codes are three letters, normalised to upper case. CFA is the reference
currency; display precision comes from the registry with a two-place
default for codes it does not list.
"""

import pytest

from logistics_kernel.domain.currency import REFERENCE_CURRENCY, CurrencyRegistry
from logistics_kernel.domain.values import Currency


class TestCurrencyCodes:
    def test_reference_currency_is_cfa(self):
        assert REFERENCE_CURRENCY == "CFA"
        assert CurrencyRegistry.is_reference("cfa")
        assert Currency("CFA").is_reference
        assert not Currency("MAD").is_reference

    def test_lowercase_codes_normalized(self):
        assert CurrencyRegistry.validate("mad") == "MAD"
        assert Currency(" eur ").code == "EUR"

    def test_unlisted_three_letter_code_is_usable(self):
        """Secondary currencies are open-ended; any configured code works."""
        assert CurrencyRegistry.is_valid("QAR")
        assert Currency("QAR").decimal_places == 2

    @pytest.mark.parametrize("code", ["", "MA", "MADD", "12A", "M-D"])
    def test_malformed_codes_rejected(self, code):
        assert not CurrencyRegistry.is_valid(code)
        with pytest.raises(ValueError):
            Currency(code)

    def test_validate_reports_length(self):
        with pytest.raises(ValueError, match="must be 3 characters"):
            CurrencyRegistry.validate("US")

    def test_validate_reports_alphabetic(self):
        with pytest.raises(ValueError, match="must be alphabetic"):
            CurrencyRegistry.validate("U5D")


class TestDisplayPrecision:
    def test_cfa_has_no_decimals(self):
        assert CurrencyRegistry.get_decimal_places("CFA") == 0

    def test_mad_has_two_decimals(self):
        assert CurrencyRegistry.get_decimal_places("MAD") == 2

    def test_display_step(self):
        info = CurrencyRegistry.get_info("TND")
        assert str(info.display_step) == "0.001"
