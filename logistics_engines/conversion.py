"""
Currency Converter -- convert amounts through the CFA reference currency.

Responsibility:
    Converts Decimal amounts between any two configured currencies using a
    RateTable snapshot. Every secondary currency is quoted against CFA, so
    a conversion between two secondary currencies takes two hops.

Architecture position:
    Engines -- pure calculation layer, zero I/O. The snapshot is supplied
    by the caller (see logistics_services.rate_provider).

Invariants enforced:
    - Same-currency conversion is the identity.
    - from CFA: ``amount / rate(to)``; to CFA: ``amount * rate(from)``.
    - No rounding is applied; callers round for display.

Failure modes:
    - A hop whose rate is missing returns its input unchanged and logs
      ``exchange_rate_missing`` at WARNING. Conversion never raises for a
      missing rate. Each hop of a two-hop conversion fails open on its own.

Usage:
    converter = CurrencyConverter(RateTable.of({"MAD": "63"}))
    converter.convert(Decimal("100"), "MAD", "CFA")   # Decimal("6300")
"""

from __future__ import annotations

from decimal import Decimal

from logistics_kernel.domain.currency import CurrencyRegistry
from logistics_kernel.domain.values import Money, RateTable, to_decimal
from logistics_kernel.logging_config import get_logger

logger = get_logger("engines.conversion")


class CurrencyConverter:
    """
    Converts amounts using one immutable RateTable snapshot.

    The converter holds no other state; build a new one whenever the
    snapshot is refreshed.
    """

    def __init__(self, rates: RateTable):
        self._rates = rates

    @property
    def rates(self) -> RateTable:
        return self._rates

    @property
    def reference(self) -> str:
        return self._rates.reference

    def to_reference(self, amount: Decimal, currency: str) -> Decimal:
        """Convert ``amount`` expressed in ``currency`` into CFA."""
        amount = to_decimal(amount)
        code = CurrencyRegistry.normalize(currency)
        if code == self.reference:
            return amount
        rate = self._rates.rate_to_cfa(code)
        if rate is None:
            self._warn_missing(code, amount)
            return amount
        return amount * rate

    def from_reference(self, amount: Decimal, currency: str) -> Decimal:
        """Convert a CFA ``amount`` into ``currency``."""
        amount = to_decimal(amount)
        code = CurrencyRegistry.normalize(currency)
        if code == self.reference:
            return amount
        rate = self._rates.rate_to_cfa(code)
        if rate is None:
            self._warn_missing(code, amount)
            return amount
        return amount / rate

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        """Convert ``amount`` from one currency to another. Never rounds."""
        source = CurrencyRegistry.normalize(from_currency)
        target = CurrencyRegistry.normalize(to_currency)
        amount = to_decimal(amount)

        if source == target:
            return amount
        if source == self.reference:
            return self.from_reference(amount, target)
        if target == self.reference:
            return self.to_reference(amount, source)

        in_reference = self.to_reference(amount, source)
        return self.from_reference(in_reference, target)

    def convert_money(self, money: Money, to_currency: str) -> Money:
        return Money.of(self.convert(money.amount, money.currency.code, to_currency), to_currency)

    def _warn_missing(self, code: str, amount: Decimal) -> None:
        logger.warning(
            "exchange_rate_missing",
            extra={
                "currency": code,
                "amount": str(amount),
                "known_currencies": list(self._rates.codes),
            },
        )
