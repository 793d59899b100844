"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the foundational value types for every amount the back office
    handles: Currency, Money, ExchangeRate (one secondary currency against
    the CFA reference) and RateTable (an immutable snapshot of all
    configured rates).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine and module. No outward dependencies except
    logistics_kernel.domain.currency (CurrencyRegistry).

Invariants enforced:
    - Amounts are Decimal, never binary float. Floats and ints handed in at
      the boundary are normalised through ``str``.
    - Currency codes are validated and upper-cased at construction.
    - Money arithmetic never mixes currencies silently.
    - Exchange rates are strictly positive.

Failure modes:
    - ValueError on construction with invalid amounts or codes.
    - CurrencyMismatchError when arithmetic mixes different currencies.
    - InvalidExchangeRateError for zero, negative or unparseable rates.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any

from logistics_kernel.domain.currency import REFERENCE_CURRENCY, CurrencyRegistry
from logistics_kernel.exceptions import CurrencyMismatchError, InvalidExchangeRateError

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Decimal | int | str | float | None, *, default: Decimal | None = None) -> Decimal:
    """Coerce a boundary value to Decimal.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion. ``None`` and empty strings map to ``default``
    when one is given.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def round_half_up(amount: Decimal, places: Decimal = TWO_PLACES) -> Decimal:
    """Decimal rounding to the given step (cents by default)."""
    return amount.quantize(places, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class Currency:
    """
    Currency code value object.

    Contract:
        Wraps a three-letter code, normalised to upper case on construction.
        The reference currency is ``CFA``; every other code is a secondary
        currency whose rate comes from the settings store.

    Non-goals:
        - Does NOT know exchange rates (see RateTable).
    """

    code: str

    def __post_init__(self) -> None:
        normalized = CurrencyRegistry.normalize(self.code)
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def is_reference(self) -> bool:
        return self.code == REFERENCE_CURRENCY

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency -- they are never separated.

    Guarantees:
        - Immutable and hashable
        - Arithmetic and comparisons enforce the same-currency constraint

    Non-goals:
        - Does NOT convert between currencies (use CurrencyConverter)
        - Does NOT auto-round -- callers call ``round()`` or ``round_cents()``
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int | float, currency: str | Currency) -> Money:
        """Factory method for creating Money."""
        return cls(amount=to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def code(self) -> str:
        return self.currency.code

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_positive(self) -> bool:
        return self.amount > Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's display decimal places."""
        places = self.currency.decimal_places
        quantize_str = "0." + "0" * places if places > 0 else "1"
        rounded = self.amount.quantize(Decimal(quantize_str), rounding=rounding)
        return Money(amount=rounded, currency=self.currency)

    def round_cents(self) -> Money:
        """Round to two decimal places regardless of display precision."""
        return Money(amount=round_half_up(self.amount), currency=self.currency)

    def _check_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __abs__(self) -> Money:
        return Money(amount=abs(self.amount), currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if isinstance(factor, (int, str)) and not isinstance(factor, bool):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """
    Rate of one secondary currency against the reference currency.

    Contract:
        1 unit of ``currency`` = ``rate_to_cfa`` CFA. Going from CFA to the
        secondary currency therefore divides by the rate.
    """

    currency: str
    rate_to_cfa: Decimal

    def __post_init__(self) -> None:
        code = CurrencyRegistry.normalize(self.currency)
        if not CurrencyRegistry.is_valid(code):
            raise ValueError(f"Invalid currency code: {self.currency}")
        object.__setattr__(self, "currency", code)

        try:
            rate = to_decimal(self.rate_to_cfa)
        except ValueError as e:
            raise InvalidExchangeRateError(code, str(self.rate_to_cfa), "not a number") from e
        if not rate.is_finite() or rate <= Decimal("0"):
            raise InvalidExchangeRateError(code, str(self.rate_to_cfa), "rate must be positive")
        object.__setattr__(self, "rate_to_cfa", rate)

    def __str__(self) -> str:
        return f"1 {self.currency} = {self.rate_to_cfa} {REFERENCE_CURRENCY}"


@dataclass(frozen=True)
class RateTable:
    """
    Immutable snapshot of the secondary-currency rate table.

    Contract:
        Built once per refresh from the settings store; the reference
        currency is implicit with rate 1 and is never stored. Entities do not
        hold rates -- every conversion reads the snapshot handed to it.
    """

    rates: Mapping[str, ExchangeRate] = field(default_factory=dict)
    reference: str = REFERENCE_CURRENCY

    def __post_init__(self) -> None:
        frozen = {code: rate for code, rate in dict(self.rates).items()}
        object.__setattr__(self, "rates", MappingProxyType(frozen))

    @classmethod
    def of(cls, rates: Mapping[str, Decimal | str | int]) -> RateTable:
        """Build from a ``{code: rate_to_cfa}`` mapping."""
        entries: dict[str, ExchangeRate] = {}
        for code, value in rates.items():
            rate = ExchangeRate(currency=code, rate_to_cfa=value)
            if rate.currency == REFERENCE_CURRENCY:
                continue
            entries[rate.currency] = rate
        return cls(rates=entries)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> RateTable:
        """Build from ``GET /rates`` rows ``{code, rate_to_cfa}``."""
        return cls.of({row["code"]: row["rate_to_cfa"] for row in rows})

    @classmethod
    def empty(cls) -> RateTable:
        return cls(rates={})

    def rate_to_cfa(self, code: str) -> Decimal | None:
        """Rate for ``code``; 1 for the reference currency, None if unknown."""
        normalized = CurrencyRegistry.normalize(code)
        if normalized == self.reference:
            return Decimal("1")
        entry = self.rates.get(normalized)
        return entry.rate_to_cfa if entry else None

    def has_rate(self, code: str) -> bool:
        return self.rate_to_cfa(code) is not None

    @property
    def codes(self) -> tuple[str, ...]:
        """All usable codes, reference first."""
        return (self.reference, *sorted(self.rates))

    def __iter__(self) -> Iterator[ExchangeRate]:
        return iter(self.rates[code] for code in sorted(self.rates))

    def __len__(self) -> int:
        return len(self.rates)
