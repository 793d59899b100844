"""
Pricing -- shipment totals.

Business orders are priced from their lines; Express parcels from weight
times a per-kilogram rate, with the amount in the other currency derived
through the converter for display.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from logistics_engines.conversion import CurrencyConverter
from logistics_kernel.domain.values import Money, to_decimal


@dataclass(frozen=True, slots=True)
class PriceLine:
    """One purchased product on an order."""

    label: str
    quantity: Decimal
    unit_price: Decimal

    def __post_init__(self) -> None:
        quantity = to_decimal(self.quantity)
        unit_price = to_decimal(self.unit_price)
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive: {quantity}")
        if unit_price < 0:
            raise ValueError(f"Unit price cannot be negative: {unit_price}")
        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "unit_price", unit_price)

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True, slots=True)
class ParcelPrice:
    primary: Money
    counter: Money


def order_total(lines: Iterable[PriceLine], currency: str) -> Money:
    return Money.of(sum((line.amount for line in lines), Decimal("0")), currency)


def parcel_price(
    weight_kg: Decimal,
    rate_per_kg: Money,
    counter_currency: str,
    converter: CurrencyConverter,
) -> ParcelPrice:
    weight = to_decimal(weight_kg)
    if weight <= 0:
        raise ValueError(f"Weight must be positive: {weight}")
    primary = rate_per_kg * weight
    return ParcelPrice(primary=primary, counter=converter.convert_money(primary, counter_currency))


def primary_currency(
    price_secondary: Money | None,
    price_reference: Money | None,
) -> Money | None:
    """The secondary-currency price when it is positive, else the CFA price."""
    if price_secondary is not None and price_secondary.is_positive:
        return price_secondary
    return price_reference


def rate_per_kg_from_price(price: Money, weight_kg: Decimal) -> Money:
    """Back out the per-kilogram rate of an existing parcel price, to the cent."""
    weight = to_decimal(weight_kg)
    if weight <= 0:
        raise ValueError(f"Weight must be positive: {weight}")
    return Money.of(price.amount / weight, price.currency).round_cents()
