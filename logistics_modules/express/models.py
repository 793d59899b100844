"""
Express Domain Models (``logistics_modules.express.models``).

Responsibility
--------------
The Express module ships single parcels by trip. A parcel is priced by
weight times a per-kilogram rate; the price in the rate's currency is the
amount owed, and its counterpart in the other currency is derived for
display only.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* ``weight_kg`` is a positive Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from logistics_engines.conversion import CurrencyConverter
from logistics_engines.pricing import (
    ParcelPrice,
    parcel_price,
    primary_currency,
    rate_per_kg_from_price,
)
from logistics_kernel.domain.entities import Shipment
from logistics_kernel.domain.values import Money, to_decimal


class ParcelStatus(str, Enum):
    REGISTERED = "registered"
    READY_FOR_DEPARTURE = "ready_for_departure"
    LOADED = "loaded"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    READY_FOR_PICKUP = "ready_for_pickup"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(frozen=True, kw_only=True)
class Parcel(Shipment):
    """A single parcel carried on one trip."""

    weight_kg: Decimal
    rate_per_kg: Money | None = None
    sender_name: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        super().__post_init__()
        weight = to_decimal(self.weight_kg)
        if weight <= 0:
            raise ValueError(f"Parcel weight must be positive: {weight}")
        object.__setattr__(self, "weight_kg", weight)

    @property
    def trip_id(self) -> Any:
        return self.journey_id

    def quote(self, counter_currency: str, converter: CurrencyConverter) -> ParcelPrice:
        """Price in the rate's currency plus its counterpart in ``counter_currency``."""
        rate = self.rate_per_kg or rate_per_kg_from_price(self.total, self.weight_kg)
        return parcel_price(self.weight_kg, rate, counter_currency, converter)

    @classmethod
    def create(
        cls,
        *,
        id: Any,
        reference: str,
        trip_id: Any,
        wave_id: Any,
        weight_kg: Decimal,
        rate_per_kg: Money,
        status: str = ParcelStatus.REGISTERED.value,
        total_paid: Decimal = Decimal("0"),
        sender_name: str = "",
        description: str = "",
    ) -> Parcel:
        """Price the parcel at ``weight_kg x rate_per_kg`` in the rate's currency."""
        price = (rate_per_kg * to_decimal(weight_kg)).round_cents()
        return cls(
            id=id,
            reference=reference,
            journey_id=trip_id,
            wave_id=wave_id,
            status=status,
            currency=price.currency.code,
            total_amount=price.amount,
            total_paid=total_paid,
            weight_kg=weight_kg,
            rate_per_kg=rate_per_kg,
            sender_name=sender_name,
            description=description,
        )

    @classmethod
    def from_prices(
        cls,
        *,
        id: Any,
        reference: str,
        trip_id: Any,
        wave_id: Any,
        weight_kg: Decimal,
        price_secondary: Money | None,
        price_reference: Money | None,
        status: str = ParcelStatus.REGISTERED.value,
        total_paid: Decimal = Decimal("0"),
        sender_name: str = "",
        description: str = "",
    ) -> Parcel:
        """
        Rebuild a parcel from its stored prices.

        The secondary-currency price is the amount owed when it is positive,
        otherwise the CFA price is. The per-kilogram rate is backed out of
        that price.

        Raises:
            ValueError: neither price is set.
        """
        price = primary_currency(price_secondary, price_reference)
        if price is None:
            raise ValueError(f"Parcel {reference} has no price")
        return cls(
            id=id,
            reference=reference,
            journey_id=trip_id,
            wave_id=wave_id,
            status=status,
            currency=price.currency.code,
            total_amount=price.amount,
            total_paid=total_paid,
            weight_kg=weight_kg,
            rate_per_kg=rate_per_kg_from_price(price, weight_kg),
            sender_name=sender_name,
            description=description,
        )
