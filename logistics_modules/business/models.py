"""
Business Domain Models (``logistics_modules.business.models``).

Responsibility
--------------
The Business module sells purchased products to clients and ships them by
convoy. An Order carries its product lines; its total is always derived
from them.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``Order.total_amount`` equals the sum of its lines.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from logistics_engines.pricing import PriceLine, order_total
from logistics_kernel.domain.entities import Shipment

OrderLine = PriceLine


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    READY_FOR_PICKUP = "ready_for_pickup"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(frozen=True, kw_only=True)
class Order(Shipment):
    """A client order shipped on one convoy."""

    client_name: str = ""
    lines: tuple[OrderLine, ...] = ()

    @property
    def convoy_id(self) -> Any:
        return self.journey_id

    @classmethod
    def create(
        cls,
        *,
        id: Any,
        reference: str,
        convoy_id: Any,
        wave_id: Any,
        currency: str,
        lines: tuple[OrderLine, ...] | list[OrderLine],
        status: str = OrderStatus.PENDING.value,
        total_paid: Decimal = Decimal("0"),
        client_name: str = "",
    ) -> Order:
        lines = tuple(lines)
        total = order_total(lines, currency)
        return cls(
            id=id,
            reference=reference,
            journey_id=convoy_id,
            wave_id=wave_id,
            status=status,
            currency=total.currency.code,
            total_amount=total.amount,
            total_paid=total_paid,
            client_name=client_name,
            lines=lines,
        )
