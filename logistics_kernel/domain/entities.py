"""
Entities -- Frozen records for the journey hierarchy and its money lines.

Responsibility:
    Plain data carried between engines and services: accounts, waves,
    journeys (Business convoys and Express trips), shipments (specialised as
    Order and Parcel by the modules), cost lines, payment lines and pickup
    receiver details.

Architecture position:
    Kernel > Domain -- pure data, zero I/O. Status values are plain strings
    here; the modules define the enums and the workflows that govern them.

Invariants enforced:
    - ``PaymentLine.amount`` is a non-negative Decimal.
    - ``Shipment.has_debt`` is derived from ``total_paid < total_amount``,
      never stored.
    - ``check_wave_consistency`` flags shipments whose ``wave_id`` differs
      from their journey's.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from logistics_kernel.domain.values import Money, to_decimal


class WaveStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"


class JourneyStatus(str, Enum):
    PLANNED = "planned"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    CLOSED = "closed"


class CostType(str, Enum):
    FLIGHT_TICKET = "flight_ticket"
    CUSTOMS = "customs"
    LOGISTICS = "logistics"
    FUEL = "fuel"
    LODGING = "lodging"
    OTHER = "other"


class OwnerKind(str, Enum):
    """What a cost line can be attached to."""

    CONVOY = "convoy"
    TRIP = "trip"
    WAVE = "wave"


@dataclass(frozen=True, slots=True)
class Account:
    """A funding account; payments and costs must match its currency."""

    id: Any
    name: str
    currency: str
    is_active: bool = True


@dataclass(frozen=True)
class Wave:
    id: Any
    status: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    name: str = ""


@dataclass(frozen=True)
class Journey:
    """A Business convoy or an Express trip."""

    id: Any
    wave_id: Any
    status: str
    end_date: datetime | None = None
    reference: str = ""


@dataclass(frozen=True, slots=True)
class OwnerRef:
    """Identifies the single journey or wave a cost belongs to."""

    kind: OwnerKind
    id: Any

    def __post_init__(self) -> None:
        if not isinstance(self.kind, OwnerKind):
            object.__setattr__(self, "kind", OwnerKind(self.kind))

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class Cost:
    """
    A cost line attached to a convoy, trip or wave.

    ``id`` is None until the line has been persisted; closure payloads carry
    the id only for lines that already exist so the backend can upsert.
    """

    type: CostType
    label: str
    amount: Money
    account_id: Any
    id: Any = None
    notes: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.type, CostType):
            object.__setattr__(self, "type", CostType(self.type))

    @property
    def currency(self) -> str:
        return self.amount.currency.code

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.type.value,
            "label": self.label,
            "amount": str(self.amount.amount),
            "currency": self.currency,
            "account_id": self.account_id,
            "notes": self.notes,
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload


@dataclass(frozen=True, slots=True)
class PaymentLine:
    """One payment proposed at pickup time, drawn on one account."""

    account_id: Any
    amount: Decimal

    def __post_init__(self) -> None:
        amount = to_decimal(self.amount, default=Decimal("0"))
        if amount < 0:
            raise ValueError(f"Payment amount cannot be negative: {amount}")
        object.__setattr__(self, "amount", amount)

    def to_payload(self) -> dict[str, Any]:
        return {"account_id": self.account_id, "amount": str(self.amount)}


@dataclass(frozen=True)
class PickupReceiver:
    """Who collected the shipment."""

    name: str
    phone: str = ""
    id_number: str = ""
    note: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "receiver_name": self.name.strip(),
            "receiver_phone": self.phone.strip(),
            "receiver_id_number": self.id_number.strip(),
            "note": self.note,
        }


@dataclass(frozen=True, kw_only=True)
class Shipment:
    """
    Common shape of Business orders and Express parcels.

    ``total_paid`` never exceeds ``total_amount`` once persisted; excess is
    clamped by the settlement engine before it reaches here.
    """

    id: Any
    reference: str
    journey_id: Any
    wave_id: Any
    status: str
    currency: str
    total_amount: Decimal
    total_paid: Decimal = Decimal("0")
    receiver: PickupReceiver | None = None
    picked_up_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_amount", to_decimal(self.total_amount))
        object.__setattr__(self, "total_paid", to_decimal(self.total_paid, default=Decimal("0")))

    @property
    def has_debt(self) -> bool:
        return self.total_paid < self.total_amount

    @property
    def remaining_debt(self) -> Decimal:
        return max(Decimal("0"), self.total_amount - self.total_paid)

    @property
    def total(self) -> Money:
        return Money.of(self.total_amount, self.currency)


def check_wave_consistency(journey: Journey, shipments: Iterable[Shipment]) -> tuple[Any, ...]:
    """Ids of shipments attached to ``journey`` but pointing at another wave."""
    return tuple(
        s.id
        for s in shipments
        if s.journey_id == journey.id and s.wave_id != journey.wave_id
    )
