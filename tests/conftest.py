"""
Pytest fixtures for the logistics kernel test suite.

Provides:
- Structured logging configured once per session, with a capture fixture
- A deterministic clock and the default rate table (1 MAD = 63 CFA)
- In-memory fakes for every collaborator port
- Factories for orders, parcels, journeys, waves, accounts and costs
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from typing import Any

import pytest

from logistics_engines.conversion import CurrencyConverter
from logistics_engines.cost_ledger import CostLedger
from logistics_kernel.domain.clock import DeterministicClock
from logistics_kernel.domain.entities import (
    Account,
    Cost,
    CostType,
    Journey,
    OwnerRef,
    Wave,
)
from logistics_kernel.domain.values import Money, RateTable
from logistics_kernel.exceptions import ConcurrentModificationError
from logistics_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from logistics_modules.business.models import Order, OrderLine
from logistics_modules.express.models import Parcel


@pytest.fixture(scope="session", autouse=True)
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture logistics_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            converter.convert(...)
            logs = captured_logs()
            assert any(r["message"] == "exchange_rate_missing" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("logistics_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# ---------------------------------------------------------------------------
# Time and rates
# ---------------------------------------------------------------------------


@pytest.fixture
def clock():
    return DeterministicClock()


@pytest.fixture
def rate_table():
    return RateTable.of({"MAD": Decimal("63"), "EUR": Decimal("655.957")})


@pytest.fixture
def converter(rate_table):
    return CurrencyConverter(rate_table)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeAccountDirectory:
    def __init__(self, accounts: list[Account] | None = None):
        self.accounts = {a.id: a for a in accounts or []}

    def get_account(self, account_id: Any) -> Account | None:
        return self.accounts.get(account_id)


class FakeShipmentGateway:
    """Records every backend call; can be told to report a conflict."""

    def __init__(self):
        self.updates: list[tuple[str, Any, dict]] = []
        self.pickups: list[tuple[Any, dict]] = []
        self.conflict_on: set[Any] = set()

    def update_shipment(self, kind: str, shipment_id: Any, payload: dict) -> None:
        if shipment_id in self.conflict_on:
            raise ConcurrentModificationError(kind, shipment_id)
        self.updates.append((kind, shipment_id, payload))

    def pickup_parcel(self, parcel_id: Any, payload: dict) -> None:
        if parcel_id in self.conflict_on:
            raise ConcurrentModificationError("parcels", parcel_id)
        self.pickups.append((parcel_id, payload))


class FakeClosureGateway:
    """Records closures; new cost lines get ids from 500 upwards."""

    def __init__(self):
        self.journeys: list[tuple[str, Any, dict]] = []
        self.waves: list[tuple[str, Any, dict]] = []
        self._next_cost_id = 500

    def _persist_costs(self, payload: dict) -> list[Any]:
        ids = []
        for line in payload.get("costs", []):
            if "id" not in line:
                self._next_cost_id += 1
            ids.append(line.get("id", self._next_cost_id))
        return ids

    def close_journey(self, kind: str, journey_id: Any, payload: dict) -> list[Any]:
        self.journeys.append((kind, journey_id, payload))
        return self._persist_costs(payload)

    def close_wave(self, kind: str, wave_id: Any, payload: dict) -> list[Any]:
        self.waves.append((kind, wave_id, payload))
        return self._persist_costs(payload)


class FakeCostGateway:
    def __init__(self):
        self.saved: list[tuple[OwnerRef, dict]] = []
        self.deleted: list[tuple[OwnerRef, Any]] = []
        self._next_id = 100

    def save_cost(self, owner: OwnerRef, payload: dict) -> Any:
        self.saved.append((owner, payload))
        if "id" in payload:
            return payload["id"]
        self._next_id += 1
        return self._next_id

    def delete_cost(self, owner: OwnerRef, cost_id: Any) -> None:
        self.deleted.append((owner, cost_id))


class FakeRateSource:
    def __init__(self, rows: list[dict] | None = None):
        self.rows = rows if rows is not None else [{"code": "MAD", "rate_to_cfa": "63"}]
        self.calls = 0

    def fetch_rates(self) -> list[dict]:
        self.calls += 1
        return list(self.rows)


class AllowRoles:
    """CapabilityChecker granting every capability to the listed roles."""

    def __init__(self, *roles: str):
        self.roles = set(roles)

    def is_allowed(self, role: str, capability: str) -> bool:
        return role in self.roles


@pytest.fixture
def mad_account():
    return Account(id=1, name="Caisse Casablanca", currency="MAD")


@pytest.fixture
def cfa_account():
    return Account(id=2, name="Caisse Dakar", currency="CFA")


@pytest.fixture
def accounts(mad_account, cfa_account):
    return FakeAccountDirectory([
        mad_account,
        cfa_account,
        Account(id=3, name="Banque MAD", currency="MAD"),
        Account(id=9, name="Ancienne caisse", currency="MAD", is_active=False),
    ])


@pytest.fixture
def shipment_gateway():
    return FakeShipmentGateway()


@pytest.fixture
def closure_gateway():
    return FakeClosureGateway()


@pytest.fixture
def cost_gateway():
    return FakeCostGateway()


@pytest.fixture
def ledger():
    return CostLedger()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_order(
    id: Any = 1,
    status: str = "ready_for_pickup",
    total: str = "1000",
    paid: str = "0",
    currency: str = "MAD",
    convoy_id: Any = 10,
    wave_id: Any = 100,
) -> Order:
    return Order.create(
        id=id,
        reference=f"CMD-{id}",
        convoy_id=convoy_id,
        wave_id=wave_id,
        currency=currency,
        lines=[OrderLine(label="Marchandise", quantity=Decimal("1"), unit_price=Decimal(total))],
        status=status,
        total_paid=Decimal(paid),
    )


def make_parcel(
    id: Any = 1,
    status: str = "ready_for_pickup",
    weight: str = "10",
    rate: str = "12",
    currency: str = "MAD",
    paid: str = "0",
    trip_id: Any = 20,
    wave_id: Any = 200,
) -> Parcel:
    return Parcel.create(
        id=id,
        reference=f"COL-{id}",
        trip_id=trip_id,
        wave_id=wave_id,
        weight_kg=Decimal(weight),
        rate_per_kg=Money.of(rate, currency),
        status=status,
        total_paid=Decimal(paid),
    )


def make_journey(id: Any = 10, status: str = "arrived", wave_id: Any = 100) -> Journey:
    return Journey(id=id, wave_id=wave_id, status=status)


def make_wave(id: Any = 100, status: str = "open") -> Wave:
    return Wave(id=id, status=status)


def make_cost(
    amount: str = "500",
    currency: str = "MAD",
    account_id: Any = 1,
    label: str = "Carburant",
    id: Any = None,
    type: CostType = CostType.FUEL,
) -> Cost:
    return Cost(
        id=id,
        type=type,
        label=label,
        amount=Money.of(amount, currency),
        account_id=account_id,
    )
