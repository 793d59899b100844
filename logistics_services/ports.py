"""
Collaborator ports for the service layer.

Every external system the back office talks to is a Protocol here: the
REST backend (split by concern), the settings store, the account
directory, the capability check and document generation. Implementations
live outside this package; tests use in-memory fakes.

Gateway implementations report backend refusals with typed errors:
``BackendValidationError`` for field-keyed validation failures and
``ConcurrentModificationError`` when the entity changed since it was read.
Services let both propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from logistics_kernel.domain.entities import Account, OwnerRef


@runtime_checkable
class RateSource(Protocol):
    """``GET /rates`` -- rows of ``{code, rate_to_cfa}``."""

    def fetch_rates(self) -> list[Mapping[str, Any]]: ...


@runtime_checkable
class ShipmentGateway(Protocol):
    def update_shipment(self, kind: str, shipment_id: Any, payload: dict[str, Any]) -> None:
        """``PATCH /{orders|parcels}/{id}``."""
        ...

    def pickup_parcel(self, parcel_id: Any, payload: dict[str, Any]) -> None:
        """``POST /parcels/{id}/pickup``."""
        ...


@runtime_checkable
class ClosureGateway(Protocol):
    """
    Both calls return the persisted ids of the submitted ``costs`` lines, in
    submission order, or None when the backend does not report them.
    """

    def close_journey(self, kind: str, journey_id: Any, payload: dict[str, Any]) -> list[Any] | None:
        """``POST /{convoys|trips}/{id}/close``."""
        ...

    def close_wave(self, kind: str, wave_id: Any, payload: dict[str, Any]) -> list[Any] | None: ...


@runtime_checkable
class CostGateway(Protocol):
    def save_cost(self, owner: OwnerRef, payload: dict[str, Any]) -> Any:
        """Create or update a cost line; returns the persisted id."""
        ...

    def delete_cost(self, owner: OwnerRef, cost_id: Any) -> None: ...


@runtime_checkable
class AccountDirectory(Protocol):
    def get_account(self, account_id: Any) -> Account | None: ...


@runtime_checkable
class CapabilityChecker(Protocol):
    def is_allowed(self, role: str, capability: str) -> bool: ...


@runtime_checkable
class DocumentGenerator(Protocol):
    """Opaque receipt/label rendering; returns the binary document."""

    def render(self, document_type: str, entity_id: Any) -> bytes: ...
