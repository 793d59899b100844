"""
Pickup Service -- confirm that a client collected an order or a parcel.

Thin glue layer that:
1. Validates the receiver details and the payment lines
2. Calls evaluate_settlement to decide whether the payments clear the debt
3. Calls LifecycleStateMachine to check the delivery transition
4. Submits the mutation through the ShipmentGateway

All computation lives in engines. The backend is the system of record:
ConcurrentModificationError and BackendValidationError raised by the
gateway propagate unchanged.

Usage:
    service = ParcelPickupService(gateway, accounts, clock)
    result = service.confirm_pickup(
        parcel,
        receiver=PickupReceiver(name="Awa Diop"),
        payments=[PaymentLine(account_id=3, amount=Decimal("120.00"))],
    )
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from logistics_engines.lifecycle import EntityKind, LifecycleStateMachine, TransitionDecision
from logistics_engines.settlement import (
    DEFAULT_TOLERANCE_POLICY,
    SettlementResult,
    TolerancePolicy,
    ensure_payment_lines,
    evaluate_settlement,
    usable_payment_lines,
)
from logistics_kernel.domain.clock import Clock, SystemClock
from logistics_kernel.domain.entities import Account, PaymentLine, PickupReceiver, Shipment
from logistics_kernel.exceptions import PickupValidationError
from logistics_kernel.logging_config import LogContext, get_logger
from logistics_modules.business.workflows import ORDER_KIND
from logistics_modules.express.workflows import PARCEL_KIND
from logistics_services.ports import AccountDirectory, DocumentGenerator, ShipmentGateway

logger = get_logger("services.pickup")


@dataclass(frozen=True)
class PickupResult:
    """What a pickup confirmation did."""

    shipment: Shipment
    decision: TransitionDecision
    settlement: SettlementResult | None = None
    payments: tuple[PaymentLine, ...] = ()

    @property
    def noop(self) -> bool:
        return self.decision.noop

    @property
    def residual_debt(self) -> bool:
        return self.decision.residual_debt


def resolve_accounts(directory: AccountDirectory, payments: Sequence[PaymentLine]) -> dict[Any, Account]:
    """Look up every account referenced by ``payments``; unknown ids are left out."""
    accounts: dict[Any, Account] = {}
    for line in payments:
        if line.account_id in accounts:
            continue
        account = directory.get_account(line.account_id)
        if account is not None:
            accounts[line.account_id] = account
    return accounts


class PickupService(ABC):
    """
    Shared pickup flow for Business orders and Express parcels.

    Subclasses fix the entity kind and the backend call used to persist the
    delivery.
    """

    kind: EntityKind

    def __init__(
        self,
        gateway: ShipmentGateway,
        accounts: AccountDirectory,
        clock: Clock | None = None,
        tolerance_policy: TolerancePolicy = DEFAULT_TOLERANCE_POLICY,
        documents: DocumentGenerator | None = None,
    ):
        self._gateway = gateway
        self._accounts = accounts
        self._clock = clock or SystemClock()
        self._policy = tolerance_policy
        self._documents = documents
        self._machine = LifecycleStateMachine(self.kind)

    @property
    def machine(self) -> LifecycleStateMachine:
        return self._machine

    def confirm_pickup(
        self,
        shipment: Shipment,
        receiver: PickupReceiver,
        payments: Sequence[PaymentLine] = (),
        *,
        allow_with_debt: bool = False,
    ) -> PickupResult:
        """
        Record the pickup of ``shipment`` by ``receiver``.

        Retrying on a shipment that is already delivered returns a no-op
        result without contacting the backend.

        Raises:
            PickupValidationError: receiver name missing.
            PaymentLineValidationError: a payment line is unusable.
            SettlementRejectedError: the payments do not clear the debt.
            InvalidTransitionError: the shipment is not ready for pickup.
        """
        gate = self.kind.settlement_gate
        with LogContext.bind(entity_type=self.kind.name, entity_id=shipment.id):
            self._machine.parse_status(shipment.status)

            if shipment.status == gate:
                logger.info("pickup_already_recorded", extra={"status": shipment.status})
                decision = self._machine.evaluate_transition(
                    shipment.status, gate, entity_id=shipment.id,
                )
                return PickupResult(shipment=shipment, decision=decision)

            if not receiver.name or not receiver.name.strip():
                raise PickupValidationError(
                    {"receiver_name": ["Receiver name is required"]},
                )

            lines = usable_payment_lines(payments)
            if lines:
                ensure_payment_lines(
                    lines, resolve_accounts(self._accounts, lines), shipment.currency,
                )

            settlement = evaluate_settlement(
                prior_paid=shipment.total_paid,
                total_amount=shipment.total_amount,
                payments=lines,
                currency=shipment.currency,
                has_debt=shipment.has_debt,
                policy=self._policy,
            )

            decision = self._machine.evaluate_transition(
                shipment.status,
                gate,
                has_debt=shipment.has_debt,
                settlement=settlement,
                allow_with_debt=allow_with_debt,
                remaining_debt=shipment.remaining_debt,
                entity_id=shipment.id,
            )

            new_total_paid = min(
                shipment.total_paid + settlement.additional_paid, shipment.total_amount,
            )
            picked_up_at = self._clock.now()
            self._submit(shipment, receiver, tuple(lines), new_total_paid, settlement)

            updated = replace(
                shipment,
                status=decision.to_state,
                total_paid=new_total_paid,
                receiver=receiver,
                picked_up_at=picked_up_at,
            )
            logger.info(
                "pickup_confirmed",
                extra={
                    "additional_paid": str(settlement.additional_paid),
                    "total_paid": str(new_total_paid),
                    "residual_debt": decision.residual_debt,
                    "payment_lines": len(lines),
                },
            )
            return PickupResult(
                shipment=updated,
                decision=decision,
                settlement=settlement,
                payments=tuple(lines),
            )

    def receipt(self, shipment: Shipment) -> bytes:
        """Render the pickup receipt through the document collaborator."""
        if self._documents is None:
            raise RuntimeError("No document generator configured")
        return self._documents.render(f"{self.kind.name}_receipt", shipment.id)

    @abstractmethod
    def _submit(
        self,
        shipment: Shipment,
        receiver: PickupReceiver,
        payments: tuple[PaymentLine, ...],
        new_total_paid: Decimal,
        settlement: SettlementResult,
    ) -> None:
        """Persist the delivery through the gateway."""


class OrderDeliveryService(PickupService):
    """
    Business order delivery.

    The order is patched to ``delivered``; ``total_paid`` is only sent when a
    payment was made. A debt may remain when the caller acknowledged it, and
    is later cleared with ``confirm_remaining_payment``.
    """

    kind = ORDER_KIND

    def _submit(self, shipment, receiver, payments, new_total_paid, settlement) -> None:
        payload: dict[str, Any] = {**receiver.to_payload(), "status": self.kind.settlement_gate}
        if settlement.additional_paid > 0:
            payload["total_paid"] = str(new_total_paid)
        self._gateway.update_shipment(self.kind.resource, shipment.id, payload)

    def confirm_remaining_payment(self, shipment: Shipment) -> Shipment:
        """Mark the residual debt of an order delivered on override as paid."""
        with LogContext.bind(entity_type=self.kind.name, entity_id=shipment.id):
            total_paid = self._machine.confirm_remaining_payment(
                shipment.status,
                shipment.total_amount,
                shipment.total_paid,
                entity_id=shipment.id,
            )
            self._gateway.update_shipment(
                self.kind.resource, shipment.id, {"total_paid": str(total_paid)},
            )
            return replace(shipment, total_paid=total_paid)


class ParcelPickupService(PickupService):
    """Express parcel pickup; refused until the payments clear the debt."""

    kind = PARCEL_KIND

    def _submit(self, shipment, receiver, payments, new_total_paid, settlement) -> None:
        payload: dict[str, Any] = {
            **receiver.to_payload(),
            "payments": [p.to_payload() for p in payments],
        }
        self._gateway.pickup_parcel(shipment.id, payload)
