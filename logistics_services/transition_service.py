"""
Status transitions for shipments, one at a time or in bulk.

Delivery goes through the pickup services; this service handles the
operational steps (confirm, mark in transit, mark arrived, ready for
pickup, cancel). Bulk actions apply one target status to every shipment
for which the edge exists and skip the others.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from logistics_engines.lifecycle import EntityKind, LifecycleStateMachine, TransitionDecision
from logistics_kernel.domain.entities import Shipment
from logistics_kernel.logging_config import LogContext, get_logger
from logistics_services.ports import ShipmentGateway

logger = get_logger("services.transition")


@dataclass(frozen=True)
class BulkTransitionResult:
    target: str
    updated: tuple[Any, ...] = ()
    skipped: tuple[Any, ...] = ()


class TransitionService:
    """Moves shipments of one kind along their workflow."""

    def __init__(self, kind: EntityKind, gateway: ShipmentGateway):
        self._kind = kind
        self._gateway = gateway
        self._machine = LifecycleStateMachine(kind)

    def advance(self, shipment: Shipment, target: Any) -> tuple[Shipment, TransitionDecision]:
        """Apply one transition; the current status as target is a no-op."""
        with LogContext.bind(entity_type=self._kind.name, entity_id=shipment.id):
            decision = self._machine.evaluate_transition(
                shipment.status,
                target,
                has_debt=shipment.has_debt,
                remaining_debt=shipment.remaining_debt,
                entity_id=shipment.id,
            )
            if decision.noop:
                return shipment, decision

            self._gateway.update_shipment(
                self._kind.resource, shipment.id, {"status": decision.to_state},
            )
            logger.info(
                "shipment_status_changed",
                extra={
                    "from_state": decision.from_state,
                    "to_state": decision.to_state,
                    "action": decision.action,
                },
            )
            return replace(shipment, status=decision.to_state), decision

    def advance_all(self, shipments: Iterable[Shipment], target: Any) -> BulkTransitionResult:
        """
        Move every eligible shipment to ``target``.

        Shipments already in ``target`` or with no edge to it are skipped.
        A gateway error stops the batch and propagates; shipments updated
        before it stay updated.
        """
        target_state = target.value if hasattr(target, "value") else str(target)
        updated: list[Any] = []
        skipped: list[Any] = []

        for shipment in shipments:
            if target_state not in self._machine.allowed_targets(shipment.status):
                skipped.append(shipment.id)
                continue
            _, decision = self.advance(shipment, target_state)
            (updated if decision.changed else skipped).append(shipment.id)

        logger.info(
            "bulk_transition_applied",
            extra={
                "entity": self._kind.name,
                "target": target_state,
                "updated": len(updated),
                "skipped": len(skipped),
            },
        )
        return BulkTransitionResult(target=target_state, updated=tuple(updated), skipped=tuple(skipped))
