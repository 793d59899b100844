"""
Closure Service -- close convoys, trips and waves.

Thin glue layer that:
1. Gathers the cost lines that count for the closure (recorded ones plus
   the batch supplied with the request)
2. Calls LifecycleStateMachine.evaluate_closure with the children
3. Validates the supplied batch against the account directory
4. Submits the closure through the ClosureGateway
5. Records the submitted lines in the CostLedger under their persisted ids

A wave's cost check counts its own costs and those of its journeys, so
costs entered when a journey closes count towards its wave.
Closing an entity that is already closed is a no-op success.

Usage:
    service = ClosureService.for_express(gateway, ledger, accounts, clock=clock)
    result = service.close_journey(trip, parcels, costs=[fuel_cost])
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from logistics_engines.cost_ledger import CostLedger, is_valid_cost, valid_costs, validate_cost
from logistics_engines.lifecycle import EntityKind, LifecycleStateMachine, TransitionDecision
from logistics_kernel.domain.clock import Clock, SystemClock
from logistics_kernel.domain.entities import (
    Account,
    Cost,
    Journey,
    OwnerRef,
    Shipment,
    Wave,
    check_wave_consistency,
)
from logistics_kernel.exceptions import CostValidationError
from logistics_kernel.logging_config import LogContext, get_logger
from logistics_modules.business import workflows as business
from logistics_modules.express import workflows as express
from logistics_services.capabilities import CLOSE_JOURNEY, CLOSE_WAVE, require_capability
from logistics_services.ports import AccountDirectory, CapabilityChecker, ClosureGateway

logger = get_logger("services.closure")


@dataclass(frozen=True)
class ClosureResult:
    entity: Journey | Wave
    decision: TransitionDecision

    @property
    def noop(self) -> bool:
        return self.decision.noop


def _merge_costs(recorded: Sequence[Cost], supplied: Sequence[Cost]) -> list[Cost]:
    """Supplied lines replace recorded ones with the same id."""
    supplied_ids = {c.id for c in supplied if c.id is not None}
    return [c for c in recorded if c.id not in supplied_ids] + list(supplied)


class ClosureService:
    """Closes the journeys and waves of one module."""

    def __init__(
        self,
        journey_kind: EntityKind,
        wave_kind: EntityKind,
        gateway: ClosureGateway,
        ledger: CostLedger,
        accounts: AccountDirectory,
        clock: Clock | None = None,
        capabilities: CapabilityChecker | None = None,
    ):
        self._journey_kind = journey_kind
        self._wave_kind = wave_kind
        self._gateway = gateway
        self._ledger = ledger
        self._accounts = accounts
        self._clock = clock or SystemClock()
        self._capabilities = capabilities
        self._journeys = LifecycleStateMachine(journey_kind)
        self._waves = LifecycleStateMachine(wave_kind)

    @classmethod
    def for_business(
        cls, gateway: ClosureGateway, ledger: CostLedger, accounts: AccountDirectory, **kwargs: Any,
    ) -> ClosureService:
        return cls(business.CONVOY_KIND, business.WAVE_KIND, gateway, ledger, accounts, **kwargs)

    @classmethod
    def for_express(
        cls, gateway: ClosureGateway, ledger: CostLedger, accounts: AccountDirectory, **kwargs: Any,
    ) -> ClosureService:
        return cls(express.TRIP_KIND, express.WAVE_KIND, gateway, ledger, accounts, **kwargs)

    def _journey_owner(self, journey_id: Any) -> OwnerRef:
        return OwnerRef(self._journey_kind.owner_kind, journey_id)

    def _wave_owner(self, wave_id: Any) -> OwnerRef:
        return OwnerRef(self._wave_kind.owner_kind, wave_id)

    def _check_role(self, role: str | None, capability: str) -> None:
        if self._capabilities is not None and role is not None:
            require_capability(self._capabilities, role, capability)

    def _checked_batch(self, costs: Sequence[Cost]) -> tuple[list[Cost], dict[Any, Account]]:
        """
        Complete lines of a closure batch, each checked against its account.

        Incomplete rows (no label, no amount or no account) are not
        submitted. A complete row whose account is unknown, inactive or held
        in another currency fails the whole batch.

        Raises:
            CostValidationError: keyed ``costs[<index>].<field>``.
        """
        accounts: dict[Any, Account] = {}
        for cost in valid_costs(costs):
            if cost.account_id not in accounts:
                account = self._accounts.get_account(cost.account_id)
                if account is not None:
                    accounts[cost.account_id] = account

        errors: dict[str, list[str]] = {}
        for index, cost in enumerate(costs):
            if not is_valid_cost(cost):
                continue
            for field_name, messages in validate_cost(cost, accounts).field_errors().items():
                errors[f"costs[{index}].{field_name}"] = messages
        if errors:
            logger.info("closure_costs_rejected", extra={"field_errors": errors})
            raise CostValidationError(errors)
        return valid_costs(costs), accounts

    def _record_costs(
        self,
        owner: OwnerRef,
        submitted: list[Cost],
        persisted_ids: Sequence[Any] | None,
        accounts: dict[Any, Account],
    ) -> None:
        ids = list(persisted_ids or ())
        for index, cost in enumerate(submitted):
            if index < len(ids) and ids[index] is not None:
                cost = replace(cost, id=ids[index])
            self._ledger.add_cost(owner, cost, accounts)

    def close_journey(
        self,
        journey: Journey,
        shipments: Sequence[Shipment],
        costs: Sequence[Cost] = (),
        *,
        role: str | None = None,
    ) -> ClosureResult:
        """
        Close a convoy or trip.

        ``costs`` is the batch entered with the closure; lines with an id
        update existing costs, the others are created.

        Raises:
            PreconditionNotMetError: children unfinished or no valid cost.
            InvalidTransitionError: the journey cannot close from its status.
            CostValidationError: a supplied line names an unusable account.
        """
        kind = self._journey_kind
        with LogContext.bind(entity_type=kind.name, entity_id=journey.id):
            self._check_role(role, CLOSE_JOURNEY)

            children = [s for s in shipments if s.journey_id == journey.id]
            mismatched = check_wave_consistency(journey, children)
            if mismatched:
                logger.warning(
                    "shipment_wave_mismatch",
                    extra={"wave_id": journey.wave_id, "shipment_ids": list(mismatched)},
                )

            considered = _merge_costs(self._ledger.costs_for(self._journey_owner(journey.id)), costs)
            decision = self._journeys.evaluate_closure(
                journey.status, children, considered, self._clock.now(), entity_id=journey.id,
            )
            if decision.noop:
                logger.info("journey_already_closed")
                return ClosureResult(entity=journey, decision=decision)

            submitted, accounts = self._checked_batch(costs)
            payload = {
                "status": decision.to_state,
                "end_date": decision.closed_at.isoformat(),
                "costs": [c.to_payload() for c in submitted],
            }
            persisted_ids = self._gateway.close_journey(kind.resource, journey.id, payload)
            self._record_costs(self._journey_owner(journey.id), submitted, persisted_ids, accounts)

            logger.info(
                "journey_closed",
                extra={"children": len(children), "costs_submitted": len(payload["costs"])},
            )
            closed = replace(journey, status=decision.to_state, end_date=decision.closed_at)
            return ClosureResult(entity=closed, decision=decision)

    def close_wave(
        self,
        wave: Wave,
        journeys: Sequence[Journey],
        costs: Sequence[Cost] = (),
        *,
        role: str | None = None,
    ) -> ClosureResult:
        """Close a wave once all of its journeys are closed."""
        kind = self._wave_kind
        with LogContext.bind(entity_type=kind.name, entity_id=wave.id):
            self._check_role(role, CLOSE_WAVE)

            children = [j for j in journeys if j.wave_id == wave.id]
            recorded = self._ledger.costs_for(self._wave_owner(wave.id))
            for journey in children:
                recorded.extend(self._ledger.costs_for(self._journey_owner(journey.id)))
            considered = _merge_costs(recorded, costs)

            decision = self._waves.evaluate_closure(
                wave.status, children, considered, self._clock.now(), entity_id=wave.id,
            )
            if decision.noop:
                logger.info("wave_already_closed")
                return ClosureResult(entity=wave, decision=decision)

            payload = {
                "status": decision.to_state,
                "end_date": decision.closed_at.isoformat(),
            }
            submitted, accounts = self._checked_batch(costs)
            if submitted:
                payload["costs"] = [c.to_payload() for c in submitted]
            persisted_ids = self._gateway.close_wave(kind.resource, wave.id, payload)
            self._record_costs(self._wave_owner(wave.id), submitted, persisted_ids, accounts)

            logger.info("wave_closed", extra={"journeys": len(children)})
            closed = replace(wave, status=decision.to_state, end_date=decision.closed_at)
            return ClosureResult(entity=closed, decision=decision)
