"""
Lifecycle State Machine -- status transitions for waves, journeys and shipments.

Responsibility:
    One parameterised state machine, configured per entity kind by an
    ``EntityKind`` descriptor, decides whether a requested status change is
    legal. It owns three families of checks:

    * edge legality, from the descriptor's Workflow transition table;
    * the settlement gate on delivery (a shipment with debt needs an
      accepted settlement, or an acknowledged override where the kind
      permits one);
    * closure preconditions for convoys, trips and waves, which inspect the
      child collection and the cost lines.

Architecture position:
    Engines -- pure decision layer, zero I/O. Returns a TransitionDecision
    the service layer turns into a backend mutation.

Invariants enforced:
    - Only edges declared in the Workflow are accepted.
    - Requesting the current status is a no-op decision, never an error,
      so callers can retry safely.
    - A parent never closes with no children, with a child in transit, or
      with a child outside the terminal set.
    - A parent never closes without at least one valid cost.

Failure modes:
    - InvalidTransitionError: unknown status or undeclared edge.
    - PreconditionNotMetError: closure blocked; ``blocking_children`` lists
      the offending child ids.
    - SettlementRejectedError: delivery of an indebted shipment without an
      accepted settlement or a permitted override.
    - RemainingPaymentNotAllowedError: confirm_remaining_payment refused.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from logistics_engines.cost_ledger import valid_costs
from logistics_engines.settlement import RejectionReason, SettlementResult
from logistics_kernel.domain.entities import Cost, OwnerKind
from logistics_kernel.domain.workflow import Workflow
from logistics_kernel.exceptions import (
    InvalidTransitionError,
    PreconditionNotMetError,
    RemainingPaymentNotAllowedError,
    SettlementRejectedError,
)
from logistics_kernel.logging_config import get_logger

logger = get_logger("engines.lifecycle")


class HasStatus(Protocol):
    """Anything with an id and a status: shipments for journeys, journeys for waves."""

    @property
    def id(self) -> Any: ...

    @property
    def status(self) -> str: ...


class ClosureBlock(str, Enum):
    NO_CHILDREN = "no_children"
    CHILDREN_IN_TRANSIT = "children_in_transit"
    CHILDREN_NOT_TERMINAL = "children_not_terminal"
    CHILDREN_NOT_CLOSED = "children_not_closed"
    NO_VALID_COST = "no_valid_cost"


@dataclass(frozen=True)
class ClosurePolicy:
    """
    What must hold before a parent entity may close.

    ``blocking_state`` is checked first and reported on its own so the caller
    can tell "still on the road" apart from "not finished yet".
    """

    terminal_child_states: frozenset[str]
    not_terminal_reason: ClosureBlock = ClosureBlock.CHILDREN_NOT_TERMINAL
    blocking_state: str | None = None
    requires_cost: bool = True


@dataclass(frozen=True)
class EntityKind:
    """Descriptor that configures a LifecycleStateMachine for one entity kind."""

    name: str
    workflow: Workflow
    status_type: type[Enum]
    editable_states: frozenset[str] = frozenset()
    settlement_gate: str | None = None
    debt_override_allowed: bool = False
    closed_state: str | None = None
    closure: ClosurePolicy | None = None
    owner_kind: OwnerKind | None = None
    resource: str = ""

    def __post_init__(self) -> None:
        declared = {member.value for member in self.status_type}
        if declared != set(self.workflow.states):
            raise ValueError(
                f"{self.name}: status enum {sorted(declared)} does not match "
                f"workflow states {sorted(self.workflow.states)}"
            )
        if (self.closure is None) != (self.closed_state is None):
            raise ValueError(f"{self.name}: closure policy and closed state go together")


@dataclass(frozen=True)
class TransitionDecision:
    """
    A legal status change, ready to be persisted.

    ``noop`` is True when the entity already holds the target status.
    ``residual_debt`` is True when delivery went through on an override.
    For closures, ``closed_at`` and ``costs`` carry what must be persisted.
    """

    entity: str
    from_state: str
    to_state: str
    noop: bool = False
    action: str | None = None
    settlement: SettlementResult | None = None
    residual_debt: bool = False
    closed_at: datetime | None = None
    costs: tuple[Cost, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return not self.noop

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.to_state}
        if self.closed_at is not None:
            payload["end_date"] = self.closed_at.isoformat()
        if self.costs:
            payload["costs"] = [c.to_payload() for c in self.costs]
        return payload


def _state(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class LifecycleStateMachine:
    """
    Status transitions for one entity kind.

    Usage:
        machine = LifecycleStateMachine(ORDER_KIND)
        decision = machine.evaluate_transition(
            "ready_for_pickup", "delivered", has_debt=True, settlement=result,
        )
    """

    def __init__(self, kind: EntityKind):
        self._kind = kind

    @property
    def kind(self) -> EntityKind:
        return self._kind

    @property
    def workflow(self) -> Workflow:
        return self._kind.workflow

    def parse_status(self, value: Any) -> Enum:
        """Map a raw status to the kind's enum, or raise InvalidTransitionError."""
        try:
            return self._kind.status_type(_state(value))
        except ValueError as e:
            raise InvalidTransitionError(self._kind.name, _state(value), "?") from e

    def can_edit(self, status: Any) -> bool:
        return _state(status) in self._kind.editable_states

    def can_delete(self, status: Any) -> bool:
        return _state(status) in self._kind.editable_states

    def allowed_targets(self, status: Any) -> tuple[str, ...]:
        return self.workflow.targets_from(_state(status))

    def is_terminal(self, status: Any) -> bool:
        return _state(status) in self.workflow.terminal_states

    def evaluate_transition(
        self,
        current: Any,
        target: Any,
        *,
        has_debt: bool = False,
        settlement: SettlementResult | None = None,
        allow_with_debt: bool = False,
        remaining_debt: Decimal | None = None,
        children: Iterable[HasStatus] | None = None,
        costs: Iterable[Cost] | None = None,
        now: datetime | None = None,
        entity_id: Any = None,
    ) -> TransitionDecision:
        """
        Decide whether ``current -> target`` may proceed.

        A closure target is delegated to ``evaluate_closure`` so its
        preconditions are always checked.
        """
        from_state, to_state = _state(current), _state(target)
        self._check_known(from_state, to_state, entity_id)

        if from_state == to_state:
            return TransitionDecision(
                entity=self._kind.name, from_state=from_state, to_state=to_state, noop=True,
            )

        if to_state == self._kind.closed_state:
            return self.evaluate_closure(
                from_state, children or (), costs or (), now, entity_id=entity_id,
            )

        transition = self.workflow.find_transition(from_state, to_state)
        if transition is None:
            raise InvalidTransitionError(self._kind.name, from_state, to_state, entity_id)

        residual_debt = False
        if to_state == self._kind.settlement_gate and has_debt:
            residual_debt = self._check_settlement(
                settlement, allow_with_debt, remaining_debt, entity_id,
            )

        logger.debug(
            "transition_allowed",
            extra={
                "entity": self._kind.name,
                "entity_id": entity_id,
                "from_state": from_state,
                "to_state": to_state,
                "residual_debt": residual_debt,
            },
        )
        return TransitionDecision(
            entity=self._kind.name,
            from_state=from_state,
            to_state=to_state,
            action=transition.action,
            settlement=settlement,
            residual_debt=residual_debt,
        )

    def evaluate_closure(
        self,
        current: Any,
        children: Iterable[HasStatus],
        costs: Iterable[Cost],
        now: datetime | None,
        *,
        entity_id: Any = None,
    ) -> TransitionDecision:
        """Check closure preconditions and build the closing decision."""
        kind = self._kind
        if kind.closure is None or kind.closed_state is None:
            raise InvalidTransitionError(kind.name, _state(current), "closed", entity_id)

        from_state = _state(current)
        to_state = kind.closed_state
        self._check_known(from_state, to_state, entity_id)

        if from_state == to_state:
            return TransitionDecision(
                entity=kind.name, from_state=from_state, to_state=to_state, noop=True,
            )

        transition = self.workflow.find_transition(from_state, to_state)
        if transition is None:
            raise InvalidTransitionError(kind.name, from_state, to_state, entity_id)

        policy = kind.closure
        children = list(children)
        if not children:
            self._block(ClosureBlock.NO_CHILDREN, (), entity_id)

        if policy.blocking_state is not None:
            on_the_road = tuple(c.id for c in children if _state(c.status) == policy.blocking_state)
            if on_the_road:
                self._block(ClosureBlock.CHILDREN_IN_TRANSIT, on_the_road, entity_id)

        unfinished = tuple(
            c.id for c in children if _state(c.status) not in policy.terminal_child_states
        )
        if unfinished:
            self._block(policy.not_terminal_reason, unfinished, entity_id)

        costs = tuple(costs)
        if policy.requires_cost and not valid_costs(costs):
            self._block(ClosureBlock.NO_VALID_COST, (), entity_id)

        if now is None:
            raise ValueError("A closing time is required to close an entity")

        logger.info(
            "closure_allowed",
            extra={
                "entity": kind.name,
                "entity_id": entity_id,
                "from_state": from_state,
                "children": len(children),
                "costs": len(costs),
            },
        )
        return TransitionDecision(
            entity=kind.name,
            from_state=from_state,
            to_state=to_state,
            action=transition.action,
            closed_at=now,
            costs=tuple(valid_costs(costs)),
        )

    def confirm_remaining_payment(
        self,
        status: Any,
        total_amount: Decimal,
        total_paid: Decimal,
        *,
        entity_id: Any = None,
    ) -> Decimal:
        """
        Record that the residual debt of a delivered-on-override shipment is paid.

        Returns the new ``total_paid``, which is always ``total_amount``.
        """
        kind = self._kind
        state = _state(status)
        if not kind.debt_override_allowed:
            raise RemainingPaymentNotAllowedError(
                kind.name, state, "kind has no debt override", entity_id,
            )
        if state != kind.settlement_gate:
            raise RemainingPaymentNotAllowedError(
                kind.name, state, f"only allowed once {kind.settlement_gate}", entity_id,
            )
        if total_paid >= total_amount:
            raise RemainingPaymentNotAllowedError(kind.name, state, "no remaining debt", entity_id)

        logger.info(
            "remaining_payment_confirmed",
            extra={
                "entity": kind.name,
                "entity_id": entity_id,
                "previous_paid": str(total_paid),
                "total_amount": str(total_amount),
            },
        )
        return total_amount

    def _check_known(self, from_state: str, to_state: str, entity_id: Any) -> None:
        if not self.workflow.has_state(from_state) or not self.workflow.has_state(to_state):
            raise InvalidTransitionError(self._kind.name, from_state, to_state, entity_id)

    def _check_settlement(
        self,
        settlement: SettlementResult | None,
        allow_with_debt: bool,
        remaining_debt: Decimal | None,
        entity_id: Any,
    ) -> bool:
        """Return True when delivery proceeds on an override with debt left."""
        if settlement is not None and settlement.accepted:
            return False

        if allow_with_debt:
            if self._kind.debt_override_allowed:
                logger.warning(
                    "delivered_with_debt",
                    extra={"entity": self._kind.name, "entity_id": entity_id},
                )
                return True
            logger.warning(
                "debt_override_ignored",
                extra={"entity": self._kind.name, "entity_id": entity_id},
            )

        if settlement is not None:
            settlement.raise_if_rejected(entity_id)
        raise SettlementRejectedError(
            reason=RejectionReason.PAYMENTS_REQUIRED.value,
            remaining_debt=str(remaining_debt) if remaining_debt is not None else "unknown",
            additional_paid="0",
            tolerance="n/a",
            entity_id=entity_id,
        )

    def _block(self, reason: ClosureBlock, blocking: tuple[Any, ...], entity_id: Any) -> None:
        logger.info(
            "closure_blocked",
            extra={
                "entity": self._kind.name,
                "entity_id": entity_id,
                "reason": reason.value,
                "blocking_children": list(blocking),
            },
        )
        raise PreconditionNotMetError(self._kind.name, reason.value, blocking, entity_id)
