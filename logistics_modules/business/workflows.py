"""
Business Workflows.

Status machines for orders, convoys and waves, and the entity-kind
descriptors that configure the shared LifecycleStateMachine for them.
A convoy's progress is driven by its orders, so a convoy may close from any
open status once its orders are finished.
"""

from logistics_engines.lifecycle import ClosureBlock, ClosurePolicy, EntityKind
from logistics_kernel.domain.entities import JourneyStatus, OwnerKind, WaveStatus
from logistics_kernel.domain.workflow import Guard, Transition, Workflow
from logistics_kernel.logging_config import get_logger
from logistics_modules.business.models import OrderStatus

logger = get_logger("modules.business.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

DEBT_CLEARED = Guard(
    name="debt_cleared",
    description="Payments clear the debt, or the residual debt was acknowledged",
)

CONVOY_READY_TO_CLOSE = Guard(
    name="convoy_ready_to_close",
    description="Orders delivered or cancelled, none in transit, one valid cost",
)

WAVE_READY_TO_CLOSE = Guard(
    name="wave_ready_to_close",
    description="Every convoy closed, one valid cost on the wave or its convoys",
)


# -----------------------------------------------------------------------------
# Order Workflow
# -----------------------------------------------------------------------------

ORDER_WORKFLOW = Workflow(
    name="business_order",
    description="Client order from creation to pickup",
    initial_state="pending",
    states=tuple(s.value for s in OrderStatus),
    transitions=(
        Transition("pending", "confirmed", action="confirm"),
        Transition("pending", "in_transit", action="mark_in_transit"),
        Transition("confirmed", "in_transit", action="mark_in_transit"),
        Transition("in_transit", "arrived", action="mark_arrived"),
        Transition("arrived", "ready_for_pickup", action="mark_ready"),
        Transition("ready_for_pickup", "delivered", action="deliver", guard=DEBT_CLEARED),
        Transition("pending", "cancelled", action="cancel"),
        Transition("confirmed", "cancelled", action="cancel"),
    ),
    terminal_states=("delivered", "cancelled"),
)

CONVOY_WORKFLOW = Workflow(
    name="business_convoy",
    description="Convoy journey within a wave",
    initial_state="planned",
    states=tuple(s.value for s in JourneyStatus),
    transitions=(
        Transition("planned", "in_transit", action="depart"),
        Transition("in_transit", "arrived", action="arrive"),
        Transition("planned", "closed", action="close", guard=CONVOY_READY_TO_CLOSE),
        Transition("in_transit", "closed", action="close", guard=CONVOY_READY_TO_CLOSE),
        Transition("arrived", "closed", action="close", guard=CONVOY_READY_TO_CLOSE),
    ),
    terminal_states=("closed",),
)

WAVE_WORKFLOW = Workflow(
    name="business_wave",
    description="Business wave grouping convoys",
    initial_state="draft",
    states=tuple(s.value for s in WaveStatus),
    transitions=(
        Transition("draft", "open", action="open"),
        Transition("open", "closed", action="close", guard=WAVE_READY_TO_CLOSE),
    ),
    terminal_states=("closed",),
)


# -----------------------------------------------------------------------------
# Entity kinds
# -----------------------------------------------------------------------------

ORDER_KIND = EntityKind(
    name="order",
    resource="orders",
    workflow=ORDER_WORKFLOW,
    status_type=OrderStatus,
    editable_states=frozenset({"pending", "confirmed"}),
    settlement_gate="delivered",
    debt_override_allowed=True,
)

CONVOY_KIND = EntityKind(
    name="convoy",
    resource="convoys",
    workflow=CONVOY_WORKFLOW,
    status_type=JourneyStatus,
    closed_state="closed",
    closure=ClosurePolicy(
        terminal_child_states=frozenset({"delivered", "cancelled"}),
        blocking_state="in_transit",
    ),
    owner_kind=OwnerKind.CONVOY,
)

WAVE_KIND = EntityKind(
    name="business_wave",
    resource="waves",
    workflow=WAVE_WORKFLOW,
    status_type=WaveStatus,
    closed_state="closed",
    closure=ClosurePolicy(
        terminal_child_states=frozenset({"closed"}),
        not_terminal_reason=ClosureBlock.CHILDREN_NOT_CLOSED,
    ),
    owner_kind=OwnerKind.WAVE,
)

for _wf in (ORDER_WORKFLOW, CONVOY_WORKFLOW, WAVE_WORKFLOW):
    logger.info(
        "business_workflow_registered",
        extra={
            "workflow_name": _wf.name,
            "state_count": len(_wf.states),
            "transition_count": len(_wf.transitions),
            "initial_state": _wf.initial_state,
        },
    )
