"""
Express Workflows.

Status machines for parcels, trips and waves. Parcel pickup is stricter
than Business delivery: there is no override, the pickup is refused until
the payments clear the debt. A trip closes only once it has arrived.
"""

from logistics_engines.lifecycle import ClosureBlock, ClosurePolicy, EntityKind
from logistics_kernel.domain.entities import JourneyStatus, OwnerKind, WaveStatus
from logistics_kernel.domain.workflow import Guard, Transition, Workflow
from logistics_kernel.logging_config import get_logger
from logistics_modules.express.models import ParcelStatus

logger = get_logger("modules.express.workflows")

DEBT_CLEARED = Guard(
    name="debt_cleared",
    description="Payments clear the debt within tolerance",
)

TRIP_READY_TO_CLOSE = Guard(
    name="trip_ready_to_close",
    description="Parcels delivered or cancelled, none in transit, one valid cost",
)

WAVE_READY_TO_CLOSE = Guard(
    name="wave_ready_to_close",
    description="Every trip closed, one valid cost on the wave or its trips",
)

PARCEL_WORKFLOW = Workflow(
    name="express_parcel",
    description="Parcel from registration to pickup",
    initial_state="registered",
    states=tuple(s.value for s in ParcelStatus),
    transitions=(
        Transition("registered", "ready_for_departure", action="prepare"),
        Transition("ready_for_departure", "loaded", action="load"),
        Transition("loaded", "in_transit", action="depart"),
        Transition("in_transit", "arrived", action="mark_arrived"),
        Transition("arrived", "ready_for_pickup", action="mark_ready"),
        Transition("ready_for_pickup", "delivered", action="pickup", guard=DEBT_CLEARED),
        Transition("registered", "cancelled", action="cancel"),
    ),
    terminal_states=("delivered", "cancelled"),
)

TRIP_WORKFLOW = Workflow(
    name="express_trip",
    description="Trip journey within a wave",
    initial_state="planned",
    states=tuple(s.value for s in JourneyStatus),
    transitions=(
        Transition("planned", "in_transit", action="depart"),
        Transition("in_transit", "arrived", action="arrive"),
        Transition("arrived", "closed", action="close", guard=TRIP_READY_TO_CLOSE),
    ),
    terminal_states=("closed",),
)

WAVE_WORKFLOW = Workflow(
    name="express_wave",
    description="Express wave grouping trips",
    initial_state="draft",
    states=tuple(s.value for s in WaveStatus),
    transitions=(
        Transition("draft", "open", action="open"),
        Transition("open", "closed", action="close", guard=WAVE_READY_TO_CLOSE),
    ),
    terminal_states=("closed",),
)

PARCEL_KIND = EntityKind(
    name="parcel",
    resource="parcels",
    workflow=PARCEL_WORKFLOW,
    status_type=ParcelStatus,
    editable_states=frozenset({"registered"}),
    settlement_gate="delivered",
    debt_override_allowed=False,
)

TRIP_KIND = EntityKind(
    name="trip",
    resource="trips",
    workflow=TRIP_WORKFLOW,
    status_type=JourneyStatus,
    closed_state="closed",
    closure=ClosurePolicy(
        terminal_child_states=frozenset({"delivered", "cancelled"}),
        blocking_state="in_transit",
    ),
    owner_kind=OwnerKind.TRIP,
)

WAVE_KIND = EntityKind(
    name="express_wave",
    resource="express_waves",
    workflow=WAVE_WORKFLOW,
    status_type=WaveStatus,
    closed_state="closed",
    closure=ClosurePolicy(
        terminal_child_states=frozenset({"closed"}),
        not_terminal_reason=ClosureBlock.CHILDREN_NOT_CLOSED,
    ),
    owner_kind=OwnerKind.WAVE,
)

for _wf in (PARCEL_WORKFLOW, TRIP_WORKFLOW, WAVE_WORKFLOW):
    logger.info(
        "express_workflow_registered",
        extra={
            "workflow_name": _wf.name,
            "state_count": len(_wf.states),
            "transition_count": len(_wf.transitions),
            "initial_state": _wf.initial_state,
        },
    )
