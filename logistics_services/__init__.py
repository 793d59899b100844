"""
logistics_services -- stateful coordinators over the pure engines.

Each service takes its collaborators (ports) by constructor injection,
calls the engines for every decision, and submits the result through a
gateway. Backend errors propagate unchanged.
"""

from logistics_services.capabilities import ConfiguredCapabilityChecker, require_capability
from logistics_services.closure_service import ClosureResult, ClosureService
from logistics_services.cost_service import CostService
from logistics_services.pickup_service import (
    OrderDeliveryService,
    ParcelPickupService,
    PickupResult,
    PickupService,
)
from logistics_services.profitability_service import ProfitabilityService
from logistics_services.rate_provider import RateSnapshotProvider
from logistics_services.transition_service import BulkTransitionResult, TransitionService

__all__ = [
    "BulkTransitionResult",
    "ClosureResult",
    "ClosureService",
    "ConfiguredCapabilityChecker",
    "CostService",
    "OrderDeliveryService",
    "ParcelPickupService",
    "PickupResult",
    "PickupService",
    "ProfitabilityService",
    "RateSnapshotProvider",
    "TransitionService",
    "require_capability",
]
