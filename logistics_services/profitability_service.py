"""
Wave profitability for management roles.

Reads the cost ledger and converts everything through one rate snapshot so
the whole report uses the same rates.
"""

from __future__ import annotations

from collections.abc import Sequence

from logistics_engines.cost_ledger import CostLedger
from logistics_engines.lifecycle import EntityKind
from logistics_engines.profitability import ProfitabilityReport, wave_profitability
from logistics_kernel.domain.entities import Journey, OwnerRef, Shipment, Wave
from logistics_kernel.logging_config import get_logger
from logistics_services.capabilities import VIEW_PROFITABILITY, require_capability
from logistics_services.ports import CapabilityChecker
from logistics_services.rate_provider import RateSnapshotProvider

logger = get_logger("services.profitability")


class ProfitabilityService:
    def __init__(
        self,
        journey_kind: EntityKind,
        wave_kind: EntityKind,
        ledger: CostLedger,
        rates: RateSnapshotProvider,
        capabilities: CapabilityChecker,
    ):
        self._journey_kind = journey_kind
        self._wave_kind = wave_kind
        self._ledger = ledger
        self._rates = rates
        self._capabilities = capabilities

    def wave_report(
        self,
        wave: Wave,
        journeys: Sequence[Journey],
        shipments: Sequence[Shipment],
        currency: str,
        *,
        role: str,
    ) -> ProfitabilityReport:
        require_capability(self._capabilities, role, VIEW_PROFITABILITY)

        journey_ids = {j.id for j in journeys if j.wave_id == wave.id}
        journey_costs = []
        for journey_id in sorted(journey_ids, key=str):
            journey_costs.extend(
                self._ledger.costs_for(OwnerRef(self._journey_kind.owner_kind, journey_id))
            )

        report = wave_profitability(
            shipments=[s for s in shipments if s.journey_id in journey_ids],
            wave_costs=self._ledger.costs_for(OwnerRef(self._wave_kind.owner_kind, wave.id)),
            journey_costs=journey_costs,
            currency=currency,
            converter=self._rates.converter(),
        )
        logger.info(
            "wave_profitability_computed",
            extra={
                "wave_id": wave.id,
                "currency": currency,
                "revenue": str(report.revenue),
                "net_profit": str(report.net_profit),
                "is_profitable": report.is_profitable,
            },
        )
        return report
