"""
Wave profitability -- revenue against costs in one reporting currency.

Revenue is the sum of every shipment total, converted into the reporting
currency. Costs are the wave's own cost lines plus those of its journeys,
each converted before summing. Shipments without an amount do not count
as revenue.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from logistics_engines.conversion import CurrencyConverter
from logistics_engines.tracer import traced_engine
from logistics_kernel.domain.entities import Cost, Shipment
from logistics_kernel.domain.values import Money

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ProfitabilityReport:
    currency: str
    revenue: Decimal
    wave_costs: Decimal
    journey_costs: Decimal
    shipment_count: int

    @property
    def total_costs(self) -> Decimal:
        return self.wave_costs + self.journey_costs

    @property
    def net_profit(self) -> Decimal:
        return self.revenue - self.total_costs

    @property
    def profit_rate(self) -> Decimal:
        """Net profit as a percentage of revenue; zero when there is no revenue."""
        if self.revenue == ZERO:
            return ZERO
        return self.net_profit / self.revenue * HUNDRED

    @property
    def is_profitable(self) -> bool:
        return self.net_profit > ZERO

    def as_money(self) -> dict[str, Money]:
        return {
            "revenue": Money.of(self.revenue, self.currency),
            "costs": Money.of(self.total_costs, self.currency),
            "net_profit": Money.of(self.net_profit, self.currency),
        }


def _sum_costs(costs: Iterable[Cost], currency: str, converter: CurrencyConverter) -> Decimal:
    return sum(
        (converter.convert(c.amount.amount, c.currency, currency) for c in costs),
        ZERO,
    )


@traced_engine("profitability", "1.0", fingerprint_fields=("currency",))
def wave_profitability(
    *,
    shipments: Iterable[Shipment],
    wave_costs: Iterable[Cost],
    journey_costs: Iterable[Cost],
    currency: str,
    converter: CurrencyConverter,
) -> ProfitabilityReport:
    revenue = ZERO
    count = 0
    for shipment in shipments:
        if shipment.total_amount <= ZERO:
            continue
        revenue += converter.convert(shipment.total_amount, shipment.currency, currency)
        count += 1

    return ProfitabilityReport(
        currency=currency,
        revenue=revenue,
        wave_costs=_sum_costs(wave_costs, currency, converter),
        journey_costs=_sum_costs(journey_costs, currency, converter),
        shipment_count=count,
    )
