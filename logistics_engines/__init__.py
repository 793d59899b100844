"""
Module: logistics_engines
Responsibility:
    Package entrypoint re-exporting the public symbols of the pure
    calculation engines. This is the import surface for
    logistics_modules and logistics_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import logistics_kernel (and sibling engine modules).
    MUST NOT import logistics_config, logistics_modules or logistics_services.

Invariants enforced:
    - Purity: engines never read the clock; closing times are passed in.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from logistics_engines import CurrencyConverter, evaluate_settlement
    from logistics_engines import LifecycleStateMachine, CostLedger
"""

from logistics_engines.conversion import CurrencyConverter
from logistics_engines.cost_ledger import (
    CostAggregate,
    CostLedger,
    aggregate_costs,
    has_valid_cost,
    is_valid_cost,
    valid_costs,
    validate_cost,
)
from logistics_engines.lifecycle import (
    ClosureBlock,
    ClosurePolicy,
    EntityKind,
    LifecycleStateMachine,
    TransitionDecision,
)
from logistics_engines.pricing import (
    ParcelPrice,
    PriceLine,
    order_total,
    parcel_price,
    primary_currency,
    rate_per_kg_from_price,
)
from logistics_engines.profitability import ProfitabilityReport, wave_profitability
from logistics_engines.settlement import (
    DEFAULT_TOLERANCE_POLICY,
    RejectionReason,
    SettlementResult,
    TolerancePolicy,
    ensure_payment_lines,
    evaluate_settlement,
    usable_payment_lines,
    validate_payment_lines,
)
from logistics_engines.tracer import traced_engine

__all__ = [
    "DEFAULT_TOLERANCE_POLICY",
    "ClosureBlock",
    "ClosurePolicy",
    "CostAggregate",
    "CostLedger",
    "CurrencyConverter",
    "EntityKind",
    "LifecycleStateMachine",
    "ParcelPrice",
    "PriceLine",
    "ProfitabilityReport",
    "RejectionReason",
    "SettlementResult",
    "TolerancePolicy",
    "TransitionDecision",
    "aggregate_costs",
    "ensure_payment_lines",
    "evaluate_settlement",
    "has_valid_cost",
    "is_valid_cost",
    "order_total",
    "parcel_price",
    "primary_currency",
    "rate_per_kg_from_price",
    "traced_engine",
    "usable_payment_lines",
    "valid_costs",
    "validate_cost",
    "validate_payment_lines",
    "wave_profitability",
]
