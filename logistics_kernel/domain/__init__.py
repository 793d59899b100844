"""Pure domain types: currencies, money, workflows, entity records."""

from logistics_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from logistics_kernel.domain.currency import REFERENCE_CURRENCY, CurrencyRegistry
from logistics_kernel.domain.dtos import ValidationIssue, ValidationResult
from logistics_kernel.domain.entities import (
    Account,
    Cost,
    CostType,
    Journey,
    JourneyStatus,
    OwnerKind,
    OwnerRef,
    PaymentLine,
    PickupReceiver,
    Shipment,
    Wave,
    WaveStatus,
    check_wave_consistency,
)
from logistics_kernel.domain.values import Currency, ExchangeRate, Money, RateTable
from logistics_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Account",
    "Clock",
    "Cost",
    "CostType",
    "Currency",
    "CurrencyRegistry",
    "DeterministicClock",
    "ExchangeRate",
    "Guard",
    "Journey",
    "JourneyStatus",
    "Money",
    "OwnerKind",
    "OwnerRef",
    "PaymentLine",
    "PickupReceiver",
    "REFERENCE_CURRENCY",
    "RateTable",
    "Shipment",
    "SystemClock",
    "Transition",
    "ValidationIssue",
    "ValidationResult",
    "Wave",
    "WaveStatus",
    "Workflow",
    "check_wave_consistency",
]
