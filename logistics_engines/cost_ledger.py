"""
Cost Ledger -- cost lines per convoy, trip or wave.

Responsibility:
    Validates and records cost lines against their owner, groups them by
    currency, and answers the closure question "is there at least one valid
    cost?". Converting a multi-currency aggregate into one figure is always
    an explicit call with a CurrencyConverter.

Architecture position:
    Engines -- in-memory state only, zero I/O. Persistence goes through the
    CostGateway port in the service layer.

Invariants enforced:
    - A recorded cost has a non-empty label, a positive amount and a known,
      active account held in the cost's currency.
    - Aggregation never adds amounts of different currencies together.
    - Adding a cost whose id is already recorded replaces it (upsert).

Failure modes:
    - CostValidationError with field-keyed messages for invalid drafts.
    - KeyError from ``remove_cost`` when the id is not recorded.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from logistics_engines.conversion import CurrencyConverter
from logistics_kernel.domain.currency import CurrencyRegistry
from logistics_kernel.domain.dtos import ValidationIssue, ValidationResult
from logistics_kernel.domain.entities import Account, Cost, OwnerRef
from logistics_kernel.domain.values import Money
from logistics_kernel.exceptions import CostValidationError
from logistics_kernel.logging_config import get_logger

logger = get_logger("engines.cost_ledger")


def is_valid_cost(cost: Cost) -> bool:
    """A cost counts towards closure when it has a label, an amount and an account."""
    return (
        bool(cost.label and cost.label.strip())
        and cost.amount.amount > 0
        and cost.account_id not in (None, "")
    )


def valid_costs(costs: Iterable[Cost]) -> list[Cost]:
    return [c for c in costs if is_valid_cost(c)]


def has_valid_cost(costs: Iterable[Cost]) -> bool:
    return any(is_valid_cost(c) for c in costs)


def validate_cost(cost: Cost, accounts: Mapping[Any, Account]) -> ValidationResult:
    """Field-keyed validation of a cost draft against the known accounts."""
    issues: list[ValidationIssue] = []

    if not cost.label or not cost.label.strip():
        issues.append(ValidationIssue("LABEL_REQUIRED", "Label is required", "label"))
    if cost.amount.amount <= 0:
        issues.append(ValidationIssue("AMOUNT_NOT_POSITIVE", "Amount must be positive", "amount"))

    if cost.account_id in (None, ""):
        issues.append(ValidationIssue("ACCOUNT_REQUIRED", "Account is required", "account_id"))
    else:
        account = accounts.get(cost.account_id)
        if account is None:
            issues.append(ValidationIssue(
                "UNKNOWN_ACCOUNT", f"Account {cost.account_id} does not exist", "account_id",
            ))
        else:
            if not account.is_active:
                issues.append(ValidationIssue(
                    "INACTIVE_ACCOUNT", f"Account {account.name} is inactive", "account_id",
                ))
            if CurrencyRegistry.normalize(account.currency) != cost.currency:
                issues.append(ValidationIssue(
                    "ACCOUNT_CURRENCY_MISMATCH",
                    f"Account {account.name} is in {account.currency}, cost is in {cost.currency}",
                    "currency",
                ))

    return ValidationResult.from_issues(issues)


@dataclass(frozen=True)
class CostAggregate:
    """
    Costs grouped by currency.

    ``total`` is only set when every cost shares one currency; otherwise the
    caller must convert explicitly with ``total_in``.
    """

    by_currency: Mapping[str, Decimal] = field(default_factory=dict)

    @property
    def total(self) -> Money | None:
        if len(self.by_currency) != 1:
            return None
        ((code, amount),) = self.by_currency.items()
        return Money.of(amount, code)

    @property
    def is_empty(self) -> bool:
        return not self.by_currency

    def total_in(self, currency: str, converter: CurrencyConverter) -> Money:
        total = sum(
            (converter.convert(amount, code, currency) for code, amount in self.by_currency.items()),
            Decimal("0"),
        )
        return Money.of(total, currency)


def aggregate_costs(costs: Iterable[Cost]) -> CostAggregate:
    grouped: dict[str, Decimal] = {}
    for cost in costs:
        grouped[cost.currency] = grouped.get(cost.currency, Decimal("0")) + cost.amount.amount
    return CostAggregate(by_currency=dict(sorted(grouped.items())))


def _with_id(cost: Cost) -> Cost:
    """Lines without a persisted id get a local uuid4 so they never collide."""
    return cost if cost.id is not None else replace(cost, id=str(uuid.uuid4()))


class CostLedger:
    """In-memory cost lines keyed by owner, in insertion order."""

    def __init__(self, costs: Mapping[OwnerRef, Iterable[Cost]] | None = None):
        self._costs: dict[OwnerRef, dict[Any, Cost]] = {}
        for owner, items in (costs or {}).items():
            lines = self._costs.setdefault(owner, {})
            for cost in map(_with_id, items):
                lines[cost.id] = cost

    def add_cost(self, owner: OwnerRef, draft: Cost, accounts: Mapping[Any, Account]) -> Cost:
        result = validate_cost(draft, accounts)
        if not result:
            logger.info(
                "cost_rejected",
                extra={"owner": str(owner), "field_errors": result.field_errors()},
            )
            raise CostValidationError(result.field_errors())

        cost = _with_id(draft)
        lines = self._costs.setdefault(owner, {})
        updated = cost.id in lines
        lines[cost.id] = cost

        logger.info(
            "cost_recorded",
            extra={
                "owner": str(owner),
                "cost_id": cost.id,
                "cost_type": cost.type.value,
                "amount": str(cost.amount.amount),
                "currency": cost.currency,
                "updated": updated,
            },
        )
        return cost

    def remove_cost(self, owner: OwnerRef, cost_id: Any) -> Cost:
        lines = self._costs.get(owner, {})
        if cost_id not in lines:
            raise KeyError(f"Cost {cost_id} not recorded for {owner}")
        removed = lines.pop(cost_id)
        logger.info("cost_removed", extra={"owner": str(owner), "cost_id": cost_id})
        return removed

    def costs_for(self, owner: OwnerRef) -> list[Cost]:
        return list(self._costs.get(owner, {}).values())

    def aggregate(self, owner: OwnerRef) -> CostAggregate:
        return aggregate_costs(self.costs_for(owner))

    def has_valid_cost(self, *owners: OwnerRef) -> bool:
        return any(has_valid_cost(self.costs_for(owner)) for owner in owners)

    def owners(self) -> list[OwnerRef]:
        return list(self._costs)
