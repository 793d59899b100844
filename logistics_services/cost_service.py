"""
Cost Service -- record cost lines against convoys, trips and waves.

Only roles holding ``manage_costs`` may add or remove costs. A cost is
validated by the CostLedger before it is sent to the backend, and the
ledger keeps the persisted id the backend returns.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from logistics_engines.cost_ledger import CostAggregate, CostLedger, validate_cost
from logistics_kernel.domain.entities import Account, Cost, OwnerRef
from logistics_kernel.exceptions import CostValidationError
from logistics_kernel.logging_config import LogContext, get_logger
from logistics_services.capabilities import MANAGE_COSTS, require_capability
from logistics_services.ports import AccountDirectory, CapabilityChecker, CostGateway

logger = get_logger("services.cost")


class CostService:
    def __init__(
        self,
        ledger: CostLedger,
        gateway: CostGateway,
        accounts: AccountDirectory,
        capabilities: CapabilityChecker,
    ):
        self._ledger = ledger
        self._gateway = gateway
        self._accounts = accounts
        self._capabilities = capabilities

    def _accounts_for(self, cost: Cost) -> dict[Any, Account]:
        if cost.account_id in (None, ""):
            return {}
        account = self._accounts.get_account(cost.account_id)
        return {cost.account_id: account} if account is not None else {}

    def add_cost(self, owner: OwnerRef, draft: Cost, *, role: str) -> Cost:
        """
        Validate, persist and record a cost line.

        Raises:
            CapabilityDeniedError: ``role`` may not manage costs.
            CostValidationError: label, amount or account invalid.
        """
        with LogContext.bind(entity_type=owner.kind.value, entity_id=owner.id):
            require_capability(self._capabilities, role, MANAGE_COSTS)

            accounts = self._accounts_for(draft)
            result = validate_cost(draft, accounts)
            if not result:
                raise CostValidationError(result.field_errors())

            persisted_id = self._gateway.save_cost(owner, draft.to_payload())
            cost = replace(draft, id=persisted_id if persisted_id is not None else draft.id)
            return self._ledger.add_cost(owner, cost, accounts)

    def remove_cost(self, owner: OwnerRef, cost_id: Any, *, role: str) -> Cost:
        with LogContext.bind(entity_type=owner.kind.value, entity_id=owner.id):
            require_capability(self._capabilities, role, MANAGE_COSTS)
            self._gateway.delete_cost(owner, cost_id)
            return self._ledger.remove_cost(owner, cost_id)

    def costs_for(self, owner: OwnerRef) -> list[Cost]:
        return self._ledger.costs_for(owner)

    def aggregate(self, owner: OwnerRef) -> CostAggregate:
        return self._ledger.aggregate(owner)
