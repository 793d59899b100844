"""Tests for Workflow value objects and shared entity records."""

from decimal import Decimal

import pytest

from logistics_kernel.domain.dtos import ValidationIssue, ValidationResult
from logistics_kernel.domain.entities import (
    Cost,
    CostType,
    Journey,
    check_wave_consistency,
)
from logistics_kernel.domain.values import Money
from logistics_kernel.domain.workflow import Transition, Workflow
from tests.conftest import make_order


class TestWorkflow:
    def test_initial_state_must_exist(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow(name="w", description="", initial_state="x", states=("a",), transitions=())

    def test_transition_states_must_exist(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="w",
                description="",
                initial_state="a",
                states=("a",),
                transitions=(Transition("a", "b", action="go"),),
            )

    def test_lookup(self):
        wf = Workflow(
            name="w",
            description="",
            initial_state="a",
            states=("a", "b"),
            transitions=(Transition("a", "b", action="go"),),
        )
        assert wf.find_transition("a", "b").action == "go"
        assert wf.find_transition("b", "a") is None
        assert wf.targets_from("a") == ("b",)


class TestValidationResult:
    def test_field_errors_grouping(self):
        result = ValidationResult.from_issues([
            ValidationIssue("A", "first", "label"),
            ValidationIssue("B", "second", "label"),
            ValidationIssue("C", "global"),
        ])
        assert not result
        assert result.field_errors() == {"label": ["first", "second"], "__all__": ["global"]}

    def test_empty_is_success(self):
        assert ValidationResult.from_issues([])


class TestEntities:
    def test_cost_payload_omits_missing_id(self):
        cost = Cost(type="customs", label="Douane", amount=Money.of("10", "MAD"), account_id=1)
        assert cost.type is CostType.CUSTOMS
        assert "id" not in cost.to_payload()

    def test_debt(self):
        order = make_order(total="1000", paid="250")
        assert order.has_debt
        assert order.remaining_debt == Decimal("750")
        assert order.total == Money.of("1000", "MAD")

    def test_overpaid_shipment_has_no_remaining_debt(self):
        order = make_order(total="100", paid="150")
        assert not order.has_debt
        assert order.remaining_debt == Decimal("0")

    def test_wave_consistency(self):
        journey = Journey(id=10, wave_id=100, status="arrived")
        shipments = [make_order(id=1), make_order(id=2, wave_id=101), make_order(id=3, convoy_id=11)]
        assert check_wave_consistency(journey, shipments) == (2,)
