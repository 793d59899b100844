"""Tests for the Business and Express workflow descriptors."""

import pytest

from logistics_modules.business import workflows as business
from logistics_modules.express import workflows as express


@pytest.mark.parametrize("kind, resource", [
    (business.ORDER_KIND, "orders"),
    (business.CONVOY_KIND, "convoys"),
    (business.WAVE_KIND, "waves"),
    (express.PARCEL_KIND, "parcels"),
    (express.TRIP_KIND, "trips"),
    (express.WAVE_KIND, "express_waves"),
])
def test_backend_resources(kind, resource):
    assert kind.resource == resource


class TestDescriptors:
    def test_only_orders_allow_debt_override(self):
        assert business.ORDER_KIND.debt_override_allowed
        assert not express.PARCEL_KIND.debt_override_allowed

    def test_delivery_is_guarded(self):
        transition = business.ORDER_WORKFLOW.find_transition("ready_for_pickup", "delivered")
        assert transition.guard is business.DEBT_CLEARED

    def test_convoy_closes_from_any_open_status(self):
        assert business.CONVOY_WORKFLOW.find_transition("planned", "closed") is not None
        assert express.TRIP_WORKFLOW.find_transition("planned", "closed") is None

    def test_wave_closure_waits_for_closed_journeys(self):
        for kind in (business.WAVE_KIND, express.WAVE_KIND):
            assert kind.closure.terminal_child_states == frozenset({"closed"})

    def test_journeys_block_on_shipments_in_transit(self):
        for kind in (business.CONVOY_KIND, express.TRIP_KIND):
            assert kind.closure.blocking_state == "in_transit"
            assert kind.closure.requires_cost
