"""Tests for cost validation, aggregation and the in-memory CostLedger."""

from decimal import Decimal

import pytest

from logistics_engines.cost_ledger import (
    CostLedger,
    aggregate_costs,
    has_valid_cost,
    validate_cost,
)
from logistics_kernel.domain.entities import Account, OwnerKind, OwnerRef
from logistics_kernel.domain.values import Money
from logistics_kernel.exceptions import CostValidationError
from tests.conftest import make_cost

CONVOY = OwnerRef(OwnerKind.CONVOY, 10)
WAVE = OwnerRef("wave", 100)


@pytest.fixture
def book():
    return {
        1: Account(id=1, name="Caisse MAD", currency="MAD"),
        2: Account(id=2, name="Caisse CFA", currency="CFA"),
        9: Account(id=9, name="Fermee", currency="MAD", is_active=False),
    }


class TestValidateCost:
    def test_valid(self, book):
        assert validate_cost(make_cost(), book).is_valid

    def test_field_errors_keyed_by_field(self, book):
        result = validate_cost(make_cost(label="", amount="-5", account_id=None), book)
        errors = result.field_errors()
        assert set(errors) == {"label", "amount", "account_id"}

    def test_account_currency_must_match(self, book):
        result = validate_cost(make_cost(currency="CFA", account_id=1), book)
        assert [i.code for i in result.issues] == ["ACCOUNT_CURRENCY_MISMATCH"]
        assert result.issues[0].field == "currency"

    def test_unknown_and_inactive_accounts(self, book):
        assert validate_cost(make_cost(account_id=5), book).issues[0].code == "UNKNOWN_ACCOUNT"
        assert validate_cost(make_cost(account_id=9), book).issues[0].code == "INACTIVE_ACCOUNT"

    def test_has_valid_cost(self):
        assert not has_valid_cost([make_cost(amount="0")])
        assert has_valid_cost([make_cost(amount="0"), make_cost()])


class TestAggregate:
    def test_single_currency_total(self):
        agg = aggregate_costs([make_cost("100"), make_cost("250.50")])
        assert agg.total == Money.of("350.50", "MAD")

    def test_mixed_currencies_have_no_implicit_total(self, converter):
        agg = aggregate_costs([make_cost("100", "MAD"), make_cost("3700", "CFA", account_id=2)])
        assert agg.total is None
        assert agg.by_currency == {"CFA": Decimal("3700"), "MAD": Decimal("100")}
        assert agg.total_in("CFA", converter) == Money.of("10000", "CFA")

    def test_empty(self):
        assert aggregate_costs([]).is_empty


class TestCostLedger:
    def test_add_assigns_id(self, book, captured_logs):
        ledger = CostLedger()
        cost = ledger.add_cost(CONVOY, make_cost(), book)
        assert cost.id is not None
        assert ledger.costs_for(CONVOY) == [cost]
        assert any(r["message"] == "cost_recorded" for r in captured_logs())

    def test_existing_id_is_upserted(self, book):
        ledger = CostLedger()
        ledger.add_cost(CONVOY, make_cost("100", id=7), book)
        ledger.add_cost(CONVOY, make_cost("150", id=7), book)
        assert [c.amount.amount for c in ledger.costs_for(CONVOY)] == [Decimal("150")]

    def test_invalid_draft_rejected(self, book):
        ledger = CostLedger()
        with pytest.raises(CostValidationError) as exc_info:
            ledger.add_cost(CONVOY, make_cost(label=""), book)
        assert "label" in exc_info.value.field_errors
        assert ledger.costs_for(CONVOY) == []

    def test_owners_are_separate(self, book):
        ledger = CostLedger()
        ledger.add_cost(CONVOY, make_cost(), book)
        assert ledger.costs_for(WAVE) == []
        assert ledger.has_valid_cost(WAVE, CONVOY)
        assert not ledger.has_valid_cost(WAVE)
        assert ledger.owners() == [CONVOY]

    def test_remove(self, book):
        ledger = CostLedger({CONVOY: [make_cost(id=3)]})
        removed = ledger.remove_cost(CONVOY, 3)
        assert removed.id == 3
        assert ledger.costs_for(CONVOY) == []

    def test_seeded_lines_without_id_kept_apart(self):
        ledger = CostLedger({CONVOY: [make_cost("100"), make_cost("200"), make_cost(id=7)]})

        recorded = ledger.costs_for(CONVOY)
        assert [c.amount.amount for c in recorded] == [Decimal("100"), Decimal("200"), Decimal("500")]
        assert len({c.id for c in recorded}) == 3
        assert recorded[2].id == 7
        assert ledger.aggregate(CONVOY).total == Money.of("800", "MAD")

    def test_remove_unknown_raises(self):
        with pytest.raises(KeyError):
            CostLedger().remove_cost(CONVOY, 99)

    def test_aggregate_per_owner(self, book):
        ledger = CostLedger()
        ledger.add_cost(WAVE, make_cost("40"), book)
        ledger.add_cost(WAVE, make_cost("60"), book)
        assert ledger.aggregate(WAVE).total == Money.of("100", "MAD")

    def test_owner_ref_str(self):
        assert str(WAVE) == "wave:100"
