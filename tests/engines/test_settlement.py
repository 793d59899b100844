"""
Tests for the payment reconciler.

Tolerance is 1 unit for debts above 1000 and 0.01 at or below it; a gap
equal to the tolerance is accepted.
"""

from decimal import Decimal

import pytest

from logistics_engines.settlement import (
    RejectionReason,
    TolerancePolicy,
    ensure_payment_lines,
    evaluate_settlement,
    usable_payment_lines,
    validate_payment_lines,
)
from logistics_kernel.domain.entities import Account, PaymentLine
from logistics_kernel.exceptions import PaymentLineValidationError, SettlementRejectedError


def settle(total, paid="0", *payments, has_debt=None, policy=None, currency="CFA"):
    total, paid = Decimal(total), Decimal(paid)
    kwargs = {"policy": policy} if policy is not None else {}
    return evaluate_settlement(
        prior_paid=paid,
        total_amount=total,
        payments=[PaymentLine(account_id=i + 1, amount=Decimal(a)) for i, a in enumerate(payments)],
        currency=currency,
        has_debt=paid < total if has_debt is None else has_debt,
        **kwargs,
    )


class TestToleranceBoundaries:
    """Debt of 1,000,000 has tolerance 1; debt of 100 has tolerance 0.01."""

    def test_large_debt_short_by_tolerance_accepted(self):
        result = settle("1000000", "0", "999999")
        assert result.accepted
        assert result.tolerance == Decimal("1")
        assert result.remaining_debt == Decimal("1.00")
        assert result.new_total_paid == Decimal("999999")

    def test_large_debt_short_beyond_tolerance_rejected(self):
        result = settle("1000000", "0", "999998")
        assert not result.accepted
        assert result.reason is RejectionReason.INSUFFICIENT_PAYMENT
        assert result.new_total_paid == Decimal("0")

    def test_large_debt_fractional_gap_accepted(self):
        assert settle("1000000", "0", "999999.5").accepted

    def test_small_debt_short_by_a_cent_accepted(self):
        result = settle("100", "0", "99.99")
        assert result.accepted
        assert result.tolerance == Decimal("0.01")

    def test_small_debt_short_by_two_cents_rejected(self):
        assert not settle("100", "0", "99.98").accepted

    def test_threshold_itself_uses_small_tolerance(self):
        assert settle("1000", "0", "999.99").accepted
        assert not settle("1000", "0", "999.50").accepted

    def test_just_above_threshold_uses_large_tolerance(self):
        assert settle("1000.01", "0", "999.50").tolerance == Decimal("1")


class TestSettlementOutcomes:
    def test_no_debt_accepts_without_payments(self):
        result = settle("500", "500")
        assert result.accepted
        assert result.additional_paid == Decimal("0.00")
        assert result.new_total_paid == Decimal("500")

    def test_debt_within_tolerance_needs_no_payment(self):
        assert settle("100", "99.995").accepted

    def test_debt_without_payment_rejected(self):
        result = settle("1000", "0")
        assert result.reason is RejectionReason.PAYMENTS_REQUIRED
        assert result.remaining_debt == Decimal("1000.00")

    def test_split_payments_are_summed(self):
        result = settle("1000", "200", "500", "300")
        assert result.accepted
        assert result.additional_paid == Decimal("800.00")
        assert result.new_total_paid == Decimal("1000")

    def test_overpayment_is_clamped(self):
        result = settle("1000", "0", "1500")
        assert result.accepted
        assert result.new_total_paid == Decimal("1000")
        assert result.remaining_debt == Decimal("0.00")

    def test_rejected_result_raises_with_details(self):
        result = settle("100", "0", "50")
        with pytest.raises(SettlementRejectedError, match="insufficient_payment") as exc_info:
            result.raise_if_rejected(entity_id=7)
        assert exc_info.value.remaining_debt == "100.00"
        assert exc_info.value.entity_id == 7

    def test_accepted_result_passes_through(self):
        result = settle("100", "0", "100")
        assert result.raise_if_rejected() is result

    def test_custom_policy(self):
        policy = TolerancePolicy(threshold=Decimal("10"), large=Decimal("5"), small=Decimal("0"))
        assert settle("100", "0", "95", policy=policy).accepted
        assert not settle("5", "0", "4.99", policy=policy).accepted

    def test_negative_policy_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            TolerancePolicy(small=Decimal("-0.01"))

    def test_rejection_is_logged(self, captured_logs):
        settle("100", "0", "10")
        rejected = [r for r in captured_logs() if r["message"] == "settlement_rejected"]
        assert rejected[0]["reason"] == "insufficient_payment"

    def test_engine_call_is_traced(self, captured_logs):
        settle("100", "0", "100")
        traces = [r for r in captured_logs() if r["message"] == "LOGISTICS_ENGINE_TRACE"]
        assert traces and traces[0]["engine_name"] == "settlement"


class TestPaymentLines:
    @pytest.fixture
    def book(self):
        return {
            1: Account(id=1, name="Caisse", currency="MAD"),
            2: Account(id=2, name="Banque CFA", currency="CFA"),
            3: Account(id=3, name="Fermee", currency="MAD", is_active=False),
        }

    def test_valid_lines(self, book):
        lines = [PaymentLine(1, Decimal("10"))]
        assert validate_payment_lines(lines, book, "mad").is_valid

    def test_every_problem_reported(self, book):
        lines = [
            PaymentLine(1, Decimal("10")),
            PaymentLine(1, Decimal("5")),
            PaymentLine(2, Decimal("5")),
            PaymentLine(3, Decimal("5")),
            PaymentLine(42, Decimal("5")),
        ]
        result = validate_payment_lines(lines, book, "MAD")
        codes = [i.code for i in result.issues]
        assert codes == [
            "DUPLICATE_ACCOUNT",
            "ACCOUNT_CURRENCY_MISMATCH",
            "INACTIVE_ACCOUNT",
            "UNKNOWN_ACCOUNT",
        ]
        assert result.issues[0].field == "payments[1].account_id"

    def test_ensure_raises_field_errors(self, book):
        with pytest.raises(PaymentLineValidationError) as exc_info:
            ensure_payment_lines([PaymentLine(2, Decimal("1"))], book, "MAD")
        assert "payments[0].account_id" in exc_info.value.field_errors

    def test_unusable_lines_dropped(self):
        lines = [
            PaymentLine(None, Decimal("10")),
            PaymentLine(1, Decimal("0")),
            PaymentLine(2, Decimal("3")),
        ]
        assert usable_payment_lines(lines) == [PaymentLine(2, Decimal("3"))]

    def test_negative_line_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            PaymentLine(1, Decimal("-1"))
