"""
Payment Reconciler -- decide whether proposed payments settle a debt.

Responsibility:
    Given what a shipment has already been paid, its total and the payment
    lines offered at pickup, decide whether the debt is cleared (within a
    tolerance that absorbs rounding) and compute the new ``total_paid``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - All amounts are Decimal; rounding is ROUND_HALF_UP to 2 places.
    - ``new_total_paid`` never exceeds ``total_amount``.
    - The tolerance depends on the debt size: strictly above ``threshold``
      the large tolerance applies, otherwise the small one. A gap equal to
      the tolerance is accepted.
    - Settlement is monotone: for fixed inputs, paying more never turns an
      accepted result into a rejected one.

Failure modes:
    - Rejections are returned, not raised. ``raise_if_rejected()`` converts
      a rejected result into SettlementRejectedError.
    - ``validate_payment_lines`` raises PaymentLineValidationError listing
      every unusable line.

Usage:
    result = evaluate_settlement(
        prior_paid=Decimal("0"),
        total_amount=Decimal("1000000"),
        payments=[PaymentLine(account_id=1, amount=Decimal("999999"))],
        currency="CFA",
        has_debt=True,
    )
    assert result.accepted
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from logistics_engines.tracer import traced_engine
from logistics_kernel.domain.currency import CurrencyRegistry
from logistics_kernel.domain.dtos import ValidationIssue, ValidationResult
from logistics_kernel.domain.entities import Account, PaymentLine
from logistics_kernel.domain.values import round_half_up, to_decimal
from logistics_kernel.exceptions import PaymentLineValidationError, SettlementRejectedError
from logistics_kernel.logging_config import get_logger

logger = get_logger("engines.settlement")

ZERO = Decimal("0")


class RejectionReason(str, Enum):
    PAYMENTS_REQUIRED = "payments_required"
    INSUFFICIENT_PAYMENT = "insufficient_payment"
    INCOMPLETE_CLEARANCE = "incomplete_clearance"


@dataclass(frozen=True, slots=True)
class TolerancePolicy:
    """
    Debt-size dependent rounding tolerance.

    A debt strictly greater than ``threshold`` gets ``large``; anything at or
    below the threshold gets ``small``.
    """

    threshold: Decimal = Decimal("1000")
    large: Decimal = Decimal("1")
    small: Decimal = Decimal("0.01")

    def __post_init__(self) -> None:
        for name in ("threshold", "large", "small"):
            value = to_decimal(getattr(self, name))
            if value < 0:
                raise ValueError(f"Tolerance {name} cannot be negative: {value}")
            object.__setattr__(self, name, value)

    def tolerance_for(self, remaining_debt: Decimal) -> Decimal:
        return self.large if remaining_debt > self.threshold else self.small


DEFAULT_TOLERANCE_POLICY = TolerancePolicy()


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of one settlement evaluation."""

    accepted: bool
    new_total_paid: Decimal
    remaining_debt: Decimal
    tolerance: Decimal
    remaining_debt_before: Decimal
    additional_paid: Decimal
    reason: RejectionReason | None = None

    def raise_if_rejected(self, entity_id: Any = None) -> SettlementResult:
        if not self.accepted:
            raise SettlementRejectedError(
                reason=self.reason.value if self.reason else "rejected",
                remaining_debt=str(self.remaining_debt_before),
                additional_paid=str(self.additional_paid),
                tolerance=str(self.tolerance),
                entity_id=entity_id,
            )
        return self


@traced_engine(
    "settlement",
    "1.0",
    fingerprint_fields=("prior_paid", "total_amount", "payments", "currency", "has_debt"),
)
def evaluate_settlement(
    *,
    prior_paid: Decimal,
    total_amount: Decimal,
    payments: Sequence[PaymentLine],
    currency: str,
    has_debt: bool,
    policy: TolerancePolicy = DEFAULT_TOLERANCE_POLICY,
) -> SettlementResult:
    """
    Decide whether ``payments`` clear the debt on a shipment.

    ``currency`` is carried for tracing only; every amount is already in the
    shipment's currency.
    """
    prior_paid = to_decimal(prior_paid, default=ZERO)
    total_amount = to_decimal(total_amount)

    additional = round_half_up(sum((p.amount for p in payments), ZERO))
    before = round_half_up(max(ZERO, total_amount - prior_paid))
    tolerance = policy.tolerance_for(before)

    def _accept(remaining: Decimal) -> SettlementResult:
        return SettlementResult(
            accepted=True,
            new_total_paid=min(prior_paid + additional, total_amount),
            remaining_debt=remaining,
            tolerance=tolerance,
            remaining_debt_before=before,
            additional_paid=additional,
        )

    def _reject(reason: RejectionReason, remaining: Decimal) -> SettlementResult:
        logger.info(
            "settlement_rejected",
            extra={
                "reason": reason.value,
                "remaining_debt_before": str(before),
                "additional_paid": str(additional),
                "tolerance": str(tolerance),
                "currency": currency,
            },
        )
        return SettlementResult(
            accepted=False,
            new_total_paid=prior_paid,
            remaining_debt=remaining,
            tolerance=tolerance,
            remaining_debt_before=before,
            additional_paid=additional,
            reason=reason,
        )

    if not has_debt or before <= tolerance:
        return _accept(round_half_up(max(ZERO, before - additional)))

    if additional <= ZERO:
        return _reject(RejectionReason.PAYMENTS_REQUIRED, before)
    if additional < before - tolerance:
        return _reject(RejectionReason.INSUFFICIENT_PAYMENT, round_half_up(before - additional))

    after = round_half_up(max(ZERO, before - additional))
    if after > tolerance:
        return _reject(RejectionReason.INCOMPLETE_CLEARANCE, after)
    return _accept(after)


def validate_payment_lines(
    payments: Iterable[PaymentLine],
    accounts: Mapping[Any, Account],
    currency: str,
) -> ValidationResult:
    """
    Check that every payment line can be booked against ``accounts``.

    Each line must reference a known, active account held in ``currency``;
    an account may appear once per batch.
    """
    code = CurrencyRegistry.normalize(currency)
    issues: list[ValidationIssue] = []
    seen: set[Any] = set()

    for index, line in enumerate(payments):
        field = f"payments[{index}]"
        if line.account_id in seen:
            issues.append(ValidationIssue(
                code="DUPLICATE_ACCOUNT",
                message=f"Account {line.account_id} is used more than once",
                field=f"{field}.account_id",
            ))
        seen.add(line.account_id)

        account = accounts.get(line.account_id)
        if account is None:
            issues.append(ValidationIssue(
                code="UNKNOWN_ACCOUNT",
                message=f"Account {line.account_id} does not exist",
                field=f"{field}.account_id",
            ))
            continue
        if not account.is_active:
            issues.append(ValidationIssue(
                code="INACTIVE_ACCOUNT",
                message=f"Account {account.name} is inactive",
                field=f"{field}.account_id",
            ))
        if CurrencyRegistry.normalize(account.currency) != code:
            issues.append(ValidationIssue(
                code="ACCOUNT_CURRENCY_MISMATCH",
                message=f"Account {account.name} is in {account.currency}, expected {code}",
                field=f"{field}.account_id",
                details={"account_currency": account.currency, "currency": code},
            ))

    return ValidationResult.from_issues(issues)


def ensure_payment_lines(
    payments: Iterable[PaymentLine],
    accounts: Mapping[Any, Account],
    currency: str,
) -> None:
    """Raise PaymentLineValidationError unless every line is usable."""
    result = validate_payment_lines(payments, accounts, currency)
    if not result:
        raise PaymentLineValidationError(result.field_errors())


def usable_payment_lines(payments: Iterable[PaymentLine]) -> list[PaymentLine]:
    """Drop lines with no account or a zero amount before submission."""
    return [p for p in payments if p.account_id not in (None, "") and p.amount > ZERO]
