"""
Typed Exception Hierarchy for the Logistics Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Pickup, delivery and closure actions are refused for very different reasons:
an illegal status edge, a child parcel still on the road, a payment that does
not clear the debt, a cost line without a funding account, or a stale read
detected by the backend. Callers render each of these differently, so every
refusal has:

  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA (entity ids, blocking children, field errors)

Example - WRONG way to handle errors:
    try:
        service.close_journey(...)
    except Exception as e:
        if "in transit" in str(e):  # FRAGILE - message might change
            show_blockers()

Example - RIGHT way (what this module enables):
    try:
        service.close_journey(...)
    except PreconditionNotMetError as e:
        show_blockers(e.blocking_children)
        api_response(code=e.code, reason=e.reason)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LogisticsKernelError (base)
    |
    +-- LifecycleError
    |   +-- InvalidTransitionError
    |   +-- PreconditionNotMetError
    |
    +-- SettlementError
    |   +-- SettlementRejectedError
    |   +-- RemainingPaymentNotAllowedError
    |
    +-- ValidationError
    |   +-- CostValidationError
    |   +-- PaymentLineValidationError
    |   +-- PickupValidationError
    |   +-- BackendValidationError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |   +-- InvalidExchangeRateError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |
    +-- AuthorizationError
        +-- CapabilityDeniedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Lifecycle       | INVALID_TRANSITION            | Status edge not in the workflow
                | PRECONDITION_NOT_MET          | Closure blocked by children or costs
----------------|-------------------------------|---------------------------------------
Settlement      | SETTLEMENT_REJECTED           | Payments do not clear the debt
                | REMAINING_PAYMENT_NOT_ALLOWED | confirm_remaining_payment refused
----------------|-------------------------------|---------------------------------------
Validation      | COST_VALIDATION_FAILED        | Cost label/amount/account invalid
                | PAYMENT_LINE_INVALID          | Payment account inactive/mismatched
                | PICKUP_VALIDATION_FAILED      | Receiver details missing
                | BACKEND_VALIDATION_FAILED     | Backend returned field errors
----------------|-------------------------------|---------------------------------------
Currency        | INVALID_CURRENCY              | Malformed currency code
                | CURRENCY_MISMATCH             | Mixed currencies in one operation
                | INVALID_EXCHANGE_RATE         | Rate is zero/negative/unparseable
----------------|-------------------------------|---------------------------------------
Concurrency     | CONCURRENT_MODIFICATION       | Backend detected a stale read
----------------|-------------------------------|---------------------------------------
Authorization   | CAPABILITY_DENIED             | Role lacks the capability

===============================================================================
HANDLING PATTERNS
===============================================================================

1. RECOVERABLE BY INPUT CHANGE:
   SettlementRejectedError, ValidationError subclasses -> show field errors.

2. RECOVERABLE BY RESOLVING OTHER ENTITIES:
   PreconditionNotMetError -> list e.blocking_children.

3. RECOVERABLE BY REFETCH AND RETRY:
   ConcurrentModificationError -> reload the entity, run the action again.

4. NOT RETRYABLE AS-IS:
   InvalidTransitionError -> the requested edge does not exist.
"""

from __future__ import annotations

from typing import Any


class LogisticsKernelError(Exception):
    """
    Base exception for all logistics kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LOGISTICS_KERNEL_ERROR"


# Lifecycle-related exceptions


class LifecycleError(LogisticsKernelError):
    """Base exception for status lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidTransitionError(LifecycleError):
    """Requested status edge does not exist for this entity kind."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        entity: str,
        from_state: str,
        to_state: str,
        entity_id: Any = None,
    ):
        self.entity = entity
        self.from_state = from_state
        self.to_state = to_state
        self.entity_id = entity_id
        super().__init__(
            f"Invalid {entity} transition: {from_state} -> {to_state}"
        )


class PreconditionNotMetError(LifecycleError):
    """
    A legal transition is blocked by the state of related entities.

    ``blocking_children`` lists the ids of the children that prevent the
    transition so the caller can present them.
    """

    code: str = "PRECONDITION_NOT_MET"

    def __init__(
        self,
        entity: str,
        reason: str,
        blocking_children: tuple[Any, ...] = (),
        entity_id: Any = None,
    ):
        self.entity = entity
        self.reason = reason
        self.blocking_children = tuple(blocking_children)
        self.entity_id = entity_id
        suffix = ""
        if self.blocking_children:
            suffix = f" (blocking: {', '.join(str(c) for c in self.blocking_children)})"
        super().__init__(f"Cannot close {entity}: {reason}{suffix}")


# Settlement-related exceptions


class SettlementError(LogisticsKernelError):
    """Base exception for payment settlement errors."""

    code: str = "SETTLEMENT_ERROR"


class SettlementRejectedError(SettlementError):
    """Proposed payments do not clear the outstanding debt."""

    code: str = "SETTLEMENT_REJECTED"

    def __init__(
        self,
        reason: str,
        remaining_debt: str,
        additional_paid: str,
        tolerance: str,
        entity_id: Any = None,
    ):
        self.reason = reason
        self.remaining_debt = remaining_debt
        self.additional_paid = additional_paid
        self.tolerance = tolerance
        self.entity_id = entity_id
        super().__init__(
            f"Settlement rejected ({reason}): paid {additional_paid} "
            f"against remaining debt {remaining_debt} (tolerance {tolerance})"
        )


class RemainingPaymentNotAllowedError(SettlementError):
    """confirm_remaining_payment is not available for this entity."""

    code: str = "REMAINING_PAYMENT_NOT_ALLOWED"

    def __init__(self, entity: str, status: str, reason: str, entity_id: Any = None):
        self.entity = entity
        self.status = status
        self.reason = reason
        self.entity_id = entity_id
        super().__init__(
            f"Cannot confirm remaining payment for {entity} in status {status}: {reason}"
        )


# Validation-related exceptions


class ValidationError(LogisticsKernelError):
    """
    Base exception for input validation errors.

    ``field_errors`` maps a field name to a list of messages, the same shape
    the backend returns, so the caller can render both identically.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(self, field_errors: dict[str, list[str]], message: str | None = None):
        self.field_errors = {k: list(v) for k, v in field_errors.items()}
        fields = ", ".join(sorted(self.field_errors))
        super().__init__(message or f"Validation failed for: {fields}")


class CostValidationError(ValidationError):
    """Cost line is missing a label, a positive amount or a usable account."""

    code: str = "COST_VALIDATION_FAILED"


class PaymentLineValidationError(ValidationError):
    """Payment line references an unusable account or has a bad amount."""

    code: str = "PAYMENT_LINE_INVALID"


class PickupValidationError(ValidationError):
    """Pickup receiver details are incomplete."""

    code: str = "PICKUP_VALIDATION_FAILED"


class BackendValidationError(ValidationError):
    """The backend rejected a request with field-keyed errors."""

    code: str = "BACKEND_VALIDATION_FAILED"


# Currency-related exceptions


class CurrencyError(LogisticsKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Malformed currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid currency code: '{currency}'")


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


class InvalidExchangeRateError(CurrencyError):
    """
    Exchange rate value is invalid (zero, negative, or unparseable).

    A rate of zero would make conversion from the reference currency
    undefined, and negative rates are meaningless.
    """

    code: str = "INVALID_EXCHANGE_RATE"

    def __init__(self, currency: str, rate_value: str, reason: str):
        self.currency = currency
        self.rate_value = rate_value
        self.reason = reason
        super().__init__(
            f"Invalid exchange rate {rate_value} for {currency}: {reason}"
        )


# Concurrency-related exceptions


class ConcurrencyError(LogisticsKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """The backend detected that the entity changed since it was read."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity: str, entity_id: Any, detail: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        self.detail = detail
        message = (
            f"Concurrent modification on {entity} {entity_id}: "
            "entity was modified since it was read"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


# Authorization-related exceptions


class AuthorizationError(LogisticsKernelError):
    """Base exception for capability checks."""

    code: str = "AUTHORIZATION_ERROR"


class CapabilityDeniedError(AuthorizationError):
    """The acting role is not allowed to perform the action."""

    code: str = "CAPABILITY_DENIED"

    def __init__(self, role: str, capability: str):
        self.role = role
        self.capability = capability
        super().__init__(f"Role '{role}' is not allowed to {capability}")
