"""
Validation DTOs shared by engines and services.

Validation helpers collect every problem before raising so the caller can
render all field errors at once. The raised exceptions carry the same
``{field: [messages]}`` shape via ``ValidationResult.field_errors()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single validation problem.

    Contract:
        Carries a machine-readable code, a human-readable message, the field
        path it applies to, and optional details.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    Guarantees:
        - ``issues`` is always a tuple (never None)
        - ``bool(result) == result.is_valid``
    """

    is_valid: bool
    issues: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, issues=())

    @classmethod
    def failure(cls, *issues: ValidationIssue) -> ValidationResult:
        return cls(is_valid=False, issues=tuple(issues))

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationResult:
        if not issues:
            return cls.success()
        return cls.failure(*issues)

    def field_errors(self) -> dict[str, list[str]]:
        """Group messages by field; issues without a field go under ``__all__``."""
        grouped: dict[str, list[str]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.field or "__all__", []).append(issue.message)
        return grouped

    def __bool__(self) -> bool:
        return self.is_valid
