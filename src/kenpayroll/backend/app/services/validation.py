"""Validation issue values shared by deduction checks and the leave workflow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found while checking user input."""

    field: str
    message: str
    severity: Severity = Severity.ERROR

    @property
    def blocking(self) -> bool:
        return self.severity is Severity.ERROR

    def as_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class InsufficientBalanceIssue(ValidationIssue):
    """Raised against ``leave_type`` when the balance cannot cover a request."""

    remaining: float = 0.0

    @classmethod
    def for_remaining(cls, remaining: float) -> InsufficientBalanceIssue:
        remaining = max(0.0, float(remaining))
        return cls(
            field="leave_type",
            message=(
                f"Insufficient leave balance. You have {remaining:g} days remaining."
            ),
            severity=Severity.ERROR,
            remaining=remaining,
        )

    def as_dict(self) -> dict[str, Any]:
        payload = super().as_dict()
        payload["remaining"] = self.remaining
        return payload


def has_blocking_issues(issues: Iterable[ValidationIssue]) -> bool:
    """Return ``True`` when any issue is an error; warnings never block."""

    return any(issue.severity is Severity.ERROR for issue in issues)


__all__ = [
    "InsufficientBalanceIssue",
    "Severity",
    "ValidationIssue",
    "has_blocking_issues",
]
