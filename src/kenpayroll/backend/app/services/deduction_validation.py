"""Checks for manually entered payslip deductions.

Amounts for auto-calculated statutory types may be overridden by payroll
staff. Overrides that drift from the engine's figure by more than the
configured tolerance are reported as warnings; structural problems such as
negative amounts or breached statutory limits are errors.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from kenpayroll.backend.config.rate_config import RateConfiguration

from .calculators import compute_deduction, ensure_salary, format_kes
from .validation import Severity, ValidationIssue, has_blocking_issues

_LOGGER = logging.getLogger(__name__)


class DeductionLine(Protocol):
    deduction_type: str
    amount: float


@dataclass(frozen=True)
class DeductionContext:
    """Salary figures and rate tables a payslip's deductions are checked against."""

    gross_salary: float
    basic_salary: float | None
    config: RateConfiguration

    def __post_init__(self) -> None:
        object.__setattr__(self, "gross_salary", ensure_salary(self.gross_salary))
        if self.basic_salary is not None:
            object.__setattr__(
                self, "basic_salary", ensure_salary(self.basic_salary, "basic_salary")
            )


def validate_deduction_amount(
    deduction_type: str,
    proposed_amount: float,
    context: DeductionContext,
) -> list[ValidationIssue]:
    """Return the issues found for a single deduction line."""

    descriptor = context.config.deductions.get_type(deduction_type)
    if descriptor is None:
        return [
            ValidationIssue(
                field="deduction_type",
                message="Invalid deduction type",
                severity=Severity.ERROR,
            )
        ]

    issues: list[ValidationIssue] = []
    amount = float(proposed_amount)

    if not math.isfinite(amount):
        return [ValidationIssue("amount", "Amount must be a valid number", Severity.ERROR)]

    if amount < 0:
        issues.append(
            ValidationIssue("amount", "Amount cannot be negative", Severity.ERROR)
        )

    if (
        descriptor.has_limit
        and descriptor.max_amount is not None
        and amount > descriptor.max_amount
    ):
        issues.append(
            ValidationIssue(
                "amount",
                f"Amount exceeds maximum limit of {format_kes(descriptor.max_amount)}",
                Severity.ERROR,
            )
        )

    if descriptor.auto_calculated:
        expected = compute_deduction(
            descriptor.id, context.gross_salary, context.basic_salary, context.config
        )
        tolerance = context.config.deductions.manual_override_tolerance
        if expected is not None and abs(amount - expected) > tolerance:
            issues.append(
                ValidationIssue(
                    "amount",
                    f"{descriptor.label} amount should be {format_kes(expected)} "
                    "for this salary",
                    Severity.WARNING,
                )
            )

    return issues


def validate_deduction_lines(
    lines: Iterable[DeductionLine],
    context: DeductionContext,
) -> list[ValidationIssue]:
    """Validate every line of a payslip and the payslip total.

    Issue fields carry the line index as a suffix (``amount_0``) so callers
    can map each issue back to its row.
    """

    issues: list[ValidationIssue] = []
    total = 0.0
    for index, line in enumerate(lines):
        amount = float(line.amount)
        # non-finite lines are reported per line and kept out of the total
        if math.isfinite(amount):
            total += amount
        for issue in validate_deduction_amount(line.deduction_type, line.amount, context):
            issues.append(
                ValidationIssue(
                    field=f"{issue.field}_{index}",
                    message=issue.message,
                    severity=issue.severity,
                )
            )

    if total > context.gross_salary:
        issues.append(
            ValidationIssue(
                "total", "Total deductions cannot exceed gross salary", Severity.ERROR
            )
        )

    _LOGGER.debug(
        "Validated deductions totalling %.2f against gross %.2f: %d issue(s)",
        total,
        context.gross_salary,
        len(issues),
    )
    return issues


def summarise_issues(issues: Sequence[ValidationIssue]) -> dict[str, object]:
    """Return the serialisable issue list with its blocking flag."""

    return {
        "issues": [issue.as_dict() for issue in issues],
        "blocking": has_blocking_issues(issues),
    }


__all__ = [
    "DeductionContext",
    "DeductionLine",
    "has_blocking_issues",
    "summarise_issues",
    "validate_deduction_amount",
    "validate_deduction_lines",
]
