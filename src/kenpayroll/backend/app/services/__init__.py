"""Service layer: statutory calculations, deduction checks and leave workflow."""

from .deduction_validation import (
    DeductionContext,
    summarise_issues,
    validate_deduction_amount,
    validate_deduction_lines,
)
from .leave_workflow import LeaveDraft, LeaveRequestWorkflow, WorkflowResult, inclusive_day_count
from .payroll_service import PayrollLine, run_payroll, summarise_payroll
from .repositories import (
    InMemoryEmployeeRepository,
    InMemoryLeaveBalanceRepository,
    InMemoryLeaveRequestRepository,
    open_balances,
)
from .validation import InsufficientBalanceIssue, Severity, ValidationIssue, has_blocking_issues

__all__ = [
    "DeductionContext",
    "InMemoryEmployeeRepository",
    "InMemoryLeaveBalanceRepository",
    "InMemoryLeaveRequestRepository",
    "InsufficientBalanceIssue",
    "LeaveDraft",
    "LeaveRequestWorkflow",
    "PayrollLine",
    "Severity",
    "ValidationIssue",
    "WorkflowResult",
    "has_blocking_issues",
    "inclusive_day_count",
    "open_balances",
    "run_payroll",
    "summarise_issues",
    "summarise_payroll",
    "validate_deduction_amount",
    "validate_deduction_lines",
]
