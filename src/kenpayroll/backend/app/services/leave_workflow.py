"""Leave request lifecycle: submission, approval and rejection.

A request is created in ``pending`` once the form passes validation and the
employee holds enough days of the requested leave type. Days are only
deducted from the balance when the request is approved. Pending requests do
not reserve days, so two requests may both pass the submission check; the
approval step re-checks the stored balance and blocks whichever approval
would overdraw it.

Business-rule failures are returned as :class:`ValidationIssue` values on a
:class:`WorkflowResult` rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from threading import Lock
from typing import Callable, Sequence
from uuid import uuid4

from kenpayroll.backend.app.models import (
    LeaveBalance,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)

from .repositories import LeaveBalanceRepository, LeaveRequestRepository
from .validation import InsufficientBalanceIssue, Severity, ValidationIssue, has_blocking_issues

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaveDraft:
    """Unvalidated leave request form input."""

    employee_id: str
    leave_type: LeaveType | str | None
    start_date: date | None
    end_date: date | None
    reason: str = ""
    days_requested: int | None = None


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of a workflow operation."""

    request: LeaveRequest | None
    issues: Sequence[ValidationIssue] = field(default_factory=tuple)
    balance: LeaveBalance | None = None

    @property
    def ok(self) -> bool:
        return self.request is not None and not has_blocking_issues(self.issues)


def inclusive_day_count(start: date, end: date) -> int:
    """Return the number of calendar days from ``start`` to ``end`` inclusive."""

    return max(0, (end - start).days + 1)


def _failure(*issues: ValidationIssue) -> WorkflowResult:
    return WorkflowResult(request=None, issues=tuple(issues))


def _error(field_name: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field_name, message=message, severity=Severity.ERROR)


class LeaveRequestWorkflow:
    """Coordinate leave requests against an injected balance store."""

    def __init__(
        self,
        balances: LeaveBalanceRepository,
        requests: LeaveRequestRepository | None = None,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._balances = balances
        self._requests = requests
        self._id_factory = id_factory or (lambda: uuid4().hex)
        self._resolved: dict[str, LeaveStatus] = {}
        self._lock = Lock()

    def _current_status(self, request: LeaveRequest) -> LeaveStatus:
        """Return the freshest known status, ignoring stale caller copies."""

        if self._requests is not None:
            try:
                return self._requests.get(request.id).status
            except KeyError:
                return request.status
        return self._resolved.get(request.id, request.status)

    def _record_decision(self, request: LeaveRequest) -> None:
        # without a request store, decisions are remembered here instead
        if self._requests is not None:
            self._requests.save(request)
        else:
            self._resolved[request.id] = request.status

    @staticmethod
    def _status_issue(action: str, status: LeaveStatus) -> ValidationIssue:
        return _error(
            "status",
            f"Only pending requests can be {action} (current: {status.value})",
        )

    def _validate_draft(
        self, draft: LeaveDraft, today: date
    ) -> tuple[LeaveType, int] | ValidationIssue:
        leave_type = LeaveType.parse(draft.leave_type)
        if leave_type is None:
            return _error("leave_type", "Please select a leave type")

        if draft.start_date is None:
            return _error("start_date", "Please select a start date")
        if draft.start_date < today:
            return _error("start_date", "Start date cannot be in the past")

        if draft.end_date is None:
            return _error("end_date", "Please select an end date")
        if draft.end_date < draft.start_date:
            return _error("end_date", "End date must be on or after start date")

        if not draft.reason.strip():
            return _error("reason", "Please provide a reason for leave")

        return leave_type, inclusive_day_count(draft.start_date, draft.end_date)

    def submit(
        self,
        draft: LeaveDraft,
        current_balance: LeaveBalance | None,
        *,
        today: date,
        now: datetime | None = None,
    ) -> WorkflowResult:
        """Validate ``draft`` and create a pending request.

        The caller-supplied ``days_requested`` is ignored; the day count is
        always recomputed from the dates.
        """

        outcome = self._validate_draft(draft, today)
        if isinstance(outcome, ValidationIssue):
            return _failure(outcome)
        leave_type, days = outcome

        if draft.days_requested is not None and draft.days_requested != days:
            _LOGGER.debug(
                "Ignoring submitted day count %s for %s; recomputed %s",
                draft.days_requested,
                draft.employee_id,
                days,
            )

        if (
            current_balance is None
            or current_balance.leave_type is not leave_type
            or current_balance.employee_id != draft.employee_id
        ):
            return _failure(InsufficientBalanceIssue.for_remaining(0))
        if current_balance.remaining < days:
            return _failure(InsufficientBalanceIssue.for_remaining(current_balance.remaining))

        request = LeaveRequest(
            id=self._id_factory(),
            employee_id=draft.employee_id,
            leave_type=leave_type,
            start_date=draft.start_date,
            end_date=draft.end_date,
            days_requested=days,
            reason=draft.reason.strip(),
            status=LeaveStatus.PENDING,
            created_at=now or datetime.combine(today, datetime.min.time()),
        )
        if self._requests is not None:
            self._requests.save(request)

        _LOGGER.info(
            "Leave request %s submitted for %s (%s, %d days)",
            request.id,
            request.employee_id,
            leave_type.value,
            days,
        )
        return WorkflowResult(request=request, balance=current_balance)

    def submit_for_employee(
        self, draft: LeaveDraft, *, today: date, now: datetime | None = None
    ) -> WorkflowResult:
        """Look up the stored balance for the draft and submit it."""

        leave_type = LeaveType.parse(draft.leave_type)
        balance = (
            self._balances.get(draft.employee_id, leave_type)
            if leave_type is not None
            else None
        )
        return self.submit(draft, balance, today=today, now=now)

    def approve(
        self, request: LeaveRequest, *, approver_id: str, now: datetime
    ) -> WorkflowResult:
        """Approve a pending request and deduct its days from the balance.

        Approving a request that is no longer pending returns an error issue
        and leaves the balance untouched, so days are never deducted twice.
        """

        with self._lock:
            status = self._current_status(request)
            if status is not LeaveStatus.PENDING:
                _LOGGER.warning(
                    "Refusing to approve leave request %s in status %s",
                    request.id,
                    status.value,
                )
                return WorkflowResult(
                    request=request, issues=(self._status_issue("approved", status),)
                )

            try:
                balance = self._balances.apply_usage(
                    request.employee_id, request.leave_type, request.days_requested
                )
            except (KeyError, ValueError):
                current = self._balances.get(request.employee_id, request.leave_type)
                remaining = current.remaining if current is not None else 0
                _LOGGER.warning(
                    "Blocking approval of %s: %s days requested, %s remaining",
                    request.id,
                    request.days_requested,
                    remaining,
                )
                return WorkflowResult(
                    request=request,
                    issues=(InsufficientBalanceIssue.for_remaining(remaining),),
                    balance=current,
                )

            approved = request.model_copy(
                update={
                    "status": LeaveStatus.APPROVED,
                    "approved_by": approver_id,
                    "approved_at": now,
                    "decided_at": now,
                }
            )
            self._record_decision(approved)

        _LOGGER.info(
            "Leave request %s approved by %s; %s remaining",
            approved.id,
            approver_id,
            balance.remaining,
        )
        return WorkflowResult(request=approved, balance=balance)

    def reject(
        self,
        request: LeaveRequest,
        reason: str,
        *,
        now: datetime,
        approver_id: str | None = None,
    ) -> WorkflowResult:
        """Reject a pending request, leaving the balance untouched."""

        with self._lock:
            status = self._current_status(request)
            if status is not LeaveStatus.PENDING:
                return WorkflowResult(
                    request=request, issues=(self._status_issue("rejected", status),)
                )

            rejected = request.model_copy(
                update={
                    "status": LeaveStatus.REJECTED,
                    "rejected_by": approver_id,
                    "rejection_reason": reason.strip() or None,
                    "decided_at": now,
                }
            )
            self._record_decision(rejected)

        _LOGGER.info("Leave request %s rejected", rejected.id)
        return WorkflowResult(request=rejected)


__all__ = [
    "LeaveDraft",
    "LeaveRequestWorkflow",
    "WorkflowResult",
    "inclusive_day_count",
]
