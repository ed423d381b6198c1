"""Unit coverage for the leave request lifecycle."""

from __future__ import annotations

from datetime import date, datetime
from itertools import count

import pytest

from kenpayroll.backend.app.models import LeaveBalance, LeaveStatus, LeaveType
from kenpayroll.backend.app.services.leave_workflow import (
    LeaveDraft,
    LeaveRequestWorkflow,
    inclusive_day_count,
)
from kenpayroll.backend.app.services.repositories import (
    InMemoryLeaveBalanceRepository,
    InMemoryLeaveRequestRepository,
)
from kenpayroll.backend.app.services.validation import InsufficientBalanceIssue

TODAY = date(2024, 3, 20)
NOW = datetime(2024, 3, 20, 9, 30)


def _draft(**overrides: object) -> LeaveDraft:
    values: dict[str, object] = {
        "employee_id": "emp-001",
        "leave_type": "annual",
        "start_date": date(2024, 3, 25),
        "end_date": date(2024, 3, 29),
        "reason": "Family visit",
    }
    values.update(overrides)
    return LeaveDraft(**values)  # type: ignore[arg-type]


@pytest.fixture()
def balance_store() -> InMemoryLeaveBalanceRepository:
    return InMemoryLeaveBalanceRepository(
        [
            LeaveBalance(
                employee_id="emp-001",
                leave_type=LeaveType.ANNUAL,
                entitlement=21,
                used=10,
                carry_forward=0,
            ),
            LeaveBalance(
                employee_id="emp-001",
                leave_type=LeaveType.SICK,
                entitlement=14,
                used=12,
            ),
        ]
    )


@pytest.fixture()
def request_store() -> InMemoryLeaveRequestRepository:
    return InMemoryLeaveRequestRepository()


@pytest.fixture()
def workflow(
    balance_store: InMemoryLeaveBalanceRepository,
    request_store: InMemoryLeaveRequestRepository,
) -> LeaveRequestWorkflow:
    ids = count(1)
    return LeaveRequestWorkflow(
        balance_store, request_store, id_factory=lambda: f"lr-{next(ids)}"
    )


def test_inclusive_day_count() -> None:
    assert inclusive_day_count(date(2024, 3, 25), date(2024, 3, 29)) == 5
    assert inclusive_day_count(date(2024, 3, 25), date(2024, 3, 25)) == 1
    assert inclusive_day_count(date(2024, 3, 25), date(2024, 3, 24)) == 0


def test_submit_creates_pending_request_without_touching_balance(
    workflow: LeaveRequestWorkflow,
    balance_store: InMemoryLeaveBalanceRepository,
    request_store: InMemoryLeaveRequestRepository,
) -> None:
    balance = balance_store.get("emp-001", LeaveType.ANNUAL)

    result = workflow.submit(_draft(), balance, today=TODAY, now=NOW)

    assert result.ok
    assert result.request is not None
    assert result.request.id == "lr-1"
    assert result.request.status is LeaveStatus.PENDING
    assert result.request.days_requested == 5
    assert result.request.created_at == NOW
    assert request_store.get("lr-1") == result.request
    assert balance_store.get("emp-001", LeaveType.ANNUAL).remaining == 11


def test_submitted_day_count_is_recomputed(
    workflow: LeaveRequestWorkflow, balance_store: InMemoryLeaveBalanceRepository
) -> None:
    balance = balance_store.get("emp-001", LeaveType.ANNUAL)

    result = workflow.submit(_draft(days_requested=1), balance, today=TODAY)

    assert result.request is not None
    assert result.request.days_requested == 5


@pytest.mark.parametrize(
    ("overrides", "field", "message"),
    [
        ({"leave_type": None}, "leave_type", "Please select a leave type"),
        ({"leave_type": "sabbatical"}, "leave_type", "Please select a leave type"),
        ({"start_date": None}, "start_date", "Please select a start date"),
        (
            {"start_date": date(2024, 3, 19)},
            "start_date",
            "Start date cannot be in the past",
        ),
        ({"end_date": None}, "end_date", "Please select an end date"),
        (
            {"end_date": date(2024, 3, 24)},
            "end_date",
            "End date must be on or after start date",
        ),
        ({"reason": "   "}, "reason", "Please provide a reason for leave"),
    ],
)
def test_form_checks_short_circuit(
    workflow: LeaveRequestWorkflow,
    balance_store: InMemoryLeaveBalanceRepository,
    request_store: InMemoryLeaveRequestRepository,
    overrides: dict[str, object],
    field: str,
    message: str,
) -> None:
    balance = balance_store.get("emp-001", LeaveType.ANNUAL)

    result = workflow.submit(_draft(**overrides), balance, today=TODAY)

    assert not result.ok
    assert result.request is None
    assert [(issue.field, issue.message) for issue in result.issues] == [(field, message)]
    assert request_store.list() == []


def test_first_failing_check_wins(
    workflow: LeaveRequestWorkflow, balance_store: InMemoryLeaveBalanceRepository
) -> None:
    draft = _draft(leave_type="bogus", start_date=date(2000, 1, 1), reason="")

    result = workflow.submit(draft, balance_store.get("emp-001", LeaveType.ANNUAL), today=TODAY)

    assert [issue.field for issue in result.issues] == ["leave_type"]


def test_start_date_today_is_allowed(
    workflow: LeaveRequestWorkflow, balance_store: InMemoryLeaveBalanceRepository
) -> None:
    draft = _draft(start_date=TODAY, end_date=TODAY)

    result = workflow.submit(draft, balance_store.get("emp-001", LeaveType.ANNUAL), today=TODAY)

    assert result.ok


def test_insufficient_balance_reports_remaining_days(
    workflow: LeaveRequestWorkflow,
    balance_store: InMemoryLeaveBalanceRepository,
    request_store: InMemoryLeaveRequestRepository,
) -> None:
    balance = balance_store.get("emp-001", LeaveType.SICK)

    result = workflow.submit(_draft(leave_type="sick"), balance, today=TODAY)

    assert not result.ok
    assert result.request is None
    (issue,) = result.issues
    assert isinstance(issue, InsufficientBalanceIssue)
    assert issue.remaining == 2
    assert issue.message == "Insufficient leave balance. You have 2 days remaining."
    assert request_store.list() == []


def test_balance_for_another_leave_type_is_not_used(
    workflow: LeaveRequestWorkflow, balance_store: InMemoryLeaveBalanceRepository
) -> None:
    annual = balance_store.get("emp-001", LeaveType.ANNUAL)

    result = workflow.submit(_draft(leave_type="study"), annual, today=TODAY)

    (issue,) = result.issues
    assert isinstance(issue, InsufficientBalanceIssue)
    assert issue.remaining == 0


def test_submit_for_employee_looks_up_balance(workflow: LeaveRequestWorkflow) -> None:
    result = workflow.submit_for_employee(_draft(leave_type="ANNUAL"), today=TODAY)

    assert result.ok
    assert result.request.leave_type is LeaveType.ANNUAL


def test_approve_deducts_exact_days(
    workflow: LeaveRequestWorkflow,
    balance_store: InMemoryLeaveBalanceRepository,
    request_store: InMemoryLeaveRequestRepository,
) -> None:
    submitted = workflow.submit_for_employee(_draft(), today=TODAY).request

    result = workflow.approve(submitted, approver_id="mgr-7", now=NOW)

    assert result.ok
    assert result.request.status is LeaveStatus.APPROVED
    assert result.request.approved_by == "mgr-7"
    assert result.request.approved_at == NOW
    stored = balance_store.get("emp-001", LeaveType.ANNUAL)
    assert stored.remaining == 6
    assert stored.entitlement == 21
    assert stored.used == 15
    assert request_store.get(submitted.id).status is LeaveStatus.APPROVED


def test_second_approval_does_not_deduct_again(
    workflow: LeaveRequestWorkflow, balance_store: InMemoryLeaveBalanceRepository
) -> None:
    submitted = workflow.submit_for_employee(_draft(), today=TODAY).request
    workflow.approve(submitted, approver_id="mgr-7", now=NOW)

    again = workflow.approve(submitted, approver_id="mgr-7", now=NOW)

    assert not again.ok
    assert [issue.field for issue in again.issues] == ["status"]
    assert balance_store.get("emp-001", LeaveType.ANNUAL).remaining == 6


def test_approval_rechecks_balance(
    workflow: LeaveRequestWorkflow, balance_store: InMemoryLeaveBalanceRepository
) -> None:
    first = workflow.submit_for_employee(_draft(), today=TODAY).request
    second = workflow.submit_for_employee(
        _draft(start_date=date(2024, 4, 1), end_date=date(2024, 4, 7)), today=TODAY
    ).request

    assert workflow.approve(first, approver_id="mgr-7", now=NOW).ok
    blocked = workflow.approve(second, approver_id="mgr-7", now=NOW)

    assert not blocked.ok
    (issue,) = blocked.issues
    assert isinstance(issue, InsufficientBalanceIssue)
    assert issue.remaining == 6
    assert balance_store.get("emp-001", LeaveType.ANNUAL).remaining == 6


def test_reject_leaves_balance_untouched(
    workflow: LeaveRequestWorkflow, balance_store: InMemoryLeaveBalanceRepository
) -> None:
    submitted = workflow.submit_for_employee(_draft(), today=TODAY).request

    result = workflow.reject(submitted, " Peak season ", now=NOW, approver_id="mgr-7")

    assert result.ok
    assert result.request.status is LeaveStatus.REJECTED
    assert result.request.rejection_reason == "Peak season"
    assert result.request.rejected_by == "mgr-7"
    assert balance_store.get("emp-001", LeaveType.ANNUAL).remaining == 11

    assert not workflow.approve(submitted, approver_id="mgr-7", now=NOW).ok
    assert balance_store.get("emp-001", LeaveType.ANNUAL).remaining == 11


def test_workflow_without_request_store(balance_store: InMemoryLeaveBalanceRepository) -> None:
    workflow = LeaveRequestWorkflow(balance_store)
    submitted = workflow.submit_for_employee(_draft(), today=TODAY).request

    assert workflow.approve(submitted, approver_id="mgr-7", now=NOW).ok
    assert not workflow.approve(submitted, approver_id="mgr-7", now=NOW).ok
    assert balance_store.get("emp-001", LeaveType.ANNUAL).remaining == 6


def test_request_store_status_is_authoritative(
    workflow: LeaveRequestWorkflow,
    balance_store: InMemoryLeaveBalanceRepository,
    request_store: InMemoryLeaveRequestRepository,
) -> None:
    submitted = workflow.submit_for_employee(_draft(), today=TODAY).request
    request_store.save(submitted.model_copy(update={"status": LeaveStatus.REJECTED}))

    result = workflow.approve(submitted, approver_id="mgr-7", now=NOW)

    assert not result.ok
    assert "current: rejected" in result.issues[0].message
    assert balance_store.get("emp-001", LeaveType.ANNUAL).remaining == 11


def test_decisions_are_not_cached_when_store_is_wired(
    workflow: LeaveRequestWorkflow,
) -> None:
    submitted = workflow.submit_for_employee(_draft(), today=TODAY).request

    workflow.approve(submitted, approver_id="mgr-7", now=NOW)

    assert workflow._resolved == {}
