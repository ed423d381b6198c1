"""REST endpoints for leave balances and the leave request lifecycle."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from flask import Blueprint, jsonify, request

from kenpayroll.backend.app.http import issues_response, not_found
from kenpayroll.backend.app.models import (
    LeaveApprovalRequest,
    LeaveRejectionRequest,
    LeaveRequest,
    LeaveSubmissionRequest,
)
from kenpayroll.backend.app.services.leave_workflow import LeaveDraft, WorkflowResult
from kenpayroll.backend.app.state import get_state
from kenpayroll.backend.services.request_parser import parse_json_payload, parse_model

blueprint = Blueprint("leave", __name__, url_prefix="/api/v1/leave")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _serialise_result(result: WorkflowResult) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "request": result.request.model_dump(mode="json") if result.request else None,
        "issues": [issue.as_dict() for issue in result.issues],
    }
    if result.balance is not None:
        payload["balance"] = result.balance.model_dump(mode="json")
    return payload


def _failure_response(result: WorkflowResult) -> tuple[Any, int]:
    if any(issue.field == "status" for issue in result.issues):
        return issues_response(result.issues, status=409, error="invalid_state").to_response()
    return issues_response(result.issues).to_response()


def _lookup_request(request_id: str) -> LeaveRequest | None:
    try:
        return get_state().requests.get(request_id)
    except KeyError:
        return None


@blueprint.get("/balances/<employee_id>")
def list_balances(employee_id: str) -> tuple[Any, int]:
    state = get_state()
    balances = state.balances.list_for_employee(employee_id)
    if not balances:
        try:
            state.employees.get(employee_id)
        except KeyError:
            return not_found(f"Unknown employee '{employee_id}'").to_response()

    payload = {
        "employee_id": employee_id,
        "balances": [balance.model_dump(mode="json") for balance in balances],
    }
    return jsonify(payload), 200


@blueprint.post("/requests")
def submit_leave_request() -> tuple[Any, int]:
    """Validate a leave form and create a pending request."""

    payload = parse_model(
        LeaveSubmissionRequest, parse_json_payload(request), subject="leave request"
    )
    state = get_state()
    try:
        state.employees.get(payload.employee_id)
    except KeyError:
        return not_found(f"Unknown employee '{payload.employee_id}'").to_response()

    draft = LeaveDraft(
        employee_id=payload.employee_id,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        days_requested=payload.days_requested,
    )
    now = _utcnow()
    result = state.workflow.submit_for_employee(draft, today=now.date(), now=now)
    if not result.ok:
        return issues_response(result.issues).to_response()
    return jsonify(_serialise_result(result)), 201


@blueprint.get("/requests/pending")
def list_pending_requests() -> tuple[Any, int]:
    """Return requests awaiting a decision, oldest first."""

    pending = get_state().requests.list_pending()
    return jsonify({"requests": [item.model_dump(mode="json") for item in pending]}), 200


@blueprint.get("/requests/<request_id>")
def get_leave_request(request_id: str) -> tuple[Any, int]:
    leave_request = _lookup_request(request_id)
    if leave_request is None:
        return not_found(f"Unknown leave request '{request_id}'").to_response()
    return jsonify({"request": leave_request.model_dump(mode="json")}), 200


@blueprint.post("/requests/<request_id>/approve")
def approve_leave_request(request_id: str) -> tuple[Any, int]:
    payload = parse_model(LeaveApprovalRequest, parse_json_payload(request))
    leave_request = _lookup_request(request_id)
    if leave_request is None:
        return not_found(f"Unknown leave request '{request_id}'").to_response()

    result = get_state().workflow.approve(
        leave_request, approver_id=payload.approver_id, now=_utcnow()
    )
    if not result.ok:
        return _failure_response(result)
    return jsonify(_serialise_result(result)), 200


@blueprint.post("/requests/<request_id>/reject")
def reject_leave_request(request_id: str) -> tuple[Any, int]:
    payload = parse_model(
        LeaveRejectionRequest, parse_json_payload(request, allow_empty=True)
    )
    leave_request = _lookup_request(request_id)
    if leave_request is None:
        return not_found(f"Unknown leave request '{request_id}'").to_response()

    result = get_state().workflow.reject(
        leave_request, payload.reason, now=_utcnow(), approver_id=payload.approver_id
    )
    if not result.ok:
        return _failure_response(result)
    return jsonify(_serialise_result(result)), 200
