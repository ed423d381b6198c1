"""REST endpoint running statutory deductions over stored employees."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from kenpayroll.backend.app.http import ProblemResponse
from kenpayroll.backend.app.models import PayrollRunRequest
from kenpayroll.backend.app.services.payroll_service import run_payroll, summarise_payroll
from kenpayroll.backend.app.state import get_state
from kenpayroll.backend.services.request_parser import parse_json_payload, parse_model

from .config import resolve_configuration

blueprint = Blueprint("payroll", __name__, url_prefix="/api/v1/payroll")


@blueprint.post("/runs")
def create_payroll_run() -> tuple[Any, int]:
    payload = parse_model(
        PayrollRunRequest, parse_json_payload(request, allow_empty=True)
    )
    config = resolve_configuration(payload.year)
    if isinstance(config, ProblemResponse):
        return config.to_response()

    employees = get_state().employees.list()
    lines = run_payroll(employees, config, include_inactive=payload.include_inactive)
    response = {
        "year": config.year,
        "lines": [line.as_dict() for line in lines],
        "summary": summarise_payroll(lines),
    }
    return jsonify(response), 200
