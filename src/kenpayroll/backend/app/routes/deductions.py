"""REST endpoints for statutory deductions and payslip checks."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from kenpayroll.backend.app.http import ProblemResponse
from kenpayroll.backend.app.models import (
    DeductionValidationRequest,
    StatutoryCalculationRequest,
)
from kenpayroll.backend.app.services.calculators import compute_all_statutory_deductions
from kenpayroll.backend.app.services.deduction_validation import (
    DeductionContext,
    summarise_issues,
    validate_deduction_lines,
)
from kenpayroll.backend.services.request_parser import parse_json_payload, parse_model

from .config import resolve_configuration

blueprint = Blueprint("deductions", __name__, url_prefix="/api/v1/deductions")


@blueprint.post("/statutory")
def calculate_statutory() -> tuple[Any, int]:
    """Return PAYE, NHIF, NSSF and Housing Levy for a monthly salary."""

    payload = parse_model(StatutoryCalculationRequest, parse_json_payload(request))
    config = resolve_configuration(payload.year)
    if isinstance(config, ProblemResponse):
        return config.to_response()

    result = compute_all_statutory_deductions(
        payload.gross_salary, payload.basic_salary, config
    )
    return jsonify({"year": config.year, **result.as_dict()}), 200


@blueprint.post("/validate")
def validate_deductions() -> tuple[Any, int]:
    """Check manually entered deduction lines; warnings never block."""

    payload = parse_model(DeductionValidationRequest, parse_json_payload(request))
    config = resolve_configuration(payload.year)
    if isinstance(config, ProblemResponse):
        return config.to_response()

    context = DeductionContext(payload.gross_salary, payload.basic_salary, config)
    issues = validate_deduction_lines(payload.lines, context)
    total = sum(line.amount for line in payload.lines)

    response = {
        "year": config.year,
        "gross_salary": payload.gross_salary,
        "total_deductions": total,
        **summarise_issues(issues),
    }
    return jsonify(response), 200
