"""Expose the statutory rate tables and deduction catalogue.

Front-ends read these endpoints to label payslip fields and to show the
brackets in force for a year without duplicating any rate in client code.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from kenpayroll.backend.app.http import ProblemResponse, problem_response
from kenpayroll.backend.app.services.calculators import (
    format_percentage,
    progressive_tax_at_breakpoints,
    round_currency,
)
from kenpayroll.backend.config.rate_config import (
    RateConfiguration,
    available_years,
    default_year,
    load_manifest,
    load_rate_configuration,
)
from kenpayroll.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def resolve_configuration(year: int | None) -> RateConfiguration | ProblemResponse:
    """Load the rate tables for ``year`` (default: latest configured year)."""

    target = default_year() if year is None else year
    try:
        return load_rate_configuration(target)
    except FileNotFoundError as exc:
        return problem_response("not_found", status=404, message=str(exc))


def get_configuration_metadata() -> dict[str, Any]:
    """Version and supported years, shared with the health check."""

    supported_years = list(load_manifest().supported_years)
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": supported_years[-1] if supported_years else None,
    }


def _serialise_paye(config: RateConfiguration) -> dict[str, Any]:
    paye = config.paye
    brackets = []
    for bracket, lower, base in zip(paye.brackets, paye.lower_bounds, paye.cumulative_bases):
        brackets.append(
            {
                "lower": lower,
                "upper": bracket.upper_bound,
                "rate": bracket.rate,
                "rate_label": format_percentage(bracket.rate),
                "cumulative_base": round_currency(base),
            }
        )
    return {
        "personal_relief": paye.personal_relief,
        "brackets": brackets,
        "tax_at_breakpoints": [
            round_currency(value) for value in progressive_tax_at_breakpoints(paye.brackets)
        ],
    }


def _serialise_rates(config: RateConfiguration) -> dict[str, Any]:
    return {
        "year": config.year,
        "meta": dict(config.meta),
        "paye": _serialise_paye(config),
        "nhif": {
            "maximum_amount": config.nhif.maximum_amount,
            "bands": [
                {"min": band.lower, "max": band.upper, "amount": band.amount}
                for band in config.nhif.bands
            ],
        },
        "nssf": config.nssf.model_dump(mode="json"),
        "housing_levy": config.housing_levy.model_dump(mode="json"),
        "leave": [policy.model_dump(mode="json") for policy in config.leave.policies],
        "warnings": [warning.model_dump(mode="json") for warning in config.warnings],
    }


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """Return every configured year with its rate tables."""

    metadata = get_configuration_metadata()
    payload = {
        "years": [_serialise_rates(load_rate_configuration(year)) for year in available_years()],
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>/rates")
def get_rates(year: int) -> tuple[Any, int]:
    config = resolve_configuration(year)
    if isinstance(config, ProblemResponse):
        return config.to_response()
    return jsonify(_serialise_rates(config)), 200


@blueprint.get("/<int:year>/deduction-types")
def get_deduction_types(year: int) -> tuple[Any, int]:
    """Expose the deduction catalogue used to build payslip forms."""

    config = resolve_configuration(year)
    if isinstance(config, ProblemResponse):
        return config.to_response()

    payload = {
        "year": config.year,
        "manual_override_tolerance": config.deductions.manual_override_tolerance,
        "types": [
            entry.model_dump(mode="json", exclude_none=True)
            for entry in config.deductions.types
        ],
    }
    return jsonify(payload), 200
