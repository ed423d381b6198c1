"""Statutory deduction runs across the employee register."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from kenpayroll.backend.app.models import Employee
from kenpayroll.backend.config.rate_config import RateConfiguration

from .calculators import DeductionResult, compute_all_statutory_deductions, round_currency

_LOGGER = logging.getLogger(__name__)

_SUMMARY_FIELDS = (
    "gross_salary",
    "paye_tax",
    "nhif",
    "nssf",
    "housing_levy",
    "total_statutory",
    "net_after_statutory",
)


@dataclass(frozen=True)
class PayrollLine:
    employee_id: str
    name: str
    deductions: DeductionResult

    def as_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "name": self.name,
            "deductions": self.deductions.as_dict(),
        }


def run_payroll(
    employees: Iterable[Employee],
    config: RateConfiguration,
    *,
    include_inactive: bool = False,
) -> list[PayrollLine]:
    """Compute statutory deductions for each employee, skipping inactive ones."""

    lines: list[PayrollLine] = []
    for employee in employees:
        if not employee.is_active and not include_inactive:
            continue
        result = compute_all_statutory_deductions(
            employee.gross_salary, employee.basic_salary, config
        )
        lines.append(
            PayrollLine(
                employee_id=employee.id,
                name=employee.full_name,
                deductions=result,
            )
        )

    _LOGGER.info("Payroll run for %s produced %d line(s)", config.year, len(lines))
    return lines


def summarise_payroll(lines: Sequence[PayrollLine]) -> dict[str, Any]:
    """Return per-deduction totals for a payroll run."""

    totals = dict.fromkeys(_SUMMARY_FIELDS, 0.0)
    for line in lines:
        for key in _SUMMARY_FIELDS:
            totals[key] += getattr(line.deductions, key)

    summary: dict[str, Any] = {key: round_currency(value) for key, value in totals.items()}
    summary["employees"] = len(lines)
    return summary


__all__ = ["PayrollLine", "run_payroll", "summarise_payroll"]
