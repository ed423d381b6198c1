"""Kenyan statutory deductions: PAYE, NHIF, NSSF and the Housing Levy.

Every function here is a pure computation over a gross monthly salary and the
``RateConfiguration`` for the relevant year. Rate tables are never embedded in
code; swapping the YAML file for a year is enough to follow a legislative
change.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from kenpayroll.backend.config.rate_config import PayeBracket, RateConfiguration

from .utils import (
    calculate_progressive_tax,
    ensure_salary,
    round_currency,
    round_whole_currency,
)

_LOGGER = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class DeductionResult:
    """Monthly statutory deductions for a single salary figure."""

    gross_salary: float
    basic_salary: float | None
    paye_tax: float
    nhif: float
    nssf: float
    housing_levy: float
    total_statutory: float
    net_after_statutory: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def annual_taxable_income(gross_monthly_salary: float, config: RateConfiguration) -> float:
    """Annualise ``gross_monthly_salary`` and subtract the personal relief."""

    gross = ensure_salary(gross_monthly_salary)
    taxable = gross * MONTHS_PER_YEAR - config.paye.personal_relief
    return taxable if taxable > 0 else 0.0


def compute_paye(gross_monthly_salary: float, config: RateConfiguration) -> float:
    """Return the monthly PAYE due on ``gross_monthly_salary``."""

    taxable = annual_taxable_income(gross_monthly_salary, config)
    if taxable <= 0:
        return 0.0
    annual_tax = calculate_progressive_tax(taxable, config.paye.brackets)
    return round_whole_currency(annual_tax / MONTHS_PER_YEAR)


def compute_nhif(gross_monthly_salary: float, config: RateConfiguration) -> float:
    """Return the flat NHIF fee for the band containing the salary.

    Salaries that fall outside every configured band pay the maximum fee.
    """

    gross = ensure_salary(gross_monthly_salary)
    for band in config.nhif.bands:
        if band.contains(gross):
            return float(band.amount)
    return float(config.nhif.maximum_amount or 0.0)


def compute_nssf(
    gross_monthly_salary: float,
    config: RateConfiguration,
    basic_salary: float | None = None,
) -> float:
    """Return the NSSF contribution on pensionable pay up to the ceiling."""

    gross = ensure_salary(gross_monthly_salary)
    basis = gross
    if basic_salary is not None:
        basic = ensure_salary(basic_salary, "basic_salary")
        if config.nssf.pensionable_basis == "basic":
            basis = basic

    pensionable_pay = min(basis, config.nssf.pension_ceiling)
    return round_whole_currency(pensionable_pay * config.nssf.contribution_rate)


def compute_housing_levy(gross_monthly_salary: float, config: RateConfiguration) -> float:
    """Return the Affordable Housing Levy on the gross salary."""

    gross = ensure_salary(gross_monthly_salary)
    levy = round_whole_currency(gross * config.housing_levy.rate)
    cap = config.housing_levy.monthly_cap
    if cap is not None and levy > cap:
        return float(cap)
    return levy


def compute_all_statutory_deductions(
    gross_monthly_salary: float,
    basic_salary: float | None,
    config: RateConfiguration,
) -> DeductionResult:
    """Aggregate every statutory deduction for a salary."""

    gross = ensure_salary(gross_monthly_salary)
    basic = ensure_salary(basic_salary, "basic_salary") if basic_salary is not None else None

    paye = compute_paye(gross, config)
    nhif = compute_nhif(gross, config)
    nssf = compute_nssf(gross, config, basic)
    housing_levy = compute_housing_levy(gross, config)

    total = paye + nhif + nssf + housing_levy
    result = DeductionResult(
        gross_salary=gross,
        basic_salary=basic,
        paye_tax=paye,
        nhif=nhif,
        nssf=nssf,
        housing_levy=housing_levy,
        total_statutory=round_currency(total),
        net_after_statutory=round_currency(gross - total),
    )

    _LOGGER.debug(
        "Statutory deductions for gross %.2f (year %s): %s",
        gross,
        config.year,
        result,
    )
    return result


def compute_deduction(
    deduction_type: str,
    gross_monthly_salary: float,
    basic_salary: float | None,
    config: RateConfiguration,
) -> float | None:
    """Return the engine's amount for an auto-calculated deduction type.

    ``None`` is returned for deduction types the engine does not calculate.
    """

    if deduction_type == "paye":
        return compute_paye(gross_monthly_salary, config)
    if deduction_type == "nhif":
        return compute_nhif(gross_monthly_salary, config)
    if deduction_type == "nssf":
        return compute_nssf(gross_monthly_salary, config, basic_salary)
    if deduction_type == "housing_levy":
        return compute_housing_levy(gross_monthly_salary, config)
    return None


def progressive_tax_at_breakpoints(brackets: Sequence[PayeBracket]) -> list[float]:
    """Evaluate the bracket formula at every finite upper bound."""

    return [
        calculate_progressive_tax(bracket.upper_bound, brackets)
        for bracket in brackets
        if bracket.upper_bound is not None
    ]


__all__ = [
    "DeductionResult",
    "MONTHS_PER_YEAR",
    "annual_taxable_income",
    "compute_all_statutory_deductions",
    "compute_deduction",
    "compute_housing_levy",
    "compute_nhif",
    "compute_nssf",
    "compute_paye",
    "progressive_tax_at_breakpoints",
]
