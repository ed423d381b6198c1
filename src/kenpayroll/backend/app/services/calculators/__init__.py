"""Domain-specific calculation helpers."""

from .statutory import (
    DeductionResult,
    compute_all_statutory_deductions,
    compute_deduction,
    compute_housing_levy,
    compute_nhif,
    compute_nssf,
    compute_paye,
    progressive_tax_at_breakpoints,
)
from .utils import (
    InvalidInputError,
    calculate_progressive_tax,
    ensure_salary,
    format_kes,
    format_percentage,
    round_currency,
    round_whole_currency,
)

__all__ = [
    "DeductionResult",
    "InvalidInputError",
    "calculate_progressive_tax",
    "compute_all_statutory_deductions",
    "compute_deduction",
    "compute_housing_levy",
    "compute_nhif",
    "compute_nssf",
    "compute_paye",
    "ensure_salary",
    "format_kes",
    "format_percentage",
    "progressive_tax_at_breakpoints",
    "round_currency",
    "round_whole_currency",
]
