"""Pydantic models describing the public API surface."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

__all__ = [
    "StatutoryCalculationRequest",
    "DeductionLineInput",
    "DeductionValidationRequest",
    "PayrollRunRequest",
    "LeaveSubmissionRequest",
    "LeaveApprovalRequest",
    "LeaveRejectionRequest",
    "format_validation_error",
]


class StatutoryCalculationRequest(BaseModel):
    """Salary figures submitted for a statutory deduction breakdown."""

    model_config = ConfigDict(extra="forbid")

    year: int | None = Field(default=None, ge=0)
    gross_salary: float = Field(..., ge=0, allow_inf_nan=False)
    basic_salary: float | None = Field(default=None, ge=0, allow_inf_nan=False)


class DeductionLineInput(BaseModel):
    """A single manually entered deduction amount.

    Negative amounts are accepted here so that the validator can report them
    as issues alongside every other problem on the payslip.
    """

    model_config = ConfigDict(extra="forbid")

    deduction_type: str
    amount: float = Field(..., allow_inf_nan=False)

    @field_validator("deduction_type", mode="before")
    @classmethod
    def _normalise_type(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()


class DeductionValidationRequest(StatutoryCalculationRequest):
    """Payslip deduction lines to validate against the configured rules."""

    lines: list[DeductionLineInput] = Field(default_factory=list)


class PayrollRunRequest(BaseModel):
    """Options for running statutory deductions over stored employees."""

    model_config = ConfigDict(extra="forbid")

    year: int | None = Field(default=None, ge=0)
    include_inactive: bool = False


class LeaveSubmissionRequest(BaseModel):
    """Leave request form fields as submitted by an employee."""

    model_config = ConfigDict(extra="forbid")

    employee_id: str = Field(..., min_length=1)
    leave_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str = ""
    days_requested: int | None = None

    @field_validator("reason", mode="before")
    @classmethod
    def _coerce_reason(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)


class LeaveApprovalRequest(BaseModel):
    """Approver identity supplied by the embedding application."""

    model_config = ConfigDict(extra="forbid")

    approver_id: str = Field(..., min_length=1)


class LeaveRejectionRequest(BaseModel):
    """Rejection reason and optional approver identity."""

    model_config = ConfigDict(extra="forbid")

    reason: str = ""
    approver_id: str | None = None


def format_validation_error(error: ValidationError, *, subject: str = "request") -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid {subject} payload: {details}"
