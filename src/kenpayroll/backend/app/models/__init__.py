"""Domain and request models shared across the payroll services.

Employees, leave balances and leave requests are frozen Pydantic models: every
state change produces a new instance, which keeps the repositories as the only
place where current state lives. Request payload models for the HTTP layer are
re-exported from :mod:`.api`.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from .api import (
    DeductionLineInput,
    DeductionValidationRequest,
    LeaveApprovalRequest,
    LeaveRejectionRequest,
    LeaveSubmissionRequest,
    PayrollRunRequest,
    StatutoryCalculationRequest,
    format_validation_error,
)

__all__ = [
    "Employee",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "DeductionLineInput",
    "DeductionValidationRequest",
    "LeaveApprovalRequest",
    "LeaveRejectionRequest",
    "LeaveSubmissionRequest",
    "PayrollRunRequest",
    "StatutoryCalculationRequest",
    "format_validation_error",
]


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    COMPASSIONATE = "compassionate"
    STUDY = "study"
    UNPAID = "unpaid"
    PUBLIC_HOLIDAY = "public_holiday"

    @classmethod
    def parse(cls, value: object) -> LeaveType | None:
        """Return the matching member, or ``None`` for unrecognised input."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class LeaveStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Employee(BaseModel):
    """Employee record with the salary figures used by payroll runs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    employee_number: str
    first_name: str
    last_name: str
    department: str = ""
    gross_salary: float = Field(..., ge=0)
    basic_salary: float | None = Field(default=None, ge=0)
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LeaveBalance(BaseModel):
    """Leave days available to an employee for a single leave type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    employee_id: str
    leave_type: LeaveType
    entitlement: float = Field(..., ge=0)
    used: float = Field(default=0.0, ge=0)
    carry_forward: float = Field(default=0.0, ge=0)

    @computed_field
    @property
    def remaining(self) -> float:
        return self.entitlement + self.carry_forward - self.used

    @model_validator(mode="after")
    def _validate_remaining(self) -> LeaveBalance:
        if self.remaining < 0:
            raise ValueError("Leave balance cannot have negative remaining days")
        return self

    def with_usage(self, days: float) -> LeaveBalance:
        """Return a copy with ``days`` more days used."""

        if days < 0:
            raise ValueError("Leave usage cannot be negative")
        if days > self.remaining:
            raise ValueError(
                f"Cannot use {days:g} days; only {self.remaining:g} remaining"
            )
        return self.model_copy(update={"used": self.used + days})


class LeaveRequest(BaseModel):
    """A leave request and its approval trail."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    employee_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    days_requested: int = Field(..., ge=0)
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    created_at: datetime
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejection_reason: str | None = None
    decided_at: datetime | None = None
