"""Per-application repositories shared by the blueprints."""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import Flask, current_app

from kenpayroll.backend.app.services.leave_workflow import LeaveRequestWorkflow
from kenpayroll.backend.app.services.repositories import (
    EmployeeRepository,
    InMemoryEmployeeRepository,
    InMemoryLeaveBalanceRepository,
    InMemoryLeaveRequestRepository,
    LeaveBalanceRepository,
    LeaveRequestRepository,
)

EXTENSION_KEY = "kenpayroll"


@dataclass
class PayrollState:
    employees: EmployeeRepository = field(default_factory=InMemoryEmployeeRepository)
    balances: LeaveBalanceRepository = field(default_factory=InMemoryLeaveBalanceRepository)
    requests: LeaveRequestRepository = field(default_factory=InMemoryLeaveRequestRepository)
    workflow: LeaveRequestWorkflow = field(init=False)

    def __post_init__(self) -> None:
        self.workflow = LeaveRequestWorkflow(self.balances, self.requests)


def init_state(
    app: Flask,
    *,
    employees: EmployeeRepository | None = None,
    balances: LeaveBalanceRepository | None = None,
    requests: LeaveRequestRepository | None = None,
) -> PayrollState:
    """Attach repositories to ``app``, defaulting to empty in-memory stores."""

    provided = {"employees": employees, "balances": balances, "requests": requests}
    state = PayrollState(**{key: value for key, value in provided.items() if value is not None})
    app.extensions[EXTENSION_KEY] = state
    return state


def get_state() -> PayrollState:
    return current_app.extensions[EXTENSION_KEY]


__all__ = ["EXTENSION_KEY", "PayrollState", "get_state", "init_state"]
