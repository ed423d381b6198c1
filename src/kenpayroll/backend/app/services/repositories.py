"""Repository interfaces and thread-safe in-memory implementations.

The leave workflow and payroll runs only depend on the protocols declared
here, so a database-backed store can replace the in-memory classes without
touching call sites.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from threading import Lock
from typing import Iterable, Protocol, Sequence

from kenpayroll.backend.app.models import (
    Employee,
    LeaveBalance,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from kenpayroll.backend.config.rate_config import LeavePolicy

_LOGGER = logging.getLogger(__name__)

BalanceKey = tuple[str, LeaveType]


class EmployeeRepository(Protocol):
    def add(self, employee: Employee) -> Employee: ...

    def get(self, employee_id: str) -> Employee: ...

    def list(self, *, active_only: bool = False) -> Sequence[Employee]: ...

    def update(self, employee: Employee) -> Employee: ...

    def remove(self, employee_id: str) -> None: ...


class LeaveBalanceRepository(Protocol):
    def get(self, employee_id: str, leave_type: LeaveType) -> LeaveBalance | None: ...

    def put(self, balance: LeaveBalance) -> LeaveBalance: ...

    def list_for_employee(self, employee_id: str) -> Sequence[LeaveBalance]: ...

    def apply_usage(
        self, employee_id: str, leave_type: LeaveType, days: float
    ) -> LeaveBalance: ...


class LeaveRequestRepository(Protocol):
    def save(self, request: LeaveRequest) -> LeaveRequest: ...

    def get(self, request_id: str) -> LeaveRequest: ...

    def list(self, *, employee_id: str | None = None) -> Sequence[LeaveRequest]: ...

    def list_pending(self) -> Sequence[LeaveRequest]: ...


class InMemoryEmployeeRepository:
    """Employee records kept in insertion order."""

    def __init__(self, employees: Iterable[Employee] = ()) -> None:
        self._employees: "OrderedDict[str, Employee]" = OrderedDict()
        self._lock = Lock()
        for employee in employees:
            self.add(employee)

    def add(self, employee: Employee) -> Employee:
        with self._lock:
            if employee.id in self._employees:
                raise ValueError(f"Employee '{employee.id}' already exists")
            self._employees[employee.id] = employee
        return employee

    def get(self, employee_id: str) -> Employee:
        with self._lock:
            return self._employees[employee_id]

    def list(self, *, active_only: bool = False) -> Sequence[Employee]:
        with self._lock:
            employees = list(self._employees.values())
        if active_only:
            return [employee for employee in employees if employee.is_active]
        return employees

    def update(self, employee: Employee) -> Employee:
        with self._lock:
            if employee.id not in self._employees:
                raise KeyError(employee.id)
            self._employees[employee.id] = employee
        return employee

    def remove(self, employee_id: str) -> None:
        with self._lock:
            del self._employees[employee_id]


class InMemoryLeaveBalanceRepository:
    """Leave balances keyed by ``(employee_id, leave_type)``."""

    def __init__(self, balances: Iterable[LeaveBalance] = ()) -> None:
        self._balances: dict[BalanceKey, LeaveBalance] = {}
        self._lock = Lock()
        for balance in balances:
            self.put(balance)

    def get(self, employee_id: str, leave_type: LeaveType) -> LeaveBalance | None:
        with self._lock:
            return self._balances.get((employee_id, leave_type))

    def put(self, balance: LeaveBalance) -> LeaveBalance:
        with self._lock:
            self._balances[(balance.employee_id, balance.leave_type)] = balance
        return balance

    def list_for_employee(self, employee_id: str) -> Sequence[LeaveBalance]:
        with self._lock:
            return [
                balance
                for (owner, _), balance in self._balances.items()
                if owner == employee_id
            ]

    def apply_usage(
        self, employee_id: str, leave_type: LeaveType, days: float
    ) -> LeaveBalance:
        """Record ``days`` as used, re-checking the balance under the lock."""

        key = (employee_id, leave_type)
        with self._lock:
            current = self._balances.get(key)
            if current is None:
                raise KeyError(key)
            updated = current.with_usage(days)
            self._balances[key] = updated

        _LOGGER.debug(
            "Leave balance %s/%s used %.2f -> %.2f",
            employee_id,
            leave_type.value,
            current.used,
            updated.used,
        )
        return updated


class InMemoryLeaveRequestRepository:
    """Leave requests keyed by identifier, in submission order."""

    def __init__(self) -> None:
        self._requests: "OrderedDict[str, LeaveRequest]" = OrderedDict()
        self._lock = Lock()

    def save(self, request: LeaveRequest) -> LeaveRequest:
        with self._lock:
            self._requests[request.id] = request
        return request

    def get(self, request_id: str) -> LeaveRequest:
        with self._lock:
            return self._requests[request_id]

    def list(self, *, employee_id: str | None = None) -> Sequence[LeaveRequest]:
        with self._lock:
            requests = list(self._requests.values())
        if employee_id is None:
            return requests
        return [request for request in requests if request.employee_id == employee_id]

    def list_pending(self) -> Sequence[LeaveRequest]:
        with self._lock:
            return [
                request
                for request in self._requests.values()
                if request.status is LeaveStatus.PENDING
            ]


def open_balances(
    employee_id: str,
    policies: Iterable[LeavePolicy],
    carry_forward: dict[LeaveType, float] | None = None,
) -> list[LeaveBalance]:
    """Build starting balances for ``employee_id`` from configured policies.

    Carried-forward days are clamped to each policy's ``max_carry_forward``.
    """

    carried = carry_forward or {}
    balances: list[LeaveBalance] = []
    for policy in policies:
        leave_type = LeaveType(policy.leave_type)
        requested = max(0.0, float(carried.get(leave_type, 0.0)))
        balances.append(
            LeaveBalance(
                employee_id=employee_id,
                leave_type=leave_type,
                entitlement=policy.annual_entitlement,
                carry_forward=min(requested, policy.max_carry_forward),
            )
        )
    return balances


__all__ = [
    "EmployeeRepository",
    "InMemoryEmployeeRepository",
    "InMemoryLeaveBalanceRepository",
    "InMemoryLeaveRequestRepository",
    "LeaveBalanceRepository",
    "LeaveRequestRepository",
    "open_balances",
]
