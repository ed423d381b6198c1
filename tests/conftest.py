"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from kenpayroll.backend.app import create_app  # noqa: E402
from kenpayroll.backend.app.models import Employee  # noqa: E402
from kenpayroll.backend.app.services.repositories import (  # noqa: E402
    InMemoryEmployeeRepository,
    InMemoryLeaveBalanceRepository,
    InMemoryLeaveRequestRepository,
    open_balances,
)
from kenpayroll.backend.config.rate_config import (  # noqa: E402
    RateConfiguration,
    load_rate_configuration,
)


@pytest.fixture()
def rates() -> RateConfiguration:
    """Return the shipped 2025 rate tables."""

    return load_rate_configuration(2025)


@pytest.fixture()
def employees() -> InMemoryEmployeeRepository:
    return InMemoryEmployeeRepository(
        [
            Employee(
                id="emp-001",
                employee_number="EMP001",
                first_name="Amina",
                last_name="Otieno",
                department="Finance",
                gross_salary=150_000,
                basic_salary=120_000,
            ),
            Employee(
                id="emp-002",
                employee_number="EMP002",
                first_name="Brian",
                last_name="Kamau",
                department="Operations",
                gross_salary=50_000,
            ),
            Employee(
                id="emp-003",
                employee_number="EMP003",
                first_name="Carol",
                last_name="Wanjiru",
                gross_salary=30_000,
                is_active=False,
            ),
        ]
    )


@pytest.fixture()
def balances(rates: RateConfiguration) -> InMemoryLeaveBalanceRepository:
    """Starting balances for every seeded employee from the configured policies."""

    repository = InMemoryLeaveBalanceRepository()
    for employee_id in ("emp-001", "emp-002", "emp-003"):
        for balance in open_balances(employee_id, rates.leave.policies):
            repository.put(balance)
    return repository


@pytest.fixture()
def leave_requests() -> InMemoryLeaveRequestRepository:
    return InMemoryLeaveRequestRepository()


@pytest.fixture()
def app(
    employees: InMemoryEmployeeRepository,
    balances: InMemoryLeaveBalanceRepository,
    leave_requests: InMemoryLeaveRequestRepository,
) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(
        employees=employees, balances=balances, requests=leave_requests
    )
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
