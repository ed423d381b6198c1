"""Blueprint registrations for application routes."""

from flask import Flask

from .config import blueprint as config_blueprint
from .deductions import blueprint as deductions_blueprint
from .leave import blueprint as leave_blueprint
from .payroll import blueprint as payroll_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with the provided application."""

    app.register_blueprint(config_blueprint)
    app.register_blueprint(deductions_blueprint)
    app.register_blueprint(payroll_blueprint)
    app.register_blueprint(leave_blueprint)
