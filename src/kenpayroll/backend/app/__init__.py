"""Application factory for the kenpayroll backend."""

from __future__ import annotations

import logging
import os
from warnings import warn

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from .http import problem_response
from .routes import register_routes
from .routes.config import get_configuration_metadata
from .services.repositories import (
    EmployeeRepository,
    LeaveBalanceRepository,
    LeaveRequestRepository,
)
from .state import init_state

_LOGGER = logging.getLogger(__name__)

PACKAGE_LOGGER = "kenpayroll"


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert a comma separated environment value into a set of origins."""

    if not raw:
        return set()
    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def _configure_log_level(raw: str | None) -> None:
    if not raw:
        return
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        _LOGGER.warning("Ignoring invalid KENPAYROLL_LOG_LEVEL value %r", raw)
        return
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def create_app(
    employees: EmployeeRepository | None = None,
    balances: LeaveBalanceRepository | None = None,
    requests: LeaveRequestRepository | None = None,
) -> Flask:
    """Create and configure the Flask application instance.

    Repositories default to empty in-memory stores; pass implementations to
    share state with an embedding application.
    """

    app = Flask(__name__)
    _configure_log_level(os.getenv("KENPAYROLL_LOG_LEVEL"))

    allowed_origins = _parse_allowed_origins(os.getenv("KENPAYROLL_ALLOWED_ORIGINS"))
    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(allowed_origins)}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST"],
        allow_headers=["Content-Type"],
    )

    init_state(app, employees=employees, balances=balances, requests=requests)
    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        return jsonify({"status": "ok", **get_configuration_metadata()})

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Surface domain validation errors as 400 responses."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app


__all__ = ["create_app"]
