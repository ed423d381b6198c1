"""Problem-style JSON error responses used by every blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from flask import jsonify

from kenpayroll.backend.app.services.validation import ValidationIssue, has_blocking_issues


@dataclass(frozen=True)
class ProblemResponse:
    """An error payload of the form ``{"error", "message", ...extra}``."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    return ProblemResponse(error=error, status=status, message=message, extra=extra or None)


def issues_response(
    issues: Iterable[ValidationIssue],
    *,
    status: int = 422,
    error: str = "validation_failed",
) -> ProblemResponse:
    """Wrap business-rule issues; the first issue's message becomes the summary."""

    collected = list(issues)
    message = collected[0].message if collected else None
    return problem_response(
        error,
        status=status,
        message=message,
        issues=[issue.as_dict() for issue in collected],
        blocking=has_blocking_issues(collected),
    )


def not_found(message: str) -> ProblemResponse:
    return problem_response("not_found", status=404, message=message)


__all__ = ["ProblemResponse", "issues_response", "not_found", "problem_response"]
