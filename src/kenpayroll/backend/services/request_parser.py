"""Helpers for turning Flask requests into validated payload models."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from flask import Request
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import BadRequest

from kenpayroll.backend.app.models import format_validation_error

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_json_payload(req: Request, *, allow_empty: bool = False) -> dict[str, Any]:
    """Extract the JSON object body from ``req``.

    With ``allow_empty`` a missing body is treated as ``{}``, which suits
    action endpoints whose fields are all optional.
    """

    if allow_empty and not req.get_data(cache=True):
        return {}

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_model(
    model: type[ModelT], payload: Mapping[str, Any], *, subject: str = "request"
) -> ModelT:
    """Validate ``payload`` against ``model``, raising ``ValueError`` on failure."""

    try:
        return model.model_validate(payload)
    except ValidationError as error:
        raise ValueError(format_validation_error(error, subject=subject)) from error


__all__ = ["parse_json_payload", "parse_model"]
