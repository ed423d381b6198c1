"""Service-layer helpers shared by the kenpayroll HTTP routes."""

from .request_parser import parse_json_payload, parse_model

__all__ = ["parse_json_payload", "parse_model"]
