"""Configuration loader wrapping the statutory rate schema models."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    ConfigurationError,
    DeductionConfig,
    DeductionTypeConfig,
    HousingLevyConfig,
    LeaveConfig,
    LeavePolicy,
    NhifBand,
    NhifConfig,
    NssfConfig,
    PayeBracket,
    PayeConfig,
    RateConfiguration,
    RateManifest,
    RateManifestEntry,
    RateWarning,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> RateManifest:
    """Load and cache the configuration manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Configuration manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return RateManifest.model_validate(raw_manifest)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


@lru_cache(maxsize=8)
def load_rate_configuration(year: int) -> RateConfiguration:
    """Load the statutory rate tables for ``year`` from disk."""

    try:
        manifest_entry = load_manifest().get_entry(year)
    except KeyError as exc:
        raise FileNotFoundError(f"Configuration for year {year} not declared in manifest") from exc

    config_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file for year {year} missing: {config_file.name}"
        )

    raw_config = _load_yaml(config_file)
    raw_config.setdefault("year", year)

    try:
        configuration = RateConfiguration.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(f"Configuration validation failed for {year}: {error}") from error

    if configuration.year != year:
        raise ConfigurationError(
            f"Configuration year mismatch: expected {year}, found {configuration.year}"
        )

    return configuration


def available_years() -> Sequence[int]:
    """Return the tax years declared in the manifest."""

    return load_manifest().supported_years


def default_year() -> int:
    """Return the most recent configured year."""

    years = available_years()
    if not years:
        raise ConfigurationError("The configuration manifest declares no years")
    return years[-1]


__all__ = [
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "DeductionConfig",
    "DeductionTypeConfig",
    "HousingLevyConfig",
    "LeaveConfig",
    "LeavePolicy",
    "MANIFEST_FILE",
    "NhifBand",
    "NhifConfig",
    "NssfConfig",
    "PayeBracket",
    "PayeConfig",
    "RateConfiguration",
    "RateManifest",
    "RateManifestEntry",
    "RateWarning",
    "available_years",
    "default_year",
    "load_manifest",
    "load_rate_configuration",
]
