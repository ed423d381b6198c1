"""Unit coverage for loading and validating rate configuration files."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from kenpayroll.backend.app.services.calculators import compute_housing_levy
from kenpayroll.backend.config import rate_config
from kenpayroll.backend.config.rate_config import (
    ConfigurationError,
    NhifConfig,
    PayeConfig,
    RateConfiguration,
    available_years,
    default_year,
    load_rate_configuration,
)

_DATA_FILE = Path(rate_config.CONFIG_DIRECTORY) / "2025.yaml"


def _raw_2025() -> dict:
    raw = yaml.safe_load(_DATA_FILE.read_text("utf-8"))
    raw["year"] = 2025
    return raw


def test_manifest_lists_2025() -> None:
    assert 2025 in available_years()
    assert default_year() == max(available_years())


def test_load_2025_configuration() -> None:
    config = load_rate_configuration(2025)

    assert config.year == 2025
    assert config.paye.personal_relief == 28_800
    assert [bracket.rate for bracket in config.paye.brackets] == [0.10, 0.25, 0.30, 0.35]
    assert config.paye.brackets[-1].upper_bound is None
    assert config.nhif.maximum_amount == 1_700
    assert config.nssf.pension_ceiling == 36_000
    assert config.nssf.contribution_rate == 0.06
    assert config.housing_levy.rate == 0.015
    assert config.housing_levy.monthly_cap is None
    assert config.deductions.manual_override_tolerance == 10


def test_configuration_is_cached() -> None:
    assert load_rate_configuration(2025) is load_rate_configuration(2025)


def test_unknown_year_raises_file_not_found() -> None:
    with pytest.raises(FileNotFoundError):
        load_rate_configuration(1999)


def test_deduction_catalogue_limits() -> None:
    config = load_rate_configuration(2025)

    nhif = config.deductions.get_type("nhif")
    nssf = config.deductions.get_type("nssf")
    loan = config.deductions.get_type("company_loan")

    assert nhif is not None and nhif.has_limit and nhif.max_amount == 1_700
    assert nssf is not None and nssf.max_amount == 2_160
    assert loan is not None and loan.category == "loans" and not loan.auto_calculated
    assert config.deductions.get_type("missing") is None


def test_leave_policies() -> None:
    config = load_rate_configuration(2025)

    annual = config.leave.get_policy("annual")
    assert annual is not None
    assert annual.annual_entitlement == 21
    assert annual.max_carry_forward == 5
    assert config.leave.get_policy("sick").annual_entitlement == 14
    assert config.leave.get_policy("maternity").annual_entitlement == 90
    assert config.leave.get_policy("paternity").annual_entitlement == 14


def test_nhif_band_aliases() -> None:
    bands = load_rate_configuration(2025).nhif.bands

    assert bands[0].lower == 0
    assert bands[0].upper == 5_999
    assert bands[-1].upper is None


def test_missing_rate_section_is_rejected() -> None:
    raw = _raw_2025()
    raw.pop("nssf")

    with pytest.raises(ValidationError):
        RateConfiguration.model_validate(raw)


def test_paye_brackets_must_ascend() -> None:
    with pytest.raises(ValidationError):
        PayeConfig.model_validate(
            {
                "personal_relief": 0,
                "brackets": [
                    {"upper": 500, "rate": 0.1},
                    {"upper": 100, "rate": 0.2},
                    {"rate": 0.3},
                ],
            }
        )


def test_paye_final_bracket_must_be_open() -> None:
    with pytest.raises(ValidationError):
        PayeConfig.model_validate(
            {"personal_relief": 0, "brackets": [{"upper": 100, "rate": 0.1}]}
        )


def test_paye_supports_arbitrary_bracket_counts() -> None:
    paye = PayeConfig.model_validate(
        {
            "personal_relief": 0,
            "brackets": [
                {"upper": 100, "rate": 0.1},
                {"upper": 200, "rate": 0.2},
                {"upper": 300, "rate": 0.3},
                {"upper": 400, "rate": 0.4},
                {"rate": 0.5},
            ],
        }
    )

    assert paye.cumulative_bases == pytest.approx((0, 10, 30, 60, 100))


def test_nhif_bands_must_not_overlap() -> None:
    with pytest.raises(ValidationError):
        NhifConfig.model_validate(
            {
                "bands": [
                    {"min": 0, "max": 100, "amount": 10},
                    {"min": 100, "max": 200, "amount": 20},
                ]
            }
        )


def test_nhif_maximum_defaults_to_highest_band() -> None:
    nhif = NhifConfig.model_validate(
        {"bands": [{"min": 0, "max": 100, "amount": 10}, {"min": 101, "amount": 25}]}
    )

    assert nhif.maximum_amount == 25


def test_limit_requires_max_amount() -> None:
    raw = _raw_2025()
    raw["deductions"]["types"][1].pop("max_amount")

    with pytest.raises(ValidationError):
        RateConfiguration.model_validate(raw)


def test_invalid_yaml_root_is_reported(tmp_path: Path) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        rate_config._load_yaml(broken)


@pytest.fixture()
def swapped_tables(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the loader at a temporary directory holding a 2026 table."""

    raw = _raw_2025()
    raw["year"] = 2026
    raw["housing_levy"] = {"rate": 0.02, "monthly_cap": 2_500}
    (tmp_path / "2026.yaml").write_text(yaml.safe_dump(raw), encoding="utf-8")
    (tmp_path / "manifest.yaml").write_text(
        yaml.safe_dump({"years": [{"year": 2026}]}), encoding="utf-8"
    )

    monkeypatch.setattr(rate_config, "CONFIG_DIRECTORY", tmp_path)
    monkeypatch.setattr(rate_config, "MANIFEST_FILE", tmp_path / "manifest.yaml")
    rate_config.load_manifest.cache_clear()
    rate_config.load_rate_configuration.cache_clear()
    yield tmp_path
    rate_config.load_manifest.cache_clear()
    rate_config.load_rate_configuration.cache_clear()


def test_tables_can_be_swapped_without_code_changes(swapped_tables: Path) -> None:
    assert list(available_years()) == [2026]
    config = load_rate_configuration(2026)

    assert compute_housing_levy(100_000, config) == 2_000
    assert compute_housing_levy(200_000, config) == 2_500
