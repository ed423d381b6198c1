"""Pydantic models describing the statutory rate configuration schema."""

from __future__ import annotations

from typing import Any, Iterable, Literal, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value in {0, "0", "false", "False", None}:
        return False
    if value in {1, "1", "true", "True"}:
        return True
    raise ConfigurationError("Boolean flags must be explicit true/false values")


class PayeBracket(ImmutableModel):
    """Represents a single progressive PAYE bracket on annual taxable income."""

    upper_bound: float | None = Field(default=None, alias="upper")
    rate: float

    @model_validator(mode="after")
    def _validate_values(self) -> PayeBracket:
        if self.rate < 0 or self.rate > 1:
            raise ConfigurationError("PAYE rates must be between 0 and 1")
        if self.upper_bound is not None and self.upper_bound <= 0:
            raise ConfigurationError("Upper bounds must be positive values")
        return self


class PayeConfig(ImmutableModel):
    """PAYE schedule: annual personal relief plus ordered brackets.

    Only the breakpoints and marginal rates are configured. The tax already
    accumulated at each breakpoint is derived from them, so editing one
    bracket never requires recomputing the others by hand.
    """

    personal_relief: float
    brackets: Sequence[PayeBracket]

    @model_validator(mode="after")
    def _validate_schedule(self) -> PayeConfig:
        if self.personal_relief < 0:
            raise ConfigurationError("'personal_relief' must be non-negative")
        if not self.brackets:
            raise ConfigurationError("PAYE configuration must include 'brackets'")
        last_upper: float | None = None
        for bracket in self.brackets[:-1]:
            upper = bracket.upper_bound
            if upper is None:
                raise ConfigurationError(
                    "Only the final PAYE bracket may have an open upper bound"
                )
            if last_upper is not None and upper <= last_upper:
                raise ConfigurationError("PAYE brackets must be in ascending order")
            last_upper = upper
        if self.brackets[-1].upper_bound is not None:
            raise ConfigurationError("Final PAYE bracket must have an open upper bound")
        return self

    @computed_field
    @property
    def lower_bounds(self) -> tuple[float, ...]:
        bounds = [0.0]
        for bracket in self.brackets[:-1]:
            bounds.append(float(bracket.upper_bound or 0.0))
        return tuple(bounds)

    @computed_field
    @property
    def cumulative_bases(self) -> tuple[float, ...]:
        """Tax owed on income exactly equal to each bracket's lower bound."""

        bases = [0.0]
        lower = 0.0
        for bracket in self.brackets[:-1]:
            upper = float(bracket.upper_bound or 0.0)
            bases.append(bases[-1] + (upper - lower) * bracket.rate)
            lower = upper
        return tuple(bases)


class NhifBand(ImmutableModel):
    """Flat NHIF fee for gross monthly salaries within ``[min, max]``."""

    lower: float = Field(alias="min")
    upper: float | None = Field(default=None, alias="max")
    amount: float

    @model_validator(mode="after")
    def _validate_band(self) -> NhifBand:
        if self.lower < 0:
            raise ConfigurationError("NHIF band minimums must be non-negative")
        if self.upper is not None and self.upper < self.lower:
            raise ConfigurationError("NHIF band maximum cannot be below its minimum")
        if self.amount < 0:
            raise ConfigurationError("NHIF amounts must be non-negative")
        return self

    def contains(self, salary: float) -> bool:
        if salary < self.lower:
            return False
        return self.upper is None or salary <= self.upper


class NhifConfig(ImmutableModel):
    """Bracket table used for NHIF lookups."""

    bands: Sequence[NhifBand]
    maximum_amount: float | None = None

    @model_validator(mode="after")
    def _validate_bands(self) -> NhifConfig:
        if not self.bands:
            raise ConfigurationError("NHIF configuration must include 'bands'")
        previous: NhifBand | None = None
        for band in self.bands:
            if previous is not None:
                if previous.upper is None:
                    raise ConfigurationError(
                        "Only the final NHIF band may have an open maximum"
                    )
                if band.lower <= previous.upper:
                    raise ConfigurationError(
                        "NHIF bands must be ascending and non-overlapping"
                    )
            previous = band
        if self.maximum_amount is None:
            object.__setattr__(
                self, "maximum_amount", max(band.amount for band in self.bands)
            )
        elif self.maximum_amount < 0:
            raise ConfigurationError("NHIF 'maximum_amount' must be non-negative")
        return self


class NssfConfig(ImmutableModel):
    """Single-tier NSSF model: a rate applied to pay up to a ceiling."""

    pension_ceiling: float
    contribution_rate: float
    pensionable_basis: Literal["gross", "basic"] = "gross"

    @model_validator(mode="after")
    def _validate_rates(self) -> NssfConfig:
        if self.pension_ceiling < 0:
            raise ConfigurationError("NSSF 'pension_ceiling' must be non-negative")
        if self.contribution_rate < 0 or self.contribution_rate > 1:
            raise ConfigurationError("NSSF 'contribution_rate' must be between 0 and 1")
        return self


class HousingLevyConfig(ImmutableModel):
    """Affordable Housing Levy settings."""

    rate: float
    monthly_cap: float | None = None

    @model_validator(mode="after")
    def _validate_rate(self) -> HousingLevyConfig:
        if self.rate < 0 or self.rate > 1:
            raise ConfigurationError("Housing levy 'rate' must be between 0 and 1")
        if self.monthly_cap is not None and self.monthly_cap < 0:
            raise ConfigurationError("Housing levy 'monthly_cap' must be non-negative")
        return self


class DeductionTypeConfig(ImmutableModel):
    """Descriptor for a payroll deduction that may be entered against a payslip."""

    id: str
    category: Literal["statutory", "loans", "other"]
    label: str
    description: str | None = None
    auto_calculated: bool = False
    has_limit: bool = False
    max_amount: float | None = None
    calculation_basis: Literal["fixed", "percentage", "bracket"] | None = None
    required: bool = False
    help_text: str | None = None

    @field_validator("auto_calculated", "has_limit", "required", mode="before")
    @classmethod
    def _coerce_flags(cls, value: Any) -> bool:
        return _coerce_boolean(value)

    @model_validator(mode="after")
    def _validate_limit(self) -> DeductionTypeConfig:
        if not self.id.strip():
            raise ConfigurationError("Deduction type identifiers must be non-empty")
        if self.has_limit and self.max_amount is None:
            raise ConfigurationError(
                f"Deduction type '{self.id}' declares a limit without 'max_amount'"
            )
        if self.max_amount is not None and self.max_amount < 0:
            raise ConfigurationError(
                f"Deduction type '{self.id}' 'max_amount' must be non-negative"
            )
        return self


class DeductionConfig(ImmutableModel):
    """Known deduction types plus the tolerance applied to manual overrides."""

    manual_override_tolerance: float = 10.0
    types: Sequence[DeductionTypeConfig] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_types(self) -> DeductionConfig:
        if self.manual_override_tolerance < 0:
            raise ConfigurationError("'manual_override_tolerance' must be non-negative")
        seen: set[str] = set()
        for entry in self.types:
            if entry.id in seen:
                raise ConfigurationError(f"Duplicate deduction type '{entry.id}'")
            seen.add(entry.id)
        return self

    def get_type(self, type_id: str) -> DeductionTypeConfig | None:
        for entry in self.types:
            if entry.id == type_id:
                return entry
        return None


class LeavePolicy(ImmutableModel):
    """Annual entitlement and carry-forward limit for a leave type."""

    leave_type: str
    annual_entitlement: float
    max_carry_forward: float = 0.0

    @field_validator("leave_type", mode="before")
    @classmethod
    def _normalise_leave_type(cls, value: Any) -> str:
        return str(value).strip().lower()

    @model_validator(mode="after")
    def _validate_policy(self) -> LeavePolicy:
        if not self.leave_type:
            raise ConfigurationError("Leave policies require a 'leave_type'")
        if self.annual_entitlement < 0:
            raise ConfigurationError("'annual_entitlement' must be non-negative")
        if self.max_carry_forward < 0:
            raise ConfigurationError("'max_carry_forward' must be non-negative")
        return self


class LeaveConfig(ImmutableModel):
    """Leave policies keyed by leave type."""

    policies: Sequence[LeavePolicy] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_policies(self) -> LeaveConfig:
        seen: set[str] = set()
        for policy in self.policies:
            if policy.leave_type in seen:
                raise ConfigurationError(
                    f"Duplicate leave policy for '{policy.leave_type}'"
                )
            seen.add(policy.leave_type)
        return self

    def get_policy(self, leave_type: str) -> LeavePolicy | None:
        for policy in self.policies:
            if policy.leave_type == leave_type:
                return policy
        return None


class RateWarning(ImmutableModel):
    """Structured warning surfaced for a configured tax year."""

    id: str
    message: str
    severity: str = "info"
    applies_to: Sequence[str] = Field(default_factory=tuple)
    documentation_url: str | None = None

    @field_validator("applies_to", mode="before")
    @classmethod
    def _coerce_applies_to(cls, value: Any) -> Sequence[str]:
        if value is None:
            return ()
        if isinstance(value, Iterable):
            return tuple(str(entry) for entry in value)
        raise ConfigurationError("Warning 'applies_to' must be an iterable when provided")

    @model_validator(mode="after")
    def _validate_severity(self) -> Self:
        if self.severity not in {"info", "warning", "error"}:
            raise ConfigurationError("Warning 'severity' must be one of: info, warning, error")
        return self


class RateConfiguration(ImmutableModel):
    """Structured representation of one year's statutory rate tables."""

    year: int
    meta: Mapping[str, Any] = Field(default_factory=dict)
    paye: PayeConfig
    nhif: NhifConfig
    nssf: NssfConfig
    housing_levy: HousingLevyConfig
    deductions: DeductionConfig = Field(default_factory=DeductionConfig)
    leave: LeaveConfig = Field(default_factory=LeaveConfig)
    warnings: Sequence[RateWarning] = Field(default_factory=tuple)

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration file must define a mapping at the top level")

        prepared = dict(data)
        meta = prepared.get("meta")
        if meta is None:
            prepared["meta"] = {}
        elif not isinstance(meta, Mapping):
            raise ConfigurationError("'meta' section must be a mapping if provided")

        for section in ("paye", "nhif", "nssf", "housing_levy"):
            if not isinstance(prepared.get(section), Mapping):
                raise ConfigurationError(
                    f"Rate configuration requires a '{section}' section"
                )

        for section in ("deductions", "leave"):
            if prepared.get(section) is None:
                prepared[section] = {}

        if prepared.get("warnings") is None:
            prepared["warnings"] = []

        return prepared


class RateManifestEntry(ImmutableModel):
    """Entry describing a supported tax year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class RateManifest(ImmutableModel):
    """Manifest describing the available rate configuration files."""

    years: Sequence[RateManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> RateManifest:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> RateManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "ConfigurationError",
    "DeductionConfig",
    "DeductionTypeConfig",
    "HousingLevyConfig",
    "ImmutableModel",
    "LeaveConfig",
    "LeavePolicy",
    "NhifBand",
    "NhifConfig",
    "NssfConfig",
    "PayeBracket",
    "PayeConfig",
    "RateConfiguration",
    "RateManifest",
    "RateManifestEntry",
    "RateWarning",
    "ValidationError",
]
