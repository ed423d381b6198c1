"""Cross-section checks for rate configuration files.

The schema models reject malformed tables on load. This module reports the
softer problems a contributor should look at before publishing a new year:
discontinuous PAYE schedules, NHIF gaps, caps that disagree with the
deduction catalogue and unknown leave types.
"""

from __future__ import annotations

import argparse
from typing import Iterable, Sequence

from kenpayroll.backend.app.models import LeaveType
from kenpayroll.backend.app.services.calculators import (
    compute_deduction,
    progressive_tax_at_breakpoints,
)

from .rate_config import (
    ConfigurationError,
    DeductionConfig,
    LeaveConfig,
    NhifConfig,
    PayeConfig,
    RateConfiguration,
    RateWarning,
    available_years,
    load_rate_configuration,
)

CALCULATED_TYPES = frozenset({"paye", "nhif", "nssf", "housing_levy"})
_BREAKPOINT_TOLERANCE = 0.01


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_paye(paye: PayeConfig) -> list[str]:
    errors: list[str] = []

    rates = [bracket.rate for bracket in paye.brackets]
    if rates != sorted(rates):
        errors.append(_format_scope("paye.brackets", "rates should not decrease"))

    # Tax evaluated at each breakpoint must equal the next bracket's base.
    expected = paye.cumulative_bases[1:]
    actual = progressive_tax_at_breakpoints(paye.brackets)
    for index, (base, value) in enumerate(zip(expected, actual), start=1):
        if abs(base - value) > _BREAKPOINT_TOLERANCE:
            errors.append(
                _format_scope(
                    f"paye.brackets[{index}]",
                    f"schedule is discontinuous at {paye.lower_bounds[index]:,.0f}",
                )
            )

    return errors


def _validate_nhif(nhif: NhifConfig) -> list[str]:
    errors: list[str] = []

    bands = list(nhif.bands)
    if bands[0].lower > 0:
        errors.append(_format_scope("nhif.bands", "first band should start at 0"))

    for previous, band in zip(bands, bands[1:]):
        if previous.upper is not None and band.lower - previous.upper > 1:
            errors.append(
                _format_scope(
                    "nhif.bands",
                    f"gap between {previous.upper:,.0f} and {band.lower:,.0f}",
                )
            )

    amounts = [band.amount for band in bands]
    if amounts != sorted(amounts):
        errors.append(_format_scope("nhif.bands", "amounts should not decrease"))

    if nhif.maximum_amount is not None and nhif.maximum_amount < max(amounts):
        errors.append(
            _format_scope("nhif.maximum_amount", "is lower than the highest band amount")
        )

    return errors


def _validate_deductions(config: RateConfiguration) -> list[str]:
    errors: list[str] = []
    catalogue: DeductionConfig = config.deductions

    if catalogue.manual_override_tolerance < 0:
        errors.append(
            _format_scope("deductions", "manual_override_tolerance must be non-negative")
        )

    for type_id in sorted(CALCULATED_TYPES):
        if catalogue.get_type(type_id) is None:
            errors.append(
                _format_scope("deductions", f"statutory type '{type_id}' is not declared")
            )

    for entry in catalogue.types:
        scope = f"deductions.{entry.id}"
        if entry.auto_calculated and entry.id not in CALCULATED_TYPES:
            errors.append(
                _format_scope(scope, "is marked auto_calculated but has no calculator")
            )
        if not entry.has_limit or entry.max_amount is None:
            continue
        if entry.id not in CALCULATED_TYPES:
            continue

        # The calculator's ceiling must fit under the declared limit.
        ceiling = _ceiling_amount(entry.id, config)
        if ceiling is not None and ceiling > entry.max_amount:
            errors.append(
                _format_scope(
                    scope,
                    f"calculated maximum {ceiling:,.0f} exceeds max_amount "
                    f"{entry.max_amount:,.0f}",
                )
            )

    return errors


def _ceiling_amount(type_id: str, config: RateConfiguration) -> float | None:
    if type_id == "nhif":
        return config.nhif.maximum_amount
    if type_id == "nssf":
        return compute_deduction("nssf", config.nssf.pension_ceiling, None, config)
    return None


def _validate_leave(leave: LeaveConfig) -> list[str]:
    errors: list[str] = []
    known = {member.value for member in LeaveType}

    for policy in leave.policies:
        scope = f"leave.{policy.leave_type}"
        if policy.leave_type not in known:
            errors.append(_format_scope(scope, "is not a recognised leave type"))
        if policy.max_carry_forward > policy.annual_entitlement:
            errors.append(
                _format_scope(scope, "max_carry_forward exceeds the annual entitlement")
            )

    return errors


def _validate_warnings(warnings: Iterable[RateWarning]) -> list[str]:
    errors: list[str] = []
    seen_ids: set[str] = set()

    for warning in warnings:
        if warning.id in seen_ids:
            errors.append(
                _format_scope("warnings", f"duplicate warning identifier '{warning.id}'")
            )
        seen_ids.add(warning.id)

        for target in warning.applies_to:
            if target not in CALCULATED_TYPES:
                errors.append(
                    _format_scope(
                        f"warnings.{warning.id}",
                        f"applies_to entry '{target}' is not a statutory deduction",
                    )
                )

        if warning.documentation_url and not warning.documentation_url.startswith(
            ("http://", "https://")
        ):
            errors.append(
                _format_scope(f"warnings.{warning.id}", "documentation URL must be absolute")
            )

    return errors


def validate_rate_configuration(config: RateConfiguration) -> list[str]:
    """Return human-readable issues for ``config``; an empty list means clean."""

    errors: list[str] = []
    errors.extend(_validate_paye(config.paye))
    errors.extend(_validate_nhif(config.nhif))
    errors.extend(_validate_deductions(config))
    errors.extend(_validate_leave(config.leave))
    errors.extend(_validate_warnings(config.warnings))
    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate every configured year and return issues keyed by year."""

    targets = years or available_years()
    return {
        int(year): validate_rate_configuration(load_rate_configuration(year))
        for year in targets
    }


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate statutory rate tables before publishing them."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0
    for year in years:
        try:
            config = load_rate_configuration(year)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_rate_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
