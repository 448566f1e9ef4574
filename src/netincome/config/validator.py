"""Utilities for validating reference datasets and surfacing issues."""

from __future__ import annotations

import argparse
from collections import defaultdict
from typing import Iterable, Mapping, Sequence

from .reference_data import available_jurisdictions, load_reference_dataset
from .schema import (
    ConfigurationError,
    NationalInsuranceRow,
    PortugalReferenceData,
    SolidarityRow,
    SpecialRegimeRow,
    TaxBracketRow,
    UnitedKingdomReferenceData,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _group_brackets(
    rows: Iterable[TaxBracketRow],
) -> Mapping[tuple[int, str, str | None], list[TaxBracketRow]]:
    groups: dict[tuple[int, str, str | None], list[TaxBracketRow]] = defaultdict(list)
    for row in rows:
        groups[(row.year, row.income_type, row.region)].append(row)
    return groups


def validate_bracket_set(scope: str, brackets: Sequence[TaxBracketRow]) -> list[str]:
    """Check that ``brackets`` form one contiguous, open-ended progression."""

    errors: list[str] = []
    if not brackets:
        return [_format_scope(scope, "no brackets defined")]

    if [row.lower_bound for row in brackets] != sorted(row.lower_bound for row in brackets):
        errors.append(_format_scope(scope, "brackets should be sorted by lower bound"))

    ordered = sorted(brackets, key=lambda row: row.lower_bound)
    if ordered[0].lower_bound != 0:
        errors.append(
            _format_scope(scope, f"first bracket starts at {ordered[0].lower_bound}, expected 0")
        )

    for index, row in enumerate(ordered):
        upper = row.upper_bound
        is_last = index == len(ordered) - 1
        if upper is None:
            if not is_last:
                errors.append(
                    _format_scope(scope, f"open bracket at {row.lower_bound} is not the last one")
                )
            continue
        if upper <= row.lower_bound:
            errors.append(
                _format_scope(
                    scope,
                    f"bracket {row.lower_bound}-{upper} is empty and will be skipped",
                )
            )
        if is_last:
            errors.append(_format_scope(scope, "last bracket must be open-ended"))
            continue
        following = ordered[index + 1].lower_bound
        if following > upper:
            errors.append(_format_scope(scope, f"gap between {upper} and {following}"))
        elif following < upper:
            errors.append(_format_scope(scope, f"overlap between {following} and {upper}"))

    return errors


def _validate_brackets(rows: Sequence[TaxBracketRow]) -> list[str]:
    errors: list[str] = []
    for (year, income_type, region), group in sorted(
        _group_brackets(rows).items(), key=lambda item: (item[0][0], item[0][1], item[0][2] or "")
    ):
        scope = f"tax_brackets[{year}:{income_type}" + (f":{region}" if region else "") + "]"
        errors.extend(validate_bracket_set(scope, group))
    return errors


def _validate_solidarity(rows: Sequence[SolidarityRow]) -> list[str]:
    errors: list[str] = []
    for row in rows:
        thresholds = [step.threshold for step in row.thresholds]
        if thresholds != sorted(set(thresholds)):
            errors.append(
                _format_scope(
                    f"solidarity[{row.year}]",
                    "thresholds must be strictly ascending",
                )
            )
    return errors


def _validate_special_regimes(rows: Sequence[SpecialRegimeRow]) -> list[str]:
    errors: list[str] = []
    seen: set[tuple[str, int]] = set()
    for row in rows:
        key = (row.name, row.year)
        if key in seen:
            errors.append(
                _format_scope(
                    "special_regimes",
                    f"duplicate regime '{row.name}' for {row.year}",
                )
            )
        seen.add(key)
    return errors


def _validate_national_insurance(rows: Sequence[NationalInsuranceRow]) -> list[str]:
    errors: list[str] = []
    by_year: dict[int, set[int]] = defaultdict(set)
    for row in rows:
        by_year[row.year].add(row.ni_class)
    for year, classes in sorted(by_year.items()):
        missing = {1, 2, 4} - classes
        if missing:
            errors.append(
                _format_scope(
                    f"national_insurance[{year}]",
                    f"missing class(es) {sorted(missing)}",
                )
            )
    return errors


def validate_reference_dataset(
    dataset: PortugalReferenceData | UnitedKingdomReferenceData,
) -> list[str]:
    """Return a list of validation issues for ``dataset``."""

    errors: list[str] = []
    errors.extend(_validate_brackets(dataset.tax_brackets))

    if isinstance(dataset, PortugalReferenceData):
        errors.extend(_validate_solidarity(dataset.solidarity))
        errors.extend(_validate_special_regimes(dataset.special_regimes))
        overlap = set(dataset.qualifying_regions) & set(dataset.blacklisted_jurisdictions)
        if overlap:
            errors.append(
                _format_scope(
                    "blacklisted_jurisdictions",
                    f"codes also listed as qualifying regions: {sorted(overlap)}",
                )
            )
    else:
        errors.extend(_validate_national_insurance(dataset.national_insurance))

    return errors


def validate_all_jurisdictions(codes: Sequence[str] | None = None) -> dict[str, list[str]]:
    """Validate the bundled datasets and return issues keyed by jurisdiction."""

    targets = codes or available_jurisdictions()
    return {code: validate_reference_dataset(load_reference_dataset(code)) for code in targets}


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate bundled reference datasets and report issues helpful to contributors."
    )
    parser.add_argument(
        "jurisdictions",
        nargs="*",
        type=str.upper,
        help="Specific jurisdiction codes to validate (defaults to all bundled datasets)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    codes = args.jurisdictions or available_jurisdictions()

    if not codes:
        parser.print_help()
        return 1

    exit_code = 0

    for code in codes:
        try:
            dataset = load_reference_dataset(code)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{code}] failed to load reference data: {error}")
            exit_code = 1
            continue

        issues = validate_reference_dataset(dataset)
        if issues:
            exit_code = 1
            print(f"[{code}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{code}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
