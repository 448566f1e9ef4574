from netincome.config.reference_data import load_reference_dataset
from netincome.config.schema import TaxBracketRow
from netincome.config.validator import (
    main,
    validate_all_jurisdictions,
    validate_bracket_set,
    validate_reference_dataset,
)


def _row(lower: float, upper: float | None, rate: float = 0.1) -> TaxBracketRow:
    return TaxBracketRow(year=2024, lower_bound=lower, upper_bound=upper, rate=rate)


def test_bundled_reference_data_is_valid() -> None:
    results = validate_all_jurisdictions()
    assert set(results) == {"GB", "PT"}
    assert all(not issues for issues in results.values()), results


def test_validator_flags_gap_between_brackets() -> None:
    errors = validate_bracket_set("scope", [_row(0, 1000), _row(1500, None)])
    assert any("gap between 1000" in error for error in errors)


def test_validator_flags_overlap_and_missing_open_bracket() -> None:
    errors = validate_bracket_set("scope", [_row(0, 1000), _row(800, 2000)])

    assert any("overlap" in error for error in errors)
    assert any("open-ended" in error for error in errors)


def test_validator_flags_non_zero_start_and_empty_band() -> None:
    errors = validate_bracket_set("scope", [_row(100, 100), _row(100, None)])

    assert any("expected 0" in error for error in errors)
    assert any("empty" in error for error in errors)


def test_validator_flags_overlapping_code_lists() -> None:
    dataset = load_reference_dataset("PT")
    broken = dataset.model_copy(update={"blacklisted_jurisdictions": ("KY", "ES")})

    errors = validate_reference_dataset(broken)

    assert any("ES" in error and "qualifying" in error for error in errors)


def test_validator_flags_missing_national_insurance_class() -> None:
    dataset = load_reference_dataset("GB")
    broken = dataset.model_copy(
        update={
            "national_insurance": [
                row for row in dataset.national_insurance if row.ni_class != 2
            ]
        }
    )

    errors = validate_reference_dataset(broken)

    assert any("missing class(es) [2]" in error for error in errors)


def test_cli_reports_success(capsys) -> None:
    assert main(["pt", "gb"]) == 0
    output = capsys.readouterr().out
    assert "[PT] OK" in output
    assert "[GB] OK" in output


def test_cli_reports_unknown_jurisdiction(capsys) -> None:
    assert main(["FR"]) == 1
    assert "[FR] failed to load reference data" in capsys.readouterr().out
