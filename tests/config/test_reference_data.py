"""Coverage for bundled reference data loading and schema validation."""

from __future__ import annotations

from pathlib import Path
from shutil import copy2
from typing import Any

import pytest
import yaml

from netincome.config import reference_data
from netincome.config.schema import (
    ConfigurationError,
    PortugalReferenceData,
    UnitedKingdomReferenceData,
)


@pytest.fixture()
def isolated_data_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Copy the bundled datasets into ``tmp_path`` and point the loader at it."""

    original = reference_data.CONFIG_DIRECTORY
    for filename in ("manifest.yaml", "pt.yaml", "gb.yaml"):
        copy2(original / filename, tmp_path / filename)

    monkeypatch.setattr(reference_data, "CONFIG_DIRECTORY", tmp_path)
    monkeypatch.setattr(reference_data, "MANIFEST_FILE", tmp_path / "manifest.yaml")
    reference_data.load_manifest.cache_clear()
    reference_data.load_reference_dataset.cache_clear()

    yield tmp_path

    reference_data.load_manifest.cache_clear()
    reference_data.load_reference_dataset.cache_clear()


def test_manifest_lists_bundled_jurisdictions() -> None:
    assert reference_data.available_jurisdictions() == ("GB", "PT")
    entry = reference_data.load_manifest().get_entry("PT")
    assert entry.resolved_filename == "pt.yaml"


def test_bundled_datasets_parse_into_typed_models() -> None:
    datasets = reference_data.load_reference_datasets()

    assert isinstance(datasets["PT"], PortugalReferenceData)
    assert isinstance(datasets["GB"], UnitedKingdomReferenceData)
    assert datasets["PT"].currency == "EUR"
    assert datasets["GB"].currency == "GBP"
    assert "KY" in datasets["PT"].blacklisted_jurisdictions


def test_loader_is_cached_and_case_insensitive() -> None:
    assert reference_data.load_reference_dataset("PT") is reference_data.load_reference_dataset("PT")
    assert reference_data.load_reference_dataset("pt").jurisdiction == "PT"


def test_unknown_jurisdiction_is_not_found() -> None:
    with pytest.raises(FileNotFoundError):
        reference_data.load_reference_dataset("FR")


def test_invalid_rate_raises_configuration_error(isolated_data_directory: Path) -> None:
    path = isolated_data_directory / "pt.yaml"
    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8"))
    raw["dividends"][0]["standard_rate"] = 1.5
    path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")

    with pytest.raises(ConfigurationError, match="PT"):
        reference_data.load_reference_dataset("PT")


def test_mismatched_jurisdiction_is_rejected(isolated_data_directory: Path) -> None:
    manifest_path = isolated_data_directory / "manifest.yaml"
    manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    manifest["jurisdictions"][1]["filename"] = "pt.yaml"
    manifest_path.write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")
    reference_data.load_manifest.cache_clear()

    with pytest.raises(ConfigurationError, match="mismatch"):
        reference_data.load_reference_dataset("GB")


def test_duplicate_manifest_entries_are_rejected(isolated_data_directory: Path) -> None:
    manifest_path = isolated_data_directory / "manifest.yaml"
    manifest_path.write_text(
        "jurisdictions:\n  - jurisdiction: PT\n  - jurisdiction: pt\n", encoding="utf-8"
    )

    with pytest.raises(ConfigurationError, match="Duplicate"):
        reference_data.load_manifest()


def test_boolean_year_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        reference_data.parse_reference_dataset(
            {
                "jurisdiction": "GB",
                "tax_brackets": [{"year": True, "min": 0, "max": None, "rate": 0.2}],
                "national_insurance": [],
                "allowances": [],
            }
        )


def test_class_two_rows_require_weekly_rate() -> None:
    with pytest.raises(ConfigurationError):
        reference_data.parse_reference_dataset(
            {
                "jurisdiction": "GB",
                "tax_brackets": [],
                "national_insurance": [{"year": 2024, "class": 2}],
                "allowances": [],
            }
        )


def test_unknown_deduction_fields_are_rejected(isolated_data_directory: Path) -> None:
    path = isolated_data_directory / "pt.yaml"
    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8"))
    raw["deductions"][0]["housing_max"] = 502
    path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")

    with pytest.raises(ConfigurationError, match="PT"):
        reference_data.load_reference_dataset("PT")
