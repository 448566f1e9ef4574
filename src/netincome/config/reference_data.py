"""Reference dataset loader wrapping the shared schema models."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Sequence

import yaml
from pydantic import TypeAdapter, ValidationError

from .schema import (
    ConfigurationError,
    ManifestEntry,
    PortugalReferenceData,
    ReferenceDataset,
    ReferenceManifest,
    UnitedKingdomReferenceData,
)

_LOGGER = logging.getLogger(__name__)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"

_DATASET_ADAPTER: TypeAdapter[PortugalReferenceData | UnitedKingdomReferenceData] = TypeAdapter(
    ReferenceDataset
)


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> ReferenceManifest:
    """Load and cache the reference data manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Reference data manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return ReferenceManifest.model_validate(raw_manifest)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


def manifest_entries() -> Sequence[ManifestEntry]:
    """Expose the configured manifest entries."""

    return load_manifest().jurisdictions


def parse_reference_dataset(
    raw: Mapping[str, Any], code: str | None = None
) -> PortugalReferenceData | UnitedKingdomReferenceData:
    """Validate ``raw`` tables into the dataset model for its jurisdiction."""

    payload = dict(raw)
    if code is not None:
        payload.setdefault("jurisdiction", code)

    try:
        return _DATASET_ADAPTER.validate_python(payload)
    except ValidationError as error:
        label = payload.get("jurisdiction", "unknown")
        raise ConfigurationError(
            f"Reference data validation failed for {label}: {error}"
        ) from error


@lru_cache(maxsize=8)
def load_reference_dataset(code: str) -> PortugalReferenceData | UnitedKingdomReferenceData:
    """Load the bundled reference tables for jurisdiction ``code``."""

    normalised = code.strip().upper()
    try:
        entry = load_manifest().get_entry(normalised)
    except KeyError as exc:
        raise FileNotFoundError(
            f"Reference data for {normalised} not declared in manifest"
        ) from exc

    data_file = CONFIG_DIRECTORY / entry.resolved_filename
    if not data_file.exists():
        raise FileNotFoundError(
            f"Reference data file for {normalised} missing: {data_file.name}"
        )

    dataset = parse_reference_dataset(_load_yaml(data_file), normalised)
    if dataset.jurisdiction != normalised:
        raise ConfigurationError(
            f"Reference data jurisdiction mismatch: expected {normalised}, "
            f"found {dataset.jurisdiction}"
        )

    _LOGGER.debug("Loaded reference data for %s from %s", normalised, data_file.name)
    return dataset


def available_jurisdictions() -> Sequence[str]:
    """Return the jurisdiction codes declared in the manifest."""

    return load_manifest().supported_jurisdictions


def load_reference_datasets(
    codes: Sequence[str] | None = None,
) -> Mapping[str, PortugalReferenceData | UnitedKingdomReferenceData]:
    """Return a read-only mapping of code to dataset for ``codes``."""

    targets = codes or available_jurisdictions()
    return MappingProxyType({code: load_reference_dataset(code) for code in targets})


__all__ = [
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "MANIFEST_FILE",
    "available_jurisdictions",
    "load_manifest",
    "load_reference_dataset",
    "load_reference_datasets",
    "manifest_entries",
    "parse_reference_dataset",
]
