"""Unit coverage for the jurisdiction registry."""

from __future__ import annotations

import pytest

from netincome.errors import UnsupportedJurisdiction
from netincome.jurisdictions import (
    PortugalJurisdiction,
    UnitedKingdomJurisdiction,
    build_registry,
    bundled_registry,
    get_jurisdiction,
)


def test_registry_keyed_by_normalised_code(portugal_data, united_kingdom_data) -> None:
    registry = build_registry({" pt ": portugal_data, "gb": united_kingdom_data})

    assert set(registry) == {"PT", "GB"}
    assert isinstance(registry["PT"], PortugalJurisdiction)
    assert isinstance(get_jurisdiction(registry, "GB"), UnitedKingdomJurisdiction)


def test_registry_is_read_only(registry) -> None:
    with pytest.raises(TypeError):
        registry["FR"] = registry["PT"]  # type: ignore[index]


def test_unknown_dataset_code_is_rejected(portugal_data) -> None:
    with pytest.raises(UnsupportedJurisdiction) as excinfo:
        build_registry({"FR": portugal_data})

    assert excinfo.value.code == "FR"
    assert "available: GB, PT" in str(excinfo.value)


def test_lookup_miss_lists_registered_codes(registry) -> None:
    with pytest.raises(UnsupportedJurisdiction) as excinfo:
        get_jurisdiction(registry, "ES")

    assert excinfo.value.context["available"] == ["GB", "PT"]


def test_bundled_registry_covers_manifest() -> None:
    registry = bundled_registry()

    assert set(registry) == {"GB", "PT"}
    assert bundled_registry() is registry
