"""Unit coverage for per-year residency determination."""

from __future__ import annotations

from typing import Any

import pytest

from netincome.errors import UnresolvedResidency
from netincome.jurisdictions import JurisdictionRegistry, build_registry
from netincome.models import (
    Accommodation,
    CalculationDataset,
    DeterminationMethod,
    LocationTransition,
)
from netincome.residency.determination import (
    ResidencyDetermination,
    detect_relocations,
    determine_residency,
    split_year_periods,
)


def _transition(when: str, origin: str | None, destination: str, kind: str = "travel"):
    return LocationTransition.model_validate(
        {"date": when, "origin": origin, "destination": destination, "kind": kind}
    )


def _dataset(make_record, sources: list[str], **extra: Any) -> CalculationDataset:
    return CalculationDataset(
        income_records=[make_record(source_jurisdiction=source) for source in sources],
        **extra,
    )


def test_manual_override_skips_automatic_logic(make_record, registry: JurisdictionRegistry) -> None:
    dataset = _dataset(
        make_record,
        ["PT"],
        manual_residency={2024: {"year": 2024, "jurisdiction": "GB"}},
    )

    periods = determine_residency(dataset, registry)

    assert [period.jurisdiction for period in periods[2024]] == ["GB"]
    assert periods[2024][0].method is DeterminationMethod.MANUAL


def test_single_claim_is_automatic(make_record, registry: JurisdictionRegistry) -> None:
    dataset = _dataset(make_record, ["PT"])

    (period,) = ResidencyDetermination(registry).determine_year(2024, dataset)

    assert period.jurisdiction == "PT"
    assert period.method is DeterminationMethod.AUTOMATIC
    assert period.basis == "income-presence"
    assert period.is_full_year


def test_day_count_claim(make_record, registry: JurisdictionRegistry) -> None:
    dataset = _dataset(
        make_record,
        ["PT", "GB"],
        location_transitions=[_transition("2023-11-20", "PT", "GB")],
    )

    (period,) = determine_residency(dataset, registry, [2024])[2024]

    assert period.jurisdiction == "GB"
    assert period.basis == "days-present"


def test_no_claims_is_unresolved(make_record, united_kingdom_data) -> None:
    registry = build_registry({"GB": united_kingdom_data})
    dataset = _dataset(make_record, ["PT"])

    with pytest.raises(UnresolvedResidency) as excinfo:
        determine_residency(dataset, registry)

    assert "no jurisdiction claims" in str(excinfo.value)
    assert "manual residency override" in str(excinfo.value)


def test_permanent_home_wins_regardless_of_other_ties(
    make_record, registry: JurisdictionRegistry
) -> None:
    # Portugal has the stronger economic ties, only the UK has a home.
    dataset = _dataset(
        make_record,
        ["PT", "PT", "PT", "GB"],
        accommodation=[Accommodation(year=2024, jurisdiction="GB")],
    )

    (period,) = determine_residency(dataset, registry)[2024]

    assert period.jurisdiction == "GB"
    assert period.method is DeterminationMethod.PERMANENT_HOME
    assert set(period.dual_residency_candidates) == {"PT", "GB"}


def test_vital_interests_break_home_tie(make_record, registry: JurisdictionRegistry) -> None:
    dataset = _dataset(
        make_record,
        ["PT", "GB", "GB"],
        accommodation=[
            Accommodation(year=2024, jurisdiction="GB"),
            Accommodation(year=2024, jurisdiction="PT"),
        ],
    )

    (period,) = determine_residency(dataset, registry)[2024]

    assert period.jurisdiction == "GB"
    assert period.method is DeterminationMethod.VITAL_INTERESTS


def test_habitual_abode_breaks_remaining_tie(make_record, registry: JurisdictionRegistry) -> None:
    dataset = _dataset(
        make_record,
        ["PT", "GB"],
        location_transitions=[
            _transition("2023-01-01", None, "GB", kind="residence"),
            _transition("2024-08-01", None, "PT", kind="residence"),
        ],
        accommodation=[
            Accommodation(year=2024, jurisdiction="GB"),
            Accommodation(year=2024, jurisdiction="PT"),
        ],
    )

    (period,) = determine_residency(dataset, registry, [2024])[2024]

    assert period.jurisdiction == "GB"
    assert period.method is DeterminationMethod.HABITUAL_ABODE


def test_exhausted_tie_break_names_candidates(make_record, registry: JurisdictionRegistry) -> None:
    dataset = _dataset(make_record, ["PT", "GB"])

    with pytest.raises(UnresolvedResidency) as excinfo:
        determine_residency(dataset, registry)

    error = excinfo.value
    assert set(error.candidates) == {"PT", "GB"}
    assert "Dual resident in:" in str(error)
    assert error.context["year"] == 2024


def test_split_year_on_single_relocation(make_record, registry: JurisdictionRegistry) -> None:
    dataset = _dataset(
        make_record,
        ["GB"],
        location_transitions=[_transition("2024-07-01", "GB", "PT")],
    )

    first, second = determine_residency(dataset, registry)[2024]

    assert (first.jurisdiction, first.start_date.isoformat(), first.end_date.isoformat()) == (
        "GB",
        "2024-01-01",
        "2024-06-30",
    )
    assert (second.jurisdiction, second.start_date.isoformat(), second.end_date.isoformat()) == (
        "PT",
        "2024-07-01",
        "2024-12-31",
    )
    assert first.split_year and second.split_year
    assert first.method is DeterminationMethod.AUTOMATIC


def test_relocation_on_first_day_keeps_single_period() -> None:
    periods = split_year_periods(_transition("2024-01-01", "GB", "PT"))

    assert len(periods) == 1
    assert periods[0].jurisdiction == "PT"
    assert periods[0].is_full_year


def test_reversed_trip_is_not_a_relocation() -> None:
    transitions = [
        _transition("2024-03-01", "PT", "GB"),
        _transition("2024-03-10", "GB", "PT"),
        _transition("2024-05-02", "PT", "PT", kind="residence"),
    ]
    assert detect_relocations(transitions, 2024) == []


def test_return_years_later_is_its_own_relocation() -> None:
    transitions = [
        _transition("2024-06-01", "GB", "PT"),
        _transition("2027-03-01", "PT", "GB"),
    ]

    (outbound,) = detect_relocations(transitions, 2024)
    (inbound,) = detect_relocations(transitions, 2027)

    assert (outbound.origin, outbound.destination) == ("GB", "PT")
    assert (inbound.origin, inbound.destination) == ("PT", "GB")
    assert detect_relocations(transitions, 2025) == []


def test_move_stands_when_reversed_in_a_later_year(
    make_record, registry: JurisdictionRegistry
) -> None:
    dataset = _dataset(
        make_record,
        ["GB"],
        location_transitions=[
            _transition("2024-06-01", "GB", "PT"),
            _transition("2027-03-01", "PT", "GB"),
        ],
    )

    first, second = determine_residency(dataset, registry, [2024])[2024]

    assert (first.jurisdiction, first.end_date.isoformat()) == ("GB", "2024-05-31")
    assert (second.jurisdiction, second.start_date.isoformat()) == ("PT", "2024-06-01")


def test_relocation_followed_by_holiday() -> None:
    transitions = [
        _transition("2024-04-01", "GB", "PT"),
        _transition("2024-08-01", "PT", "ES"),
        _transition("2024-08-15", "ES", "PT"),
    ]

    relocations = detect_relocations(transitions, 2024)

    assert [entry.destination for entry in relocations] == ["PT"]


def test_multiple_relocations_require_manual_override(
    make_record, registry: JurisdictionRegistry
) -> None:
    dataset = _dataset(
        make_record,
        ["PT"],
        location_transitions=[
            _transition("2024-03-01", "PT", "GB"),
            _transition("2024-09-01", "GB", "ES"),
        ],
    )

    with pytest.raises(UnresolvedResidency) as excinfo:
        determine_residency(dataset, registry)

    assert "2 relocations" in str(excinfo.value)

    overridden = _dataset(
        make_record,
        ["PT"],
        location_transitions=dataset.location_transitions,
        manual_residency={2024: [{"year": 2024, "jurisdiction": "PT"}]},
    )
    assert determine_residency(overridden, registry)[2024][0].method is DeterminationMethod.MANUAL


def test_years_processed_in_ascending_order(make_record, registry: JurisdictionRegistry) -> None:
    dataset = CalculationDataset(
        income_records=[
            make_record(year=2025, source_jurisdiction="PT"),
            make_record(year=2024, source_jurisdiction="PT"),
        ]
    )

    periods = determine_residency(dataset, registry)

    assert list(periods) == [2024, 2025]


def test_residency_logged_at_info(make_record, registry, caplog: pytest.LogCaptureFixture) -> None:
    dataset = _dataset(make_record, ["PT"])

    with caplog.at_level("INFO", logger="netincome.residency.determination"):
        determine_residency(dataset, registry)

    assert "Residency PT for 2024" in caplog.text
