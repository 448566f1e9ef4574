"""Evidence derived from location, accommodation and income data.

These helpers are shared by the jurisdiction residency tests and by the
tie-break hierarchy. They read the dataset only; nothing is cached.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date

from netincome.models import (
    Accommodation,
    CalculationDataset,
    IncomeRecord,
    LocationTransition,
    ResidencyTestResult,
)

RESIDENCY_DAY_THRESHOLD = 183


def _ordered(transitions: Iterable[LocationTransition]) -> list[LocationTransition]:
    return sorted(transitions, key=lambda transition: transition.occurred_on)


def presence_by_jurisdiction(
    transitions: Sequence[LocationTransition], year: int
) -> dict[str, int]:
    """Count the days spent in each jurisdiction during ``year``.

    The location on 1 January is the destination of the last earlier
    transition, else the origin of the first transition of the year. A
    transition day counts for its destination. Returns an empty mapping
    when the location cannot be established for the year.
    """

    start = date(year, 1, 1)
    end = date(year, 12, 31)
    ordered = _ordered(transitions)
    earlier = [entry for entry in ordered if entry.occurred_on < start]
    within = [entry for entry in ordered if start <= entry.occurred_on <= end]

    if earlier:
        location = earlier[-1].destination
    elif within:
        location = within[0].origin or within[0].destination
    else:
        return {}

    counts: Counter[str] = Counter()
    cursor = start
    for entry in within:
        if entry.occurred_on > cursor:
            counts[location] += (entry.occurred_on - cursor).days
            cursor = entry.occurred_on
        location = entry.destination
    counts[location] += (end - cursor).days + 1
    return dict(counts)


def days_present(dataset: CalculationDataset, jurisdiction: str, year: int) -> int:
    return presence_by_jurisdiction(dataset.location_transitions, year).get(jurisdiction, 0)


def has_residence_entry(dataset: CalculationDataset, jurisdiction: str, year: int) -> bool:
    return any(
        entry.kind == "residence"
        and entry.destination == jurisdiction
        and entry.occurred_on.year == year
        for entry in dataset.location_transitions
    )


def has_permanent_home(accommodation: Iterable[Accommodation], jurisdiction: str, year: int) -> bool:
    return any(
        entry.permanent and entry.jurisdiction == jurisdiction and entry.year == year
        for entry in accommodation
    )


def income_share(records: Iterable[IncomeRecord], jurisdiction: str, year: int) -> float:
    """Percentage (0-100) of the year's income records sourced in ``jurisdiction``."""

    in_year = [record for record in records if record.year == year]
    if not in_year:
        return 0.0
    sourced = sum(1 for record in in_year if record.source_jurisdiction == jurisdiction)
    return 100.0 * sourced / len(in_year)


def presence_test(
    dataset: CalculationDataset,
    jurisdiction: str,
    year: int,
    *,
    habitual_residence: bool = False,
    domestic_income_only: bool = False,
) -> ResidencyTestResult:
    """Apply the day-count test, falling back to income presence.

    With ``habitual_residence`` a ``residence`` entry in the jurisdiction
    during the year also establishes residency. The income fallback is used
    only when no location data covers the year; ``domestic_income_only``
    restricts it to income sourced in the jurisdiction.
    """

    presence = presence_by_jurisdiction(dataset.location_transitions, year)
    if presence:
        days = presence.get(jurisdiction, 0)
        if days >= RESIDENCY_DAY_THRESHOLD:
            return ResidencyTestResult(is_resident=True, basis="days-present")
        if habitual_residence and has_residence_entry(dataset, jurisdiction, year):
            return ResidencyTestResult(is_resident=True, basis="habitual-residence")
        return ResidencyTestResult(is_resident=False, basis="insufficient-presence")

    records = dataset.records_for_year(year)
    if domestic_income_only:
        records = tuple(record for record in records if record.source_jurisdiction == jurisdiction)
    if records:
        return ResidencyTestResult(is_resident=True, basis="income-presence")
    return ResidencyTestResult(is_resident=False, basis="no-income")


__all__ = [
    "RESIDENCY_DAY_THRESHOLD",
    "days_present",
    "has_permanent_home",
    "has_residence_entry",
    "income_share",
    "presence_by_jurisdiction",
    "presence_test",
]
