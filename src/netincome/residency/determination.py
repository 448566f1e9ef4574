"""Per-year tax residency determination.

For every year referenced by the dataset, in ascending order:

1. A manual override wins outright.
2. Exactly one permanent relocation in the year splits it into two periods
   at the transition date. More than one relocation cannot be resolved
   automatically and requires a manual override.
3. Otherwise every registered jurisdiction runs its residency test. One
   claim wins; several claims go through the OECD tie-break hierarchy
   (permanent home, centre of vital interests, habitual abode).

Years are independent: nothing computed for one year feeds the next.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import date, timedelta

from netincome.errors import UnresolvedResidency, ensure_year
from netincome.jurisdictions.base import Jurisdiction
from netincome.models import (
    CalculationDataset,
    DeterminationMethod,
    LocationTransition,
    ResidencyPeriod,
)

from . import evidence

_LOGGER = logging.getLogger(__name__)


def _is_reversal(first: LocationTransition, second: LocationTransition) -> bool:
    """Whether ``second`` brings the person back within the same tax year."""

    return (
        second.kind == "travel"
        and second.occurred_on.year == first.occurred_on.year
        and second.origin == first.destination
        and second.destination == first.origin
    )


def detect_relocations(
    transitions: Sequence[LocationTransition], year: int
) -> list[LocationTransition]:
    """Return the permanent relocations dated within ``year``.

    A relocation is a travel transition whose origin and destination differ
    and which the immediately following transition does not reverse in the
    same year. A reversed pair is a round trip and neither leg counts; a
    return in a later year is a relocation of its own.
    """

    ordered = sorted(
        (entry for entry in transitions if entry.is_relocation),
        key=lambda entry: entry.occurred_on,
    )
    relocations: list[LocationTransition] = []
    index = 0
    while index < len(ordered):
        current = ordered[index]
        following = ordered[index + 1] if index + 1 < len(ordered) else None
        if following is not None and _is_reversal(current, following):
            index += 2
            continue
        if current.occurred_on.year == year:
            relocations.append(current)
        index += 1
    return relocations


def split_year_periods(relocation: LocationTransition) -> tuple[ResidencyPeriod, ...]:
    """Partition the relocation year at the transition date.

    The origin governs through the day before the move and the destination
    from the move itself. A move on 1 January leaves a single period.
    """

    moved_on = relocation.occurred_on
    year = moved_on.year
    basis = f"relocation {relocation.origin}->{relocation.destination} on {moved_on.isoformat()}"

    if moved_on == date(year, 1, 1):
        return (
            ResidencyPeriod(
                year=year,
                jurisdiction=relocation.destination,
                method=DeterminationMethod.AUTOMATIC,
                basis=basis,
            ),
        )

    last_day = moved_on - timedelta(days=1)
    return (
        ResidencyPeriod(
            year=year,
            jurisdiction=relocation.origin,
            end_month=last_day.month,
            end_day=last_day.day,
            method=DeterminationMethod.AUTOMATIC,
            basis=basis,
            split_year=True,
        ),
        ResidencyPeriod(
            year=year,
            jurisdiction=relocation.destination,
            start_month=moved_on.month,
            start_day=moved_on.day,
            method=DeterminationMethod.AUTOMATIC,
            basis=basis,
            split_year=True,
        ),
    )


def _strict_winner(scores: Mapping[str, float]) -> str | None:
    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    if len(ranked) == 1 or ranked[0][1] > ranked[1][1]:
        return ranked[0][0]
    return None


class ResidencyDetermination:
    """Resolve one or more residency periods per year from the registry."""

    def __init__(self, registry: Mapping[str, Jurisdiction]) -> None:
        self._registry = registry

    def determine(
        self, dataset: CalculationDataset, years: Iterable[int] | None = None
    ) -> dict[int, tuple[ResidencyPeriod, ...]]:
        """Return residency periods keyed by year, in ascending year order.

        ``years`` defaults to every year the dataset references.
        """

        selected = dataset.years() if years is None else sorted(set(years))
        periods: dict[int, tuple[ResidencyPeriod, ...]] = {}
        for year in selected:
            ensure_year(year)
            periods[year] = self.determine_year(year, dataset)
            for period in periods[year]:
                _LOGGER.info(
                    "Residency %s for %s (%s to %s) via %s",
                    period.jurisdiction,
                    year,
                    period.start_date.isoformat(),
                    period.end_date.isoformat(),
                    period.method.value,
                )
        return periods

    def determine_year(self, year: int, dataset: CalculationDataset) -> tuple[ResidencyPeriod, ...]:
        manual = dataset.manual_residency.get(year)
        if manual:
            return tuple(sorted(manual, key=lambda period: period.start_date))

        relocations = detect_relocations(dataset.location_transitions, year)
        if len(relocations) == 1:
            return split_year_periods(relocations[0])
        if len(relocations) > 1:
            moves = [
                f"{entry.origin}->{entry.destination} on {entry.occurred_on.isoformat()}"
                for entry in relocations
            ]
            raise UnresolvedResidency(
                year,
                sorted({entry.destination for entry in relocations} | {entry.origin for entry in relocations}),
                reason=f"{len(relocations)} relocations detected ({'; '.join(moves)})",
            )

        return (self._automatic(year, dataset),)

    def _automatic(self, year: int, dataset: CalculationDataset) -> ResidencyPeriod:
        claims = {}
        for code, jurisdiction in self._registry.items():
            result = jurisdiction.test_residency(year, dataset)
            _LOGGER.debug("Residency test %s %s: %s (%s)", code, year, result.is_resident, result.basis)
            if result.is_resident:
                claims[code] = result

        if not claims:
            raise UnresolvedResidency(year, reason="no jurisdiction claims the taxpayer")

        if len(claims) == 1:
            code, result = next(iter(claims.items()))
            return ResidencyPeriod(
                year=year,
                jurisdiction=code,
                method=DeterminationMethod.AUTOMATIC,
                basis=result.basis,
            )

        return self._tie_break(year, dataset, tuple(claims))

    def _tie_break(
        self, year: int, dataset: CalculationDataset, candidates: tuple[str, ...]
    ) -> ResidencyPeriod:
        tiers: Sequence[tuple[DeterminationMethod, Callable[[], str | None]]] = (
            (DeterminationMethod.PERMANENT_HOME, lambda: self._permanent_home(year, dataset, candidates)),
            (
                DeterminationMethod.VITAL_INTERESTS,
                lambda: _strict_winner(
                    {
                        code: self._registry[code].vital_interests_strength(year, dataset)
                        for code in candidates
                    }
                ),
            ),
            (
                DeterminationMethod.HABITUAL_ABODE,
                lambda: _strict_winner(
                    {code: float(evidence.days_present(dataset, code, year)) for code in candidates}
                ),
            ),
        )

        for method, tier in tiers:
            winner = tier()
            if winner is not None:
                return ResidencyPeriod(
                    year=year,
                    jurisdiction=winner,
                    method=method,
                    basis=method.value,
                    dual_residency_candidates=candidates,
                )
            _LOGGER.debug("Tie-break tier %s inconclusive for %s", method.value, year)

        raise UnresolvedResidency(year, candidates, reason="tie-break hierarchy exhausted")

    def _permanent_home(
        self, year: int, dataset: CalculationDataset, candidates: tuple[str, ...]
    ) -> str | None:
        with_home = [
            code for code in candidates if self._registry[code].has_permanent_home(year, dataset)
        ]
        if len(with_home) == 1:
            return with_home[0]
        return None


def determine_residency(
    dataset: CalculationDataset,
    registry: Mapping[str, Jurisdiction],
    years: Iterable[int] | None = None,
) -> dict[int, tuple[ResidencyPeriod, ...]]:
    """Convenience wrapper around :class:`ResidencyDetermination`."""

    return ResidencyDetermination(registry).determine(dataset, years)


__all__ = [
    "ResidencyDetermination",
    "detect_relocations",
    "determine_residency",
    "split_year_periods",
]
