"""UK National Insurance contributions."""

from __future__ import annotations

from dataclasses import dataclass

from netincome.config.schema import NationalInsuranceRow, UnitedKingdomReferenceData
from netincome.engine.brackets import Bracket, compute_bracket_tax, threshold_brackets
from netincome.engine.temporal import resolve, resolve_group


@dataclass(frozen=True, slots=True)
class SelfEmployedContributions:
    class2: float
    class4: float

    @property
    def total(self) -> float:
        return self.class2 + self.class4


def _class_rows(data: UnitedKingdomReferenceData, ni_class: int) -> list[NationalInsuranceRow]:
    return [row for row in data.national_insurance if row.ni_class == ni_class]


def _class_bands(data: UnitedKingdomReferenceData, ni_class: int, year: int) -> tuple[Bracket, ...]:
    rows = resolve_group(
        _class_rows(data, ni_class),
        year,
        table_name=f"national_insurance:class{ni_class}",
        jurisdiction="GB",
    )
    return threshold_brackets([(row.threshold, row.rate) for row in rows])


def employment_contributions(gross_amount: float, year: int, data: UnitedKingdomReferenceData) -> float:
    """Class 1 primary contributions on employment earnings."""

    return compute_bracket_tax(gross_amount, _class_bands(data, 1, year))


def self_employed_contributions(
    profits: float, year: int, data: UnitedKingdomReferenceData
) -> SelfEmployedContributions:
    """Class 2 flat weekly charge above the small profits threshold plus class 4."""

    class2_row = resolve(
        _class_rows(data, 2), year, table_name="national_insurance:class2", jurisdiction="GB"
    )
    class2 = 0.0
    if profits > (class2_row.small_profits_threshold or 0.0):
        class2 = (class2_row.weekly_rate or 0.0) * 52
    class4 = compute_bracket_tax(profits, _class_bands(data, 4, year))
    return SelfEmployedContributions(class2=class2, class4=class4)


__all__ = ["SelfEmployedContributions", "employment_contributions", "self_employed_contributions"]
