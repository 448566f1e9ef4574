"""Capability contract every supported tax jurisdiction implements.

The residency orchestrator and the period calculator depend only on this
protocol. Implementations are registered explicitly by code; there is no
base class to inherit behaviour from and no fallback jurisdiction.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Literal, Mapping, Protocol, Sequence, runtime_checkable

from pydantic import Field

from netincome.config.schema import ImmutableModel
from netincome.models import (
    CalculationDataset,
    IncomeRecord,
    PeriodAdjustments,
    ResidencyTestResult,
    SpecialRegimeStatus,
    TaxComputationResult,
)


class TaxOptions(ImmutableModel):
    """Per-record context handed to ``calculate_tax``."""

    year: int
    source_jurisdiction: str
    special_regime: SpecialRegimeStatus = Field(default_factory=SpecialRegimeStatus)
    freelance_type: Literal["services", "goods"] = "services"
    expenses: float = Field(default=0.0, ge=0)
    aggregation_election: bool = False
    region: str | None = None
    personal_allowance: float | None = Field(default=None, ge=0)

    @classmethod
    def for_record(
        cls,
        record: IncomeRecord,
        special_regime: SpecialRegimeStatus,
        personal_allowance: float | None = None,
    ) -> TaxOptions:
        return cls(
            year=record.year,
            source_jurisdiction=record.source_jurisdiction,
            special_regime=special_regime,
            freelance_type=record.freelance_type,
            expenses=record.documented_expenses,
            aggregation_election=record.aggregation_election,
            region=record.region,
            personal_allowance=personal_allowance,
        )


@runtime_checkable
class Jurisdiction(Protocol):
    """Tax rules, residency tests and tie-break inputs for one jurisdiction."""

    code: str
    name: str
    special_regime_name: str | None

    @property
    def currency(self) -> str: ...

    def test_residency(self, year: int, dataset: CalculationDataset) -> ResidencyTestResult: ...

    def has_permanent_home(self, year: int, dataset: CalculationDataset) -> bool: ...

    def vital_interests_strength(self, year: int, dataset: CalculationDataset) -> float: ...

    def calculate_tax(
        self, gross_amount: float, income_type: str, options: TaxOptions
    ) -> TaxComputationResult: ...

    def special_regime_status(
        self, acquisition_date: date | None, year: int
    ) -> SpecialRegimeStatus: ...

    def allocate_personal_allowance(
        self, year: int, entries: Sequence[tuple[IncomeRecord, float]]
    ) -> tuple[float | None, ...]:
        """Share of a period-wide allowance for each (record, local gross) pair.

        ``None`` leaves the record to the per-record rules.
        """
        ...

    def social_security_amount(self, gross_amount: float, income_type: str, year: int) -> float:
        """Contributions due on ``gross_amount``; the same for every freelance activity."""
        ...

    def withholding_rate(self, year: int, source_jurisdiction: str, income_type: str) -> float: ...

    def standard_tax_on_income(self, gross_amount: float, year: int) -> float: ...

    def period_adjustments(
        self,
        year: int,
        *,
        net_income: float,
        total_income: float,
        foreign_income: float,
        total_tax: float,
        foreign_tax_paid: float,
    ) -> PeriodAdjustments: ...

    def describe(self) -> Mapping[str, Any]: ...


__all__ = ["Jurisdiction", "TaxOptions"]
