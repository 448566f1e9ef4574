"""Immutable result models produced by the calculation core."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Literal

from pydantic import Field, computed_field

from netincome.config.schema import ImmutableModel

from .records import ResidencyPeriod

STANDARD_REGIME_LABEL = "Standard"


class SpecialRegimeStatus(ImmutableModel):
    """Preferential-regime window evaluated for a single year."""

    regime: str | None = None
    status: Literal["not_applicable", "active", "expired"] = "not_applicable"
    acquisition_date: date | None = None
    years_active: int = 0
    remaining_years: int = 0
    expires_in_year: int | None = None

    @computed_field
    @property
    def applicable(self) -> bool:
        return self.status != "not_applicable"

    @computed_field
    @property
    def active(self) -> bool:
        return self.status == "active"

    @property
    def label(self) -> str:
        if self.active and self.regime:
            return self.regime
        return STANDARD_REGIME_LABEL


class ResidencyTestResult(ImmutableModel):
    """Outcome of one jurisdiction's domestic residency test."""

    is_resident: bool
    basis: str


class TaxComputationResult(ImmutableModel):
    """Tax breakdown for one income record under one jurisdiction."""

    taxable_income: float = 0.0
    tax_amount: float = 0.0
    social_security: float = 0.0
    surtax: float = 0.0
    is_exempt: bool = False
    tax_type: str
    auxiliary: Mapping[str, float | str] = Field(default_factory=dict)

    @classmethod
    def exempt(cls, tax_type: str, **auxiliary: float | str) -> TaxComputationResult:
        return cls(tax_type=tax_type, is_exempt=True, auxiliary=auxiliary)

    @property
    def total_charges(self) -> float:
        return self.tax_amount + self.social_security + self.surtax

    def net_income(self, gross: float) -> float:
        return gross - self.total_charges


class PeriodAdjustments(ImmutableModel):
    """Annual corrections a jurisdiction applies to a period's totals."""

    foreign_tax_credit: float = 0.0
    unused_foreign_tax_credit: float = 0.0
    minimum_subsistence_adjustment: float = 0.0


class MonthlyResult(ImmutableModel):
    """One income record enriched with its tax treatment."""

    year: int
    month: int
    day: int
    income_type: str
    source_jurisdiction: str
    currency: str
    gross_amount: float
    jurisdiction: str
    local_currency: str
    exchange_rate: float
    local_gross: float
    taxable_income: float
    tax_amount: float
    social_security: float
    surtax: float
    withholding: float
    is_exempt: bool
    tax_type: str
    regime_status: str
    regime_savings: float
    net_income: float


class AnnualSummary(ImmutableModel):
    """Totals for one residency period, in the jurisdiction's currency."""

    year: int
    jurisdiction: str
    currency: str
    start_month: int
    start_day: int
    end_month: int
    end_day: int
    determination_method: str
    regime_status: str
    record_count: int
    gross_income: float
    taxable_income: float
    tax_amount: float
    social_security: float
    surtax: float
    withholding: float
    foreign_tax_credit: float
    unused_foreign_tax_credit: float
    minimum_subsistence_adjustment: float
    regime_savings: float
    net_income: float
    effective_tax_rate: float = 0.0


class AnnualTypeSummary(ImmutableModel):
    """Totals for one residency period and income type."""

    year: int
    jurisdiction: str
    income_type: str
    regime_status: str
    record_count: int
    gross_income: float
    taxable_income: float
    tax_amount: float
    social_security: float
    surtax: float
    net_income: float


class CalculationResult(ImmutableModel):
    """The three result sequences plus the periods that produced them."""

    residency_periods: Sequence[ResidencyPeriod]
    monthly: Sequence[MonthlyResult]
    annual: Sequence[AnnualSummary]
    annual_by_type: Sequence[AnnualTypeSummary]


__all__ = [
    "AnnualSummary",
    "AnnualTypeSummary",
    "CalculationResult",
    "MonthlyResult",
    "PeriodAdjustments",
    "ResidencyTestResult",
    "STANDARD_REGIME_LABEL",
    "SpecialRegimeStatus",
    "TaxComputationResult",
]
