"""United Kingdom income tax and National Insurance."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any, Callable, Mapping

from netincome.config.schema import TaxBracketRow, UnitedKingdomReferenceData
from netincome.engine.brackets import Bracket, compute_bracket_tax, shift_brackets
from netincome.engine.credits import compute_foreign_tax_credit, withholding_rate
from netincome.engine.temporal import latest_year, resolve_group
from netincome.errors import MissingReferenceData, UnsupportedIncomeType, ensure_year
from netincome.jurisdictions.base import TaxOptions
from netincome.models import (
    CalculationDataset,
    IncomeRecord,
    PeriodAdjustments,
    ResidencyTestResult,
    SpecialRegimeStatus,
    TaxComputationResult,
)
from netincome.residency import evidence

from .allowances import (
    allocate_personal_allowance,
    allowance_row,
    dividend_allowance,
    personal_allowance,
    personal_savings_allowance,
    trading_allowance,
)
from .national_insurance import employment_contributions, self_employed_contributions


class UnitedKingdomJurisdiction:
    """Tax rules and residency tests for the United Kingdom.

    Income bands are stated on gross income and shifted down by the
    standard personal allowance; the (possibly tapered) allowance is then
    removed from gross before the shifted bands apply. Within a calculation
    period the allowance is shared across records rather than granted to
    each record in full.
    """

    code = "GB"
    special_regime_name: str | None = None
    income_types = ("employment", "pension", "freelance", "dividend", "interest")

    def __init__(self, reference_data: UnitedKingdomReferenceData | None) -> None:
        if reference_data is None:
            raise MissingReferenceData("reference_data", jurisdiction=self.code)
        self._data = reference_data
        self.name = reference_data.name

    @property
    def currency(self) -> str:
        return self._data.currency

    @property
    def reference_data(self) -> UnitedKingdomReferenceData:
        return self._data

    def test_residency(self, year: int, dataset: CalculationDataset) -> ResidencyTestResult:
        return evidence.presence_test(dataset, self.code, year, domestic_income_only=True)

    def has_permanent_home(self, year: int, dataset: CalculationDataset) -> bool:
        return evidence.has_permanent_home(dataset.accommodation, self.code, year)

    def vital_interests_strength(self, year: int, dataset: CalculationDataset) -> float:
        return evidence.income_share(dataset.income_records, self.code, year)

    def special_regime_status(
        self, acquisition_date: date | None, year: int
    ) -> SpecialRegimeStatus:
        ensure_year(year)
        return SpecialRegimeStatus()

    def _bands(self, year: int, income_type: str, region: str | None) -> tuple[TaxBracketRow, ...]:
        rows = [row for row in self._data.tax_brackets if row.income_type == income_type]
        regional = [row for row in rows if region and row.region == region]
        selected = regional or [row for row in rows if row.region is None]
        return resolve_group(
            selected,
            year,
            table_name=f"tax_brackets:{income_type}",
            jurisdiction=self.code,
        )

    def _income_brackets(self, year: int, region: str | None) -> tuple[Bracket, ...]:
        standard_allowance = allowance_row(year, self._data).personal_allowance
        return shift_brackets(self._bands(year, "income", region), standard_allowance)

    def _income_tax(self, amount: float, year: int, region: str | None) -> float:
        return compute_bracket_tax(amount, self._income_brackets(year, region))

    def _personal_allowance(self, gross: float, options: TaxOptions) -> float:
        if options.personal_allowance is not None:
            return options.personal_allowance
        return personal_allowance(gross, options.year, self._data)

    def _allowance_claim(self, record: IncomeRecord, gross: float, year: int) -> float:
        """Part of ``record`` the personal allowance may offset."""

        if record.income_type == "freelance":
            deduction = max(record.documented_expenses, trading_allowance(gross, year, self._data))
            return gross - deduction
        if record.income_type == "interest":
            bands = self._bands(year, "income", record.region)
            return gross - personal_savings_allowance(gross, year, self._data, bands)
        if record.income_type == "dividend":
            return gross - dividend_allowance(gross, year, self._data)
        return gross

    def allocate_personal_allowance(
        self, year: int, entries: Sequence[tuple[IncomeRecord, float]]
    ) -> tuple[float | None, ...]:
        """One allowance per period, tapered on the period's total income."""

        year = ensure_year(year)
        claims = [
            (record.income_type, self._allowance_claim(record, gross, year))
            for record, gross in entries
        ]
        total_income = sum(gross for _, gross in entries)
        return tuple(allocate_personal_allowance(total_income, claims, year, self._data))

    def calculate_tax(
        self, gross_amount: float, income_type: str, options: TaxOptions
    ) -> TaxComputationResult:
        handlers: Mapping[str, Callable[[float, TaxOptions], TaxComputationResult]] = {
            "employment": self._employment_tax,
            "pension": self._pension_tax,
            "freelance": self._freelance_tax,
            "dividend": self._dividend_tax,
            "interest": self._interest_tax,
        }
        handler = handlers.get(income_type)
        if handler is None:
            raise UnsupportedIncomeType(income_type, self.code)
        ensure_year(options.year)
        return handler(gross_amount, options)

    def _earnings_tax(
        self, gross: float, options: TaxOptions, social_security: float
    ) -> TaxComputationResult:
        allowance = self._personal_allowance(gross, options)
        taxable = max(0.0, gross - allowance)
        return TaxComputationResult(
            taxable_income=taxable,
            tax_amount=self._income_tax(taxable, options.year, options.region),
            social_security=social_security,
            tax_type="PROGRESSIVE",
            auxiliary={"personal_allowance": allowance},
        )

    def _employment_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        return self._earnings_tax(
            gross, options, employment_contributions(gross, options.year, self._data)
        )

    def _pension_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        return self._earnings_tax(gross, options, 0.0)

    def _freelance_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        year = options.year
        allowance = trading_allowance(gross, year, self._data)
        deduction = max(options.expenses, allowance)
        profits = max(0.0, gross - deduction)
        personal = self._personal_allowance(gross, options)
        taxable = max(0.0, profits - personal)
        contributions = self_employed_contributions(profits, year, self._data)
        return TaxComputationResult(
            taxable_income=taxable,
            tax_amount=self._income_tax(taxable, year, options.region),
            social_security=contributions.total,
            tax_type=f"FREELANCE_{options.freelance_type.upper()}",
            auxiliary={
                "personal_allowance": personal,
                "trading_allowance": allowance if deduction == allowance else 0.0,
                "expenses": options.expenses if deduction == options.expenses else 0.0,
                "class2_ni": contributions.class2,
                "class4_ni": contributions.class4,
            },
        )

    def _dividend_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        year = options.year
        allowance = dividend_allowance(gross, year, self._data)
        # Only an allocated share of the personal allowance reaches dividends.
        personal = options.personal_allowance or 0.0
        taxable = max(0.0, gross - allowance - personal)
        return TaxComputationResult(
            taxable_income=taxable,
            tax_amount=compute_bracket_tax(taxable, self._bands(year, "dividend", options.region)),
            tax_type="DIVIDEND",
            auxiliary={"dividend_allowance": allowance, "personal_allowance": personal},
        )

    def _interest_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        year = options.year
        savings = personal_savings_allowance(
            gross, year, self._data, self._bands(year, "income", options.region)
        )
        personal = self._personal_allowance(gross, options)
        taxable = max(0.0, gross - savings - personal)
        return TaxComputationResult(
            taxable_income=taxable,
            tax_amount=self._income_tax(taxable, year, options.region),
            tax_type="INTEREST",
            auxiliary={"personal_savings_allowance": savings, "personal_allowance": personal},
        )

    def social_security_amount(self, gross_amount: float, income_type: str, year: int) -> float:
        if income_type not in self.income_types:
            raise UnsupportedIncomeType(income_type, self.code)
        if income_type == "employment":
            return employment_contributions(gross_amount, year, self._data)
        if income_type == "freelance":
            return self_employed_contributions(gross_amount, year, self._data).total
        return 0.0

    def withholding_rate(self, year: int, source_jurisdiction: str, income_type: str) -> float:
        return withholding_rate(
            self._data.foreign_tax_credit,
            year,
            source_jurisdiction,
            income_type,
            jurisdiction=self.code,
        )

    def standard_tax_on_income(self, gross_amount: float, year: int) -> float:
        year = ensure_year(year)
        taxable = max(0.0, gross_amount - personal_allowance(gross_amount, year, self._data))
        return self._income_tax(taxable, year, None)

    def period_adjustments(
        self,
        year: int,
        *,
        net_income: float,
        total_income: float,
        foreign_income: float,
        total_tax: float,
        foreign_tax_paid: float,
    ) -> PeriodAdjustments:
        credit = compute_foreign_tax_credit(total_income, foreign_income, total_tax, foreign_tax_paid)
        return PeriodAdjustments(
            foreign_tax_credit=credit.allowed_credit,
            unused_foreign_tax_credit=credit.unused_credit,
        )

    def describe(self) -> Mapping[str, Any]:
        regions: Sequence[str] = sorted(
            {row.region for row in self._data.tax_brackets if row.region}
        )
        return {
            "code": self.code,
            "name": self.name,
            "currency": self.currency,
            "special_regime": self.special_regime_name,
            "income_types": list(self.income_types),
            "latest_bracket_year": latest_year(self._data.tax_brackets),
            "regions": list(regions),
        }


__all__ = ["UnitedKingdomJurisdiction"]
