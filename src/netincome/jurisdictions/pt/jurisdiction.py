"""Portuguese personal income tax (IRS) with the NHR preferential regime."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Mapping, Sequence

from netincome.config.schema import PortugalReferenceData, SpecialRegimeRow
from netincome.engine.brackets import compute_bracket_tax
from netincome.engine.credits import compute_foreign_tax_credit, withholding_rate
from netincome.engine.regime import regime_status
from netincome.engine.temporal import latest_year, resolve, resolve_group
from netincome.engine.utils import rate_label
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

from .deductions import calculate_specific_deduction, freelance_taxable_base
from .social_security import calculate_social_security
from .solidarity import calculate_solidarity_tax
from .subsistence import minimum_subsistence_adjustment

_LOGGER = logging.getLogger(__name__)

PROGRESSIVE_LABEL = "PROGRESSIVE"
AGGREGATED_PROGRESSIVE_LABEL = "AGGREGATED_PROGRESSIVE"


class PortugalJurisdiction:
    """Tax rules and residency tests for Portugal."""

    code = "PT"
    special_regime_name: str | None = "NHR"
    income_types = ("employment", "freelance", "dividend")

    def __init__(self, reference_data: PortugalReferenceData | None) -> None:
        if reference_data is None:
            raise MissingReferenceData("reference_data", jurisdiction=self.code)
        self._data = reference_data
        self.name = reference_data.name

    @property
    def currency(self) -> str:
        return self._data.currency

    @property
    def reference_data(self) -> PortugalReferenceData:
        return self._data

    # Residency -----------------------------------------------------------------

    def test_residency(self, year: int, dataset: CalculationDataset) -> ResidencyTestResult:
        return evidence.presence_test(dataset, self.code, year, habitual_residence=True)

    def has_permanent_home(self, year: int, dataset: CalculationDataset) -> bool:
        return evidence.has_permanent_home(dataset.accommodation, self.code, year)

    def vital_interests_strength(self, year: int, dataset: CalculationDataset) -> float:
        return evidence.income_share(dataset.income_records, self.code, year)

    # Reference lookups ---------------------------------------------------------

    def _brackets(self, year: int):
        return resolve_group(
            self._data.tax_brackets, year, table_name="tax_brackets", jurisdiction=self.code
        )

    def _bracket_tax(self, amount: float, year: int) -> float:
        return compute_bracket_tax(amount, self._brackets(year))

    def _regime_parameters(self, year: int) -> SpecialRegimeRow:
        return resolve(
            self._data.special_regimes,
            year,
            table_name="special_regimes",
            filter_field="name",
            filter_value=self.special_regime_name,
            jurisdiction=self.code,
        )

    def special_regime_status(
        self, acquisition_date: date | None, year: int
    ) -> SpecialRegimeStatus:
        ensure_year(year)
        if acquisition_date is None:
            return SpecialRegimeStatus(regime=self.special_regime_name)
        params = self._regime_parameters(year)
        return regime_status(acquisition_date, year, params.duration_years, name=params.name)

    def allocate_personal_allowance(
        self, year: int, entries: Sequence[tuple[IncomeRecord, float]]
    ) -> tuple[float | None, ...]:
        ensure_year(year)
        return tuple(None for _ in entries)

    # Tax -----------------------------------------------------------------------

    def calculate_tax(
        self, gross_amount: float, income_type: str, options: TaxOptions
    ) -> TaxComputationResult:
        handlers: Mapping[str, Callable[[float, TaxOptions], TaxComputationResult]] = {
            "employment": self._employment_tax,
            "freelance": self._freelance_tax,
            "dividend": self._dividend_tax,
        }
        handler = handlers.get(income_type)
        if handler is None:
            raise UnsupportedIncomeType(income_type, self.code)
        ensure_year(options.year)
        return handler(gross_amount, options)

    def _employment_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        year = options.year
        if options.special_regime.active:
            params = self._regime_parameters(year)
            if options.source_jurisdiction == self.code:
                rate = params.domestic_employment_rate
                return TaxComputationResult(
                    taxable_income=gross,
                    tax_amount=gross * rate,
                    social_security=calculate_social_security(gross, "employment", year, self._data),
                    tax_type=rate_label(f"{params.name}_FLAT", rate),
                )
            if params.foreign_income_exempt:
                return TaxComputationResult.exempt(f"{params.name}_EXEMPT")

        return self._progressive_employment(gross, year)

    def _progressive_employment(self, gross: float, year: int) -> TaxComputationResult:
        social_security = calculate_social_security(gross, "employment", year, self._data)
        deduction = calculate_specific_deduction(gross, year, self._data)
        taxable = max(0.0, gross - social_security - deduction)
        return TaxComputationResult(
            taxable_income=taxable,
            tax_amount=self._bracket_tax(taxable, year),
            social_security=social_security,
            surtax=calculate_solidarity_tax(taxable, year, self._data),
            tax_type=PROGRESSIVE_LABEL,
            auxiliary={"specific_deduction": deduction},
        )

    def _freelance_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        year = options.year
        if options.special_regime.active and options.source_jurisdiction != self.code:
            params = self._regime_parameters(year)
            if params.foreign_income_exempt:
                return TaxComputationResult.exempt(f"{params.name}_EXEMPT")

        base = freelance_taxable_base(
            gross, options.freelance_type, options.expenses, year, self._data
        )
        taxable = base["taxable_income"]
        if base["expense_shortfall"] > 0:
            _LOGGER.debug(
                "Freelance expenses %.2f below required %.2f; adding back %.2f",
                options.expenses,
                base["required_expenses"],
                base["expense_shortfall"],
            )

        return TaxComputationResult(
            taxable_income=taxable,
            tax_amount=self._bracket_tax(taxable, year),
            social_security=calculate_social_security(gross, "freelance", year, self._data),
            surtax=calculate_solidarity_tax(taxable, year, self._data),
            tax_type=rate_label(options.freelance_type.upper(), base["coefficient"]),
            auxiliary={
                "coefficient": base["coefficient"],
                "expense_shortfall": base["expense_shortfall"],
                "required_expenses": base["required_expenses"],
            },
        )

    def _dividend_tax(self, gross: float, options: TaxOptions) -> TaxComputationResult:
        year = options.year
        source = options.source_jurisdiction

        if options.special_regime.active:
            params = self._regime_parameters(year)
            if params.foreign_income_exempt:
                return TaxComputationResult.exempt(f"{params.name}_EXEMPT")

        rates = resolve(self._data.dividends, year, table_name="dividends", jurisdiction=self.code)
        qualifying = source == self.code or source in self._data.qualifying_regions

        if options.aggregation_election:
            if qualifying:
                taxable = gross * rates.aggregation_share
                return TaxComputationResult(
                    taxable_income=taxable,
                    tax_amount=self._bracket_tax(taxable, year),
                    tax_type=rate_label("AGGREGATED", rates.aggregation_share),
                )
            return TaxComputationResult(
                taxable_income=gross,
                tax_amount=self._bracket_tax(gross, year),
                tax_type=AGGREGATED_PROGRESSIVE_LABEL,
            )

        flat_tax = gross * rates.standard_rate
        if source in self._data.flat_rate_comparison_sources:
            progressive_tax = self._bracket_tax(gross, year)
            if progressive_tax < flat_tax:
                return TaxComputationResult(
                    taxable_income=gross,
                    tax_amount=progressive_tax,
                    tax_type=AGGREGATED_PROGRESSIVE_LABEL,
                    auxiliary={"flat_rate_tax": flat_tax},
                )

        if source in self._data.blacklisted_jurisdictions:
            return TaxComputationResult(
                taxable_income=gross,
                tax_amount=gross * rates.blacklist_rate,
                tax_type=rate_label("DIVIDEND", rates.blacklist_rate),
            )

        return TaxComputationResult(
            taxable_income=gross,
            tax_amount=flat_tax,
            tax_type=rate_label("DIVIDEND", rates.standard_rate),
        )

    def social_security_amount(self, gross_amount: float, income_type: str, year: int) -> float:
        return calculate_social_security(gross_amount, income_type, year, self._data)

    def withholding_rate(self, year: int, source_jurisdiction: str, income_type: str) -> float:
        return withholding_rate(
            self._data.foreign_tax_credit,
            year,
            source_jurisdiction,
            income_type,
            jurisdiction=self.code,
        )

    def standard_tax_on_income(self, gross_amount: float, year: int) -> float:
        """Employment tax on ``gross_amount`` as if no regime were active."""

        result = self._progressive_employment(gross_amount, ensure_year(year))
        return result.tax_amount + result.surtax

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
        subsistence = minimum_subsistence_adjustment(
            net_income + credit.allowed_credit,
            year,
            self._data,
            gross_income=total_income,
            tax_borne=total_tax - credit.allowed_credit,
        )
        return PeriodAdjustments(
            foreign_tax_credit=credit.allowed_credit,
            unused_foreign_tax_credit=credit.unused_credit,
            minimum_subsistence_adjustment=subsistence,
        )

    def describe(self) -> Mapping[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "currency": self.currency,
            "special_regime": self.special_regime_name,
            "income_types": list(self.income_types),
            "latest_bracket_year": latest_year(self._data.tax_brackets),
        }


__all__ = ["PortugalJurisdiction"]
