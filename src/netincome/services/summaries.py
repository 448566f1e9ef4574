"""Aggregate per-record calculations into annual result rows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from netincome.engine.utils import round_currency, round_rate
from netincome.jurisdictions.base import Jurisdiction
from netincome.models import (
    AnnualSummary,
    AnnualTypeSummary,
    IncomeRecord,
    ResidencyPeriod,
    TaxComputationResult,
)


@dataclass(frozen=True, slots=True)
class RecordCalculation:
    """Unrounded figures for one record, in the taxing jurisdiction's currency."""

    record: IncomeRecord
    local_gross: float
    exchange_rate: float
    result: TaxComputationResult
    withholding: float
    regime_savings: float

    @property
    def net_income(self) -> float:
        return self.result.net_income(self.local_gross)


@dataclass(slots=True)
class _Totals:
    count: int = 0
    gross: float = 0.0
    foreign_gross: float = 0.0
    taxable: float = 0.0
    tax: float = 0.0
    social_security: float = 0.0
    surtax: float = 0.0
    withholding: float = 0.0
    regime_savings: float = 0.0
    net: float = 0.0

    def add(self, calculation: RecordCalculation, jurisdiction_code: str) -> None:
        result = calculation.result
        self.count += 1
        self.gross += calculation.local_gross
        if calculation.record.source_jurisdiction != jurisdiction_code:
            self.foreign_gross += calculation.local_gross
        self.taxable += result.taxable_income
        self.tax += result.tax_amount
        self.social_security += result.social_security
        self.surtax += result.surtax
        self.withholding += calculation.withholding
        self.regime_savings += calculation.regime_savings
        self.net += calculation.net_income


def _totals(calculations: Iterable[RecordCalculation], jurisdiction_code: str) -> _Totals:
    totals = _Totals()
    for calculation in calculations:
        totals.add(calculation, jurisdiction_code)
    return totals


def summarise_period(
    period: ResidencyPeriod,
    jurisdiction: Jurisdiction,
    regime_label: str,
    calculations: Sequence[RecordCalculation],
) -> AnnualSummary:
    """Sum a period's records and apply the jurisdiction's annual adjustments.

    Annual net income is the sum of record net income, less tax withheld
    abroad, plus the foreign tax credit and any minimum-subsistence relief.
    """

    totals = _totals(calculations, jurisdiction.code)
    net_before_adjustments = totals.net - totals.withholding
    adjustments = jurisdiction.period_adjustments(
        period.year,
        net_income=net_before_adjustments,
        total_income=totals.gross,
        foreign_income=totals.foreign_gross,
        total_tax=totals.tax + totals.surtax,
        foreign_tax_paid=totals.withholding,
    )
    net_income = (
        net_before_adjustments
        + adjustments.foreign_tax_credit
        + adjustments.minimum_subsistence_adjustment
    )
    tax_borne = totals.tax + totals.surtax + totals.withholding - adjustments.foreign_tax_credit
    effective_rate = tax_borne / totals.gross if totals.gross > 0 else 0.0

    return AnnualSummary(
        year=period.year,
        jurisdiction=jurisdiction.code,
        currency=jurisdiction.currency,
        start_month=period.start_month,
        start_day=period.start_day,
        end_month=period.end_month,
        end_day=period.end_day,
        determination_method=period.method.value,
        regime_status=regime_label,
        record_count=totals.count,
        gross_income=round_currency(totals.gross),
        taxable_income=round_currency(totals.taxable),
        tax_amount=round_currency(totals.tax),
        social_security=round_currency(totals.social_security),
        surtax=round_currency(totals.surtax),
        withholding=round_currency(totals.withholding),
        foreign_tax_credit=round_currency(adjustments.foreign_tax_credit),
        unused_foreign_tax_credit=round_currency(adjustments.unused_foreign_tax_credit),
        minimum_subsistence_adjustment=round_currency(
            adjustments.minimum_subsistence_adjustment
        ),
        regime_savings=round_currency(totals.regime_savings),
        net_income=round_currency(net_income),
        effective_tax_rate=round_rate(effective_rate),
    )


def summarise_by_type(
    period: ResidencyPeriod,
    jurisdiction_code: str,
    regime_label: str,
    calculations: Sequence[RecordCalculation],
) -> list[AnnualTypeSummary]:
    """Return one row per income type present in the period, in first-seen order."""

    grouped: dict[str, list[RecordCalculation]] = {}
    for calculation in calculations:
        grouped.setdefault(calculation.record.income_type, []).append(calculation)

    rows: list[AnnualTypeSummary] = []
    for income_type, entries in grouped.items():
        totals = _totals(entries, jurisdiction_code)
        rows.append(
            AnnualTypeSummary(
                year=period.year,
                jurisdiction=jurisdiction_code,
                income_type=income_type,
                regime_status=regime_label,
                record_count=totals.count,
                gross_income=round_currency(totals.gross),
                taxable_income=round_currency(totals.taxable),
                tax_amount=round_currency(totals.tax),
                social_security=round_currency(totals.social_security),
                surtax=round_currency(totals.surtax),
                net_income=round_currency(totals.net),
            )
        )
    return rows


__all__ = ["RecordCalculation", "summarise_by_type", "summarise_period"]
