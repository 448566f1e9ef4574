"""Compose residency determination and per-jurisdiction tax rules.

``calculate_net_income`` is the single entry point: it builds (or accepts)
the jurisdiction registry, resolves residency periods year by year, routes
each income record to the jurisdiction taxing its period and aggregates the
monthly, annual and per-income-type result sequences.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from contextlib import contextmanager
from time import perf_counter

from netincome.engine.currency import ExchangeRateTable, convert
from netincome.engine.utils import round_currency
from netincome.errors import UnresolvedResidency
from netincome.jurisdictions import (
    Jurisdiction,
    TaxOptions,
    build_registry,
    get_jurisdiction,
)
from netincome.models import (
    AnnualSummary,
    AnnualTypeSummary,
    CalculationDataset,
    CalculationResult,
    IncomeRecord,
    MonthlyResult,
    ResidencyPeriod,
    SpecialRegimeStatus,
)
from netincome.residency.determination import determine_residency

from .summaries import RecordCalculation, summarise_by_type, summarise_period

_LOGGER = logging.getLogger(__name__)

REGIME_SAVINGS_INCOME_TYPES = frozenset({"employment"})


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("NETINCOME_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = store.get(name, 0.0) + perf_counter() - start


def _to_local(
    record: IncomeRecord, jurisdiction: Jurisdiction, exchange_rates: ExchangeRateTable
) -> tuple[float, float]:
    return convert(
        record.gross_amount,
        record.currency,
        jurisdiction.currency,
        exchange_rates,
        year=record.year,
        month=record.month,
    )


def calculate_record(
    record: IncomeRecord,
    jurisdiction: Jurisdiction,
    regime: SpecialRegimeStatus,
    exchange_rates: ExchangeRateTable,
    *,
    personal_allowance: float | None = None,
    converted: tuple[float, float] | None = None,
) -> RecordCalculation:
    """Tax one record under ``jurisdiction`` in that jurisdiction's currency.

    ``personal_allowance`` is the record's share of a period-wide allowance;
    ``converted`` carries a ``(local gross, rate)`` pair already looked up.
    """

    local_gross, rate = converted or _to_local(record, jurisdiction, exchange_rates)
    result = jurisdiction.calculate_tax(
        local_gross,
        record.income_type,
        TaxOptions.for_record(record, regime, personal_allowance),
    )

    withholding = 0.0
    if record.source_jurisdiction != jurisdiction.code:
        withholding = local_gross * jurisdiction.withholding_rate(
            record.year, record.source_jurisdiction, record.income_type
        )

    savings = 0.0
    if regime.active and record.income_type in REGIME_SAVINGS_INCOME_TYPES:
        standard = jurisdiction.standard_tax_on_income(local_gross, record.year)
        savings = max(0.0, standard - (result.tax_amount + result.surtax))

    _LOGGER.debug(
        "%s %s-%02d %s %.2f %s -> %s tax %.2f",
        jurisdiction.code,
        record.year,
        record.month,
        record.income_type,
        local_gross,
        jurisdiction.currency,
        result.tax_type,
        result.tax_amount,
    )
    return RecordCalculation(
        record=record,
        local_gross=local_gross,
        exchange_rate=rate,
        result=result,
        withholding=withholding,
        regime_savings=savings,
    )


def _monthly_row(
    calculation: RecordCalculation, jurisdiction: Jurisdiction, regime_label: str
) -> MonthlyResult:
    record = calculation.record
    result = calculation.result
    return MonthlyResult(
        year=record.year,
        month=record.month,
        day=record.day,
        income_type=record.income_type,
        source_jurisdiction=record.source_jurisdiction,
        currency=record.currency,
        gross_amount=round_currency(record.gross_amount),
        jurisdiction=jurisdiction.code,
        local_currency=jurisdiction.currency,
        exchange_rate=calculation.exchange_rate,
        local_gross=round_currency(calculation.local_gross),
        taxable_income=round_currency(result.taxable_income),
        tax_amount=round_currency(result.tax_amount),
        social_security=round_currency(result.social_security),
        surtax=round_currency(result.surtax),
        withholding=round_currency(calculation.withholding),
        is_exempt=result.is_exempt,
        tax_type=result.tax_type,
        regime_status=regime_label,
        regime_savings=round_currency(calculation.regime_savings),
        net_income=round_currency(calculation.net_income),
    )


def _partition(
    year: int,
    records: Sequence[IncomeRecord],
    periods: Sequence[ResidencyPeriod],
) -> list[tuple[ResidencyPeriod, list[IncomeRecord]]]:
    """Assign every record of ``year`` to the first period containing it."""

    buckets: list[tuple[ResidencyPeriod, list[IncomeRecord]]] = [
        (period, []) for period in periods
    ]
    for record in records:
        for period, bucket in buckets:
            if period.contains(record):
                bucket.append(record)
                break
        else:
            raise UnresolvedResidency(
                year,
                [period.jurisdiction for period in periods],
                reason=(
                    f"income record dated {record.occurred_on.isoformat()} "
                    "falls outside every residency period"
                ),
            )
    return buckets


def calculate_net_income(
    dataset: CalculationDataset,
    registry: Mapping[str, Jurisdiction] | None = None,
) -> CalculationResult:
    """Return monthly, annual and per-type results for ``dataset``.

    Errors from residency determination or from any jurisdiction propagate
    unchanged; a failure aborts the whole run.
    """

    if not dataset.income_records:
        raise ValueError("At least one income record is required")

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    if registry is None:
        registry = build_registry(dataset.reference_data)

    with _profile_section("residency", timings):
        periods_by_year = determine_residency(
            dataset, registry, {record.year for record in dataset.income_records}
        )

    all_periods: list[ResidencyPeriod] = []
    monthly: list[MonthlyResult] = []
    annual: list[AnnualSummary] = []
    annual_by_type: list[AnnualTypeSummary] = []

    for year in sorted(periods_by_year):
        periods = periods_by_year[year]
        records = sorted(dataset.records_for_year(year), key=lambda entry: entry.occurred_on)
        all_periods.extend(periods)

        for period, period_records in _partition(year, records, periods):
            jurisdiction = get_jurisdiction(registry, period.jurisdiction)
            regime = jurisdiction.special_regime_status(
                dataset.regime_acquisition_dates.get(jurisdiction.code), year
            )
            regime_label = regime.label

            with _profile_section("records", timings):
                converted = [
                    _to_local(record, jurisdiction, dataset.exchange_rates)
                    for record in period_records
                ]
                allowances = jurisdiction.allocate_personal_allowance(
                    year,
                    [(record, local[0]) for record, local in zip(period_records, converted)],
                )
                calculations = [
                    calculate_record(
                        record,
                        jurisdiction,
                        regime,
                        dataset.exchange_rates,
                        personal_allowance=allowance,
                        converted=local,
                    )
                    for record, local, allowance in zip(period_records, converted, allowances)
                ]

            monthly.extend(
                _monthly_row(calculation, jurisdiction, regime_label)
                for calculation in calculations
            )
            with _profile_section("summaries", timings):
                annual.append(summarise_period(period, jurisdiction, regime_label, calculations))
                annual_by_type.extend(
                    summarise_by_type(period, jurisdiction.code, regime_label, calculations)
                )

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_net_income timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    return CalculationResult(
        residency_periods=all_periods,
        monthly=monthly,
        annual=annual,
        annual_by_type=annual_by_type,
    )


__all__ = ["calculate_net_income", "calculate_record"]
