"""UK personal, trading, dividend and savings allowances."""

from __future__ import annotations

from collections.abc import Sequence

from netincome.config.schema import AllowanceRow, UnitedKingdomReferenceData
from netincome.engine.brackets import Band
from netincome.engine.temporal import resolve


def allowance_row(year: int, data: UnitedKingdomReferenceData) -> AllowanceRow:
    return resolve(data.allowances, year, table_name="allowances", jurisdiction="GB")


def personal_allowance(gross_income: float, year: int, data: UnitedKingdomReferenceData) -> float:
    """Personal allowance tapered by ``reduction_rate`` above the threshold."""

    row = allowance_row(year, data)
    if gross_income > row.reduction_threshold:
        reduction = (gross_income - row.reduction_threshold) * row.reduction_rate
        return max(0.0, row.personal_allowance - reduction)
    return row.personal_allowance


# Earnings absorb the personal allowance first, then savings, then dividends.
ALLOWANCE_ORDER: tuple[frozenset[str], ...] = (
    frozenset({"employment", "pension", "freelance"}),
    frozenset({"interest"}),
    frozenset({"dividend"}),
)


def allocate_personal_allowance(
    total_income: float,
    claims: Sequence[tuple[str, float]],
    year: int,
    data: UnitedKingdomReferenceData,
) -> list[float]:
    """Share one personal allowance across the records of a period.

    ``claims`` pairs each record's income type with the amount the allowance
    may offset. The allowance is tapered on ``total_income`` and granted tier
    by tier in ``ALLOWANCE_ORDER``; records within a tier share it pro rata.
    """

    remaining = personal_allowance(total_income, year, data)
    allocated = [0.0] * len(claims)
    for tier in ALLOWANCE_ORDER:
        members = [
            (index, max(0.0, amount))
            for index, (income_type, amount) in enumerate(claims)
            if income_type in tier
        ]
        tier_total = sum(amount for _, amount in members)
        if tier_total <= 0 or remaining <= 0:
            continue
        granted = min(tier_total, remaining)
        for index, amount in members:
            allocated[index] = granted * amount / tier_total
        remaining -= granted
    return allocated


def trading_allowance(gross_income: float, year: int, data: UnitedKingdomReferenceData) -> float:
    return min(allowance_row(year, data).trading_allowance, max(0.0, gross_income))


def dividend_allowance(gross_income: float, year: int, data: UnitedKingdomReferenceData) -> float:
    return min(allowance_row(year, data).dividend_allowance, max(0.0, gross_income))


def personal_savings_allowance(
    gross_income: float,
    year: int,
    data: UnitedKingdomReferenceData,
    income_brackets: Sequence[Band],
) -> float:
    """Savings allowance for the rate band ``gross_income`` falls into.

    Basic-rate taxpayers get the full allowance, higher-rate taxpayers the
    reduced one and additional-rate taxpayers the additional amount.
    """

    row = allowance_row(year, data)
    taxed = sorted(
        (band for band in income_brackets if band.rate > 0), key=lambda band: band.lower_bound
    )
    tiers = (
        row.savings_allowance_basic,
        row.savings_allowance_higher,
        row.savings_allowance_additional,
    )
    for index, band in enumerate(taxed):
        if band.upper_bound is None or gross_income <= band.upper_bound:
            return tiers[min(index, len(tiers) - 1)]
    return tiers[-1]


__all__ = [
    "ALLOWANCE_ORDER",
    "allocate_personal_allowance",
    "allowance_row",
    "dividend_allowance",
    "personal_allowance",
    "personal_savings_allowance",
    "trading_allowance",
]
