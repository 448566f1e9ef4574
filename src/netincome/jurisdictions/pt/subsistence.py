"""Minimum subsistence ("minimo de existencia") relief."""

from __future__ import annotations

from netincome.config.schema import PortugalReferenceData
from netincome.engine.temporal import exact_match


def minimum_subsistence_adjustment(
    net_income: float,
    year: int,
    data: PortugalReferenceData,
    *,
    gross_income: float,
    tax_borne: float,
) -> float:
    """Tax relieved so annual net income reaches the amount in force that exact year.

    The relief gives back tax already charged: it never exceeds ``tax_borne``
    and never lifts net income above ``gross_income``. A period without
    income, a year without its own row, or an amount of zero gets nothing.
    """

    if gross_income <= 0 or tax_borne <= 0:
        return 0.0
    row = exact_match(
        data.minimum_subsistence,
        year,
        table_name="minimum_subsistence",
        jurisdiction=data.jurisdiction,
        required=False,
    )
    if row is None or row.amount <= 0 or net_income >= row.amount:
        return 0.0
    shortfall = row.amount - net_income
    return max(0.0, min(shortfall, tax_borne, gross_income - net_income))


__all__ = ["minimum_subsistence_adjustment"]
