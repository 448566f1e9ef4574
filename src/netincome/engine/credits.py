"""Withholding at source and the ordinary foreign tax credit (OECD Art. 23B)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from netincome.config.schema import ForeignTaxCreditRow

from .temporal import resolve


@dataclass(frozen=True, slots=True)
class ForeignTaxCredit:
    foreign_income: float
    attributable_tax: float
    foreign_tax_paid: float
    allowed_credit: float
    unused_credit: float


def withholding_rate(
    rows: Sequence[ForeignTaxCreditRow],
    year: int,
    source_jurisdiction: str,
    income_type: str,
    *,
    jurisdiction: str,
) -> float:
    """Return the rate withheld abroad on ``income_type`` from ``source_jurisdiction``.

    Domestic income and sources without a table row carry no withholding.
    """

    if source_jurisdiction == jurisdiction:
        return 0.0
    row = resolve(
        rows,
        year,
        table_name="foreign_tax_credit",
        filter_field="source_jurisdiction",
        filter_value=source_jurisdiction,
        jurisdiction=jurisdiction,
        required=False,
    )
    if row is None:
        return 0.0
    return row.rate_for(income_type)


def compute_foreign_tax_credit(
    total_income: float,
    foreign_income: float,
    total_tax: float,
    foreign_tax_paid: float,
) -> ForeignTaxCredit:
    """Limit the credit to the domestic tax attributable to foreign income.

    ``credit = min(foreign tax paid, total tax * foreign / total)``. Excess
    foreign tax is reported as unused; it is not carried forward.
    """

    paid = max(0.0, foreign_tax_paid)
    if total_income <= 0 or foreign_income <= 0:
        return ForeignTaxCredit(0.0, 0.0, paid, 0.0, paid)

    attributable = max(0.0, total_tax) * (foreign_income / total_income)
    allowed = min(paid, attributable)
    return ForeignTaxCredit(
        foreign_income=foreign_income,
        attributable_tax=attributable,
        foreign_tax_paid=paid,
        allowed_credit=allowed,
        unused_credit=paid - allowed,
    )


__all__ = ["ForeignTaxCredit", "compute_foreign_tax_credit", "withholding_rate"]
