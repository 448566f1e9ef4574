"""Deductions applied before bracket taxation."""

from __future__ import annotations

from netincome.config.schema import DeductionRow, PortugalReferenceData, SimplifiedRegimeRow
from netincome.engine.temporal import resolve


def deduction_row(year: int, data: PortugalReferenceData) -> DeductionRow:
    return resolve(data.deductions, year, table_name="deductions", jurisdiction="PT")


def calculate_specific_deduction(employment_gross: float, year: int, data: PortugalReferenceData) -> float:
    """Return the specific employment deduction, capped at the gross."""

    return min(deduction_row(year, data).specific_deduction, max(0.0, employment_gross))


def simplified_regime_row(year: int, data: PortugalReferenceData) -> SimplifiedRegimeRow:
    return resolve(
        data.simplified_regime, year, table_name="simplified_regime", jurisdiction="PT"
    )


def freelance_taxable_base(
    gross_amount: float,
    freelance_type: str,
    expenses: float,
    year: int,
    data: PortugalReferenceData,
) -> dict[str, float]:
    """Return the simplified-regime base and any under-documentation add-back.

    For services, documented expenses below the required ratio of gross are
    penalised: the shortfall is added back to the coefficient base. Expenses
    are then subtracted from the (possibly increased) base.
    """

    row = simplified_regime_row(year, data)
    coefficient = row.coefficient_for(freelance_type)
    base = gross_amount * coefficient
    required_expenses = gross_amount * row.required_expense_ratio
    shortfall = 0.0

    if freelance_type == "services" and expenses < required_expenses:
        shortfall = required_expenses - expenses
        base += shortfall

    return {
        "coefficient": coefficient,
        "base": base,
        "required_expenses": required_expenses,
        "expense_shortfall": shortfall,
        "taxable_income": max(0.0, base - expenses),
    }


__all__ = [
    "calculate_specific_deduction",
    "deduction_row",
    "freelance_taxable_base",
    "simplified_regime_row",
]
