"""Additional solidarity surtax on high taxable income."""

from __future__ import annotations

from netincome.config.schema import PortugalReferenceData
from netincome.engine.brackets import compute_bracket_tax, threshold_brackets
from netincome.engine.temporal import resolve


def calculate_solidarity_tax(taxable_income: float, year: int, data: PortugalReferenceData) -> float:
    """Charge each surtax rate on the slice of income above its threshold."""

    if taxable_income <= 0:
        return 0.0
    row = resolve(data.solidarity, year, table_name="solidarity", jurisdiction="PT")
    return compute_bracket_tax(taxable_income, threshold_brackets(row.as_pairs()))


__all__ = ["calculate_solidarity_tax"]
