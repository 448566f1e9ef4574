"""Unit coverage for withholding lookups and the foreign tax credit."""

from __future__ import annotations

import pytest

from netincome.config.schema import ForeignTaxCreditRow
from netincome.engine.credits import compute_foreign_tax_credit, withholding_rate

ROWS = [
    ForeignTaxCreditRow(year=2020, source_jurisdiction="us", withholding_rates={"Dividend": 0.30}),
    ForeignTaxCreditRow(year=2023, source_jurisdiction="US", withholding_rates={"dividend": 0.15}),
]


@pytest.mark.parametrize(
    ("year", "source", "income_type", "expected"),
    [
        (2024, "US", "dividend", 0.15),
        (2021, "US", "dividend", 0.30),
        (2024, "US", "employment", 0.0),
        (2024, "JP", "dividend", 0.0),
        (2019, "US", "dividend", 0.0),
        (2024, "PT", "dividend", 0.0),
    ],
)
def test_withholding_rate(year: int, source: str, income_type: str, expected: float) -> None:
    assert withholding_rate(ROWS, year, source, income_type, jurisdiction="PT") == expected


def test_credit_limited_to_attributable_tax() -> None:
    credit = compute_foreign_tax_credit(
        total_income=10000, foreign_income=5000, total_tax=2000, foreign_tax_paid=1500
    )

    assert credit.attributable_tax == pytest.approx(1000)
    assert credit.allowed_credit == pytest.approx(1000)
    assert credit.unused_credit == pytest.approx(500)


def test_credit_equals_tax_paid_below_limit() -> None:
    credit = compute_foreign_tax_credit(
        total_income=1000, foreign_income=1000, total_tax=280, foreign_tax_paid=150
    )

    assert credit.allowed_credit == pytest.approx(150)
    assert credit.unused_credit == 0.0


def test_no_foreign_income_means_no_credit() -> None:
    credit = compute_foreign_tax_credit(
        total_income=1000, foreign_income=0, total_tax=200, foreign_tax_paid=50
    )

    assert credit.allowed_credit == 0.0
    assert credit.unused_credit == 50
