"""Portuguese social security contributions."""

from __future__ import annotations

from netincome.config.schema import PortugalReferenceData, SocialSecurityRow
from netincome.engine.temporal import resolve
from netincome.errors import UnsupportedIncomeType


def social_security_row(year: int, data: PortugalReferenceData) -> SocialSecurityRow:
    return resolve(data.social_security, year, table_name="social_security", jurisdiction="PT")


def calculate_social_security(
    gross_amount: float,
    income_type: str,
    year: int,
    data: PortugalReferenceData,
) -> float:
    """Return the contribution due on ``gross_amount``.

    Employment contributions are uncapped. Freelance contributions apply to
    the relevant income and are capped at twelve times the monthly ceiling.
    """

    if income_type not in {"employment", "freelance", "dividend"}:
        raise UnsupportedIncomeType(income_type, "PT")
    if gross_amount <= 0:
        return 0.0

    row = social_security_row(year, data)
    if income_type == "employment":
        return gross_amount * row.employment_rate
    if income_type == "freelance":
        contribution = gross_amount * row.freelance_coefficient * row.freelance_rate
        return min(contribution, row.freelance_cap_monthly * 12)
    return gross_amount * row.dividend_rate


__all__ = ["calculate_social_security", "social_security_row"]
