"""Lifecycle of time-bounded preferential regimes."""

from __future__ import annotations

from datetime import date

from netincome.errors import ensure_year
from netincome.models.results import SpecialRegimeStatus


def regime_status(
    acquisition_date: date | None,
    evaluation_year: int,
    duration_years: int,
    *,
    name: str | None = None,
) -> SpecialRegimeStatus:
    """Return the regime status for ``evaluation_year``.

    The window is ``[acquisition year, acquisition year + duration)``. Status
    is recomputed from the two dates on every call; nothing is carried over
    between years. Years before the acquisition year are not applicable.
    """

    year = ensure_year(evaluation_year)
    if acquisition_date is None:
        return SpecialRegimeStatus(regime=name, status="not_applicable")

    acquisition_year = acquisition_date.year
    end_year = acquisition_year + duration_years

    if year < acquisition_year:
        return SpecialRegimeStatus(
            regime=name,
            status="not_applicable",
            acquisition_date=acquisition_date,
            expires_in_year=end_year,
        )

    if year >= end_year:
        return SpecialRegimeStatus(
            regime=name,
            status="expired",
            acquisition_date=acquisition_date,
            years_active=duration_years,
            remaining_years=0,
            expires_in_year=end_year,
        )

    elapsed = year - acquisition_year
    return SpecialRegimeStatus(
        regime=name,
        status="active",
        acquisition_date=acquisition_date,
        years_active=elapsed + 1,
        remaining_years=duration_years - elapsed,
        expires_in_year=end_year,
    )


__all__ = ["regime_status"]
