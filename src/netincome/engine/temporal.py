"""Effective-dated lookups over reference tables.

A row tagged with ``year`` governs from that year until a later row
supersedes it. Tables are usually sorted ascending by year but the helpers
below take the maximum over a full filtered scan, so ordering is not
required for correctness.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Protocol, TypeVar

from netincome.errors import MissingReferenceData, ensure_year


class YearRow(Protocol):
    year: int


RowT = TypeVar("RowT", bound=YearRow)


def _matches(row: Any, filter_field: str | None, filter_value: Any) -> bool:
    if filter_field is None:
        return True
    return getattr(row, filter_field, None) == filter_value


def _filters(filter_field: str | None, filter_value: Any) -> dict[str, Any] | None:
    if filter_field is None:
        return None
    return {filter_field: filter_value}


def resolve(
    table: Iterable[RowT],
    year: int,
    *,
    table_name: str,
    filter_field: str | None = None,
    filter_value: Any = None,
    jurisdiction: str | None = None,
    required: bool = True,
) -> RowT:
    """Return the row with the greatest ``year`` not after ``year``.

    Raises ``MissingReferenceData`` when the table (after filtering) is empty
    or every row is dated after the requested year. With ``required=False``
    the miss yields ``None`` for tables whose absence means "no charge".
    """

    target = ensure_year(year)
    selected: RowT | None = None
    for row in table:
        if not _matches(row, filter_field, filter_value):
            continue
        if row.year > target:
            continue
        if selected is None or row.year > selected.year:
            selected = row

    if selected is None:
        if not required:
            return None  # type: ignore[return-value]
        raise MissingReferenceData(
            table_name,
            target,
            jurisdiction=jurisdiction,
            filters=_filters(filter_field, filter_value),
        )
    return selected


def resolve_group(
    table: Iterable[RowT],
    year: int,
    *,
    table_name: str,
    filter_field: str | None = None,
    filter_value: Any = None,
    jurisdiction: str | None = None,
) -> tuple[RowT, ...]:
    """Return every row sharing the governing effective year.

    Bracket tables store one row per bracket, so the governing "record" for
    a year is the whole group of rows tagged with the latest qualifying
    year, kept in table order.
    """

    rows = tuple(row for row in table if _matches(row, filter_field, filter_value))
    anchor = resolve(
        rows,
        year,
        table_name=table_name,
        jurisdiction=jurisdiction,
    )
    return tuple(row for row in rows if row.year == anchor.year)


def exact_match(
    table: Sequence[RowT],
    year: int,
    *,
    table_name: str,
    filter_field: str | None = None,
    filter_value: Any = None,
    jurisdiction: str | None = None,
    required: bool = True,
) -> RowT | None:
    """Return the row dated exactly ``year`` without retroactive fallback.

    With ``required=False`` a missing row yields ``None`` instead of raising,
    for rules that simply do not apply in years without data.
    """

    target = ensure_year(year)
    for row in table:
        if row.year == target and _matches(row, filter_field, filter_value):
            return row
    if not required:
        return None
    raise MissingReferenceData(
        table_name,
        target,
        jurisdiction=jurisdiction,
        filters=_filters(filter_field, filter_value),
    )


def latest_year(table: Iterable[YearRow]) -> int | None:
    """Return the most recent effective year present in ``table``."""

    years = [row.year for row in table]
    return max(years) if years else None


__all__ = ["YearRow", "exact_match", "latest_year", "resolve", "resolve_group"]
