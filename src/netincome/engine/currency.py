"""Immutable exchange-rate table threaded through every conversion."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from pydantic import Field, field_validator

from netincome.config.schema import ImmutableModel
from netincome.errors import MissingReferenceData

_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


def normalise_currency(code: Any) -> str:
    """Return an upper-case ISO 4217 code or raise ``ValueError``."""

    if not isinstance(code, str):
        raise ValueError(f"Invalid currency code: {code!r}")
    normalised = code.strip().upper()
    if not _CURRENCY_PATTERN.match(normalised):
        raise ValueError(
            f"Invalid currency code format: {code}. Must be ISO 4217 (e.g. EUR, GBP, USD)"
        )
    return normalised


class ExchangeRate(ImmutableModel):
    """Rate converting one unit of ``from_currency`` into ``to_currency``.

    ``month`` of ``None`` marks the annual average for ``year``.
    """

    year: int
    month: int | None = Field(default=None, ge=1, le=12)
    from_currency: str
    to_currency: str
    rate: float = Field(gt=0)

    @field_validator("month", mode="before")
    @classmethod
    def _annual_marker(cls, value: Any) -> Any:
        if value == 0:
            return None
        return value

    @field_validator("from_currency", "to_currency", mode="before")
    @classmethod
    def _normalise_code(cls, value: Any) -> str:
        return normalise_currency(value)


class ExchangeRateTable(ImmutableModel):
    """Read-only collection of rates constructed from loaded data."""

    rates: Sequence[ExchangeRate] = Field(default_factory=tuple)

    @classmethod
    def empty(cls) -> ExchangeRateTable:
        return cls(rates=())

    def lookup(self, from_currency: str, to_currency: str, year: int, month: int | None) -> float:
        """Return the monthly rate, else the annual rate for ``year``."""

        source = normalise_currency(from_currency)
        target = normalise_currency(to_currency)
        if source == target:
            return 1.0

        annual: ExchangeRate | None = None
        for entry in self.rates:
            if entry.from_currency != source or entry.to_currency != target:
                continue
            if entry.year != year:
                continue
            if month is not None and entry.month == month:
                return entry.rate
            if entry.month is None and annual is None:
                annual = entry

        if annual is not None:
            return annual.rate

        raise MissingReferenceData(
            "exchange_rates",
            year,
            filters={"from": source, "to": target, "month": month},
        )


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    table: ExchangeRateTable,
    *,
    year: int,
    month: int | None = None,
) -> tuple[float, float]:
    """Convert ``amount`` and return ``(converted, rate)``."""

    rate = table.lookup(from_currency, to_currency, year, month)
    return amount * rate, rate


__all__ = ["ExchangeRate", "ExchangeRateTable", "convert", "normalise_currency"]
