"""Canonical input records handed to the calculation core by the loader."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import Field, StrictInt, field_validator, model_validator
from typing_extensions import Self

from netincome.config.schema import ImmutableModel, ReferenceDataset
from netincome.engine.currency import ExchangeRateTable, normalise_currency
from netincome.errors import MAX_YEAR, MIN_YEAR, ensure_year


def _normalise_jurisdiction(value: Any) -> Any:
    if isinstance(value, str):
        code = value.strip().upper()
        if len(code) != 2 or not code.isalpha():
            raise ValueError(f"Invalid jurisdiction code: {value!r}")
        return code
    return value


class DeterminationMethod(str, Enum):
    """How a residency period was established."""

    MANUAL = "manual"
    AUTOMATIC = "automatic"
    PERMANENT_HOME = "tie-break-permanent-home"
    VITAL_INTERESTS = "tie-break-vital-interests"
    HABITUAL_ABODE = "tie-break-habitual-abode"


class IncomeRecord(ImmutableModel):
    """A single gross income event in its original currency."""

    year: StrictInt = Field(ge=MIN_YEAR, le=MAX_YEAR)
    month: int = Field(ge=1, le=12)
    day: int = Field(default=15, ge=1, le=31)
    gross_amount: float = Field(gt=0)
    currency: str
    income_type: str
    source_jurisdiction: str
    freelance_type: Literal["services", "goods"] = "services"
    documented_expenses: float = Field(default=0.0, ge=0)
    aggregation_election: bool = False
    region: str | None = None

    @field_validator("currency", mode="before")
    @classmethod
    def _normalise_currency(cls, value: Any) -> str:
        return normalise_currency(value)

    @field_validator("source_jurisdiction", mode="before")
    @classmethod
    def _normalise_source(cls, value: Any) -> Any:
        return _normalise_jurisdiction(value)

    @field_validator("income_type", mode="before")
    @classmethod
    def _normalise_income_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if not value:
                raise ValueError("income_type must not be empty")
        return value

    @model_validator(mode="after")
    def _validate_calendar_date(self) -> Self:
        date(self.year, self.month, self.day)
        return self

    @property
    def occurred_on(self) -> date:
        return date(self.year, self.month, self.day)


class LocationTransition(ImmutableModel):
    """Movement between jurisdictions, or a record of where the taxpayer lives.

    ``travel`` entries move the taxpayer from ``origin`` to ``destination`` on
    ``date``. ``residence`` entries state that the taxpayer lives in
    ``destination`` from that date; ``origin`` defaults to the destination.
    """

    occurred_on: date = Field(alias="date")
    origin: str | None = None
    destination: str
    kind: Literal["travel", "residence"] = "travel"

    @field_validator("origin", "destination", mode="before")
    @classmethod
    def _normalise_codes(cls, value: Any) -> Any:
        if value is None:
            return None
        return _normalise_jurisdiction(value)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _default_origin(self) -> Self:
        if self.origin is None:
            if self.kind == "travel":
                raise ValueError("Travel transitions require an origin")
            object.__setattr__(self, "origin", self.destination)
        return self

    @property
    def is_relocation(self) -> bool:
        return self.kind == "travel" and self.origin != self.destination


class Accommodation(ImmutableModel):
    """Evidence of a home available to the taxpayer during ``year``."""

    year: StrictInt = Field(ge=MIN_YEAR, le=MAX_YEAR)
    jurisdiction: str
    permanent: bool = True

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def _normalise_code(cls, value: Any) -> Any:
        return _normalise_jurisdiction(value)


class ResidencyPeriod(ImmutableModel):
    """Contiguous part of a calendar year taxed by one jurisdiction.

    Bounds are inclusive and default to the whole year.
    """

    year: StrictInt = Field(ge=MIN_YEAR, le=MAX_YEAR)
    jurisdiction: str
    start_month: int = Field(default=1, ge=1, le=12)
    start_day: int = Field(default=1, ge=1, le=31)
    end_month: int = Field(default=12, ge=1, le=12)
    end_day: int = Field(default=31, ge=1, le=31)
    method: DeterminationMethod = DeterminationMethod.MANUAL
    basis: str | None = None
    dual_residency_candidates: tuple[str, ...] = ()
    split_year: bool = False

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def _normalise_code(cls, value: Any) -> Any:
        return _normalise_jurisdiction(value)

    @model_validator(mode="after")
    def _validate_bounds(self) -> Self:
        start = self.start_date
        end = self.end_date
        if end < start:
            raise ValueError(
                f"Residency period for {self.year} ends ({end}) before it starts ({start})"
            )
        return self

    @property
    def start_date(self) -> date:
        return date(self.year, self.start_month, self.start_day)

    @property
    def end_date(self) -> date:
        return date(self.year, self.end_month, self.end_day)

    @property
    def is_full_year(self) -> bool:
        return (self.start_month, self.start_day, self.end_month, self.end_day) == (1, 1, 12, 31)

    def contains(self, record: IncomeRecord) -> bool:
        if record.year != self.year:
            return False
        position = (record.month, record.day)
        return (self.start_month, self.start_day) <= position <= (self.end_month, self.end_day)


class CalculationDataset(ImmutableModel):
    """Everything a calculation run needs, already parsed and typed."""

    income_records: Sequence[IncomeRecord]
    reference_data: Mapping[str, ReferenceDataset] = Field(default_factory=dict)
    exchange_rates: ExchangeRateTable = Field(default_factory=ExchangeRateTable.empty)
    manual_residency: Mapping[int, tuple[ResidencyPeriod, ...]] = Field(default_factory=dict)
    location_transitions: Sequence[LocationTransition] = Field(default_factory=tuple)
    accommodation: Sequence[Accommodation] = Field(default_factory=tuple)
    regime_acquisition_dates: Mapping[str, date] = Field(default_factory=dict)

    @field_validator("exchange_rates", mode="before")
    @classmethod
    def _coerce_rates(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return {"rates": value}
        return value

    @field_validator("manual_residency", mode="before")
    @classmethod
    def _coerce_manual_periods(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            return value
        coerced: dict[Any, Any] = {}
        for year, periods in value.items():
            if isinstance(periods, (ResidencyPeriod, Mapping)):
                periods = [periods]
            coerced[year] = periods
        return coerced

    @field_validator("regime_acquisition_dates", mode="before")
    @classmethod
    def _normalise_regime_keys(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {_normalise_jurisdiction(code): acquired for code, acquired in value.items()}
        return value

    @model_validator(mode="after")
    def _validate_manual_periods(self) -> Self:
        for year, periods in self.manual_residency.items():
            ensure_year(year)
            if not periods:
                raise ValueError(f"Manual residency for {year} must list at least one period")
            for period in periods:
                if period.year != year:
                    raise ValueError(
                        f"Manual residency period for {period.year} filed under year {year}"
                    )
        return self

    def years(self) -> tuple[int, ...]:
        """Return every year referenced by any data source, ascending."""

        years: set[int] = {record.year for record in self.income_records}
        years.update(transition.occurred_on.year for transition in self.location_transitions)
        years.update(entry.year for entry in self.accommodation)
        years.update(self.manual_residency)
        return tuple(sorted(years))

    def records_for_year(self, year: int) -> tuple[IncomeRecord, ...]:
        return tuple(record for record in self.income_records if record.year == year)


__all__ = [
    "Accommodation",
    "CalculationDataset",
    "DeterminationMethod",
    "IncomeRecord",
    "LocationTransition",
    "ResidencyPeriod",
]
