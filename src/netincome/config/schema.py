"""Pydantic models describing the per-jurisdiction reference datasets."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def _check_rate(value: float, label: str) -> float:
    if value < 0 or value > 1:
        raise ConfigurationError(f"{label} {value} must be between 0 and 1")
    return value


def _normalise_codes(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    return tuple(str(code).strip().upper() for code in value)


class YearRow(ImmutableModel):
    """Reference row governing from ``year`` until superseded."""

    year: int

    @field_validator("year", mode="before")
    @classmethod
    def _reject_boolean_year(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ConfigurationError("Reference rows require an integer year")
        return value


class TaxBracketRow(YearRow):
    """One marginal band of a year's bracket set.

    ``upper_bound`` of ``None`` marks the open-ended top band. Bands whose
    upper bound does not exceed the lower bound are accepted here and
    skipped by the bracket engine; the validator reports them.
    """

    lower_bound: float = Field(alias="min", ge=0)
    upper_bound: float | None = Field(default=None, alias="max")
    rate: float
    income_type: str = "income"
    region: str | None = None

    @model_validator(mode="after")
    def _validate_rate(self) -> Self:
        _check_rate(self.rate, "Bracket rate")
        return self


class SurtaxThreshold(ImmutableModel):
    threshold: float = Field(ge=0)
    rate: float

    @model_validator(mode="after")
    def _validate_rate(self) -> Self:
        _check_rate(self.rate, "Surtax rate")
        return self


class SolidarityRow(YearRow):
    """High-income surtax steps in force from ``year``."""

    thresholds: Sequence[SurtaxThreshold]

    @model_validator(mode="after")
    def _validate_thresholds(self) -> Self:
        if not self.thresholds:
            raise ConfigurationError("Solidarity rows require at least one threshold")
        return self

    def as_pairs(self) -> tuple[tuple[float, float], ...]:
        return tuple((step.threshold, step.rate) for step in self.thresholds)


class SocialSecurityRow(YearRow):
    """Portuguese social security rates and the freelance monthly cap."""

    employment_rate: float
    freelance_rate: float
    freelance_coefficient: float
    freelance_cap_monthly: float = Field(gt=0)
    dividend_rate: float = 0.0

    @model_validator(mode="after")
    def _validate_rates(self) -> Self:
        _check_rate(self.employment_rate, "Employment social security rate")
        _check_rate(self.freelance_rate, "Freelance social security rate")
        _check_rate(self.freelance_coefficient, "Freelance relevant-income coefficient")
        _check_rate(self.dividend_rate, "Dividend social security rate")
        return self


class DeductionRow(YearRow):
    specific_deduction: float = Field(ge=0)


class SimplifiedRegimeRow(YearRow):
    """Coefficients of the simplified freelance regime."""

    services_coefficient: float
    goods_coefficient: float
    required_expense_ratio: float = 0.15

    @model_validator(mode="after")
    def _validate_coefficients(self) -> Self:
        _check_rate(self.services_coefficient, "Services coefficient")
        _check_rate(self.goods_coefficient, "Goods coefficient")
        _check_rate(self.required_expense_ratio, "Required expense ratio")
        return self

    def coefficient_for(self, freelance_type: str) -> float:
        if freelance_type == "goods":
            return self.goods_coefficient
        return self.services_coefficient


class DividendRow(YearRow):
    standard_rate: float
    blacklist_rate: float
    aggregation_share: float = 0.5

    @model_validator(mode="after")
    def _validate_rates(self) -> Self:
        _check_rate(self.standard_rate, "Standard dividend rate")
        _check_rate(self.blacklist_rate, "Blacklisted jurisdiction dividend rate")
        _check_rate(self.aggregation_share, "Aggregation share")
        return self


class SpecialRegimeRow(YearRow):
    """Parameters of a time-bounded preferential regime."""

    name: str
    duration_years: int
    domestic_employment_rate: float
    foreign_income_exempt: bool = True

    @model_validator(mode="after")
    def _validate_regime(self) -> Self:
        if self.duration_years <= 0:
            raise ConfigurationError(
                f"Special regime '{self.name}' must last at least one year"
            )
        _check_rate(self.domestic_employment_rate, "Special regime employment rate")
        return self


class ForeignTaxCreditRow(YearRow):
    """Withholding rates applied at source by ``source_jurisdiction``."""

    source_jurisdiction: str
    withholding_rates: Mapping[str, float] = Field(default_factory=dict)

    @field_validator("source_jurisdiction", mode="before")
    @classmethod
    def _normalise_source(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("withholding_rates", mode="before")
    @classmethod
    def _coerce_rates(cls, value: Any) -> Mapping[str, float]:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {str(key).lower(): float(rate) for key, rate in value.items()}
        raise ConfigurationError("Withholding rates must be provided as a mapping")

    @model_validator(mode="after")
    def _validate_rates(self) -> Self:
        for income_type, rate in self.withholding_rates.items():
            _check_rate(rate, f"Withholding rate for {income_type}")
        return self

    def rate_for(self, income_type: str) -> float:
        return self.withholding_rates.get(income_type, 0.0)


class MinimumSubsistenceRow(YearRow):
    amount: float = Field(ge=0)


class NationalInsuranceRow(YearRow):
    """Class 1/4 marginal step, or the class 2 flat weekly charge."""

    ni_class: Literal[1, 2, 4] = Field(alias="class")
    threshold: float = Field(default=0.0, ge=0)
    rate: float = 0.0
    weekly_rate: float | None = Field(default=None, ge=0)
    small_profits_threshold: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _validate_class(self) -> Self:
        _check_rate(self.rate, "National Insurance rate")
        if self.ni_class == 2 and (
            self.weekly_rate is None or self.small_profits_threshold is None
        ):
            raise ConfigurationError(
                "Class 2 National Insurance rows require weekly_rate and small_profits_threshold"
            )
        return self


class AllowanceRow(YearRow):
    """UK allowances in force from ``year``."""

    personal_allowance: float = Field(ge=0)
    reduction_threshold: float = Field(default=100000.0, ge=0)
    reduction_rate: float = Field(default=0.5, ge=0)
    trading_allowance: float = Field(default=0.0, ge=0)
    dividend_allowance: float = Field(default=0.0, ge=0)
    savings_allowance_basic: float = Field(default=0.0, ge=0)
    savings_allowance_higher: float = Field(default=0.0, ge=0)
    savings_allowance_additional: float = Field(default=0.0, ge=0)


class PortugalReferenceData(ImmutableModel):
    """Reference tables for the Portuguese implementation."""

    jurisdiction: Literal["PT"] = "PT"
    name: str = "Portugal"
    currency: str = "EUR"
    tax_brackets: Sequence[TaxBracketRow]
    social_security: Sequence[SocialSecurityRow]
    solidarity: Sequence[SolidarityRow]
    deductions: Sequence[DeductionRow]
    simplified_regime: Sequence[SimplifiedRegimeRow]
    dividends: Sequence[DividendRow]
    special_regimes: Sequence[SpecialRegimeRow] = Field(default_factory=tuple)
    foreign_tax_credit: Sequence[ForeignTaxCreditRow] = Field(default_factory=tuple)
    minimum_subsistence: Sequence[MinimumSubsistenceRow] = Field(default_factory=tuple)
    qualifying_regions: tuple[str, ...] = ()
    blacklisted_jurisdictions: tuple[str, ...] = ()
    flat_rate_comparison_sources: tuple[str, ...] = ()

    @field_validator(
        "qualifying_regions",
        "blacklisted_jurisdictions",
        "flat_rate_comparison_sources",
        mode="before",
    )
    @classmethod
    def _coerce_codes(cls, value: Any) -> tuple[str, ...]:
        return _normalise_codes(value)


class UnitedKingdomReferenceData(ImmutableModel):
    """Reference tables for the United Kingdom implementation."""

    jurisdiction: Literal["GB"] = "GB"
    name: str = "United Kingdom"
    currency: str = "GBP"
    tax_brackets: Sequence[TaxBracketRow]
    national_insurance: Sequence[NationalInsuranceRow]
    allowances: Sequence[AllowanceRow]
    foreign_tax_credit: Sequence[ForeignTaxCreditRow] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_income_types(self) -> Self:
        unknown = {row.income_type for row in self.tax_brackets} - {"income", "dividend"}
        if unknown:
            raise ConfigurationError(
                f"Unsupported UK bracket income types: {sorted(unknown)}"
            )
        return self


ReferenceDataset = Annotated[
    Union[PortugalReferenceData, UnitedKingdomReferenceData],
    Field(discriminator="jurisdiction"),
]


class ManifestEntry(ImmutableModel):
    """Entry describing a bundled jurisdiction dataset."""

    jurisdiction: str
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def _normalise_code(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.jurisdiction.lower()}.yaml"


class ReferenceManifest(ImmutableModel):
    """Manifest describing the bundled reference datasets."""

    jurisdictions: Sequence[ManifestEntry]

    @model_validator(mode="after")
    def _validate_codes(self) -> Self:
        seen: set[str] = set()
        for entry in self.jurisdictions:
            if entry.jurisdiction in seen:
                raise ConfigurationError(
                    f"Duplicate jurisdiction {entry.jurisdiction} declared in the manifest"
                )
            seen.add(entry.jurisdiction)
        return self

    def get_entry(self, code: str) -> ManifestEntry:
        for entry in self.jurisdictions:
            if entry.jurisdiction == code:
                return entry
        raise KeyError(code)

    @computed_field
    @property
    def supported_jurisdictions(self) -> tuple[str, ...]:
        return tuple(sorted(entry.jurisdiction for entry in self.jurisdictions))


__all__ = [
    "AllowanceRow",
    "ConfigurationError",
    "DeductionRow",
    "DividendRow",
    "ForeignTaxCreditRow",
    "ImmutableModel",
    "ManifestEntry",
    "MinimumSubsistenceRow",
    "NationalInsuranceRow",
    "PortugalReferenceData",
    "ReferenceDataset",
    "ReferenceManifest",
    "SimplifiedRegimeRow",
    "SocialSecurityRow",
    "SolidarityRow",
    "SpecialRegimeRow",
    "SurtaxThreshold",
    "TaxBracketRow",
    "UnitedKingdomReferenceData",
    "YearRow",
]
