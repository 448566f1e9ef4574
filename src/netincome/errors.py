"""Typed error taxonomy raised by the tax computation core.

Every error carries structured context (year, table name, candidate list)
alongside the formatted message so callers can react without parsing
strings. None of these conditions is recovered inside the core.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

MIN_YEAR = 1900
MAX_YEAR = 2200


class TaxEngineError(ValueError):
    """Base class for all fatal computation errors."""

    error_code = "tax_engine_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context: Mapping[str, Any] = MappingProxyType(
            {key: value for key, value in context.items() if value is not None}
        )


class MissingReferenceData(TaxEngineError):
    """Raised when no reference table row governs the requested year."""

    error_code = "missing_reference_data"

    def __init__(
        self,
        table: str,
        year: int | None = None,
        *,
        jurisdiction: str | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> None:
        parts = [f"No '{table}' reference data"]
        if jurisdiction:
            parts.append(f"for {jurisdiction}")
        if year is not None:
            parts.append(f"governing year {year}")
        if filters:
            rendered = ", ".join(f"{key}={value}" for key, value in filters.items())
            parts.append(f"({rendered})")
        super().__init__(
            " ".join(parts),
            table=table,
            year=year,
            jurisdiction=jurisdiction,
            filters=dict(filters) if filters else None,
        )
        self.table = table
        self.year = year
        self.jurisdiction = jurisdiction


class InvalidYear(TaxEngineError):
    """Raised for non-integer or out-of-domain year arguments."""

    error_code = "invalid_year"

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Invalid year {value!r}: expected an integer between {MIN_YEAR} and {MAX_YEAR}",
            value=repr(value),
        )
        self.value = value


class UnsupportedIncomeType(TaxEngineError):
    """Raised when a jurisdiction has no rule for an income type."""

    error_code = "unsupported_income_type"

    def __init__(self, income_type: str, jurisdiction: str) -> None:
        super().__init__(
            f"Income type '{income_type}' is not supported by jurisdiction {jurisdiction}",
            income_type=income_type,
            jurisdiction=jurisdiction,
        )
        self.income_type = income_type
        self.jurisdiction = jurisdiction


class UnsupportedJurisdiction(TaxEngineError):
    """Raised when a jurisdiction code has no registered implementation."""

    error_code = "unsupported_jurisdiction"

    def __init__(self, code: str, *, available: Iterable[str] = ()) -> None:
        known = sorted(available)
        message = f"No tax implementation registered for jurisdiction '{code}'"
        if known:
            message += f" (available: {', '.join(known)})"
        super().__init__(message, code=code, available=known or None)
        self.code = code


class UnresolvedResidency(TaxEngineError):
    """Raised when residency cannot be determined without a manual override."""

    error_code = "unresolved_residency"

    def __init__(self, year: int, candidates: Iterable[str] = (), *, reason: str) -> None:
        ordered = tuple(candidates)
        message = f"Cannot determine a single tax residency for {year}: {reason}."
        if ordered:
            message += f" Dual resident in: {', '.join(ordered)}."
        message += " Supply a manual residency override for this year."
        super().__init__(
            message,
            year=year,
            candidates=list(ordered) or None,
            reason=reason,
        )
        self.year = year
        self.candidates = ordered
        self.reason = reason


def ensure_year(value: Any) -> int:
    """Return ``value`` when it is a valid tax year, else raise ``InvalidYear``."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidYear(value)
    if not MIN_YEAR <= value <= MAX_YEAR:
        raise InvalidYear(value)
    return value


__all__ = [
    "InvalidYear",
    "MAX_YEAR",
    "MIN_YEAR",
    "MissingReferenceData",
    "TaxEngineError",
    "UnresolvedResidency",
    "UnsupportedIncomeType",
    "UnsupportedJurisdiction",
    "ensure_year",
]
