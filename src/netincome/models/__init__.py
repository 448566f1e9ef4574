"""Typed records and results shared by the calculation core.

Inputs arrive in one canonical shape from the loader boundary and every
result is a frozen model, so nothing downstream branches on field-name
variants or mutates a computed value.
"""

from .records import (
    Accommodation,
    CalculationDataset,
    DeterminationMethod,
    IncomeRecord,
    LocationTransition,
    ResidencyPeriod,
)
from .results import (
    STANDARD_REGIME_LABEL,
    AnnualSummary,
    AnnualTypeSummary,
    CalculationResult,
    MonthlyResult,
    PeriodAdjustments,
    ResidencyTestResult,
    SpecialRegimeStatus,
    TaxComputationResult,
)

__all__ = [
    "Accommodation",
    "AnnualSummary",
    "AnnualTypeSummary",
    "CalculationDataset",
    "CalculationResult",
    "DeterminationMethod",
    "IncomeRecord",
    "LocationTransition",
    "MonthlyResult",
    "PeriodAdjustments",
    "ResidencyPeriod",
    "ResidencyTestResult",
    "STANDARD_REGIME_LABEL",
    "SpecialRegimeStatus",
    "TaxComputationResult",
]
