"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path
from typing import Any, Callable

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from netincome.app import create_app  # noqa: E402
from netincome.config.reference_data import parse_reference_dataset  # noqa: E402
from netincome.config.schema import (  # noqa: E402
    PortugalReferenceData,
    UnitedKingdomReferenceData,
)
from netincome.jurisdictions import (  # noqa: E402
    JurisdictionRegistry,
    PortugalJurisdiction,
    UnitedKingdomJurisdiction,
    build_registry,
)
from netincome.models import IncomeRecord  # noqa: E402

# Round-number tables so expected figures can be worked out by hand.
PORTUGAL_TABLES: dict[str, Any] = {
    "jurisdiction": "PT",
    "tax_brackets": [
        {"year": 2024, "min": 0, "max": 10000, "rate": 0.10},
        {"year": 2024, "min": 10000, "max": 30000, "rate": 0.20},
        {"year": 2024, "min": 30000, "max": None, "rate": 0.40},
    ],
    "social_security": [
        {
            "year": 2024,
            "employment_rate": 0.11,
            "freelance_rate": 0.214,
            "freelance_coefficient": 0.70,
            "freelance_cap_monthly": 6000,
        }
    ],
    "solidarity": [
        {
            "year": 2024,
            "thresholds": [
                {"threshold": 80000, "rate": 0.025},
                {"threshold": 250000, "rate": 0.05},
            ],
        }
    ],
    "deductions": [{"year": 2024, "specific_deduction": 4000}],
    "simplified_regime": [
        {
            "year": 2024,
            "services_coefficient": 0.70,
            "goods_coefficient": 0.20,
            "required_expense_ratio": 0.15,
        }
    ],
    "dividends": [
        {"year": 2024, "standard_rate": 0.28, "blacklist_rate": 0.35, "aggregation_share": 0.5}
    ],
    "special_regimes": [
        {
            "year": 2009,
            "name": "NHR",
            "duration_years": 10,
            "domestic_employment_rate": 0.20,
            "foreign_income_exempt": True,
        }
    ],
    "foreign_tax_credit": [
        {"year": 2024, "source_jurisdiction": "US", "withholding_rates": {"dividend": 0.15}},
        {"year": 2024, "source_jurisdiction": "GB", "withholding_rates": {}},
    ],
    "minimum_subsistence": [{"year": 2026, "amount": 12000}],
    "qualifying_regions": ["PT", "ES", "FR"],
    "blacklisted_jurisdictions": ["KY"],
    "flat_rate_comparison_sources": ["GB"],
}

UNITED_KINGDOM_TABLES: dict[str, Any] = {
    "jurisdiction": "GB",
    "tax_brackets": [
        {"year": 2024, "min": 0, "max": 12570, "rate": 0.0},
        {"year": 2024, "min": 12570, "max": 50270, "rate": 0.20},
        {"year": 2024, "min": 50270, "max": 125140, "rate": 0.40},
        {"year": 2024, "min": 125140, "max": None, "rate": 0.45},
        {"year": 2024, "income_type": "dividend", "min": 0, "max": 37700, "rate": 0.0875},
        {"year": 2024, "income_type": "dividend", "min": 37700, "max": 125140, "rate": 0.3375},
        {"year": 2024, "income_type": "dividend", "min": 125140, "max": None, "rate": 0.3935},
    ],
    "national_insurance": [
        {"year": 2024, "class": 1, "threshold": 12570, "rate": 0.08},
        {"year": 2024, "class": 1, "threshold": 50270, "rate": 0.02},
        {"year": 2024, "class": 2, "weekly_rate": 3.45, "small_profits_threshold": 6725},
        {"year": 2024, "class": 4, "threshold": 12570, "rate": 0.06},
        {"year": 2024, "class": 4, "threshold": 50270, "rate": 0.02},
    ],
    "allowances": [
        {
            "year": 2024,
            "personal_allowance": 12570,
            "reduction_threshold": 100000,
            "reduction_rate": 0.5,
            "trading_allowance": 1000,
            "dividend_allowance": 500,
            "savings_allowance_basic": 1000,
            "savings_allowance_higher": 500,
            "savings_allowance_additional": 0,
        }
    ],
    "foreign_tax_credit": [
        {"year": 2024, "source_jurisdiction": "PT", "withholding_rates": {}},
    ],
}


@pytest.fixture()
def app() -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app()
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()


@pytest.fixture()
def portugal_data() -> PortugalReferenceData:
    return parse_reference_dataset(PORTUGAL_TABLES)  # type: ignore[return-value]


@pytest.fixture()
def united_kingdom_data() -> UnitedKingdomReferenceData:
    return parse_reference_dataset(UNITED_KINGDOM_TABLES)  # type: ignore[return-value]


@pytest.fixture()
def portugal(portugal_data: PortugalReferenceData) -> PortugalJurisdiction:
    return PortugalJurisdiction(portugal_data)


@pytest.fixture()
def united_kingdom(united_kingdom_data: UnitedKingdomReferenceData) -> UnitedKingdomJurisdiction:
    return UnitedKingdomJurisdiction(united_kingdom_data)


@pytest.fixture()
def registry(
    portugal_data: PortugalReferenceData, united_kingdom_data: UnitedKingdomReferenceData
) -> JurisdictionRegistry:
    return build_registry({"PT": portugal_data, "GB": united_kingdom_data})


@pytest.fixture()
def make_record() -> Callable[..., IncomeRecord]:
    """Build income records with sensible defaults for the fields a test ignores."""

    def _factory(**overrides: Any) -> IncomeRecord:
        payload: dict[str, Any] = {
            "year": 2024,
            "month": 3,
            "gross_amount": 5000,
            "currency": "EUR",
            "income_type": "employment",
            "source_jurisdiction": "PT",
        }
        payload.update(overrides)
        return IncomeRecord.model_validate(payload)

    return _factory
