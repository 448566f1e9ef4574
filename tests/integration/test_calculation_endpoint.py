"""Integration tests for the net income calculation REST endpoint."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

import pytest
from flask.testing import FlaskClient


def _record(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "year": 2024,
        "month": 3,
        "gross_amount": 5000,
        "currency": "EUR",
        "income_type": "employment",
        "source_jurisdiction": "PT",
    }
    record.update(overrides)
    return record


def test_calculation_endpoint_returns_result_sequences(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"income_records": [_record()]})

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()

    (period,) = payload["residency_periods"]
    assert period["jurisdiction"] == "PT"
    assert period["method"] == "automatic"

    (row,) = payload["monthly"]
    # Social security of 550 and the specific deduction leave nothing taxable.
    assert row["social_security"] == pytest.approx(550)
    assert row["tax_amount"] == 0
    assert row["net_income"] == pytest.approx(4450)

    (summary,) = payload["annual"]
    assert summary["currency"] == "EUR"
    assert summary["net_income"] == pytest.approx(4450)
    assert len(payload["annual_by_type"]) == 1


def test_calculation_endpoint_subsistence_year_keeps_net_below_gross(
    client: FlaskClient,
) -> None:
    response = client.post(
        "/api/v1/calculations", json={"income_records": [_record(year=2026)]}
    )

    assert response.status_code == HTTPStatus.OK
    (summary,) = response.get_json()["annual"]
    # No tax is charged, so there is nothing to relieve.
    assert summary["minimum_subsistence_adjustment"] == 0
    assert summary["net_income"] == pytest.approx(4450)
    assert summary["net_income"] <= summary["gross_income"]


def test_calculation_endpoint_accepts_manual_override(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={
            "income_records": [_record(currency="GBP", source_jurisdiction="GB")],
            "manual_residency": {"2024": {"year": 2024, "jurisdiction": "GB"}},
        },
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["annual"][0]["jurisdiction"] == "GB"
    assert payload["annual"][0]["determination_method"] == "manual"


def test_calculation_endpoint_returns_validation_error(client: FlaskClient) -> None:
    """Invalid payloads should return a structured 400 response."""

    response = client.post(
        "/api/v1/calculations",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "bad_request"
    assert "JSON" in payload["message"].upper()


def test_calculation_endpoint_rejects_non_object(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json=[_record()])

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["message"] == "Request JSON must be an object"


def test_calculation_endpoint_rejects_client_reference_data(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={"income_records": [_record()], "reference_data": {}},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "bad_request"


def test_calculation_endpoint_rejects_invalid_records(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={"income_records": [_record(gross_amount=-1)]},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert "gross_amount" in payload["message"]


def test_calculation_endpoint_requires_records(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"income_records": []})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "validation_error"


def test_unresolved_residency_is_unprocessable(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={"income_records": [_record(), _record(month=4, source_jurisdiction="GB")]},
    )

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    payload = response.get_json()
    assert payload["error"] == "unresolved_residency"
    assert payload["context"]["year"] == 2024
    assert set(payload["context"]["candidates"]) == {"GB", "PT"}


def test_missing_exchange_rate_is_unprocessable(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={"income_records": [_record(currency="USD")]},
    )

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    payload = response.get_json()
    assert payload["error"] == "missing_reference_data"
    assert payload["context"]["table"] == "exchange_rates"
