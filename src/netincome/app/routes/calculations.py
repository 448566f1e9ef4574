"""REST endpoint running net income calculations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Blueprint, Request, jsonify, request
from werkzeug.exceptions import BadRequest

from netincome.jurisdictions import bundled_registry
from netincome.models import CalculationDataset
from netincome.services import calculate_net_income

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract the JSON object body of ``req``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    if "reference_data" in data:
        raise BadRequest("Reference data is supplied by the server configuration")
    return dict(data)


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Calculate net income for the submitted records against bundled reference data."""

    payload = parse_calculation_payload(request)
    dataset = CalculationDataset.model_validate(payload)
    result = calculate_net_income(dataset, bundled_registry())
    return jsonify(result.model_dump(mode="json")), 200
