"""Expose the supported jurisdictions and their reference data coverage."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from netincome.app.http import problem_response
from netincome.config.reference_data import manifest_entries
from netincome.jurisdictions import bundled_registry

blueprint = Blueprint("jurisdictions", __name__, url_prefix="/api/v1/jurisdictions")


def _describe_all() -> list[dict[str, Any]]:
    registry = bundled_registry()
    described: list[dict[str, Any]] = []
    for entry in manifest_entries():
        implementation = registry.get(entry.jurisdiction)
        if implementation is None:
            continue
        payload = dict(implementation.describe())
        payload["status"] = entry.status
        if entry.notes_url:
            payload["notes_url"] = entry.notes_url
        described.append(payload)
    return described


@blueprint.get("")
def list_jurisdictions() -> tuple[Any, int]:
    """Return every jurisdiction the bundled configuration supports."""

    return jsonify({"jurisdictions": _describe_all()}), 200


@blueprint.get("/<code>")
def get_jurisdiction_details(code: str) -> tuple[Any, int]:
    normalised = code.strip().upper()
    for payload in _describe_all():
        if payload["code"] == normalised:
            return jsonify(payload), 200
    return problem_response(
        "not_found", status=404, message=f"Unknown jurisdiction '{normalised}'"
    ).to_response()
