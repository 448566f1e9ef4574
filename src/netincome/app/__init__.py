"""Application factory for the netincome HTTP surface."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import BadRequest

from netincome.config.reference_data import available_jurisdictions
from netincome.config.schema import ConfigurationError
from netincome.errors import TaxEngineError
from netincome.version import get_project_version

from .http import format_validation_error, problem_response
from .routes import register_routes

_LOGGER = logging.getLogger(__name__)


def create_app() -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__)
    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint for infrastructure monitoring."""

        return jsonify(
            {
                "status": "ok",
                "version": get_project_version(),
                "jurisdictions": list(available_jurisdictions()),
            }
        )

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        return problem_response(
            "validation_error", status=400, message=format_validation_error(error)
        ).to_response()

    @app.errorhandler(TaxEngineError)
    def handle_tax_engine_error(error: TaxEngineError):
        """Surface computation failures with their structured context."""

        return problem_response(
            error.error_code,
            status=422,
            message=str(error),
            context=dict(error.context),
        ).to_response()

    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(error: ConfigurationError):
        _LOGGER.error("Reference data configuration error: %s", error)
        return problem_response(
            "configuration_error", status=500, message=str(error)
        ).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        return problem_response("validation_error", status=400, message=str(error)).to_response()

    return app


__all__ = ["create_app"]
