"""Blueprint registrations for application routes."""

from flask import Flask

from .calculations import blueprint as calculations_blueprint
from .jurisdictions import blueprint as jurisdictions_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with ``app``."""

    app.register_blueprint(calculations_blueprint)
    app.register_blueprint(jurisdictions_blueprint)
