"""Provably-fair range draw service (Flask application package)."""

from __future__ import annotations

from typing import Any

from flask import Flask

from dotenv import load_dotenv


def create_app(overrides: dict[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        overrides: Config values applied after the environment config,
            e.g. ``{"DB_BACKEND": "memory"}`` in tests.

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from fairdraw.config import get_config
    from fairdraw.db import init_db
    from fairdraw.error_handlers import register_error_handlers
    from fairdraw.logging_config import configure_logging
    from fairdraw.routes.draw import draw_bp
    from fairdraw.routes.health import health_bp

    app = Flask(__name__)
    app.config.from_object(get_config())
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    init_db(app)
    register_error_handlers(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(draw_bp)

    return app
