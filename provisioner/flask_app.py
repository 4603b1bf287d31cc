"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.
"""
from __future__ import annotations
import logging
import os
from typing import Optional

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from provisioner.config import AppConfig, load_settings


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Preloaded configuration (defaults to load_settings())
    """
    cfg = cfg or load_settings()

    _configure_logging()

    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("MAX_CONTENT_LENGTH", str(5 * 1024 * 1024)))

    # Trust X-Forwarded-* headers from the platform gateway / nginx
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    # Register blueprints
    from provisioner.api import health, errors
    from provisioner.api import provisioning

    app.register_blueprint(health.bp)
    app.register_blueprint(provisioning.bp, url_prefix="/api/v1/provisioning")

    # Register error handlers
    errors.register_error_handlers(app)

    # Log startup info
    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    app.logger.info(f"[flask_app] Mode={mode_label}")
    app.logger.info("[flask_app] Provisioning API registered at /api/v1/provisioning")

    if cfg.demo_mode:
        app.logger.warning("[flask_app] Demo mode active - do not deploy with demo credentials")

    return app


def _configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
