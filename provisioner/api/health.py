"""Health check endpoints."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Liveness: the process answers."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness: the platform URL and service-role key are configured."""
    cfg = current_app.config.get("APP_CONFIG")
    if cfg is not None and not cfg.platform_configured:
        return ("platform not configured", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
