"""Provisioning HTTP endpoints (bulk signup and deprovisioning).

Both endpoints delegate all business logic to the provisioning service
layer and answer CORS preflight requests without authentication.

Architecture:
    POST /api/v1/provisioning/bulk-signup  -> validate_batch, then ProvisioningService.provision
    POST /api/v1/provisioning/deprovision  -> validate_identifier, then ProvisioningService.deprovision

Requests are validated before the service is built, so a malformed body is
rejected with 400 even when the platform is not configured.

Security:
    - Optional static Bearer token (PROVISIONING_API_TOKEN), compared in constant time
    - The platform service-role key never leaves the server
"""

from __future__ import annotations
import hashlib
import hmac
import logging
from typing import Any

from flask import Blueprint, request, jsonify, current_app
from werkzeug.exceptions import BadRequest

from provisioner.api.cors import apply_cors, preflight_response
from provisioner.core.errors import ProvisioningError, ValidationError
from provisioner.core.platform import PlatformConfigurationError
from provisioner.core.provisioning_service import ProvisioningService, build_service
from provisioner.core.validators import validate_batch, validate_identifier

bp = Blueprint("provisioning", __name__)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Request plumbing
# ─────────────────────────────────────────────────────────────────────────────

@bp.after_request
def add_cors_headers(response):
    return apply_cors(response)


@bp.before_request
def authenticate():
    """Require the configured Bearer token on every non-preflight request."""
    if request.method == "OPTIONS":
        return None

    cfg = current_app.config["APP_CONFIG"]
    if not cfg.api_token:
        return None

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return jsonify({"error": "Unauthorized", "message": "Authorization: Bearer <token> required"}), 401

    token = auth_header[7:].strip()
    if not token or not hmac.compare_digest(token, cfg.api_token):
        token_hash = hashlib.sha256(token.encode()).hexdigest()[:12]
        logger.warning(f"Rejected provisioning token | token_hash={token_hash} | path={request.path}")
        return jsonify({"error": "Unauthorized", "message": "Invalid token"}), 401
    return None


def _json_body() -> Any:
    try:
        return request.get_json(force=True)
    except BadRequest:
        raise ValidationError("Request body must be valid JSON")


def _service() -> ProvisioningService:
    cfg = current_app.config["APP_CONFIG"]
    factory = current_app.config.get("PROVISIONING_SERVICE_FACTORY") or build_service
    return factory(cfg)


def _batch_error(message: str) -> dict:
    return {
        "overallSuccess": False,
        "successCount": 0,
        "failures": [message],
        "successes": [],
        "error": message,
    }


# ─────────────────────────────────────────────────────────────────────────────
# Endpoints
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/bulk-signup", methods=["POST", "OPTIONS"])
def bulk_signup():
    """Provision a batch of accounts sharing one role.

    Always answers 200 once the batch passed validation; per-row failures
    are reported inside the body.
    """
    if request.method == "OPTIONS":
        return preflight_response()

    try:
        entries, role = validate_batch(_json_body())
        report = _service().provision(entries, role)
    except ValidationError as error:
        return jsonify(_batch_error(error.detail)), error.status
    except PlatformConfigurationError as error:
        logger.error(f"Bulk signup rejected: {error}")
        return jsonify(_batch_error(str(error))), 500

    return jsonify(report.to_dict()), 200


@bp.route("/deprovision", methods=["POST", "OPTIONS"])
def deprovision():
    """Tear down identity, teacher record, role assignments and profile."""
    if request.method == "OPTIONS":
        return preflight_response()

    try:
        identifier = validate_identifier(_json_body())
        _service().deprovision(identifier)
    except ProvisioningError as error:
        return jsonify(error.to_dict()), error.status
    except PlatformConfigurationError as error:
        logger.error(f"Deprovision rejected: {error}")
        return jsonify({"ok": False, "error": str(error)}), 500

    return jsonify({"ok": True, "message": "Identity, profile and role records removed"}), 200
