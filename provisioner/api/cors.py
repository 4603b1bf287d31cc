"""Cross-origin headers shared by the provisioning endpoints."""
from flask import Response, current_app

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Authorization, Content-Type, apikey, x-client-info",
    "Access-Control-Max-Age": "86400",
}


def cors_headers() -> dict[str, str]:
    """Return the CORS headers, honouring a configured allowed origin."""
    headers = dict(CORS_HEADERS)
    cfg = current_app.config.get("APP_CONFIG")
    if cfg is not None and cfg.cors_allow_origin:
        headers["Access-Control-Allow-Origin"] = cfg.cors_allow_origin
    return headers


def apply_cors(response: Response) -> Response:
    for name, value in cors_headers().items():
        response.headers[name] = value
    return response


def preflight_response() -> Response:
    """Empty success answer to an OPTIONS preflight."""
    return apply_cors(Response("ok", status=200, content_type="text/plain"))
