"""Low-level HTTP client for the platform REST APIs.

Handles service-role authentication, per-call timeouts and error mapping for
both the identity admin API (``/auth/v1``) and the record API (``/rest/v1``).
"""
from __future__ import annotations
from typing import Optional, Dict, Any

import requests

from .exceptions import (
    PlatformAPIError,
    PlatformConfigurationError,
    PlatformTimeoutError,
    PlatformUnavailableError,
)

REQUEST_TIMEOUT = 10


class PlatformClient:
    """HTTP client for the platform admin APIs.

    Every request carries the service-role key both as ``apikey`` and as a
    bearer token, and is bounded by ``timeout`` seconds.

    Usage:
        client = PlatformClient("https://project.supabase.co", service_role_key)
        response = client.get("/auth/v1/admin/users", params={"per_page": 50})
    """

    def __init__(self, base_url: str, service_role_key: str, timeout: float = REQUEST_TIMEOUT):
        """Initialize platform client.

        Args:
            base_url: Platform base URL (e.g. https://project.supabase.co)
            service_role_key: Service-role key with admin privileges
            timeout: Per-request timeout in seconds

        Raises:
            PlatformConfigurationError: If URL or key is empty
        """
        if not base_url or not service_role_key:
            raise PlatformConfigurationError(
                "Platform is not configured: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required"
            )
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._service_role_key = service_role_key

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Raises:
            PlatformAPIError: On HTTP error
            PlatformTimeoutError: When the timeout elapses
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))
        resp = self._send(requests.get, url, params=params, headers=headers, **kwargs)
        self._handle_error(resp, path)
        return resp

    def post(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute POST request with a JSON body.

        Raises:
            PlatformAPIError: On HTTP error
            PlatformTimeoutError: When the timeout elapses
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))
        resp = self._send(requests.post, url, json=json, headers=headers, **kwargs)
        self._handle_error(resp, path)
        return resp

    def delete(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute DELETE request.

        Raises:
            PlatformAPIError: On HTTP error
            PlatformTimeoutError: When the timeout elapses
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))
        resp = self._send(requests.delete, url, params=params, headers=headers, **kwargs)
        self._handle_error(resp, path)
        return resp

    def _send(self, method, url: str, **kwargs) -> requests.Response:
        try:
            return method(url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise PlatformTimeoutError(f"Request to {url} timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise PlatformUnavailableError(f"Request to {url} failed: {exc}") from exc

    def _handle_error(self, resp: requests.Response, endpoint: str) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check
            endpoint: Path used in the error message

        Raises:
            PlatformAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return
        message, code = _extract_error(resp)
        raise PlatformAPIError(resp.status_code, message, endpoint, code)


def _extract_error(resp: requests.Response) -> tuple[str, str | None]:
    """Return (message, code) from an auth or REST error body."""
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or f"HTTP {resp.status_code}").strip(), None
    if not isinstance(body, dict):
        return str(body), None
    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or body.get("error")
        or resp.text
    )
    code = body.get("error_code") or body.get("code")
    return str(message), (str(code) if code is not None else None)
