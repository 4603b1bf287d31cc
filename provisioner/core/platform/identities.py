"""Identity store operations (credentialed principals)."""
from __future__ import annotations
import logging
from typing import Optional

from .client import PlatformClient
from .exceptions import (
    IdentityAlreadyExistsError,
    IdentityNotFoundError,
    PlatformAPIError,
    PlatformResponseError,
)

logger = logging.getLogger(__name__)

ADMIN_USERS_PATH = "/auth/v1/admin/users"

_DUPLICATE_CODES = {"email_exists", "user_already_exists"}
_DUPLICATE_MARKERS = ("already registered", "already been registered")


class IdentityService:
    """Service for managing identities in the platform auth store."""

    def __init__(self, client: PlatformClient):
        """Initialize identity service.

        Args:
            client: Configured platform client
        """
        self.client = client

    def create_identity(self, email: str, secret: str, *, full_name: str, username: str) -> str:
        """Create a confirmed identity and return its identifier.

        The confirmation flag is pre-set: batches are admin-initiated, so no
        verification email is sent.

        Raises:
            IdentityAlreadyExistsError: If the email is already registered
            PlatformAPIError: On any other API failure
            PlatformTimeoutError: When the outcome is unknown
            PlatformResponseError: When the identity store answered but its body has no usable id
        """
        payload = {
            "email": email,
            "password": secret,
            "email_confirm": True,
            "user_metadata": {"full_name": full_name, "username": username},
        }
        try:
            resp = self.client.post(ADMIN_USERS_PATH, json=payload)
        except PlatformAPIError as exc:
            if _is_duplicate(exc):
                raise IdentityAlreadyExistsError(f"Email '{email}' is already registered") from exc
            raise

        body = _decode(resp)
        user = body.get("user", body) if isinstance(body, dict) else None
        identifier = user.get("id") if isinstance(user, dict) else None
        if not identifier:
            raise PlatformResponseError(resp.status_code, "identity created without an id", ADMIN_USERS_PATH)
        logger.info(f"[identities] Identity created for {email} (id={identifier})")
        return identifier

    def delete_identity(self, identifier: str) -> None:
        """Delete an identity by identifier.

        Raises:
            IdentityNotFoundError: If the identity does not exist
            PlatformAPIError: On any other API failure
        """
        try:
            self.client.delete(f"{ADMIN_USERS_PATH}/{identifier}")
        except PlatformAPIError as exc:
            if exc.status_code == 404 or exc.code == "user_not_found" or "not found" in exc.message.lower():
                raise IdentityNotFoundError(f"Identity '{identifier}' not found") from exc
            raise
        logger.info(f"[identities] Identity {identifier} deleted")

    def find_identity_by_email(self, email: str) -> Optional[dict]:
        """Return the identity whose email matches exactly, or None.

        Raises:
            PlatformResponseError: If the listing is not a list of users
        """
        resp = self.client.get(ADMIN_USERS_PATH, params={"filter": email, "per_page": 50})
        body = _decode(resp)
        users = body.get("users") if isinstance(body, dict) else body
        if not isinstance(users, list):
            raise PlatformResponseError(resp.status_code, "unexpected user listing", ADMIN_USERS_PATH)
        wanted = email.strip().lower()
        for user in users:
            if isinstance(user, dict) and str(user.get("email") or "").lower() == wanted:
                return user
        return None


def _decode(resp):
    try:
        return resp.json()
    except ValueError as exc:
        raise PlatformResponseError(resp.status_code, "unexpected response body", ADMIN_USERS_PATH) from exc


def _is_duplicate(exc: PlatformAPIError) -> bool:
    if exc.code in _DUPLICATE_CODES:
        return True
    message = exc.message.lower()
    return any(marker in message for marker in _DUPLICATE_MARKERS)
