"""Record store operations: profiles, role assignments and teacher rows."""
from __future__ import annotations
import logging

from .client import PlatformClient

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
ROLES_TABLE = "user_roles"
TEACHERS_TABLE = "teachers"


class RecordService:
    """Service for inserting and deleting rows through the REST API."""

    def __init__(self, client: PlatformClient):
        """Initialize record service.

        Args:
            client: Configured platform client
        """
        self.client = client

    def insert(self, table: str, row: dict) -> None:
        """Insert one row without reading it back."""
        self.client.post(f"/rest/v1/{table}", json=row, headers={"Prefer": "return=minimal"})

    def delete_where(self, table: str, column: str, value: str) -> int:
        """Delete rows where ``column`` equals ``value``.

        Returns:
            Number of rows removed (0 when nothing matched)
        """
        resp = self.client.delete(
            f"/rest/v1/{table}",
            params={column: f"eq.{value}"},
            headers={"Prefer": "return=representation"},
        )
        try:
            removed = resp.json()
        except ValueError:
            return 0
        return len(removed) if isinstance(removed, list) else 0

    def insert_profile(self, identifier: str, *, full_name: str, username: str, email: str) -> None:
        """Insert the profile row; its id is always the identity identifier."""
        self.insert(PROFILES_TABLE, {
            "id": identifier,
            "full_name": full_name,
            "username": username,
            "email": email,
        })

    def insert_role_assignment(self, identifier: str, role: str) -> None:
        self.insert(ROLES_TABLE, {"user_id": identifier, "role": role})

    def insert_teacher(self, identifier: str) -> None:
        self.insert(TEACHERS_TABLE, {"profile_id": identifier})

    def delete_profile(self, identifier: str) -> int:
        return self.delete_where(PROFILES_TABLE, "id", identifier)

    def delete_role_assignments(self, identifier: str) -> int:
        return self.delete_where(ROLES_TABLE, "user_id", identifier)

    def delete_teacher(self, identifier: str) -> int:
        return self.delete_where(TEACHERS_TABLE, "profile_id", identifier)
