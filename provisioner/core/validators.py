"""Input validation for provisioning requests."""
from __future__ import annotations
from typing import Any

from .errors import ValidationError
from .models import ENTRY_FIELDS, Role, entry_value

VALID_ROLE_TAGS = [role.value for role in Role]


def validate_batch(payload: Any) -> tuple[list, Role]:
    """Check the whole-batch shape and return (entries, role).

    Individual entries are not inspected here; a malformed row must not
    block the rest of the batch.

    Args:
        payload: Decoded request body

    Returns:
        The entry list and the parsed role

    Raises:
        ValidationError: If the body, entry list or role tag is unusable
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    entries = payload.get("entries", payload.get("users"))
    role_tag = payload.get("role", payload.get("userType"))

    if entries is None or not isinstance(entries, list) or not role_tag:
        raise ValidationError('Fields "entries" (array) and "role" (string) are required')

    role = Role.parse(role_tag)
    if role is None:
        raise ValidationError(
            f'Invalid "role" value ({role_tag}). Must be one of {", ".join(VALID_ROLE_TAGS)}'
        )
    return entries, role


def missing_fields(raw: Any) -> list[str]:
    """Return the required fields an entry lacks, in canonical order."""
    return [name for name in ENTRY_FIELDS if not entry_value(raw, name)]


def validate_identifier(payload: Any) -> str:
    """Extract the identifier of a deprovisioning request.

    Raises:
        ValidationError: If the body is not an object or has no identifier
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    identifier = payload.get("identifier") or payload.get("profile_id")
    if not isinstance(identifier, str) or not identifier.strip():
        raise ValidationError('Field "identifier" is required')
    return identifier.strip()
