"""Platform admin API client library.

Architecture:
- client.py: HTTP client with service-role authentication and timeouts
- identities.py: Identity store operations (create, delete, lookup by email)
- records.py: Record store operations (profiles, user_roles, teachers)
- exceptions.py: Typed exceptions for error handling

Usage:
    from provisioner.core.platform import PlatformClient, IdentityService, RecordService

    client = PlatformClient("https://project.supabase.co", service_role_key)
    identities = IdentityService(client)
    identifier = identities.create_identity("a@example.com", "secret", full_name="A", username="a")
"""
from .client import PlatformClient, REQUEST_TIMEOUT
from .exceptions import (
    PlatformError,
    PlatformAPIError,
    PlatformConfigurationError,
    PlatformUnavailableError,
    PlatformTimeoutError,
    PlatformResponseError,
    IdentityAlreadyExistsError,
    IdentityNotFoundError,
)
from .identities import IdentityService
from .records import RecordService, PROFILES_TABLE, ROLES_TABLE, TEACHERS_TABLE

__all__ = [
    # Client
    "PlatformClient",
    "REQUEST_TIMEOUT",

    # Exceptions
    "PlatformError",
    "PlatformAPIError",
    "PlatformConfigurationError",
    "PlatformUnavailableError",
    "PlatformTimeoutError",
    "PlatformResponseError",
    "IdentityAlreadyExistsError",
    "IdentityNotFoundError",

    # Services
    "IdentityService",
    "RecordService",

    # Tables
    "PROFILES_TABLE",
    "ROLES_TABLE",
    "TEACHERS_TABLE",
]
