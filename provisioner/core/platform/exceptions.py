"""Platform-specific exceptions for error handling."""


class PlatformError(Exception):
    """Base exception for all identity/record store operations."""
    pass


class PlatformConfigurationError(PlatformError):
    """Platform URL or service-role key is missing."""
    pass


class PlatformAPIError(PlatformError):
    """HTTP error from the platform REST APIs.

    Attributes:
        status_code: HTTP status code
        message: Error message extracted from the response
        endpoint: API endpoint that failed
        code: Machine-readable error code from the body, when present
    """

    def __init__(self, status_code: int, message: str, endpoint: str, code: str | None = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.code = code
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class PlatformUnavailableError(PlatformError):
    """The request never produced an HTTP response (DNS, refused connection, TLS)."""
    pass


class PlatformTimeoutError(PlatformError):
    """The request exceeded its timeout; the remote outcome is unknown."""
    pass


class IdentityAlreadyExistsError(PlatformError):
    """Identity creation failed - email already registered."""
    pass


class IdentityNotFoundError(PlatformError):
    """Identity lookup or deletion failed - identifier does not exist."""
    pass


class PlatformResponseError(PlatformAPIError):
    """The request succeeded but its body could not be decoded into the expected shape.

    For writes the remote outcome is unknown, as with a timeout.
    """
    pass
