from __future__ import annotations


class FirebaseClientError(Exception):
    """Base client error."""


class ConfigurationError(FirebaseClientError):
    """Client was configured or used incorrectly."""


class ClientClosedError(ConfigurationError):
    """Operation attempted after close()."""


class SerializationError(FirebaseClientError):
    """Write payload could not be encoded as JSON."""


class NetworkError(FirebaseClientError):
    """Transport/network layer error."""


class RequestTimeout(NetworkError):
    """Connection or request exceeded the configured timeout."""


class ApiError(FirebaseClientError):
    def __init__(self, status_code: int, message: str, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthError(ApiError):
    """Auth-related API error."""
