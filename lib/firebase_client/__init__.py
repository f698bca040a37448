from .client import FirebaseClient
from .config_types import ClientConfig
from .errors import (
    ApiError,
    AuthError,
    ClientClosedError,
    ConfigurationError,
    FirebaseClientError,
    NetworkError,
    RequestTimeout,
    SerializationError,
)
from .response import FirebaseResponse

__all__ = [
    "FirebaseClient",
    "ClientConfig",
    "FirebaseResponse",
    "FirebaseClientError",
    "ConfigurationError",
    "ClientClosedError",
    "SerializationError",
    "NetworkError",
    "RequestTimeout",
    "ApiError",
    "AuthError",
]
