"""Error taxonomy shared by the assistant core services."""

from __future__ import annotations


class AssistantCoreError(Exception):
    """Base class for all errors raised by the assistant core."""


class ConfigurationError(AssistantCoreError):
    """Raised when required configuration (API key, backend URL) is missing.

    Fatal for the operation that needs it, never retried.
    """


class AuthenticationError(ConfigurationError):
    """Raised when the language model provider API key is not configured."""


class NetworkError(AssistantCoreError):
    """Raised when a transport fails (connection error, timeout, non-2xx)."""


class DataError(AssistantCoreError):
    """Raised when a backend query fails."""


class NotAuthenticatedError(DataError):
    """Raised when an operation needs a signed-in user and there is none."""
