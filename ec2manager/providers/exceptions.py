"""Provider-agnostic exception hierarchy."""

from __future__ import annotations


class ProviderError(Exception):
    """Base exception for all cloud provider failures."""


class ProviderCredentialsError(ProviderError):
    """Raised when credentials are missing, invalid or expired."""


class ProviderAPIError(ProviderError):
    """Raised when the provider API rejects a request.

    Parameters
    ----------
    message : str
        Human-readable error description
    error_code : str | None
        Provider error code (e.g., "UnauthorizedOperation")
    """

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class ProviderConnectionError(ProviderError):
    """Raised when the provider endpoint cannot be reached."""


class WaitTimeoutError(ProviderError):
    """Raised when an instance does not reach the expected state in time."""
