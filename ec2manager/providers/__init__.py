"""Cloud provider clients used by the dashboard workers."""

from __future__ import annotations

from ec2manager.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
    ProviderError,
    WaitTimeoutError,
)

__all__ = [
    "ProviderError",
    "ProviderCredentialsError",
    "ProviderAPIError",
    "ProviderConnectionError",
    "WaitTimeoutError",
]
