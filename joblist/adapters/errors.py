"""Project-native typed exceptions for object store and compute provider failures."""

from __future__ import annotations


class CloudAdapterError(Exception):
    """Base exception for cloud adapter failures.

    Attributes:
        provider_error_code: Optional error code reported by the provider.
    """

    def __init__(self, message: str, provider_error_code: str | None = None):
        super().__init__(message)
        self.provider_error_code = provider_error_code


class ObjectStoreError(CloudAdapterError, RuntimeError):
    """Object store call failed (unreachable store, denied access, broken stream)."""


class ObjectNotFoundError(ObjectStoreError, LookupError):
    """Requested bucket or object key does not exist."""


class ComputeProviderError(CloudAdapterError, RuntimeError):
    """Compute provider call failed; message carries the provider error verbatim."""
