"""Project-native typed exceptions for job lifecycle operations.

Every error carries a stable `error_code` and a human-readable message that is
safe to return to the caller.
"""

from __future__ import annotations

from typing import ClassVar


class JobListError(Exception):
    """Base exception for job list orchestration failures."""

    error_code: ClassVar[str] = "JOB_LIST_ERROR"


class JobNotFoundError(JobListError, LookupError):
    """Unknown or malformed job identifier."""

    error_code: ClassVar[str] = "JOB_NOT_FOUND"


class SeriesNotFoundError(JobListError, LookupError):
    """Unknown or malformed series identifier."""

    error_code: ClassVar[str] = "SERIES_NOT_FOUND"


class UnauthorizedActionError(JobListError, PermissionError):
    """Caller identity does not own the series; no mutation was made."""

    error_code: ClassVar[str] = "UNAUTHORIZED"

    def __init__(self, message: str, action: str):
        super().__init__(message)
        self.action = action


class InvalidJobStateError(JobListError, ValueError):
    """Operation is illegal for the job's current status."""

    error_code: ClassVar[str] = "INVALID_STATE"


class InvalidRequestError(JobListError, ValueError):
    """Request is missing a required input such as a filename."""

    error_code: ClassVar[str] = "INVALID_REQUEST"


class UpstreamFailureError(JobListError, RuntimeError):
    """Object store or compute provider call failed before any response bytes were sent."""

    error_code: ClassVar[str] = "UPSTREAM_FAILURE"


class StreamingFailureError(JobListError, RuntimeError):
    """Failure after response bytes were sent; the stream can only be truncated."""

    error_code: ClassVar[str] = "STREAMING_FAILURE"
