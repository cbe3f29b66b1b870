"""Ownership predicate guarding every mutating series and job operation."""

from __future__ import annotations

from .models import SeriesRecord


def domain_identity_is_authorized(caller_identity: str | None, series: SeriesRecord) -> bool:
    """Return whether the caller owns the series.

    Args:
        caller_identity: Already-verified caller identity string.
        series: Series whose owner is compared.

    Returns:
        bool: True only for an exact, case-sensitive match with the owner.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if caller_identity is None:
        return False
    return caller_identity == series.user
