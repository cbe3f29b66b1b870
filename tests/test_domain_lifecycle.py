"""Tests for job status vocabulary, transition table and ownership checks."""

from __future__ import annotations

import pytest

from joblist.domain import (
    JOB_STATUS_ACTIVE,
    JOB_STATUS_CANCELLED,
    JOB_STATUS_DONE,
    JOB_STATUS_FAILED,
    JOB_STATUS_PENDING,
    TRIGGER_CANCEL,
    TRIGGER_RECONCILE,
    InvalidJobTransitionError,
    SeriesRecord,
    domain_identity_is_authorized,
    domain_job_status_from_output_names,
    domain_job_status_is_terminal,
    domain_job_transition_is_legal,
    domain_job_validate_transition,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (JOB_STATUS_PENDING, False),
        (JOB_STATUS_ACTIVE, False),
        (JOB_STATUS_DONE, True),
        (JOB_STATUS_FAILED, True),
        (JOB_STATUS_CANCELLED, True),
    ],
)
def test_domain_job_status_terminal_set(status: str, expected: bool) -> None:
    """Only Done, Failed and Cancelled are terminal."""

    assert domain_job_status_is_terminal(status) is expected


def test_domain_job_status_terminal_rejects_unknown_status() -> None:
    """Unknown statuses are rejected instead of treated as running."""

    with pytest.raises(ValueError):
        domain_job_status_is_terminal("Running")


def test_domain_job_transition_table_allows_only_listed_moves() -> None:
    """Cancel applies to running jobs; reconcile only moves Active to Done or Failed."""

    assert domain_job_transition_is_legal(JOB_STATUS_PENDING, TRIGGER_CANCEL, JOB_STATUS_CANCELLED)
    assert domain_job_transition_is_legal(JOB_STATUS_ACTIVE, TRIGGER_CANCEL, JOB_STATUS_CANCELLED)
    assert domain_job_transition_is_legal(JOB_STATUS_ACTIVE, TRIGGER_RECONCILE, JOB_STATUS_DONE)
    assert domain_job_transition_is_legal(JOB_STATUS_ACTIVE, TRIGGER_RECONCILE, JOB_STATUS_FAILED)

    assert not domain_job_transition_is_legal(JOB_STATUS_PENDING, TRIGGER_RECONCILE, JOB_STATUS_DONE)
    assert not domain_job_transition_is_legal(JOB_STATUS_DONE, TRIGGER_CANCEL, JOB_STATUS_CANCELLED)
    assert not domain_job_transition_is_legal(JOB_STATUS_CANCELLED, TRIGGER_RECONCILE, JOB_STATUS_DONE)
    assert not domain_job_transition_is_legal(JOB_STATUS_FAILED, TRIGGER_RECONCILE, JOB_STATUS_DONE)


def test_domain_job_validate_transition_raises_with_context() -> None:
    """Illegal transitions raise with the attempted move attached."""

    assert domain_job_validate_transition(JOB_STATUS_ACTIVE, TRIGGER_RECONCILE, JOB_STATUS_DONE) == JOB_STATUS_DONE

    with pytest.raises(InvalidJobTransitionError) as error_info:
        domain_job_validate_transition(JOB_STATUS_DONE, TRIGGER_RECONCILE, JOB_STATUS_FAILED)

    assert error_info.value.from_status == JOB_STATUS_DONE
    assert error_info.value.trigger == TRIGGER_RECONCILE
    assert error_info.value.to_status == JOB_STATUS_FAILED


def test_domain_job_status_from_output_names() -> None:
    """An error.log object marks failure; any other output marks completion."""

    assert domain_job_status_from_output_names([]) is None
    assert domain_job_status_from_output_names(["out/result.csv", "out/stdout.log"]) == JOB_STATUS_DONE
    assert domain_job_status_from_output_names(["out/result.csv", "out/error.log"]) == JOB_STATUS_FAILED
    assert domain_job_status_from_output_names(["out/run-error.log"]) == JOB_STATUS_FAILED
    assert domain_job_status_from_output_names(["out/error.log.gz"]) == JOB_STATUS_DONE


def test_domain_identity_is_authorized_requires_exact_owner() -> None:
    """Ownership is an exact, case-sensitive identity match."""

    series = SeriesRecord(series_id=1, user="alice", name="sweep", description="")

    assert domain_identity_is_authorized("alice", series)
    assert not domain_identity_is_authorized("Alice", series)
    assert not domain_identity_is_authorized("bob", series)
    assert not domain_identity_is_authorized(None, series)
