"""Tests for the SQL job metadata repository against in-memory SQLite."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterator

import pytest
from sqlalchemy import Engine, text

from joblist.db import (
    JobStatusConflictError,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyJobMetadataService,
    db_create_engine,
)
from joblist.domain import JOB_STATUS_ACTIVE, JOB_STATUS_CANCELLED, JOB_STATUS_DONE, JobRecord

_SCHEMA_STATEMENTS = (
    """
    CREATE TABLE job_series (
        series_id INTEGER PRIMARY KEY,
        user_identity TEXT NOT NULL,
        name TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE job (
        job_id INTEGER PRIMARY KEY,
        series_id INTEGER NOT NULL REFERENCES job_series(series_id),
        status TEXT NOT NULL,
        instance_reference TEXT,
        output_location TEXT,
        name TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        submitted_at_utc TIMESTAMP
    )
    """,
)


@pytest.fixture
def engine() -> Iterator[Engine]:
    """Create a shared in-memory database seeded with two series and three jobs."""

    sqlite_engine = db_create_engine("sqlite:///:memory:")
    with sqlite_engine.begin() as connection:
        for statement in _SCHEMA_STATEMENTS:
            connection.execute(text(statement))
        connection.execute(
            text(
                "INSERT INTO job_series (series_id, user_identity, name, description) VALUES "
                "(1, 'alice', 'Parameter Sweep', 'grid search'), "
                "(2, 'bob', 'Baseline', 'random seeds')"
            )
        )
        connection.execute(
            text(
                "INSERT INTO job (job_id, series_id, status, instance_reference, output_location, name) VALUES "
                "(12, 1, 'Done', 'i-12', 'runs/12/', 'third'), "
                "(10, 1, 'Active', 'i-10', 'runs/10/', 'first'), "
                "(11, 2, 'Pending', NULL, NULL, 'other')"
            )
        )
    yield sqlite_engine
    sqlite_engine.dispose()


@pytest.fixture
def metadata_service(engine: Engine) -> SQLAlchemyJobMetadataService:
    return SQLAlchemyJobMetadataService(engine=engine)


def test_db_job_and_series_lookup_map_rows(metadata_service: SQLAlchemyJobMetadataService) -> None:
    """Rows map to typed records; unknown ids return None."""

    job = metadata_service.db_job_get_by_id(10)
    series = metadata_service.db_series_get_by_id(1)

    assert job == JobRecord(
        job_id=10,
        series_id=1,
        status=JOB_STATUS_ACTIVE,
        instance_reference="i-10",
        output_location="runs/10/",
        name="first",
        description="",
        submitted_at_utc=None,
    )
    assert series is not None and series.user == "alice"
    assert metadata_service.db_job_get_by_id(999) is None
    assert metadata_service.db_series_get_by_id(999) is None


def test_db_series_job_list_is_ordered_by_job_id(metadata_service: SQLAlchemyJobMetadataService) -> None:
    """Series job listings are stable across calls."""

    jobs = metadata_service.db_series_job_list(1)

    assert [job.job_id for job in jobs] == [10, 12]


def test_db_series_query_combines_filters(metadata_service: SQLAlchemyJobMetadataService) -> None:
    """Owner matches exactly; name and description match substrings case-insensitively."""

    assert [series.series_id for series in metadata_service.db_series_query("alice", None, None)] == [1]
    assert [series.series_id for series in metadata_service.db_series_query(None, "SWEEP", None)] == [1]
    assert [series.series_id for series in metadata_service.db_series_query(None, None, "seed")] == [2]
    assert metadata_service.db_series_query("alice", None, "seed") == []
    assert [series.series_id for series in metadata_service.db_series_query(None, None, None)] == [1, 2]


def test_db_job_save_is_compare_and_set(metadata_service: SQLAlchemyJobMetadataService) -> None:
    """A write based on a stale status loses and leaves the row unchanged."""

    job = metadata_service.db_job_get_by_id(10)
    assert job is not None

    saved_job = metadata_service.db_job_save(
        replace(job, status=JOB_STATUS_CANCELLED),
        expected_status=JOB_STATUS_ACTIVE,
    )
    assert saved_job.status == JOB_STATUS_CANCELLED

    with pytest.raises(JobStatusConflictError):
        metadata_service.db_job_save(
            replace(job, status=JOB_STATUS_DONE),
            expected_status=JOB_STATUS_ACTIVE,
        )
    assert metadata_service.db_job_get_by_id(10).status == JOB_STATUS_CANCELLED


def test_db_job_save_rejects_unknown_status_and_missing_job(metadata_service: SQLAlchemyJobMetadataService) -> None:
    """Unknown statuses never reach SQL; missing rows are reported."""

    job = metadata_service.db_job_get_by_id(10)

    with pytest.raises(ValueError):
        metadata_service.db_job_save(replace(job, status="Running"), expected_status=JOB_STATUS_ACTIVE)
    with pytest.raises(LookupError):
        metadata_service.db_job_save(
            JobRecord(job_id=404, series_id=1, status=JOB_STATUS_DONE, instance_reference=None, output_location=None),
            expected_status=JOB_STATUS_ACTIVE,
        )


def test_db_job_and_series_delete(metadata_service: SQLAlchemyJobMetadataService) -> None:
    """Jobs and then their series can be removed."""

    for job in metadata_service.db_series_job_list(1):
        metadata_service.db_job_delete(job)
    metadata_service.db_series_delete(metadata_service.db_series_get_by_id(1))

    assert metadata_service.db_series_job_list(1) == []
    assert metadata_service.db_series_get_by_id(1) is None
    assert metadata_service.db_job_get_by_id(11) is not None


def test_db_health_reports_ok_with_schema_and_error_without(engine: Engine) -> None:
    """Health probes both tables and fails with ConnectionError when they are missing."""

    health_service = SQLAlchemyDatabaseHealthService(engine=engine)
    assert health_service.db_check_health().status == "ok"
    assert health_service.db_connection_label().startswith("sqlite")

    empty_engine = db_create_engine("sqlite:///:memory:")
    try:
        with pytest.raises(ConnectionError):
            SQLAlchemyDatabaseHealthService(engine=empty_engine).db_check_health()
    finally:
        empty_engine.dispose()
