"""Database service for job and series metadata persistence."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from joblist.domain import JOB_STATUSES, JobRecord, SeriesRecord

from .interfaces import JobMetadataRepositoryPort, JobStatusConflictError

_JOB_COLUMNS = (
    "job_id, series_id, status, instance_reference, output_location, "
    "name, description, submitted_at_utc"
)
_SERIES_COLUMNS = "series_id, user_identity, name, description"


class SQLAlchemyJobMetadataService(JobMetadataRepositoryPort):
    """SQLAlchemy-backed job metadata service.

    Status writes are compare-and-set on the previously read status so two
    writers racing on the same job cannot both win.
    """

    def __init__(self, engine: Engine):
        """Initialize job metadata persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_job_get_by_id(self, job_id: int) -> JobRecord | None:
        """Fetch one job by id.

        Args:
            job_id: Job identifier.

        Returns:
            JobRecord | None: Matching job or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(f"SELECT {_JOB_COLUMNS} FROM job WHERE job_id = :job_id"),
                    {"job_id": job_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to fetch job by id") from error

        if row is None:
            return None
        return self._map_job_record(row)

    def db_series_get_by_id(self, series_id: int) -> SeriesRecord | None:
        """Fetch one series by id.

        Args:
            series_id: Series identifier.

        Returns:
            SeriesRecord | None: Matching series or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(f"SELECT {_SERIES_COLUMNS} FROM job_series WHERE series_id = :series_id"),
                    {"series_id": series_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to fetch series by id") from error

        if row is None:
            return None
        return self._map_series_record(row)

    def db_series_job_list(self, series_id: int) -> list[JobRecord]:
        """List jobs of one series ordered by job id.

        Args:
            series_id: Series identifier.

        Returns:
            list[JobRecord]: Ordered job rows.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(f"SELECT {_JOB_COLUMNS} FROM job WHERE series_id = :series_id ORDER BY job_id ASC"),
                    {"series_id": series_id},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list series jobs") from error

        return [self._map_job_record(row) for row in rows]

    def db_series_query(
        self,
        user: str | None,
        name: str | None,
        description: str | None,
    ) -> list[SeriesRecord]:
        """Query series with optional filters combined by AND.

        Owner matches exactly; name and description match case-insensitive
        substrings.

        Args:
            user: Owner identity filter.
            name: Name substring filter.
            description: Description substring filter.

        Returns:
            list[SeriesRecord]: Matching series ordered by id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        conditions: list[str] = []
        parameters: dict[str, Any] = {}
        if user is not None:
            conditions.append("user_identity = :user_identity")
            parameters["user_identity"] = user
        if name is not None:
            conditions.append("LOWER(name) LIKE :name_pattern")
            parameters["name_pattern"] = f"%{name.lower()}%"
        if description is not None:
            conditions.append("LOWER(description) LIKE :description_pattern")
            parameters["description_pattern"] = f"%{description.lower()}%"

        where_clause = f" WHERE {' AND '.join(conditions)}" if conditions else ""
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(f"SELECT {_SERIES_COLUMNS} FROM job_series{where_clause} ORDER BY series_id ASC"),
                    parameters,
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to query series") from error

        return [self._map_series_record(row) for row in rows]

    def db_job_save(self, job: JobRecord, expected_status: str) -> JobRecord:
        """Persist the job status with compare-and-set on `expected_status`.

        Args:
            job: Job carrying the new status.
            expected_status: Previously read status.

        Returns:
            JobRecord: Persisted job row.

        Raises:
            ValueError: Raised when the new status is unknown.
            LookupError: Raised when the job no longer exists.
            JobStatusConflictError: Raised when the stored status changed concurrently.
            RuntimeError: Raised when persistence fails.
        """

        if job.status not in JOB_STATUSES:
            raise ValueError(f"unknown job status={job.status}")

        try:
            with self._engine.begin() as connection:
                update_result = connection.execute(
                    text(
                        "UPDATE job SET status = :status "
                        "WHERE job_id = :job_id AND status = :expected_status"
                    ),
                    {"status": job.status, "job_id": job.job_id, "expected_status": expected_status},
                )
                row = connection.execute(
                    text(f"SELECT {_JOB_COLUMNS} FROM job WHERE job_id = :job_id"),
                    {"job_id": job.job_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to save job status") from error

        if row is None:
            raise LookupError("job not found")
        if update_result.rowcount == 0:
            raise JobStatusConflictError(
                f"job {job.job_id} status changed from {expected_status} to {row['status']} concurrently"
            )
        return self._map_job_record(row)

    def db_job_delete(self, job: JobRecord) -> None:
        """Delete one job row.

        Args:
            job: Job to delete.

        Returns:
            None: Row is removed as side effect.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(text("DELETE FROM job WHERE job_id = :job_id"), {"job_id": job.job_id})
        except SQLAlchemyError as error:
            raise RuntimeError("failed to delete job") from error

    def db_series_delete(self, series: SeriesRecord) -> None:
        """Delete one series row.

        Args:
            series: Series to delete.

        Returns:
            None: Row is removed as side effect.

        Raises:
            RuntimeError: Raised when persistence fails or jobs still reference the series.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text("DELETE FROM job_series WHERE series_id = :series_id"),
                    {"series_id": series.series_id},
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to delete series") from error

    def _map_job_record(self, row: Any) -> JobRecord:
        """Map SQLAlchemy row mapping to typed job record.

        Args:
            row: SQLAlchemy mapping row.

        Returns:
            JobRecord: Typed job record.

        Raises:
            TypeError: Raised when row structure is incompatible.
        """

        if row["status"] not in JOB_STATUSES:
            raise TypeError(f"job.status has unknown value {row['status']!r}")

        return JobRecord(
            job_id=int(row["job_id"]),
            series_id=int(row["series_id"]),
            status=row["status"],
            instance_reference=row["instance_reference"],
            output_location=row["output_location"],
            name=row["name"] or "",
            description=row["description"] or "",
            submitted_at_utc=row["submitted_at_utc"],
        )

    def _map_series_record(self, row: Any) -> SeriesRecord:
        """Map SQLAlchemy row mapping to typed series record."""

        return SeriesRecord(
            series_id=int(row["series_id"]),
            user=row["user_identity"],
            name=row["name"] or "",
            description=row["description"] or "",
        )
