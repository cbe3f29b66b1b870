"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from typing import Protocol

from joblist.domain import HealthStatus, JobRecord, SeriesRecord


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class JobStatusConflictError(RuntimeError):
    """Raised when a status write loses against a concurrent writer of the same job."""


class JobMetadataRepositoryPort(Protocol):
    """Port definition for job and series metadata CRUD."""

    def db_job_get_by_id(self, job_id: int) -> JobRecord | None:
        """Fetch one job by id.

        Args:
            job_id: Job identifier.

        Returns:
            JobRecord | None: Matching job or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_series_get_by_id(self, series_id: int) -> SeriesRecord | None:
        """Fetch one series by id.

        Args:
            series_id: Series identifier.

        Returns:
            SeriesRecord | None: Matching series or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_series_job_list(self, series_id: int) -> list[JobRecord]:
        """List jobs of one series in stable order.

        Args:
            series_id: Series identifier.

        Returns:
            list[JobRecord]: Jobs ordered by job id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_series_query(
        self,
        user: str | None,
        name: str | None,
        description: str | None,
    ) -> list[SeriesRecord]:
        """Query series by optional owner, name and description filters.

        Args:
            user: Exact owner identity filter.
            name: Case-insensitive name substring filter.
            description: Case-insensitive description substring filter.

        Returns:
            list[SeriesRecord]: Matching series ordered by id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_job_save(self, job: JobRecord, expected_status: str) -> JobRecord:
        """Persist the job status when the stored status still equals `expected_status`.

        Args:
            job: Job carrying the new status.
            expected_status: Status the caller read before deciding the transition.

        Returns:
            JobRecord: Persisted job row.

        Raises:
            LookupError: Raised when the job no longer exists.
            JobStatusConflictError: Raised when another writer changed the status first.
            RuntimeError: Raised when persistence fails.
        """

    def db_job_delete(self, job: JobRecord) -> None:
        """Delete one job record (metadata only).

        Args:
            job: Job to delete.

        Returns:
            None: Row is removed as side effect.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

    def db_series_delete(self, series: SeriesRecord) -> None:
        """Delete one series record.

        Args:
            series: Series to delete.

        Returns:
            None: Row is removed as side effect.

        Raises:
            RuntimeError: Raised when persistence fails.
        """
