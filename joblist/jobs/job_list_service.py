"""Caller-facing job list operations with structured error results."""

from __future__ import annotations

from joblist.adapters import CallerContext
from joblist.config import config_get_logger
from joblist.db import JobMetadataRepositoryPort, JobStatusConflictError
from joblist.domain import InvalidJobTransitionError, JobRecord, SeriesRecord

from .archive import JobArchiveStreamer
from .cascade import SeriesCascadeExecutor
from .errors import (
    InvalidJobStateError,
    JobListError,
    JobNotFoundError,
    SeriesNotFoundError,
    UpstreamFailureError,
)
from .interfaces import (
    CascadeCancelResult,
    CascadeDeleteResult,
    JobFileInfo,
    JobFilesResult,
    ObjectDownload,
    OperationResult,
    SeriesJobsResult,
)
from .lifecycle import JobLifecycleService
from .reconciler import JobOutputReconciler

logger = config_get_logger(__name__)

JOB_NOT_FOUND_MESSAGE = "The requested job was not found."
SERIES_NOT_FOUND_MESSAGE = "The requested series was not found."


class JobListService:
    """Entry point for every job list operation.

    NotFound, Unauthorized and InvalidState outcomes are returned as
    structured results with no mutation. Download operations raise
    `JobListError` subclasses instead, because their success value is a stream.
    """

    def __init__(
        self,
        repository: JobMetadataRepositoryPort,
        lifecycle: JobLifecycleService,
        cascade: SeriesCascadeExecutor,
        reconciler: JobOutputReconciler,
        archive_streamer: JobArchiveStreamer,
    ):
        """Initialize service dependencies.

        Args:
            repository: Job metadata repository.
            lifecycle: Single-job lifecycle service.
            cascade: Series cascade executor.
            reconciler: Output reconciler.
            archive_streamer: Download streamer.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when a dependency is None.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        if lifecycle is None:
            raise ValueError("lifecycle must not be None")
        if cascade is None:
            raise ValueError("cascade must not be None")
        if reconciler is None:
            raise ValueError("reconciler must not be None")
        if archive_streamer is None:
            raise ValueError("archive_streamer must not be None")

        self._repository = repository
        self._lifecycle = lifecycle
        self._cascade = cascade
        self._reconciler = reconciler
        self._archive_streamer = archive_streamer

    def delete_job(self, job_id: int | None, caller: CallerContext) -> OperationResult:
        """Delete one job record regardless of its status.

        Args:
            job_id: Job identifier.
            caller: Caller context.

        Returns:
            OperationResult: Success flag with optional error.

        Raises:
            RuntimeError: Raised when the metadata store fails.
        """

        try:
            job, series = self._service_resolve_job_with_series(job_id)
            logger.info("job_delete_requested", job_id=job.job_id, caller_identity=caller.identity)
            self._lifecycle.lifecycle_delete_job(job, series, caller)
        except JobListError as error:
            return _service_error_result(error)
        return OperationResult(success=True)

    def delete_series_jobs(self, series_id: int | None, caller: CallerContext) -> CascadeDeleteResult:
        """Delete every terminal job of a series and the series when all were terminal.

        Args:
            series_id: Series identifier.
            caller: Caller context.

        Returns:
            CascadeDeleteResult: Partial-success aggregate.

        Raises:
            RuntimeError: Raised when the metadata store fails.
        """

        try:
            series = self._service_resolve_series(series_id)
            return self._cascade.cascade_delete_series_jobs(series, caller)
        except JobListError as error:
            return CascadeDeleteResult(success=False, error=str(error), error_code=error.error_code)

    def cancel_job(self, job_id: int | None, caller: CallerContext) -> OperationResult:
        """Terminate a job's instance and mark it `Cancelled`.

        Args:
            job_id: Job identifier.
            caller: Caller context.

        Returns:
            OperationResult: Success flag with optional error.

        Raises:
            RuntimeError: Raised when the metadata store fails.
        """

        try:
            job, series = self._service_resolve_job_with_series(job_id)
            self._lifecycle.lifecycle_cancel_job(job, series, caller)
        except JobListError as error:
            return _service_error_result(error)
        except (InvalidJobTransitionError, JobStatusConflictError) as error:
            return OperationResult(success=False, error=str(error), error_code=InvalidJobStateError.error_code)
        return OperationResult(success=True)

    def cancel_series_jobs(self, series_id: int | None, caller: CallerContext) -> CascadeCancelResult:
        """Cancel every running job of a series.

        Args:
            series_id: Series identifier.
            caller: Caller context.

        Returns:
            CascadeCancelResult: Aggregate with per-job failures.

        Raises:
            RuntimeError: Raised when the metadata store fails.
        """

        try:
            series = self._service_resolve_series(series_id)
            return self._cascade.cascade_cancel_series_jobs(series, caller)
        except JobListError as error:
            return CascadeCancelResult(success=False, error=str(error), error_code=error.error_code)

    def list_job_files(self, job_id: int | None, caller: CallerContext) -> JobFilesResult:
        """List a job's output files, reconciling its status on the way.

        Args:
            job_id: Job identifier.
            caller: Caller context.

        Returns:
            JobFilesResult: File entries or an error.

        Raises:
            RuntimeError: Raised when the metadata store fails.
        """

        try:
            job = self._service_resolve_job(job_id)
            reconciliation = self._reconciler.reconciler_reconcile_job(job, caller)
        except JobListError as error:
            return JobFilesResult(files=None, error=str(error), error_code=error.error_code)

        files = tuple(JobFileInfo(name=output_object.key, size=output_object.size) for output_object in reconciliation.objects)
        logger.info("job_files_located", job_id=job.job_id, file_count=len(files))
        return JobFilesResult(files=files)

    def download_file(
        self,
        job_id: int | None,
        file_key: str | None,
        file_name: str | None,
        caller: CallerContext,
    ) -> ObjectDownload:
        """Open a single job file for streaming.

        Args:
            job_id: Job identifier.
            file_key: Object key.
            file_name: Attachment filename.
            caller: Caller context.

        Returns:
            ObjectDownload: Lazy octet stream.

        Raises:
            JobNotFoundError: Raised when the job does not exist.
            InvalidRequestError: Raised when key or filename is missing.
            UpstreamFailureError: Raised when the object cannot be fetched.
        """

        job = self._service_resolve_job(job_id, message="Invalid job specified!")
        return self._archive_streamer.archive_open_object(job, file_key or "", file_name or "", caller)

    def download_files_as_archive(
        self,
        job_id: int | None,
        file_keys: list[str],
        caller: CallerContext,
    ) -> ObjectDownload:
        """Open a ZIP stream of several job files.

        Args:
            job_id: Job identifier.
            file_keys: Ordered object keys.
            caller: Caller context.

        Returns:
            ObjectDownload: Lazy ZIP stream.

        Raises:
            JobNotFoundError: Raised when the job does not exist.
            InvalidRequestError: Raised when no key is given.
            UpstreamFailureError: Raised when no key is readable.
        """

        job = self._service_resolve_job(job_id, message="Invalid job specified!")
        return self._archive_streamer.archive_open_archive(job, list(file_keys), caller)

    def query_series(
        self,
        caller: CallerContext,
        user: str | None = None,
        name: str | None = None,
        description: str | None = None,
    ) -> list[SeriesRecord]:
        """Query series; with no filter at all the caller's own series are returned.

        Args:
            caller: Caller context.
            user: Owner filter.
            name: Name substring filter.
            description: Description substring filter.

        Returns:
            list[SeriesRecord]: Matching series.

        Raises:
            RuntimeError: Raised when the metadata store fails.
        """

        normalized_user = _service_normalize_filter(user)
        normalized_name = _service_normalize_filter(name)
        normalized_description = _service_normalize_filter(description)
        if normalized_user is None and normalized_name is None and normalized_description is None:
            normalized_user = caller.identity
            logger.debug("series_query_defaulted_to_caller", caller_identity=caller.identity)

        series = self._repository.db_series_query(
            user=normalized_user,
            name=normalized_name,
            description=normalized_description,
        )
        logger.debug("series_query_completed", series_count=len(series))
        return series

    def list_jobs_for_series(self, series_id: int | None, caller: CallerContext) -> SeriesJobsResult:
        """List a series' jobs after reconciling each one against its output.

        A reconciliation failure for one job keeps that job's prior status and
        is reported in `reconciliation_errors`.

        Args:
            series_id: Series identifier.
            caller: Caller context.

        Returns:
            SeriesJobsResult: Jobs in stable order.

        Raises:
            RuntimeError: Raised when the metadata store fails.
        """

        try:
            series = self._service_resolve_series(series_id)
        except JobListError as error:
            return SeriesJobsResult(jobs=None, error=str(error), error_code=error.error_code)

        jobs: list[JobRecord] = []
        reconciliation_errors: dict[int, str] = {}
        for job in self._repository.db_series_job_list(series.series_id):
            try:
                jobs.append(self._reconciler.reconciler_reconcile_job(job, caller).job)
            except JobNotFoundError:
                logger.debug("series_job_vanished_during_listing", job_id=job.job_id)
            except UpstreamFailureError as error:
                reconciliation_errors[job.job_id] = str(error)
                jobs.append(job)

        error_message = None
        error_code = None
        if reconciliation_errors:
            error_message = f"Could not reconcile {len(reconciliation_errors)} job(s)."
            error_code = UpstreamFailureError.error_code
        return SeriesJobsResult(
            jobs=tuple(jobs),
            error=error_message,
            error_code=error_code,
            reconciliation_errors=reconciliation_errors,
        )

    def _service_resolve_job(self, job_id: int | None, message: str = JOB_NOT_FOUND_MESSAGE) -> JobRecord:
        if job_id is None:
            logger.warning("job_id_missing")
            raise JobNotFoundError(message)
        job = self._repository.db_job_get_by_id(job_id)
        if job is None:
            logger.error("job_not_found", job_id=job_id)
            raise JobNotFoundError(message)
        return job

    def _service_resolve_series(self, series_id: int | None) -> SeriesRecord:
        if series_id is None:
            logger.warning("series_id_missing")
            raise SeriesNotFoundError(SERIES_NOT_FOUND_MESSAGE)
        series = self._repository.db_series_get_by_id(series_id)
        if series is None:
            logger.error("series_not_found", series_id=series_id)
            raise SeriesNotFoundError(SERIES_NOT_FOUND_MESSAGE)
        return series

    def _service_resolve_job_with_series(self, job_id: int | None) -> tuple[JobRecord, SeriesRecord]:
        job = self._service_resolve_job(job_id)
        series = self._repository.db_series_get_by_id(job.series_id)
        if series is None:
            logger.error("job_parent_series_missing", job_id=job.job_id, series_id=job.series_id)
            raise SeriesNotFoundError(SERIES_NOT_FOUND_MESSAGE)
        return job, series


def _service_error_result(error: JobListError) -> OperationResult:
    return OperationResult(success=False, error=str(error), error_code=error.error_code)


def _service_normalize_filter(value: str | None) -> str | None:
    if value is None:
        return None
    stripped_value = value.strip()
    return stripped_value or None
