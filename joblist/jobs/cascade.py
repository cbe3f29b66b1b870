"""Series-wide delete and cancel with partial-success aggregation."""

from __future__ import annotations

from joblist.adapters import CallerContext
from joblist.config import config_get_logger
from joblist.db import JobMetadataRepositoryPort, JobStatusConflictError
from joblist.domain import (
    InvalidJobTransitionError,
    SeriesRecord,
    domain_identity_is_authorized,
    domain_job_status_is_terminal,
)

from .errors import (
    InvalidJobStateError,
    JobListError,
    UnauthorizedActionError,
)
from .interfaces import CascadeCancelResult, CascadeDeleteResult
from .lifecycle import JobLifecycleService

logger = config_get_logger(__name__)

RUNNING_JOBS_DELETE_ERROR = "Can not delete series, there are running jobs."


class SeriesCascadeExecutor:
    """Applies single-job delete or cancel across every job of a series.

    Jobs are processed in the order returned by the metadata store.
    """

    def __init__(self, repository: JobMetadataRepositoryPort, lifecycle: JobLifecycleService):
        if repository is None:
            raise ValueError("repository must not be None")
        if lifecycle is None:
            raise ValueError("lifecycle must not be None")
        self._repository = repository
        self._lifecycle = lifecycle

    def cascade_delete_series_jobs(self, series: SeriesRecord, caller: CallerContext) -> CascadeDeleteResult:
        """Delete every terminal job, then the series when nothing is left running.

        Running jobs are skipped and reported; terminal jobs seen before or
        after them are still deleted.

        Args:
            series: Series to clear.
            caller: Caller context.

        Returns:
            CascadeDeleteResult: Aggregate outcome.

        Raises:
            UnauthorizedActionError: Raised before any job is touched when the caller is not the owner.
        """

        self._cascade_require_owner(
            series=series,
            caller=caller,
            action="delete_series_jobs",
            message="You are not authorised to delete the jobs of this series.",
        )

        logger.info("series_cascade_delete_started", series_id=series.series_id)
        deleted_job_ids: list[int] = []
        running_job_ids: list[int] = []
        for job in self._repository.db_series_job_list(series.series_id):
            if domain_job_status_is_terminal(job.status) and self._lifecycle.lifecycle_delete_terminal_job(
                job, series, caller
            ):
                deleted_job_ids.append(job.job_id)
                continue
            logger.debug("series_cascade_delete_skipped_running_job", series_id=series.series_id, job_id=job.job_id)
            running_job_ids.append(job.job_id)

        if running_job_ids:
            return CascadeDeleteResult(
                success=False,
                error=RUNNING_JOBS_DELETE_ERROR,
                error_code=InvalidJobStateError.error_code,
                deleted_job_ids=tuple(deleted_job_ids),
                running_job_ids=tuple(running_job_ids),
                series_deleted=False,
            )

        self._repository.db_series_delete(series)
        logger.info("series_deleted", series_id=series.series_id, deleted_job_count=len(deleted_job_ids))
        return CascadeDeleteResult(
            success=True,
            deleted_job_ids=tuple(deleted_job_ids),
            series_deleted=True,
        )

    def cascade_cancel_series_jobs(self, series: SeriesRecord, caller: CallerContext) -> CascadeCancelResult:
        """Cancel every non-terminal job of the series.

        A failed cancellation is logged and collected; it does not stop the
        loop and does not flip `success`.

        Args:
            series: Series whose jobs are cancelled.
            caller: Caller context.

        Returns:
            CascadeCancelResult: Aggregate outcome with per-job failures.

        Raises:
            UnauthorizedActionError: Raised before any job is touched when the caller is not the owner.
        """

        self._cascade_require_owner(
            series=series,
            caller=caller,
            action="cancel_series_jobs",
            message="You are not authorised to cancel the jobs of this series.",
        )

        logger.info("series_cascade_cancel_started", series_id=series.series_id)
        cancelled_job_ids: list[int] = []
        skipped_job_ids: list[int] = []
        failed_job_ids: list[int] = []
        for job in self._repository.db_series_job_list(series.series_id):
            if domain_job_status_is_terminal(job.status):
                logger.debug("series_cascade_cancel_skipped_finished_job", job_id=job.job_id)
                skipped_job_ids.append(job.job_id)
                continue
            try:
                self._lifecycle.lifecycle_cancel_job(job, series, caller)
            except (JobListError, InvalidJobTransitionError, JobStatusConflictError) as error:
                logger.error("series_cascade_cancel_job_failed", job_id=job.job_id, error=str(error))
                failed_job_ids.append(job.job_id)
                continue
            except (RuntimeError, LookupError) as error:
                logger.error("series_cascade_cancel_job_store_failed", job_id=job.job_id, error=str(error))
                failed_job_ids.append(job.job_id)
                continue
            cancelled_job_ids.append(job.job_id)

        error_message = None
        if failed_job_ids:
            error_message = "Failed to cancel job(s): " + ", ".join(str(job_id) for job_id in failed_job_ids)
        return CascadeCancelResult(
            success=True,
            error=error_message,
            cancelled_job_ids=tuple(cancelled_job_ids),
            skipped_job_ids=tuple(skipped_job_ids),
            failed_job_ids=tuple(failed_job_ids),
        )

    def _cascade_require_owner(
        self,
        series: SeriesRecord,
        caller: CallerContext,
        action: str,
        message: str,
    ) -> None:
        if not domain_identity_is_authorized(caller.identity, series):
            logger.warning(
                "series_action_denied",
                action=action,
                caller_identity=caller.identity,
                owner_identity=series.user,
                series_id=series.series_id,
            )
            raise UnauthorizedActionError(message, action=action)
