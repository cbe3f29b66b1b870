"""Single-job lifecycle operations: cancel, delete and reconciled status writes."""

from __future__ import annotations

from dataclasses import replace

from joblist.adapters import CallerContext, CloudAdapterError
from joblist.config import config_get_logger
from joblist.db import JobMetadataRepositoryPort, JobStatusConflictError
from joblist.domain import (
    JOB_STATUS_CANCELLED,
    TRIGGER_CANCEL,
    TRIGGER_RECONCILE,
    JobRecord,
    SeriesRecord,
    domain_identity_is_authorized,
    domain_job_status_is_terminal,
    domain_job_validate_transition,
)

from .errors import InvalidJobStateError, JobNotFoundError, UnauthorizedActionError, UpstreamFailureError
from .locks import JobLockRegistry
from .terminator import InstanceTerminator

logger = config_get_logger(__name__)


class JobLifecycleService:
    """Applies status transitions to one job under its job lock.

    Each operation re-reads the job inside the lock so decisions are made on
    the stored status, never on a stale listing snapshot.
    """

    def __init__(
        self,
        repository: JobMetadataRepositoryPort,
        terminator: InstanceTerminator,
        lock_registry: JobLockRegistry,
    ):
        """Initialize lifecycle dependencies.

        Args:
            repository: Job metadata repository.
            terminator: Compute instance terminator.
            lock_registry: Per-job lock registry.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when a dependency is None.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        if terminator is None:
            raise ValueError("terminator must not be None")
        if lock_registry is None:
            raise ValueError("lock_registry must not be None")

        self._repository = repository
        self._terminator = terminator
        self._lock_registry = lock_registry

    def lifecycle_cancel_job(self, job: JobRecord, series: SeriesRecord, caller: CallerContext) -> JobRecord:
        """Terminate the job's instance and mark the job `Cancelled`.

        The status is persisted only after the provider accepted the terminate
        call. A provider failure leaves the status untouched and is not retried.

        Args:
            job: Job to cancel.
            series: Parent series used for the ownership check.
            caller: Caller context.

        Returns:
            JobRecord: Persisted cancelled job.

        Raises:
            UnauthorizedActionError: Raised when the caller does not own the series.
            JobNotFoundError: Raised when the job disappeared.
            InvalidJobStateError: Raised when the job is terminal or has no instance.
            UpstreamFailureError: Raised when the terminate call failed.
            JobStatusConflictError: Raised when a concurrent writer changed the status.
        """

        self._lifecycle_require_owner(
            series=series,
            caller=caller,
            action="cancel_job",
            message="You are not authorised to cancel this job.",
        )

        with self._lock_registry.job_lock(job.job_id):
            current_job = self._lifecycle_reload(job)
            if domain_job_status_is_terminal(current_job.status):
                raise InvalidJobStateError(
                    f"Job {current_job.job_id} is already {current_job.status} and can not be cancelled."
                )
            domain_job_validate_transition(current_job.status, TRIGGER_CANCEL, JOB_STATUS_CANCELLED)

            instance_reference = (current_job.instance_reference or "").strip()
            if not instance_reference:
                raise InvalidJobStateError(f"Job {current_job.job_id} has no compute instance to terminate.")

            logger.info("job_cancel_started", job_id=current_job.job_id, instance_reference=instance_reference)
            try:
                self._terminator.terminator_terminate(instance_reference, caller)
            except CloudAdapterError as error:
                logger.error(
                    "job_cancel_terminate_failed",
                    job_id=current_job.job_id,
                    instance_reference=instance_reference,
                    error=str(error),
                )
                raise UpstreamFailureError(
                    f"Failed to terminate instance with id: {instance_reference}: {error}"
                ) from error

            try:
                cancelled_job = self._repository.db_job_save(
                    replace(current_job, status=JOB_STATUS_CANCELLED),
                    expected_status=current_job.status,
                )
            except (RuntimeError, LookupError) as error:
                logger.error(
                    "job_cancel_status_not_persisted",
                    job_id=current_job.job_id,
                    instance_reference=instance_reference,
                    error=str(error),
                )
                raise
            logger.info("job_cancelled", job_id=cancelled_job.job_id)
            return cancelled_job

    def lifecycle_delete_job(self, job: JobRecord, series: SeriesRecord, caller: CallerContext) -> None:
        """Delete the job record regardless of status (metadata only).

        Args:
            job: Job to delete.
            series: Parent series used for the ownership check.
            caller: Caller context.

        Returns:
            None: Job record is removed as side effect.

        Raises:
            UnauthorizedActionError: Raised when the caller does not own the series.
        """

        self._lifecycle_require_owner(
            series=series,
            caller=caller,
            action="delete_job",
            message="You are not authorised to delete this job.",
        )

        with self._lock_registry.job_lock(job.job_id):
            self._repository.db_job_delete(job)
        logger.info("job_deleted", job_id=job.job_id, series_id=job.series_id)

    def lifecycle_delete_terminal_job(self, job: JobRecord, series: SeriesRecord, caller: CallerContext) -> bool:
        """Delete the job only if its stored status is terminal.

        Args:
            job: Job to delete.
            series: Parent series used for the ownership check.
            caller: Caller context.

        Returns:
            bool: True when deleted (or already gone), False when still running.

        Raises:
            UnauthorizedActionError: Raised when the caller does not own the series.
        """

        self._lifecycle_require_owner(
            series=series,
            caller=caller,
            action="delete_series_jobs",
            message="You are not authorised to delete the jobs of this series.",
        )

        with self._lock_registry.job_lock(job.job_id):
            current_job = self._repository.db_job_get_by_id(job.job_id)
            if current_job is None:
                return True
            if not domain_job_status_is_terminal(current_job.status):
                return False
            self._repository.db_job_delete(current_job)
        logger.info("job_deleted", job_id=job.job_id, series_id=job.series_id)
        return True

    def lifecycle_apply_reconciled_status(self, job: JobRecord, derived_status: str) -> JobRecord:
        """Persist a status derived from output evidence.

        When the stored status no longer equals the status the derivation was
        based on, the stored job is returned unchanged.

        Args:
            job: Job snapshot the status was derived from.
            derived_status: `Done` or `Failed`.

        Returns:
            JobRecord: Stored job after the write (or unchanged).

        Raises:
            JobNotFoundError: Raised when the job disappeared.
            InvalidJobTransitionError: Raised when the derived status is illegal.
        """

        with self._lock_registry.job_lock(job.job_id):
            current_job = self._lifecycle_reload(job)
            if current_job.status != job.status:
                return current_job
            domain_job_validate_transition(current_job.status, TRIGGER_RECONCILE, derived_status)
            try:
                reconciled_job = self._repository.db_job_save(
                    replace(current_job, status=derived_status),
                    expected_status=current_job.status,
                )
            except JobStatusConflictError:
                logger.info("job_status_reconcile_lost_race", job_id=current_job.job_id)
                return self._lifecycle_reload(current_job)
        logger.info(
            "job_status_reconciled",
            job_id=reconciled_job.job_id,
            from_status=job.status,
            to_status=reconciled_job.status,
        )
        return reconciled_job

    def _lifecycle_reload(self, job: JobRecord) -> JobRecord:
        current_job = self._repository.db_job_get_by_id(job.job_id)
        if current_job is None:
            raise JobNotFoundError("The requested job was not found.")
        return current_job

    def _lifecycle_require_owner(
        self,
        series: SeriesRecord,
        caller: CallerContext,
        action: str,
        message: str,
    ) -> None:
        """Raise when the caller does not own the series."""

        if not domain_identity_is_authorized(caller.identity, series):
            logger.warning(
                "job_action_denied",
                action=action,
                caller_identity=caller.identity,
                owner_identity=series.user,
                series_id=series.series_id,
            )
            raise UnauthorizedActionError(message, action=action)
