"""Pull-based job status reconciliation from object store output evidence."""

from __future__ import annotations

from joblist.adapters import CallerContext, CloudAdapterError, CloudClientRegistry, ObjectMeta
from joblist.config import config_get_logger
from joblist.domain import JOB_STATUS_ACTIVE, JobRecord, domain_job_status_from_output_names

from .errors import UpstreamFailureError
from .interfaces import ReconciliationResult
from .lifecycle import JobLifecycleService

logger = config_get_logger(__name__)


class JobOutputReconciler:
    """Derives `Done`/`Failed` for active jobs from objects under their output prefix.

    Runs only when a listing is requested; there is no background schedule.
    """

    def __init__(
        self,
        client_registry: CloudClientRegistry,
        lifecycle: JobLifecycleService,
        bucket_name: str,
    ):
        """Initialize reconciler dependencies.

        Args:
            client_registry: Per-caller cloud client registry.
            lifecycle: Lifecycle service persisting derived statuses.
            bucket_name: Bucket holding job output.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if client_registry is None:
            raise ValueError("client_registry must not be None")
        if lifecycle is None:
            raise ValueError("lifecycle must not be None")
        if not bucket_name.strip():
            raise ValueError("bucket_name must not be blank")

        self._client_registry = client_registry
        self._lifecycle = lifecycle
        self._bucket_name = bucket_name.strip()

    def reconciler_list_output_objects(self, job: JobRecord, caller: CallerContext) -> list[ObjectMeta]:
        """List objects under the job output prefix.

        Args:
            job: Job whose output is listed.
            caller: Caller context selecting the object store client.

        Returns:
            list[ObjectMeta]: Output objects; empty when the job has no output location.

        Raises:
            UpstreamFailureError: Raised when the bucket is missing or the listing fails.
        """

        output_location = (job.output_location or "").strip()
        if not output_location:
            return []

        try:
            object_store = self._client_registry.registry_get_object_store(caller)
            bucket_names = object_store.adapter_list_buckets()
            if self._bucket_name not in bucket_names:
                raise UpstreamFailureError(f"Output bucket {self._bucket_name} is not available.")
            objects = object_store.adapter_list_objects(self._bucket_name, output_location)
        except CloudAdapterError as error:
            logger.error("job_output_listing_failed", job_id=job.job_id, error=str(error))
            raise UpstreamFailureError(f"Error listing job output: {error}") from error

        logger.info("job_output_listed", job_id=job.job_id, output_location=output_location, object_count=len(objects))
        return objects

    def reconciler_reconcile_job(self, job: JobRecord, caller: CallerContext) -> ReconciliationResult:
        """List output objects and persist a derived status for active jobs.

        A listing failure propagates without touching the status.

        Args:
            job: Job to reconcile.
            caller: Caller context.

        Returns:
            ReconciliationResult: Current job, objects and the persisted new status.

        Raises:
            UpstreamFailureError: Raised when the listing fails.
            JobNotFoundError: Raised when the job disappeared before the write.
        """

        objects = self.reconciler_list_output_objects(job, caller)
        if job.status != JOB_STATUS_ACTIVE or not objects:
            return ReconciliationResult(job=job, objects=tuple(objects), new_status=None)

        derived_status = domain_job_status_from_output_names([output_object.name for output_object in objects])
        reconciled_job = self._lifecycle.lifecycle_apply_reconciled_status(job, derived_status)
        new_status = derived_status if reconciled_job.status == derived_status else None
        return ReconciliationResult(job=reconciled_job, objects=tuple(objects), new_status=new_status)
