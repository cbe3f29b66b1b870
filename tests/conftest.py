"""Shared test doubles for job list service tests.

The doubles implement the metadata store, object store and compute provider
ports in memory so services can be exercised without external systems.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from joblist.adapters import (
    CallerContext,
    CloudClientRegistry,
    ComputeProviderError,
    ObjectMeta,
    ObjectNotFoundError,
    ObjectStoreError,
    StoredObject,
)
from joblist.db import JobStatusConflictError
from joblist.domain import JobRecord, SeriesRecord
from joblist.jobs import (
    InstanceTerminator,
    JobArchiveStreamer,
    JobLifecycleService,
    JobListService,
    JobLockRegistry,
    JobOutputReconciler,
    SeriesCascadeExecutor,
)

OUTPUT_BUCKET = "job-output-test"
OWNER_IDENTITY = "alice"
OTHER_IDENTITY = "mallory"


class InMemoryJobRepository:
    """Metadata repository double with compare-and-set status writes."""

    def __init__(self):
        """Initialize empty series and job tables.

        Returns:
            None: Initializer does not return values.
        """

        self.series: dict[int, SeriesRecord] = {}
        self.jobs: dict[int, JobRecord] = {}
        self.save_calls: list[tuple[int, str, str]] = []
        self.deleted_job_ids: list[int] = []
        self.deleted_series_ids: list[int] = []

    def add_series(self, series_id: int, user: str = OWNER_IDENTITY, name: str = "", description: str = "") -> SeriesRecord:
        series = SeriesRecord(series_id=series_id, user=user, name=name, description=description)
        self.series[series_id] = series
        return series

    def add_job(
        self,
        job_id: int,
        series_id: int,
        status: str,
        instance_reference: str | None = "i-0123456789",
        output_location: str | None = None,
    ) -> JobRecord:
        job = JobRecord(
            job_id=job_id,
            series_id=series_id,
            status=status,
            instance_reference=instance_reference,
            output_location=output_location,
        )
        self.jobs[job_id] = job
        return job

    def db_job_get_by_id(self, job_id: int) -> JobRecord | None:
        return self.jobs.get(job_id)

    def db_series_get_by_id(self, series_id: int) -> SeriesRecord | None:
        return self.series.get(series_id)

    def db_series_job_list(self, series_id: int) -> list[JobRecord]:
        return [job for job_id, job in sorted(self.jobs.items()) if job.series_id == series_id]

    def db_series_query(self, user: str | None, name: str | None, description: str | None) -> list[SeriesRecord]:
        matches = []
        for _, series in sorted(self.series.items()):
            if user is not None and series.user != user:
                continue
            if name is not None and name.lower() not in series.name.lower():
                continue
            if description is not None and description.lower() not in series.description.lower():
                continue
            matches.append(series)
        return matches

    def db_job_save(self, job: JobRecord, expected_status: str) -> JobRecord:
        """Store the new status when the stored status still equals `expected_status`.

        Raises:
            LookupError: Raised when the job is unknown.
            JobStatusConflictError: Raised when the stored status differs.
        """

        stored_job = self.jobs.get(job.job_id)
        if stored_job is None:
            raise LookupError("job not found")
        if stored_job.status != expected_status:
            raise JobStatusConflictError(f"job {job.job_id} status changed concurrently")
        self.save_calls.append((job.job_id, expected_status, job.status))
        self.jobs[job.job_id] = replace(stored_job, status=job.status)
        return self.jobs[job.job_id]

    def db_job_delete(self, job: JobRecord) -> None:
        self.jobs.pop(job.job_id, None)
        self.deleted_job_ids.append(job.job_id)

    def db_series_delete(self, series: SeriesRecord) -> None:
        self.series.pop(series.series_id, None)
        self.deleted_series_ids.append(series.series_id)


class BytesBody:
    """Object body double that can fail after a number of bytes."""

    def __init__(self, payload: bytes, fail_after: int | None = None):
        self._payload = payload
        self._position = 0
        self._fail_after = fail_after
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        if self._fail_after is not None and self._position >= self._fail_after:
            raise ObjectStoreError("connection reset while reading body")
        if size is None or size < 0:
            end = len(self._payload)
        else:
            end = self._position + size
        if self._fail_after is not None:
            end = min(end, self._fail_after)
        chunk = self._payload[self._position : end]
        self._position += len(chunk)
        return chunk

    def close(self) -> None:
        self.closed = True


class ObjectStoreStub:
    """Object store double holding objects as raw bytes per key."""

    def __init__(self, buckets: list[str] | None = None):
        """Initialize stub with visible buckets.

        Args:
            buckets: Visible bucket names; defaults to the test output bucket.

        Returns:
            None: Initializer does not return values.
        """

        self.buckets = list(buckets) if buckets is not None else [OUTPUT_BUCKET]
        self.objects: dict[str, bytes] = {}
        self.list_error: ObjectStoreError | None = None
        self.failing_prefixes: set[str] = set()
        self.fail_after: dict[str, int] = {}
        self.opened_bodies: list[BytesBody] = []
        self.list_calls: list[tuple[str, str]] = []

    def adapter_list_buckets(self) -> list[str]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.buckets)

    def adapter_list_objects(self, bucket: str, prefix: str) -> list[ObjectMeta]:
        self.list_calls.append((bucket, prefix))
        if self.list_error is not None:
            raise self.list_error
        if prefix in self.failing_prefixes:
            raise ObjectStoreError(f"AccessDenied listing {prefix}", provider_error_code="AccessDenied")
        return [
            ObjectMeta(key=key, size=len(payload))
            for key, payload in sorted(self.objects.items())
            if key.startswith(prefix)
        ]

    def adapter_get_object(self, bucket: str, key: str) -> StoredObject:
        if bucket not in self.buckets or key not in self.objects:
            raise ObjectNotFoundError(f"no such key {key}", provider_error_code="NoSuchKey")
        payload = self.objects[key]
        body = BytesBody(payload, fail_after=self.fail_after.get(key))
        self.opened_bodies.append(body)
        return StoredObject(key=key, name=key, length=len(payload), body=body)


class ComputeProviderStub:
    """Compute provider double recording terminate calls."""

    def __init__(self):
        self.terminated_instance_ids: list[str] = []
        self.failing_instance_ids: set[str] = set()

    def adapter_terminate_instance(self, instance_id: str) -> None:
        if instance_id in self.failing_instance_ids:
            raise ComputeProviderError(f"InvalidInstanceID.NotFound: {instance_id}", provider_error_code="InvalidInstanceID.NotFound")
        self.terminated_instance_ids.append(instance_id)


@pytest.fixture
def repository() -> InMemoryJobRepository:
    return InMemoryJobRepository()


@pytest.fixture
def object_store() -> ObjectStoreStub:
    return ObjectStoreStub()


@pytest.fixture
def compute_provider() -> ComputeProviderStub:
    return ComputeProviderStub()


@pytest.fixture
def client_registry(object_store: ObjectStoreStub, compute_provider: ComputeProviderStub) -> CloudClientRegistry:
    return CloudClientRegistry(
        object_store_factory=lambda _credentials: object_store,
        compute_provider_factory=lambda _credentials: compute_provider,
    )


@pytest.fixture
def owner() -> CallerContext:
    return CallerContext(identity=OWNER_IDENTITY)


@pytest.fixture
def stranger() -> CallerContext:
    return CallerContext(identity=OTHER_IDENTITY)


@pytest.fixture
def lifecycle(repository: InMemoryJobRepository, client_registry: CloudClientRegistry) -> JobLifecycleService:
    return JobLifecycleService(
        repository=repository,
        terminator=InstanceTerminator(client_registry=client_registry),
        lock_registry=JobLockRegistry(),
    )


@pytest.fixture
def reconciler(client_registry: CloudClientRegistry, lifecycle: JobLifecycleService) -> JobOutputReconciler:
    return JobOutputReconciler(client_registry=client_registry, lifecycle=lifecycle, bucket_name=OUTPUT_BUCKET)


@pytest.fixture
def archive_streamer(client_registry: CloudClientRegistry) -> JobArchiveStreamer:
    return JobArchiveStreamer(client_registry=client_registry, bucket_name=OUTPUT_BUCKET, chunk_size_bytes=4)


@pytest.fixture
def job_list_service(
    repository: InMemoryJobRepository,
    lifecycle: JobLifecycleService,
    reconciler: JobOutputReconciler,
    archive_streamer: JobArchiveStreamer,
) -> JobListService:
    return JobListService(
        repository=repository,
        lifecycle=lifecycle,
        cascade=SeriesCascadeExecutor(repository=repository, lifecycle=lifecycle),
        reconciler=reconciler,
        archive_streamer=archive_streamer,
    )
