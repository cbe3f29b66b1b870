"""Typed result contracts returned by job-layer operations."""

from dataclasses import dataclass, field
from typing import Iterator

from joblist.adapters import ObjectMeta
from joblist.domain import JobRecord


@dataclass(frozen=True)
class OperationResult:
    """Structured outcome of one lifecycle operation.

    Attributes:
        success: Whether the operation completed.
        error: Optional human-readable error message.
        error_code: Optional stable error code.
    """

    success: bool
    error: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class CascadeDeleteResult(OperationResult):
    """Outcome of a series-wide delete.

    Attributes:
        deleted_job_ids: Terminal jobs that were deleted.
        running_job_ids: Non-terminal jobs left in place.
        series_deleted: Whether the series record itself was removed.
    """

    deleted_job_ids: tuple[int, ...] = ()
    running_job_ids: tuple[int, ...] = ()
    series_deleted: bool = False


@dataclass(frozen=True)
class CascadeCancelResult(OperationResult):
    """Outcome of a series-wide cancel.

    `success` is True once the loop ran over every job; per-job failures are
    listed in `failed_job_ids` for the caller to act on.

    Attributes:
        cancelled_job_ids: Jobs moved to `Cancelled`.
        skipped_job_ids: Jobs already terminal.
        failed_job_ids: Jobs whose cancellation failed.
    """

    cancelled_job_ids: tuple[int, ...] = ()
    skipped_job_ids: tuple[int, ...] = ()
    failed_job_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of reconciling one job against its output objects.

    Attributes:
        job: Job record after reconciliation.
        objects: Output objects found under the job prefix.
        new_status: Status persisted by this reconciliation, if any.
    """

    job: JobRecord
    objects: tuple[ObjectMeta, ...]
    new_status: str | None


@dataclass(frozen=True)
class JobFileInfo:
    """Display entry for one job output file."""

    name: str
    size: int


@dataclass(frozen=True)
class JobFilesResult:
    """Outcome of listing one job's output files.

    Attributes:
        files: File entries, or None when listing failed.
        error: Optional human-readable error message.
        error_code: Optional stable error code.
    """

    files: tuple[JobFileInfo, ...] | None
    error: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class SeriesJobsResult:
    """Outcome of listing a series' jobs after reconciliation.

    Attributes:
        jobs: Jobs in stable order, or None when the series was not found.
        error: Optional human-readable error message.
        error_code: Optional stable error code.
        reconciliation_errors: Per-job reconciliation failure messages.
    """

    jobs: tuple[JobRecord, ...] | None
    error: str | None = None
    error_code: str | None = None
    reconciliation_errors: dict[int, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ObjectDownload:
    """Streamable download of one stored object or an archive of several.

    Attributes:
        file_name: Attachment filename offered to the client.
        content_type: Response media type.
        chunks: Lazy byte chunk iterator; consuming it performs the transfer.
        content_length: Byte length when known up front.
    """

    file_name: str
    content_type: str
    chunks: Iterator[bytes]
    content_length: int | None = None
