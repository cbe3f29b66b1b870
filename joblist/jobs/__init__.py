"""Job layer package for lifecycle, cascade, reconciliation and download workflows."""

from .archive import JobArchiveStreamer
from .cascade import RUNNING_JOBS_DELETE_ERROR, SeriesCascadeExecutor
from .errors import (
	InvalidJobStateError,
	InvalidRequestError,
	JobListError,
	JobNotFoundError,
	SeriesNotFoundError,
	StreamingFailureError,
	UnauthorizedActionError,
	UpstreamFailureError,
)
from .interfaces import (
	CascadeCancelResult,
	CascadeDeleteResult,
	JobFileInfo,
	JobFilesResult,
	ObjectDownload,
	OperationResult,
	ReconciliationResult,
	SeriesJobsResult,
)
from .job_list_service import JobListService
from .lifecycle import JobLifecycleService
from .locks import JobLockRegistry
from .reconciler import JobOutputReconciler
from .terminator import InstanceTerminator

__all__ = [
	"CascadeCancelResult",
	"CascadeDeleteResult",
	"InstanceTerminator",
	"InvalidJobStateError",
	"InvalidRequestError",
	"JobArchiveStreamer",
	"JobFileInfo",
	"JobFilesResult",
	"JobLifecycleService",
	"JobListError",
	"JobListService",
	"JobLockRegistry",
	"JobNotFoundError",
	"JobOutputReconciler",
	"ObjectDownload",
	"OperationResult",
	"RUNNING_JOBS_DELETE_ERROR",
	"ReconciliationResult",
	"SeriesCascadeExecutor",
	"SeriesJobsResult",
	"SeriesNotFoundError",
	"StreamingFailureError",
	"UnauthorizedActionError",
	"UpstreamFailureError",
]
