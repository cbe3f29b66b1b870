"""Domain models and lifecycle rules used across application layer boundaries."""

from .identity import domain_identity_is_authorized
from .lifecycle import (
    ERROR_LOG_SUFFIX,
    JOB_STATUS_ACTIVE,
    JOB_STATUS_CANCELLED,
    JOB_STATUS_DONE,
    JOB_STATUS_FAILED,
    JOB_STATUS_PENDING,
    JOB_STATUSES,
    TERMINAL_JOB_STATUSES,
    TRIGGER_CANCEL,
    TRIGGER_RECONCILE,
    InvalidJobTransitionError,
    domain_job_status_from_output_names,
    domain_job_status_is_terminal,
    domain_job_transition_is_legal,
    domain_job_validate_transition,
)
from .models import HealthStatus, JobRecord, SeriesRecord

__all__ = [
    "ERROR_LOG_SUFFIX",
    "HealthStatus",
    "InvalidJobTransitionError",
    "JOB_STATUS_ACTIVE",
    "JOB_STATUS_CANCELLED",
    "JOB_STATUS_DONE",
    "JOB_STATUS_FAILED",
    "JOB_STATUS_PENDING",
    "JOB_STATUSES",
    "JobRecord",
    "SeriesRecord",
    "TERMINAL_JOB_STATUSES",
    "TRIGGER_CANCEL",
    "TRIGGER_RECONCILE",
    "domain_identity_is_authorized",
    "domain_job_status_from_output_names",
    "domain_job_status_is_terminal",
    "domain_job_transition_is_legal",
    "domain_job_validate_transition",
]
