"""Job status vocabulary and the legal transition table."""

from __future__ import annotations

from typing import Final

JOB_STATUS_PENDING: Final[str] = "Pending"
JOB_STATUS_ACTIVE: Final[str] = "Active"
JOB_STATUS_DONE: Final[str] = "Done"
JOB_STATUS_FAILED: Final[str] = "Failed"
JOB_STATUS_CANCELLED: Final[str] = "Cancelled"

JOB_STATUSES: Final[frozenset[str]] = frozenset(
    {JOB_STATUS_PENDING, JOB_STATUS_ACTIVE, JOB_STATUS_DONE, JOB_STATUS_FAILED, JOB_STATUS_CANCELLED}
)
TERMINAL_JOB_STATUSES: Final[frozenset[str]] = frozenset(
    {JOB_STATUS_DONE, JOB_STATUS_FAILED, JOB_STATUS_CANCELLED}
)

TRIGGER_CANCEL: Final[str] = "cancel"
TRIGGER_RECONCILE: Final[str] = "reconcile"

ERROR_LOG_SUFFIX: Final[str] = "error.log"

_LEGAL_TRANSITIONS: Final[dict[tuple[str, str], frozenset[str]]] = {
    (JOB_STATUS_PENDING, TRIGGER_CANCEL): frozenset({JOB_STATUS_CANCELLED}),
    (JOB_STATUS_ACTIVE, TRIGGER_CANCEL): frozenset({JOB_STATUS_CANCELLED}),
    (JOB_STATUS_ACTIVE, TRIGGER_RECONCILE): frozenset({JOB_STATUS_DONE, JOB_STATUS_FAILED}),
}


class InvalidJobTransitionError(ValueError):
    """Raised when a status change is not permitted by the transition table."""

    def __init__(self, from_status: str, trigger: str, to_status: str | None = None):
        target = to_status if to_status is not None else "<any>"
        super().__init__(f"illegal job transition {from_status} -[{trigger}]-> {target}")
        self.from_status = from_status
        self.trigger = trigger
        self.to_status = to_status


def domain_job_status_is_terminal(status: str) -> bool:
    """Return whether the status admits no further transitions.

    Args:
        status: Job status value.

    Returns:
        bool: True for `Done`, `Failed` and `Cancelled`.

    Raises:
        ValueError: Raised when status is not a known job status.
    """

    if status not in JOB_STATUSES:
        raise ValueError(f"unknown job status={status}")
    return status in TERMINAL_JOB_STATUSES


def domain_job_transition_is_legal(from_status: str, trigger: str, to_status: str) -> bool:
    """Return whether `from_status` may move to `to_status` under `trigger`."""

    return to_status in _LEGAL_TRANSITIONS.get((from_status, trigger), frozenset())


def domain_job_validate_transition(from_status: str, trigger: str, to_status: str) -> str:
    """Validate one transition and return the target status.

    Args:
        from_status: Current job status.
        trigger: Transition trigger (`cancel` or `reconcile`).
        to_status: Requested target status.

    Returns:
        str: The validated target status.

    Raises:
        InvalidJobTransitionError: Raised when the table does not allow the move.
    """

    if not domain_job_transition_is_legal(from_status, trigger, to_status):
        raise InvalidJobTransitionError(from_status=from_status, trigger=trigger, to_status=to_status)
    return to_status


def domain_job_status_from_output_names(output_names: list[str]) -> str | None:
    """Derive a completed status from the names of a job's output objects.

    Args:
        output_names: Object names found under the job output prefix.

    Returns:
        str | None: `Failed` when any name ends with `error.log`, `Done` when
        objects exist without one, None when there is no output yet.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not output_names:
        return None
    for output_name in output_names:
        if output_name.endswith(ERROR_LOG_SUFFIX):
            return JOB_STATUS_FAILED
    return JOB_STATUS_DONE
