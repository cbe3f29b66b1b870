"""Typed domain models shared across runtime layers.

Series and job records are immutable snapshots of metadata store rows. Status
changes produce a new record through `dataclasses.replace`.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class SeriesRecord:
    """Named, owned grouping of jobs.

    Attributes:
        series_id: Unique series identifier.
        user: Owner identity; the only identity allowed to mutate the series.
        name: Human-readable series name.
        description: Free-text description.
    """

    series_id: int
    user: str
    name: str
    description: str


@dataclass(frozen=True)
class JobRecord:
    """One unit of remote compute work.

    Attributes:
        job_id: Unique job identifier.
        series_id: Parent series identifier.
        status: Lifecycle status (`Pending`, `Active`, `Done`, `Failed`, `Cancelled`).
        instance_reference: Opaque compute instance id backing the job.
        output_location: Object store prefix holding job output, if any.
        name: Human-readable job name.
        description: Free-text description.
        submitted_at_utc: Optional submission timestamp in UTC.
    """

    job_id: int
    series_id: int
    status: str
    instance_reference: str | None
    output_location: str | None
    name: str = ""
    description: str = ""
    submitted_at_utc: datetime | None = None
