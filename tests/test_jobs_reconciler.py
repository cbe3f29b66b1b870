"""Tests for pull-based status reconciliation from job output objects."""

from __future__ import annotations

from joblist.adapters import ObjectStoreError
from joblist.domain import JOB_STATUS_ACTIVE, JOB_STATUS_DONE, JOB_STATUS_FAILED, JOB_STATUS_PENDING


def test_jobs_list_files_marks_active_job_done_when_output_exists(repository, object_store, job_list_service, owner) -> None:
    """Output without an error log completes an active job."""

    repository.add_series(1)
    repository.add_job(10, 1, JOB_STATUS_ACTIVE, output_location="runs/10/")
    object_store.objects["runs/10/result.csv"] = b"a,b\n1,2\n"
    object_store.objects["runs/10/stdout.log"] = b"ok"

    result = job_list_service.list_job_files(10, owner)

    assert result.error is None
    assert [(file_info.name, file_info.size) for file_info in result.files] == [
        ("runs/10/result.csv", 8),
        ("runs/10/stdout.log", 2),
    ]
    assert repository.jobs[10].status == JOB_STATUS_DONE


def test_jobs_list_files_marks_active_job_failed_on_error_log(repository, object_store, job_list_service, owner) -> None:
    """Any object ending with error.log fails the job."""

    repository.add_series(1)
    repository.add_job(10, 1, JOB_STATUS_ACTIVE, output_location="runs/10/")
    object_store.objects["runs/10/result.csv"] = b"partial"
    object_store.objects["runs/10/error.log"] = b"Traceback"

    job_list_service.list_job_files(10, owner)

    assert repository.jobs[10].status == JOB_STATUS_FAILED


def test_jobs_list_files_keeps_status_without_output(repository, object_store, job_list_service, owner) -> None:
    """An active job without output objects stays active."""

    repository.add_series(1)
    repository.add_job(10, 1, JOB_STATUS_ACTIVE, output_location="runs/10/")

    result = job_list_service.list_job_files(10, owner)

    assert result.files == ()
    assert repository.jobs[10].status == JOB_STATUS_ACTIVE
    assert repository.save_calls == []


def test_jobs_list_files_without_output_location_skips_listing(repository, object_store, job_list_service, owner) -> None:
    """Jobs that never got an output prefix are not listed at all."""

    repository.add_series(1)
    repository.add_job(10, 1, JOB_STATUS_PENDING, output_location=None)

    result = job_list_service.list_job_files(10, owner)

    assert result.files == ()
    assert object_store.list_calls == []


def test_jobs_reconcile_only_moves_active_jobs(repository, object_store, reconciler, owner) -> None:
    """Pending and terminal jobs are reported but never moved by reconciliation."""

    repository.add_series(1)
    pending_job = repository.add_job(10, 1, JOB_STATUS_PENDING, output_location="runs/10/")
    done_job = repository.add_job(11, 1, JOB_STATUS_DONE, output_location="runs/11/")
    object_store.objects["runs/10/error.log"] = b"boom"
    object_store.objects["runs/11/error.log"] = b"boom"

    pending_result = reconciler.reconciler_reconcile_job(pending_job, owner)
    done_result = reconciler.reconciler_reconcile_job(done_job, owner)

    assert pending_result.new_status is None
    assert done_result.new_status is None
    assert len(pending_result.objects) == 1
    assert repository.jobs[10].status == JOB_STATUS_PENDING
    assert repository.jobs[11].status == JOB_STATUS_DONE


def test_jobs_reconcile_reports_new_status(repository, object_store, reconciler, owner) -> None:
    """The persisted status is returned alongside the refreshed job."""

    repository.add_series(1)
    job = repository.add_job(10, 1, JOB_STATUS_ACTIVE, output_location="runs/10/")
    object_store.objects["runs/10/result.csv"] = b"x"

    result = reconciler.reconciler_reconcile_job(job, owner)

    assert result.new_status == JOB_STATUS_DONE
    assert result.job.status == JOB_STATUS_DONE


def test_jobs_list_files_listing_failure_leaves_status(repository, object_store, job_list_service, owner) -> None:
    """An object store failure is reported and the status stays as it was."""

    repository.add_series(1)
    repository.add_job(10, 1, JOB_STATUS_ACTIVE, output_location="runs/10/")
    object_store.list_error = ObjectStoreError("endpoint unreachable")

    result = job_list_service.list_job_files(10, owner)

    assert result.files is None
    assert result.error_code == "UPSTREAM_FAILURE"
    assert repository.jobs[10].status == JOB_STATUS_ACTIVE


def test_jobs_list_files_missing_bucket_is_upstream_failure(repository, object_store, job_list_service, owner) -> None:
    """The output bucket must be visible to the caller's credentials."""

    repository.add_series(1)
    repository.add_job(10, 1, JOB_STATUS_ACTIVE, output_location="runs/10/")
    object_store.buckets = ["some-other-bucket"]

    result = job_list_service.list_job_files(10, owner)

    assert result.files is None
    assert result.error_code == "UPSTREAM_FAILURE"
    assert object_store.list_calls == []


def test_jobs_list_files_unknown_job_is_not_found(job_list_service, owner) -> None:
    """Unknown job ids produce a structured not-found result."""

    result = job_list_service.list_job_files(12345, owner)

    assert result.files is None
    assert result.error_code == "JOB_NOT_FOUND"


def test_jobs_list_series_jobs_reconciles_each_job_and_keeps_order(repository, object_store, job_list_service, owner) -> None:
    """Listing a series reconciles every job; one failure does not hide the others."""

    repository.add_series(1)
    repository.add_job(10, 1, JOB_STATUS_ACTIVE, output_location="runs/10/")
    repository.add_job(11, 1, JOB_STATUS_ACTIVE, output_location="runs/11/")
    repository.add_job(12, 1, JOB_STATUS_PENDING)
    object_store.objects["runs/10/result.csv"] = b"x"
    object_store.objects["runs/11/result.csv"] = b"y"
    object_store.failing_prefixes.add("runs/11/")

    result = job_list_service.list_jobs_for_series(1, owner)

    assert [job.job_id for job in result.jobs] == [10, 11, 12]
    assert [job.status for job in result.jobs] == [JOB_STATUS_DONE, JOB_STATUS_ACTIVE, JOB_STATUS_PENDING]
    assert list(result.reconciliation_errors) == [11]
    assert result.error_code == "UPSTREAM_FAILURE"
    assert repository.jobs[11].status == JOB_STATUS_ACTIVE


def test_jobs_list_series_jobs_unknown_series_is_not_found(job_list_service, owner) -> None:
    """Unknown series ids produce a structured not-found result."""

    result = job_list_service.list_jobs_for_series(None, owner)

    assert result.jobs is None
    assert result.error_code == "SERIES_NOT_FOUND"


def test_jobs_query_series_defaults_to_caller_and_filters_substrings(repository, job_list_service, owner) -> None:
    """No filters lists the caller's own series; name filters match substrings case-insensitively."""

    repository.add_series(1, user="alice", name="Parameter Sweep", description="grid search")
    repository.add_series(2, user="bob", name="sweep two", description="random search")
    repository.add_series(3, user="alice", name="baseline", description="")

    own_series = job_list_service.query_series(owner)
    sweep_series = job_list_service.query_series(owner, name="SWEEP")
    bob_random = job_list_service.query_series(owner, user="bob", description="random")

    assert [series.series_id for series in own_series] == [1, 3]
    assert [series.series_id for series in sweep_series] == [1, 2]
    assert [series.series_id for series in bob_random] == [2]
