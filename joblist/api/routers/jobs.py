"""Job list API router for delete, cancel, file listing, download and series queries."""

from __future__ import annotations

from typing import Iterator
from urllib.parse import quote

from fastapi import APIRouter, Header, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from joblist.adapters import CallerContext, ProviderCredentials
from joblist.config import config_get_logger
from joblist.domain import JobRecord, SeriesRecord
from joblist.jobs import (
    CascadeCancelResult,
    CascadeDeleteResult,
    JobListError,
    JobListService,
    ObjectDownload,
    OperationResult,
    StreamingFailureError,
)

logger = config_get_logger(__name__)

_ERROR_CODE_HTTP_STATUS: dict[str, int] = {
    "JOB_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SERIES_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,
    "INVALID_STATE": status.HTTP_409_CONFLICT,
    "INVALID_REQUEST": status.HTTP_400_BAD_REQUEST,
    "UPSTREAM_FAILURE": status.HTTP_502_BAD_GATEWAY,
    "STREAMING_FAILURE": status.HTTP_502_BAD_GATEWAY,
}


def api_create_jobs_router(job_list_service: JobListService) -> APIRouter:
    """Create router exposing job list operations over HTTP.

    The caller identity is read from `X-Caller-Identity`; provider credentials
    are optional and read from the `X-Provider-*` headers. Non-integer ids are
    passed on as missing so they surface as NotFound.

    Args:
        job_list_service: Service executing the operations.

    Returns:
        APIRouter: Router exposing `/jobs` and `/series` endpoints.

    Raises:
        ValueError: Raised when job_list_service is invalid.
    """

    if job_list_service is None:
        raise ValueError("job_list_service must not be None")

    router = APIRouter(tags=["jobs"])

    @router.delete("/jobs/{job_id}")
    def api_job_delete(
        job_id: str,
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ) -> JSONResponse:
        """Delete one job record regardless of status."""

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()
        result = job_list_service.delete_job(api_parse_identifier(job_id), caller)
        return _api_operation_response(result)

    @router.delete("/series/{series_id}/jobs")
    def api_series_jobs_delete(
        series_id: str,
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ) -> JSONResponse:
        """Delete every terminal job of a series, and the series when nothing is running."""

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()
        result = job_list_service.delete_series_jobs(api_parse_identifier(series_id), caller)
        return _api_operation_response(result)

    @router.post("/jobs/{job_id}/cancel")
    def api_job_cancel(
        job_id: str,
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ) -> JSONResponse:
        """Terminate the job's compute instance and mark the job cancelled."""

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()
        result = job_list_service.cancel_job(api_parse_identifier(job_id), caller)
        return _api_operation_response(result)

    @router.post("/series/{series_id}/jobs/cancel")
    def api_series_jobs_cancel(
        series_id: str,
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ) -> JSONResponse:
        """Cancel every running job of a series."""

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()
        result = job_list_service.cancel_series_jobs(api_parse_identifier(series_id), caller)
        return _api_operation_response(result)

    @router.get("/jobs/{job_id}/files")
    def api_job_files_list(
        job_id: str,
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ) -> JSONResponse:
        """List a job's output files, reconciling the job status on the way."""

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()

        result = job_list_service.list_job_files(api_parse_identifier(job_id), caller)
        if result.files is None:
            return _api_error_response(result.error, result.error_code)
        payload = {
            "success": True,
            "files": [{"name": file_info.name, "size": file_info.size} for file_info in result.files],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/jobs/{job_id}/files/download")
    def api_job_file_download(
        job_id: str,
        key: str | None = Query(default=None),
        filename: str | None = Query(default=None),
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ):
        """Stream one job output file as an attachment."""

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()
        try:
            download = job_list_service.download_file(api_parse_identifier(job_id), key, filename, caller)
        except JobListError as error:
            return _api_error_response(str(error), error.error_code)
        return _api_streaming_response(download)

    @router.get("/jobs/{job_id}/files/archive")
    def api_job_files_archive(
        job_id: str,
        files: str | None = Query(default=None),
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ):
        """Stream several job output files as one ZIP attachment.

        Args:
            job_id: Job identifier path segment.
            files: Comma-separated object keys in archive order.

        Returns:
            StreamingResponse | JSONResponse: ZIP stream, or an error payload before any byte is sent.
        """

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()
        file_keys = [file_key for file_key in (files or "").split(",") if file_key.strip()]
        try:
            download = job_list_service.download_files_as_archive(api_parse_identifier(job_id), file_keys, caller)
        except JobListError as error:
            return _api_error_response(str(error), error.error_code)
        return _api_streaming_response(download)

    @router.get("/series")
    def api_series_query(
        user: str | None = Query(default=None),
        name: str | None = Query(default=None),
        description: str | None = Query(default=None),
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
    ) -> JSONResponse:
        """Query series by owner and name/description substrings."""

        caller = api_build_caller_context(caller_identity, None, None, None)
        if caller is None:
            return _api_missing_identity_response()
        series = job_list_service.query_series(caller, user=user, name=name, description=description)
        payload = {"success": True, "series": [api_serialize_series(series_record) for series_record in series]}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/series/{series_id}/jobs")
    def api_series_jobs_list(
        series_id: str,
        caller_identity: str | None = Header(default=None, alias="X-Caller-Identity"),
        access_key_id: str | None = Header(default=None, alias="X-Provider-Access-Key-Id"),
        secret_access_key: str | None = Header(default=None, alias="X-Provider-Secret-Access-Key"),
        session_token: str | None = Header(default=None, alias="X-Provider-Session-Token"),
    ) -> JSONResponse:
        """List a series' jobs after reconciling each against its output.

        Per-job reconciliation failures do not fail the listing; they are
        returned under `reconciliation_errors` keyed by job id.
        """

        caller = api_build_caller_context(caller_identity, access_key_id, secret_access_key, session_token)
        if caller is None:
            return _api_missing_identity_response()

        result = job_list_service.list_jobs_for_series(api_parse_identifier(series_id), caller)
        if result.jobs is None:
            return _api_error_response(result.error, result.error_code)
        payload = {
            "success": True,
            "jobs": [api_serialize_job(job) for job in result.jobs],
            "error": result.error,
            "error_code": result.error_code,
            "reconciliation_errors": {
                str(job_id): message for job_id, message in result.reconciliation_errors.items()
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


def api_build_caller_context(
    caller_identity: str | None,
    access_key_id: str | None,
    secret_access_key: str | None,
    session_token: str | None,
) -> CallerContext | None:
    """Build the caller context from request headers.

    Args:
        caller_identity: Verified caller identity header value.
        access_key_id: Optional provider access key id.
        secret_access_key: Optional provider secret access key.
        session_token: Optional provider session token.

    Returns:
        CallerContext | None: Caller context, or None when no identity was supplied.
    """

    normalized_identity = (caller_identity or "").strip()
    if not normalized_identity:
        return None

    credentials = None
    if access_key_id and secret_access_key:
        credentials = ProviderCredentials(
            access_key_id=access_key_id.strip(),
            secret_access_key=secret_access_key,
            session_token=session_token or None,
        )
    return CallerContext(identity=normalized_identity, credentials=credentials)


def api_parse_identifier(raw_identifier: str | None) -> int | None:
    """Parse an integer path identifier; malformed values become None."""

    try:
        return int((raw_identifier or "").strip())
    except ValueError:
        return None


def api_serialize_series(series: SeriesRecord) -> dict[str, object]:
    return {
        "series_id": series.series_id,
        "user": series.user,
        "name": series.name,
        "description": series.description,
    }


def api_serialize_job(job: JobRecord) -> dict[str, object]:
    return {
        "job_id": job.job_id,
        "series_id": job.series_id,
        "name": job.name,
        "description": job.description,
        "status": job.status,
        "instance_reference": job.instance_reference,
        "output_location": job.output_location,
        "submitted_at_utc": job.submitted_at_utc.isoformat() if job.submitted_at_utc is not None else None,
    }


def _api_operation_response(result: OperationResult) -> JSONResponse:
    payload: dict[str, object] = {
        "success": result.success,
        "error": result.error,
        "error_code": result.error_code,
    }
    if isinstance(result, CascadeDeleteResult):
        payload["deleted_job_ids"] = list(result.deleted_job_ids)
        payload["running_job_ids"] = list(result.running_job_ids)
        payload["series_deleted"] = result.series_deleted
    if isinstance(result, CascadeCancelResult):
        payload["cancelled_job_ids"] = list(result.cancelled_job_ids)
        payload["skipped_job_ids"] = list(result.skipped_job_ids)
        payload["failed_job_ids"] = list(result.failed_job_ids)

    status_code = status.HTTP_200_OK
    if not result.success:
        status_code = _ERROR_CODE_HTTP_STATUS.get(result.error_code or "", status.HTTP_400_BAD_REQUEST)
    return JSONResponse(content=payload, status_code=status_code)


def _api_error_response(message: str | None, error_code: str | None) -> JSONResponse:
    payload = {"success": False, "error": message, "error_code": error_code}
    status_code = _ERROR_CODE_HTTP_STATUS.get(error_code or "", status.HTTP_400_BAD_REQUEST)
    return JSONResponse(content=payload, status_code=status_code)


def _api_missing_identity_response() -> JSONResponse:
    payload = {
        "success": False,
        "error": "X-Caller-Identity header is required.",
        "error_code": "UNAUTHORIZED",
    }
    return JSONResponse(content=payload, status_code=status.HTTP_401_UNAUTHORIZED)


def _api_streaming_response(download: ObjectDownload) -> StreamingResponse:
    headers = {"Content-Disposition": _api_content_disposition(download.file_name)}
    if download.content_length is not None:
        headers["Content-Length"] = str(download.content_length)
    return StreamingResponse(
        _api_iter_download(download),
        media_type=download.content_type,
        headers=headers,
    )


def _api_iter_download(download: ObjectDownload) -> Iterator[bytes]:
    """Forward download chunks; a mid-stream failure aborts the connection.

    Headers are already sent at that point, so the error is re-raised for the
    server to drop the transfer instead of ending the body cleanly.
    """

    try:
        yield from download.chunks
    except StreamingFailureError as error:
        logger.error("download_stream_aborted", file_name=download.file_name, error=str(error))
        raise


def _api_content_disposition(file_name: str) -> str:
    ascii_name = file_name.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"
