"""Streaming download of job output objects, singly or as one ZIP archive."""

from __future__ import annotations

import io
import zipfile
from datetime import datetime
from typing import Final, Generator, Iterator

from joblist.adapters import (
    CallerContext,
    CloudAdapterError,
    CloudClientRegistry,
    ObjectStoreError,
    ObjectStorePort,
    StoredObject,
)
from joblist.config import config_get_logger
from joblist.domain import JobRecord

from .errors import InvalidRequestError, StreamingFailureError, UpstreamFailureError
from .interfaces import ObjectDownload

logger = config_get_logger(__name__)

OCTET_STREAM_CONTENT_TYPE: Final[str] = "application/octet-stream"
ZIP_CONTENT_TYPE: Final[str] = "application/zip"
_ZIP_EPOCH: Final[tuple[int, int, int, int, int, int]] = (1980, 1, 1, 0, 0, 0)


class _ArchiveChunkSink(io.RawIOBase):
    """Write-only, non-seekable sink collecting archive bytes until drained."""

    def __init__(self):
        super().__init__()
        self._pending: list[bytes] = []

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self._pending.append(bytes(data))
        return len(data)

    def sink_drain(self) -> Iterator[bytes]:
        pending, self._pending = self._pending, []
        return iter(pending)


class _OpenedObjectChunkStream:
    """Chunk iterator that owns an object body opened before streaming starts.

    Closing the stream closes the body even when iteration never began, so an
    abandoned response does not keep the object store connection open.
    """

    def __init__(self, opened_object: StoredObject, chunks: Generator[bytes, None, None]):
        self._opened_object = opened_object
        self._chunks = chunks
        self._closed = False

    def __iter__(self) -> _OpenedObjectChunkStream:
        return self

    def __next__(self) -> bytes:
        return next(self._chunks)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._chunks.close()
        finally:
            self._opened_object.body.close()

    def __del__(self):
        self.close()


class JobArchiveStreamer:
    """Fetches job output objects and forwards them without buffering whole files."""

    def __init__(
        self,
        client_registry: CloudClientRegistry,
        bucket_name: str,
        chunk_size_bytes: int = 16384,
        archive_file_name: str = "jobfiles.zip",
    ):
        """Initialize streamer dependencies.

        Args:
            client_registry: Per-caller cloud client registry.
            bucket_name: Bucket holding job output.
            chunk_size_bytes: Read size for object bodies.
            archive_file_name: Attachment filename for archives.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when configuration values are invalid.
        """

        if client_registry is None:
            raise ValueError("client_registry must not be None")
        if not bucket_name.strip():
            raise ValueError("bucket_name must not be blank")
        if chunk_size_bytes < 1:
            raise ValueError("chunk_size_bytes must be >= 1")
        if not archive_file_name.strip():
            raise ValueError("archive_file_name must not be blank")

        self._client_registry = client_registry
        self._bucket_name = bucket_name.strip()
        self._chunk_size_bytes = chunk_size_bytes
        self._archive_file_name = archive_file_name.strip()

    def archive_open_object(
        self,
        job: JobRecord,
        object_key: str,
        file_name: str,
        caller: CallerContext,
    ) -> ObjectDownload:
        """Fetch one object and return its unmodified byte stream.

        The fetch happens here, before any byte is sent, so a failure is still
        reportable as a structured error.

        Args:
            job: Job owning the object.
            object_key: Object key to fetch.
            file_name: Attachment filename offered to the client.
            caller: Caller context.

        Returns:
            ObjectDownload: Lazy octet stream of the object.

        Raises:
            InvalidRequestError: Raised when key or filename is blank or the key is outside the job output.
            UpstreamFailureError: Raised when the object cannot be fetched.
        """

        normalized_key = (object_key or "").strip()
        normalized_file_name = (file_name or "").strip()
        if not normalized_file_name:
            raise InvalidRequestError("No filename provided!")
        if not normalized_key:
            raise InvalidRequestError("No file key provided!")
        if not _archive_key_belongs_to_job(job, normalized_key):
            logger.warning("job_file_outside_output_location", job_id=job.job_id, key=normalized_key)
            raise InvalidRequestError("File does not belong to this job!")

        try:
            object_store = self._client_registry.registry_get_object_store(caller)
            stored_object = object_store.adapter_get_object(self._bucket_name, normalized_key)
        except CloudAdapterError as error:
            logger.error("job_file_fetch_failed", job_id=job.job_id, key=normalized_key, error=str(error))
            raise UpstreamFailureError(f"Error getting object data: {error}") from error

        logger.info("job_file_download_started", job_id=job.job_id, key=normalized_key, length=stored_object.length)
        return ObjectDownload(
            file_name=normalized_file_name,
            content_type=OCTET_STREAM_CONTENT_TYPE,
            chunks=_OpenedObjectChunkStream(stored_object, self._archive_iter_object_chunks(job, stored_object)),
            content_length=stored_object.length,
        )

    def archive_open_archive(
        self,
        job: JobRecord,
        object_keys: list[str],
        caller: CallerContext,
    ) -> ObjectDownload:
        """Open a ZIP stream with one entry per readable key, in key order.

        Keys are fetched until the first readable one; if none is readable no
        body is produced. Remaining keys are fetched while the archive streams.
        Unreadable keys and keys outside the job output location are skipped.

        Args:
            job: Job owning the objects.
            object_keys: Ordered object keys.
            caller: Caller context.

        Returns:
            ObjectDownload: Lazy ZIP stream.

        Raises:
            InvalidRequestError: Raised when no key is given.
            UpstreamFailureError: Raised when no key yields a readable object.
        """

        normalized_keys = [key.strip() for key in object_keys if key and key.strip()]
        if not normalized_keys:
            raise InvalidRequestError("No filename(s) provided!")

        logger.debug("job_archive_requested", job_id=job.job_id, key_count=len(normalized_keys))
        try:
            object_store = self._client_registry.registry_get_object_store(caller)
        except CloudAdapterError as error:
            raise UpstreamFailureError(f"Error getting object data: {error}") from error

        for key_index, key in enumerate(normalized_keys):
            first_object = self._archive_try_fetch(job, object_store, key)
            if first_object is None:
                continue
            return ObjectDownload(
                file_name=self._archive_file_name,
                content_type=ZIP_CONTENT_TYPE,
                chunks=_OpenedObjectChunkStream(
                    first_object,
                    self._archive_iter_zip_chunks(
                        job=job,
                        object_store=object_store,
                        first_object=first_object,
                        remaining_keys=normalized_keys[key_index + 1 :],
                    ),
                ),
            )

        logger.error("job_archive_no_readable_files", job_id=job.job_id, key_count=len(normalized_keys))
        raise UpstreamFailureError("Could not access the files!")

    def _archive_try_fetch(self, job: JobRecord, object_store: ObjectStorePort, key: str) -> StoredObject | None:
        if not _archive_key_belongs_to_job(job, key):
            logger.warning("job_archive_entry_outside_output_location", job_id=job.job_id, key=key)
            return None
        try:
            return object_store.adapter_get_object(self._bucket_name, key)
        except ObjectStoreError as error:
            logger.warning("job_archive_entry_skipped", job_id=job.job_id, key=key, error=str(error))
            return None

    def _archive_iter_object_chunks(self, job: JobRecord, stored_object: StoredObject) -> Iterator[bytes]:
        """Yield object body chunks; a read failure truncates the stream."""

        try:
            while True:
                try:
                    chunk = stored_object.body.read(self._chunk_size_bytes)
                except ObjectStoreError as error:
                    logger.error("job_file_stream_failed", job_id=job.job_id, key=stored_object.key, error=str(error))
                    raise StreamingFailureError(f"Could not send file: {error}") from error
                if not chunk:
                    break
                yield chunk
        finally:
            stored_object.body.close()

    def _archive_iter_zip_chunks(
        self,
        job: JobRecord,
        object_store: ObjectStorePort,
        first_object: StoredObject,
        remaining_keys: list[str],
    ) -> Iterator[bytes]:
        """Yield ZIP bytes as entries are written, then the central directory."""

        sink = _ArchiveChunkSink()
        entry_count = 0
        try:
            with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
                stored_object: StoredObject | None = first_object
                pending_keys = list(remaining_keys)
                while stored_object is not None:
                    yield from self._archive_write_entry(job, archive, sink, stored_object)
                    entry_count += 1
                    stored_object = None
                    while pending_keys and stored_object is None:
                        stored_object = self._archive_try_fetch(job, object_store, pending_keys.pop(0))
            yield from sink.sink_drain()
        except (OSError, zipfile.LargeZipFile) as error:
            logger.error("job_archive_stream_failed", job_id=job.job_id, entry_count=entry_count, error=str(error))
            raise StreamingFailureError(f"Could not create ZIP file: {error}") from error

        logger.info("job_archive_streamed", job_id=job.job_id, entry_count=entry_count)

    def _archive_write_entry(
        self,
        job: JobRecord,
        archive: zipfile.ZipFile,
        sink: _ArchiveChunkSink,
        stored_object: StoredObject,
    ) -> Iterator[bytes]:
        """Write one object as one entry named by its key.

        A read failure ends this entry early; already written entries stay.
        """

        entry_info = zipfile.ZipInfo(filename=stored_object.key, date_time=_archive_entry_date_time(stored_object))
        entry_info.compress_type = zipfile.ZIP_DEFLATED
        entry_info.file_size = stored_object.length
        try:
            with archive.open(entry_info, mode="w") as entry:
                while True:
                    try:
                        chunk = stored_object.body.read(self._chunk_size_bytes)
                    except ObjectStoreError as error:
                        logger.error(
                            "job_archive_entry_truncated",
                            job_id=job.job_id,
                            key=stored_object.key,
                            error=str(error),
                        )
                        break
                    if not chunk:
                        break
                    entry.write(chunk)
                    yield from sink.sink_drain()
        finally:
            stored_object.body.close()
        yield from sink.sink_drain()


def _archive_key_belongs_to_job(job: JobRecord, key: str) -> bool:
    """Return whether `key` lies under the job output location, matching the file listing."""

    output_location = (job.output_location or "").strip()
    return bool(output_location) and key.startswith(output_location)


def _archive_entry_date_time(stored_object: StoredObject) -> tuple[int, int, int, int, int, int]:
    last_modified: datetime | None = stored_object.last_modified
    if last_modified is None or last_modified.year < 1980:
        return _ZIP_EPOCH
    return (
        last_modified.year,
        last_modified.month,
        last_modified.day,
        last_modified.hour,
        last_modified.minute,
        last_modified.second,
    )
