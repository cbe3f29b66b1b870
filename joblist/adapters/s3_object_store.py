"""S3-compatible object store adapter for job output listing and retrieval."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from joblist.config import config_get_logger

from .errors import ObjectNotFoundError, ObjectStoreError
from .interfaces import ObjectMeta, ObjectStorePort, StoredObject

logger = config_get_logger(__name__)

_NOT_FOUND_ERROR_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "404"})


class _S3ObjectBody:
    """Body stream wrapper translating transfer failures into adapter errors."""

    def __init__(self, streaming_body: Any, bucket: str, key: str):
        self._streaming_body = streaming_body
        self._bucket = bucket
        self._key = key

    def read(self, size: int = -1) -> bytes:
        try:
            if size is None or size < 0:
                return self._streaming_body.read()
            return self._streaming_body.read(size)
        except (BotoCoreError, OSError) as error:
            raise ObjectStoreError(f"failed reading s3://{self._bucket}/{self._key}: {error}") from error

    def close(self) -> None:
        self._streaming_body.close()


class S3ObjectStoreAdapter(ObjectStorePort):
    """Object store adapter backed by a boto3 S3 client.

    Works with AWS S3 and S3-compatible services (MinIO, LocalStack).
    """

    def __init__(self, client: Any):
        """Initialize adapter around an already-built S3 client.

        Args:
            client: boto3 S3 client.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when client is None.
        """

        if client is None:
            raise ValueError("client must not be None")
        self._client = client

    def adapter_list_buckets(self) -> list[str]:
        """Return bucket names visible to the client credentials.

        Returns:
            list[str]: Bucket names.

        Raises:
            ObjectStoreError: Raised when the call fails.
        """

        try:
            response = self._client.list_buckets()
        except (ClientError, BotoCoreError) as error:
            raise _adapter_translate_s3_error(error, "failed to list buckets") from error
        return [str(bucket["Name"]) for bucket in response.get("Buckets", [])]

    def adapter_list_objects(self, bucket: str, prefix: str) -> list[ObjectMeta]:
        """List every object under `prefix`, following pagination.

        Args:
            bucket: Bucket name.
            prefix: Key prefix.

        Returns:
            list[ObjectMeta]: Listing entries in key order.

        Raises:
            ObjectStoreError: Raised when the listing fails.
        """

        objects: list[ObjectMeta] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for entry in page.get("Contents", []):
                    objects.append(
                        ObjectMeta(
                            key=str(entry["Key"]),
                            size=int(entry.get("Size", 0)),
                            last_modified=entry.get("LastModified"),
                        )
                    )
        except (ClientError, BotoCoreError) as error:
            raise _adapter_translate_s3_error(error, f"failed to list s3://{bucket}/{prefix}") from error

        logger.debug("s3_objects_listed", bucket=bucket, prefix=prefix, object_count=len(objects))
        return objects

    def adapter_get_object(self, bucket: str, key: str) -> StoredObject:
        """Fetch one object and return it with an open body stream.

        Args:
            bucket: Bucket name.
            key: Object key.

        Returns:
            StoredObject: Object metadata and body.

        Raises:
            ObjectNotFoundError: Raised when the key does not exist.
            ObjectStoreError: Raised when the fetch fails.
        """

        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as error:
            raise _adapter_translate_s3_error(error, f"failed to get s3://{bucket}/{key}") from error

        return StoredObject(
            key=key,
            name=key,
            length=int(response.get("ContentLength", 0)),
            body=_S3ObjectBody(response["Body"], bucket=bucket, key=key),
            last_modified=response.get("LastModified"),
        )


def adapter_create_s3_client(
    region_name: str,
    endpoint_url: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    session_token: str | None = None,
) -> Any:
    """Build a boto3 S3 client for one set of credentials.

    Without explicit keys the default boto3 credential chain applies.

    Args:
        region_name: Provider region.
        endpoint_url: Optional S3-compatible endpoint override.
        access_key_id: Optional access key id.
        secret_access_key: Optional secret access key.
        session_token: Optional session token.

    Returns:
        Any: boto3 S3 client.

    Raises:
        ValueError: Raised when region_name is blank.
    """

    if not region_name.strip():
        raise ValueError("region_name must not be blank")

    session = boto3.session.Session(
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        aws_session_token=session_token,
        region_name=region_name,
    )
    client_kwargs: dict[str, Any] = {"config": Config(signature_version="s3v4")}
    if endpoint_url:
        client_kwargs["endpoint_url"] = endpoint_url
    return session.client("s3", **client_kwargs)


def _adapter_translate_s3_error(error: Exception, message: str) -> ObjectStoreError:
    """Map botocore failures to adapter error types."""

    if isinstance(error, ClientError):
        error_code = str(error.response.get("Error", {}).get("Code", ""))
        if error_code in _NOT_FOUND_ERROR_CODES:
            return ObjectNotFoundError(f"{message}: {error}", provider_error_code=error_code)
        return ObjectStoreError(f"{message}: {error}", provider_error_code=error_code or None)
    return ObjectStoreError(f"{message}: {error}")
