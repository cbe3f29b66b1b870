"""Typed interfaces for adapter-layer responsibilities."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class ObjectMeta:
    """Listing entry for one stored object.

    Attributes:
        key: Full object key inside the bucket.
        size: Object length in bytes.
        last_modified: Optional last modification timestamp.
    """

    key: str
    size: int
    last_modified: datetime | None = None

    @property
    def name(self) -> str:
        """Return the object name used for status derivation and display."""

        return self.key


class ObjectBodyPort(Protocol):
    """Readable byte stream of one fetched object."""

    def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes; empty bytes mean end of stream.

        Args:
            size: Maximum number of bytes to return, -1 for all remaining.

        Returns:
            bytes: Next chunk of object bytes.

        Raises:
            ObjectStoreError: Raised when the underlying transfer fails.
        """

    def close(self) -> None:
        """Release the underlying connection."""


@dataclass(frozen=True)
class StoredObject:
    """Fetched object with metadata and an open body stream.

    Attributes:
        key: Object key inside the bucket.
        name: Object name reported by the store.
        length: Content length in bytes.
        body: Open readable byte stream; callers must close it.
        last_modified: Optional last modification timestamp.
    """

    key: str
    name: str
    length: int
    body: ObjectBodyPort
    last_modified: datetime | None = None


class ObjectStorePort(Protocol):
    """Port definition for listing and fetching job output objects."""

    def adapter_list_buckets(self) -> list[str]:
        """Return the names of all buckets visible to the credentials.

        Returns:
            list[str]: Bucket names.

        Raises:
            ObjectStoreError: Raised when the store cannot be reached.
        """

    def adapter_list_objects(self, bucket: str, prefix: str) -> list[ObjectMeta]:
        """List all objects whose key starts with `prefix`.

        Args:
            bucket: Bucket name.
            prefix: Key prefix.

        Returns:
            list[ObjectMeta]: Listing entries in store order.

        Raises:
            ObjectStoreError: Raised when the listing fails.
        """

    def adapter_get_object(self, bucket: str, key: str) -> StoredObject:
        """Fetch one object and open its body stream.

        Args:
            bucket: Bucket name.
            key: Object key.

        Returns:
            StoredObject: Object metadata with an open body.

        Raises:
            ObjectNotFoundError: Raised when the key does not exist.
            ObjectStoreError: Raised when the fetch fails.
        """


class ComputeProviderPort(Protocol):
    """Port definition for remote compute instance control."""

    def adapter_terminate_instance(self, instance_id: str) -> None:
        """Issue one terminate call for exactly one instance.

        Args:
            instance_id: Provider instance identifier.

        Returns:
            None: Returns once the provider accepted the call.

        Raises:
            ComputeProviderError: Raised with the provider error verbatim.
        """
