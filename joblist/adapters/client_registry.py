"""Per-caller cloud client cache with guarded single initialization."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable

from joblist.config import config_get_logger

from .interfaces import ComputeProviderPort, ObjectStorePort

logger = config_get_logger(__name__)


@dataclass(frozen=True)
class ProviderCredentials:
    """Cloud provider credentials supplied with a caller session.

    Attributes:
        access_key_id: Access key identifier.
        secret_access_key: Secret access key.
        session_token: Optional temporary session token.
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class CallerContext:
    """Explicit per-request caller context passed into every operation.

    Attributes:
        identity: Already-verified caller identity string.
        credentials: Optional provider credentials; None uses the default chain.
    """

    identity: str
    credentials: ProviderCredentials | None = None

    def caller_client_key(self) -> tuple[str, str | None]:
        """Return the cache key for clients built for this caller."""

        access_key_id = self.credentials.access_key_id if self.credentials is not None else None
        return (self.identity, access_key_id)


ObjectStoreFactory = Callable[[ProviderCredentials | None], ObjectStorePort]
ComputeProviderFactory = Callable[[ProviderCredentials | None], ComputeProviderPort]


class CloudClientRegistry:
    """Lazily builds and caches object store and compute clients per caller.

    Construction for a given caller key happens at most once, even when
    concurrent requests from the same caller race on first use.
    """

    def __init__(
        self,
        object_store_factory: ObjectStoreFactory,
        compute_provider_factory: ComputeProviderFactory,
    ):
        """Initialize registry with client factories.

        Args:
            object_store_factory: Builds an object store adapter from credentials.
            compute_provider_factory: Builds a compute provider adapter from credentials.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when a factory is None.
        """

        if object_store_factory is None:
            raise ValueError("object_store_factory must not be None")
        if compute_provider_factory is None:
            raise ValueError("compute_provider_factory must not be None")

        self._object_store_factory = object_store_factory
        self._compute_provider_factory = compute_provider_factory
        self._object_stores: dict[tuple[str, str | None], ObjectStorePort] = {}
        self._compute_providers: dict[tuple[str, str | None], ComputeProviderPort] = {}
        self._lock = threading.Lock()

    def registry_get_object_store(self, caller: CallerContext) -> ObjectStorePort:
        """Return the cached object store client for the caller, building it once."""

        return self._registry_get_or_create(
            cache=self._object_stores,
            caller=caller,
            factory=self._object_store_factory,
            client_kind="object_store",
        )

    def registry_get_compute_provider(self, caller: CallerContext) -> ComputeProviderPort:
        """Return the cached compute provider client for the caller, building it once."""

        return self._registry_get_or_create(
            cache=self._compute_providers,
            caller=caller,
            factory=self._compute_provider_factory,
            client_kind="compute_provider",
        )

    def _registry_get_or_create(self, cache: dict, caller: CallerContext, factory: Callable, client_kind: str):
        """Double-checked lookup; construction runs under the registry lock.

        Args:
            cache: Client cache for one client kind.
            caller: Caller context owning the client.
            factory: Client factory.
            client_kind: Label for diagnostics.

        Returns:
            object: Cached or newly built client.

        Raises:
            CloudAdapterError: Propagated from the factory when construction fails.
        """

        cache_key = caller.caller_client_key()
        client = cache.get(cache_key)
        if client is not None:
            return client

        with self._lock:
            client = cache.get(cache_key)
            if client is None:
                client = factory(caller.credentials)
                cache[cache_key] = client
                logger.info("cloud_client_created", client_kind=client_kind, caller_identity=caller.identity)
        return client
