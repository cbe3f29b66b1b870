"""Compute instance termination for job cancellation."""

from __future__ import annotations

from joblist.adapters import CallerContext, CloudClientRegistry
from joblist.config import config_get_logger

logger = config_get_logger(__name__)


class InstanceTerminator:
    """Terminates the compute instance referenced by a job.

    One terminate call per invocation. No retry and no polling for the
    provider-side terminated state.
    """

    def __init__(self, client_registry: CloudClientRegistry):
        if client_registry is None:
            raise ValueError("client_registry must not be None")
        self._client_registry = client_registry

    def terminator_terminate(self, instance_reference: str, caller: CallerContext) -> None:
        """Terminate one instance with the caller's compute provider client.

        Args:
            instance_reference: Provider instance id.
            caller: Caller context selecting the cached provider client.

        Returns:
            None: Returns when the provider accepted the call.

        Raises:
            ValueError: Raised when instance_reference is blank.
            CloudAdapterError: Raised with the provider error verbatim.
        """

        normalized_reference = instance_reference.strip()
        if not normalized_reference:
            raise ValueError("instance_reference must not be blank")

        compute_provider = self._client_registry.registry_get_compute_provider(caller)
        logger.info("instance_terminate_started", instance_reference=normalized_reference)
        compute_provider.adapter_terminate_instance(normalized_reference)
