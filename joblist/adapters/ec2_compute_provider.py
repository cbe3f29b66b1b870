"""EC2-compatible compute provider adapter for job instance termination."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from joblist.config import config_get_logger

from .errors import ComputeProviderError
from .interfaces import ComputeProviderPort

logger = config_get_logger(__name__)


class EC2ComputeProviderAdapter(ComputeProviderPort):
    """Compute provider adapter backed by a boto3 EC2 client."""

    def __init__(self, client: Any):
        """Initialize adapter around an already-built EC2 client.

        Args:
            client: boto3 EC2 client.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when client is None.
        """

        if client is None:
            raise ValueError("client must not be None")
        self._client = client

    def adapter_terminate_instance(self, instance_id: str) -> None:
        """Issue a single terminate call for one instance.

        The call returns once the provider accepted the request; it does not
        wait for the instance to reach a terminated state.

        Args:
            instance_id: Provider instance identifier.

        Returns:
            None: Returns on provider acceptance.

        Raises:
            ValueError: Raised when instance_id is blank.
            ComputeProviderError: Raised with the provider error verbatim.
        """

        normalized_instance_id = instance_id.strip()
        if not normalized_instance_id:
            raise ValueError("instance_id must not be blank")

        try:
            response = self._client.terminate_instances(InstanceIds=[normalized_instance_id])
        except ClientError as error:
            error_code = str(error.response.get("Error", {}).get("Code", "")) or None
            raise ComputeProviderError(str(error), provider_error_code=error_code) from error
        except BotoCoreError as error:
            raise ComputeProviderError(str(error)) from error

        states = [
            str(entry.get("CurrentState", {}).get("Name", ""))
            for entry in response.get("TerminatingInstances", [])
        ]
        logger.info("ec2_instance_terminate_requested", instance_id=normalized_instance_id, states=states)


def adapter_create_ec2_client(
    region_name: str,
    endpoint_url: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    session_token: str | None = None,
) -> Any:
    """Build a boto3 EC2 client for one set of credentials.

    Args:
        region_name: Provider region.
        endpoint_url: Optional EC2-compatible endpoint override.
        access_key_id: Optional access key id.
        secret_access_key: Optional secret access key.
        session_token: Optional session token.

    Returns:
        Any: boto3 EC2 client.

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
    if endpoint_url:
        return session.client("ec2", endpoint_url=endpoint_url)
    return session.client("ec2")
