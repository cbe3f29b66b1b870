"""Adapter layer package for object store and compute provider boundaries."""

from .client_registry import CallerContext, CloudClientRegistry, ProviderCredentials
from .ec2_compute_provider import EC2ComputeProviderAdapter, adapter_create_ec2_client
from .errors import CloudAdapterError, ComputeProviderError, ObjectNotFoundError, ObjectStoreError
from .interfaces import ComputeProviderPort, ObjectBodyPort, ObjectMeta, ObjectStorePort, StoredObject
from .s3_object_store import S3ObjectStoreAdapter, adapter_create_s3_client

__all__ = [
	"CallerContext",
	"CloudAdapterError",
	"CloudClientRegistry",
	"ComputeProviderError",
	"ComputeProviderPort",
	"EC2ComputeProviderAdapter",
	"ObjectBodyPort",
	"ObjectMeta",
	"ObjectNotFoundError",
	"ObjectStoreError",
	"ObjectStorePort",
	"ProviderCredentials",
	"S3ObjectStoreAdapter",
	"StoredObject",
	"adapter_create_ec2_client",
	"adapter_create_s3_client",
]
