"""Application bootstrap wiring for startup validation and dependency assembly."""

from botocore.exceptions import BotoCoreError
from fastapi import FastAPI

from joblist.adapters import (
    CloudClientRegistry,
    ComputeProviderError,
    EC2ComputeProviderAdapter,
    ObjectStoreError,
    ProviderCredentials,
    S3ObjectStoreAdapter,
    adapter_create_ec2_client,
    adapter_create_s3_client,
)
from joblist.api import create_api_application
from joblist.config import AppSettings, config_configure_logging, config_get_logger, config_load_settings
from joblist.db import SQLAlchemyDatabaseHealthService, SQLAlchemyJobMetadataService, db_create_engine
from joblist.jobs import (
    InstanceTerminator,
    JobArchiveStreamer,
    JobLifecycleService,
    JobListService,
    JobLockRegistry,
    JobOutputReconciler,
    SeriesCascadeExecutor,
)

logger = config_get_logger(__name__)


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    config_configure_logging(resolved_settings)
    engine = db_create_engine(database_url=resolved_settings.database_url)
    db_health_service = SQLAlchemyDatabaseHealthService(engine=engine)
    job_list_service = bootstrap_create_job_list_service(
        settings=resolved_settings,
        repository=SQLAlchemyJobMetadataService(engine=engine),
        client_registry=bootstrap_create_client_registry(resolved_settings),
    )
    logger.info(
        "application_bootstrapped",
        environment=resolved_settings.environment_name,
        bucket=resolved_settings.object_store_bucket_name,
    )
    return create_api_application(
        settings=resolved_settings,
        db_health_service=db_health_service,
        job_list_service=job_list_service,
    )


def bootstrap_create_job_list_service(
    settings: AppSettings,
    repository: SQLAlchemyJobMetadataService,
    client_registry: CloudClientRegistry,
) -> JobListService:
    """Wire lifecycle, cascade, reconciliation and download services.

    Args:
        settings: Validated runtime settings.
        repository: Job metadata repository.
        client_registry: Per-caller cloud client registry.

    Returns:
        JobListService: Fully wired service.
    """

    lifecycle = JobLifecycleService(
        repository=repository,
        terminator=InstanceTerminator(client_registry=client_registry),
        lock_registry=JobLockRegistry(),
    )
    return JobListService(
        repository=repository,
        lifecycle=lifecycle,
        cascade=SeriesCascadeExecutor(repository=repository, lifecycle=lifecycle),
        reconciler=JobOutputReconciler(
            client_registry=client_registry,
            lifecycle=lifecycle,
            bucket_name=settings.object_store_bucket_name,
        ),
        archive_streamer=JobArchiveStreamer(
            client_registry=client_registry,
            bucket_name=settings.object_store_bucket_name,
            chunk_size_bytes=settings.download_chunk_size_bytes,
            archive_file_name=settings.archive_file_name,
        ),
    )


def bootstrap_create_client_registry(settings: AppSettings) -> CloudClientRegistry:
    """Build the client registry with boto3-backed factories.

    Args:
        settings: Validated runtime settings with region and endpoint overrides.

    Returns:
        CloudClientRegistry: Registry building clients lazily per caller.
    """

    def object_store_factory(credentials: ProviderCredentials | None) -> S3ObjectStoreAdapter:
        try:
            client = adapter_create_s3_client(
                region_name=settings.provider_region_name,
                endpoint_url=settings.object_store_endpoint_url,
                **_bootstrap_credential_kwargs(credentials),
            )
        except BotoCoreError as error:
            raise ObjectStoreError(f"Could not create object store client: {error}") from error
        return S3ObjectStoreAdapter(client=client)

    def compute_provider_factory(credentials: ProviderCredentials | None) -> EC2ComputeProviderAdapter:
        try:
            client = adapter_create_ec2_client(
                region_name=settings.provider_region_name,
                endpoint_url=settings.compute_endpoint_url,
                **_bootstrap_credential_kwargs(credentials),
            )
        except BotoCoreError as error:
            raise ComputeProviderError(f"Could not create compute provider client: {error}") from error
        return EC2ComputeProviderAdapter(client=client)

    return CloudClientRegistry(
        object_store_factory=object_store_factory,
        compute_provider_factory=compute_provider_factory,
    )


def _bootstrap_credential_kwargs(credentials: ProviderCredentials | None) -> dict[str, str | None]:
    if credentials is None:
        return {}
    return {
        "access_key_id": credentials.access_key_id,
        "secret_access_key": credentials.secret_access_key,
        "session_token": credentials.session_token,
    }
