"""FastAPI application factory for the job list service."""

from fastapi import FastAPI

from joblist.config import AppSettings
from joblist.db import DatabaseHealthPort
from joblist.jobs import JobListService

from .routers import api_create_health_router, api_create_jobs_router


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    job_list_service: JobListService,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        job_list_service: Service executing job list operations.

    Returns:
        FastAPI: Framework application instance with all routers mounted.

    Raises:
        ValueError: Raised when a router dependency is invalid.
    """
    application = FastAPI(title="Job List Service")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identity and environment for bootstrap verification."""

        return {
            "service": "joblist",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(api_create_jobs_router(job_list_service=job_list_service))

    return application
