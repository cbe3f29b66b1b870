"""Database layer package for all SQL and persistence boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import DatabaseHealthPort, JobMetadataRepositoryPort, JobStatusConflictError
from .job_metadata import SQLAlchemyJobMetadataService
from .session import db_create_engine

__all__ = [
	"DatabaseHealthPort",
	"JobMetadataRepositoryPort",
	"JobStatusConflictError",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyJobMetadataService",
	"db_create_engine",
]
