"""Job metadata store health check used by the `/health` endpoint."""

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from joblist.domain import HealthStatus

from .interfaces import DatabaseHealthPort


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Verifies the metadata store is reachable and its job tables exist."""

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the engine URL with the password masked."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Probe both metadata tables with a zero-row read.

        Returns:
            HealthStatus: `ok` status when both tables answer.

        Raises:
            ConnectionError: Raised when the store or its schema is unavailable.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT series_id FROM job_series WHERE 1 = 0"))
                connection.execute(text("SELECT job_id FROM job WHERE 1 = 0"))
        except SQLAlchemyError as error:
            raise ConnectionError("job metadata store check failed") from error
        return HealthStatus(status="ok", detail="job metadata tables reachable")
