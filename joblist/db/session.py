"""Database engine construction for the job metadata store.

All SQLAlchemy engine creation goes through this module so repositories only
ever receive a ready `Engine`.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool


def db_create_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for job metadata access.

    In-memory SQLite URLs share one connection across threads so local runs
    and tests see a single database; every other backend uses a pre-pinged pool.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    normalized_url = database_url.strip()
    if not normalized_url:
        raise ValueError("database_url must not be blank")

    parsed_url = make_url(normalized_url)
    if parsed_url.get_backend_name() == "sqlite" and parsed_url.database in (None, "", ":memory:"):
        return create_engine(
            normalized_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(normalized_url, pool_pre_ping=True)
