"""Database configuration and session management.

SQLite is the default store. Two connection-level pragmas are applied:

    - **WAL (Write-Ahead Logging)**: readers keep working while a hangout
      write is in progress.

    - **Foreign Keys**: SQLite ships with them disabled. Enabling them keeps
      hangouts, suggestions and friendships pointing at real pups and users.

Any other SQLAlchemy URL (e.g. PostgreSQL) works unchanged; the pragmas are
only issued for SQLite connections.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from dogcal.core.config import settings

is_sqlite = settings.database_url.startswith("sqlite")

# SQLite connections are handed between FastAPI's worker threads.
connect_args = {"check_same_thread": False} if is_sqlite else {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


@sa_event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    if not is_sqlite:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    # Import for side effect: registers every table on SQLModel.metadata
    import dogcal.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
