"""
Database engine, sessions and the declarative base.

PostgreSQL is the production backend (schema managed by Alembic); SQLite
serves local development and tests (schema created directly). Foreign
keys are enforced on both, so a delete blocked by dependent rows fails
the same way everywhere.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from academic_quality.config import DATABASE_URL


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def engine_options(url: str) -> dict:
    """Backend-specific create_engine keyword arguments."""
    if url.startswith("postgresql"):
        return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}
    if is_sqlite(url):
        # Request handlers run in a thread pool
        return {"connect_args": {"check_same_thread": False}}
    return {}


def enable_sqlite_pragmas(target_engine: Engine):
    """Switch every new SQLite connection to WAL with foreign keys enforced."""
    @event.listens_for(target_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()


engine = create_engine(DATABASE_URL, echo=False, **engine_options(DATABASE_URL))
if is_sqlite(DATABASE_URL):
    enable_sqlite_pragmas(engine)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """Request-scoped session; closed when the request finishes, even on error."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create the schema in place. PostgreSQL deployments run the Alembic migration instead."""
    import academic_quality.models  # noqa: F401  (registers every table on Base.metadata)
    Base.metadata.create_all(bind=engine)
