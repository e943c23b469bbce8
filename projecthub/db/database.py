"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with sensible
test fallbacks (SQLite in-memory) and exposes FastAPI dependencies.
"""
import os
import sys
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


# Database connection URL
# Generate dynamically from individual components if DATABASE_URL is not provided
def _get_database_url() -> str:
    # If DATABASE_URL is explicitly set, use it
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    # Otherwise, generate from individual components (all must be set)
    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT")
    db_name = os.getenv("POSTGRES_DB")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        missing = []
        if not db_user: missing.append("POSTGRES_USER")
        if not db_password: missing.append("POSTGRES_PASSWORD")
        if not db_host: missing.append("POSTGRES_HOST")
        if not db_port: missing.append("POSTGRES_PORT")
        if not db_name: missing.append("POSTGRES_DB")
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while an individual test runs, so at
    import time we also look for the pytest package in ``sys.modules``.
    ``PYTEST_RUNNING=1`` forces the test behaviour explicitly.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if "pytest" in sys.modules:
        return True
    return False


# Test override strategy:
# 1. If PROJECTHUB_TEST_DB is set, use it.
# 2. Else if TEST_DATABASE_URL (set by the Postgres container fixture) is set, use it.
# 3. Else if running under pytest, force in-memory sqlite.
# 4. Else build the production URL from the environment.
explicit_test_db = os.getenv("PROJECTHUB_TEST_DB")
explicit_container_db = os.getenv("TEST_DATABASE_URL")

if explicit_test_db:
    DATABASE_URL = explicit_test_db
    _engine_kwargs = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
elif explicit_container_db:
    DATABASE_URL = explicit_container_db
    _engine_kwargs = {}
elif _is_pytest_runtime():
    # In-memory SQLite with StaticPool so the schema persists across connections
    DATABASE_URL = "sqlite+pysqlite:///:memory:"
    _engine_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
else:
    DATABASE_URL = _get_database_url()
    _engine_kwargs = {}

engine = create_engine(DATABASE_URL, **_engine_kwargs)

if DATABASE_URL.startswith("sqlite"):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # pragma: no cover - trivial
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_SCHEMA_INIT_DONE = False


def _ensure_sqlite_schema():
    """Create tables lazily for SQLite databases; Postgres is managed by Alembic."""
    global _SCHEMA_INIT_DONE
    if _SCHEMA_INIT_DONE:
        return
    if str(engine.url).startswith("sqlite"):
        from projecthub.db import models  # local import to avoid circular import at module load
        models.Base.metadata.create_all(bind=engine)
    _SCHEMA_INIT_DONE = True


def open_session():
    """A new session for work outside a request; the caller closes it."""
    _ensure_sqlite_schema()
    return SessionLocal()


def get_db():
    """Dependency to get a database session."""
    db = open_session()
    try:
        yield db
    finally:
        db.close()
