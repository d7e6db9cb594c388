"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with sensible
local and test fallbacks (SQLite file / in-memory) and exposes FastAPI
dependencies.
"""
import logging
import os
import sys
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_URL = "sqlite:///./workhaven.db"


class PersistenceInitError(RuntimeError):
    """Raised when the local store cannot be opened or its schema created."""


# Database connection URL
# Generate dynamically from individual components if DATABASE_URL is not provided
def _get_database_url() -> str:
    # If DATABASE_URL is explicitly set, use it
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT")
    db_name = os.getenv("POSTGRES_DB")

    if any([db_user, db_password, db_host, db_port, db_name]):
        if not all([db_user, db_password, db_host, db_port, db_name]):
            missing = []
            if not db_user: missing.append("POSTGRES_USER")
            if not db_password: missing.append("POSTGRES_PASSWORD")
            if not db_host: missing.append("POSTGRES_HOST")
            if not db_port: missing.append("POSTGRES_PORT")
            if not db_name: missing.append("POSTGRES_DB")
            raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")
        return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

    # Local-first: a SQLite file next to the working directory
    return os.getenv("WORKHAVEN_SQLITE_URL", DEFAULT_SQLITE_URL)


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while an individual test is running,
    so module import during collection is detected through ``sys.modules``.
    ``PYTEST_RUNNING=1`` forces the behaviour.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if "pytest" in sys.modules:
        return True
    return False


DATABASE_URL = _get_database_url()

# Test override strategy:
# 1. If WORKHAVEN_TEST_DB is set, use it.
# 2. Else under pytest, force in-memory sqlite shared through a StaticPool.
explicit_test_db = os.getenv("WORKHAVEN_TEST_DB")

if explicit_test_db:
    DATABASE_URL = explicit_test_db
    _engine_kwargs = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
elif _is_pytest_runtime():
    # In-memory SQLite with StaticPool so the schema persists across connections
    DATABASE_URL = "sqlite+pysqlite:///:memory:"
    _engine_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
elif DATABASE_URL.startswith("sqlite"):
    _engine_kwargs = {"connect_args": {"check_same_thread": False}}
else:
    _engine_kwargs = {"pool_pre_ping": True}

engine = create_engine(DATABASE_URL, **_engine_kwargs)

# Create a SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_SCHEMA_INIT_DONE = False


def init_db() -> None:
    """Create the schema on first use.

    Deployments against PostgreSQL run Alembic migrations instead; this keeps
    SQLite stores (local runs, tests) usable without a migration step.
    Failure is unrecoverable: callers let :class:`PersistenceInitError`
    terminate the process.
    """
    global _SCHEMA_INIT_DONE
    if _SCHEMA_INIT_DONE:
        return
    from workhaven.db import models  # local import to avoid circular import at module load

    try:
        models.Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        logger.critical("Failed to initialize persistent store at %s: %s", engine.url, exc)
        raise PersistenceInitError(f"Unresolved persistence error: {exc}") from exc
    _SCHEMA_INIT_DONE = True


def reset_schema_state() -> None:
    """Forget that the schema was created (used by tests that drop tables)."""
    global _SCHEMA_INIT_DONE
    _SCHEMA_INIT_DONE = False


def get_db():
    """Dependency to get a database session."""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
