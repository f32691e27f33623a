"""Analytics Database Connection Module

Provides the SQLAlchemy engine and sessions for the analytics store.

The store is optional: when ANALYTICS_DATABASE_URL is unset the application
still serves QR codes and the ingestion endpoint degrades to a no-op. Callers
check ``is_database_configured()`` before asking for a session.
"""

import os
from typing import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from quickqr.lib.errors import DatabaseNotConfiguredError

Base = declarative_base()


def get_database_url() -> str:
    """Read the analytics database URL from the environment.

    Environment variables:
        ANALYTICS_DATABASE_URL: SQLAlchemy URL, e.g.
            postgresql+psycopg://quickqr@db.example.com:5432/quickqr?sslmode=require

    Returns:
        Database URL string

    Raises:
        DatabaseNotConfiguredError: If the variable is missing or blank
    """
    url = os.getenv('ANALYTICS_DATABASE_URL', '').strip()
    if not url:
        raise DatabaseNotConfiguredError()
    return url


def is_database_configured() -> bool:
    """Check if the analytics database is configured.

    Returns:
        True if ANALYTICS_DATABASE_URL is set, False otherwise
    """
    return bool(os.getenv('ANALYTICS_DATABASE_URL', '').strip())


def create_analytics_engine(
    database_url: str | None = None,
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
) -> Engine:
    """Create the SQLAlchemy engine for the analytics store.

    The credential is kept out of the URL: ANALYTICS_DATABASE_PASSWORD, when
    set, is injected on every new DBAPI connection.

    SQLite URLs (used by tests and local development) get a single shared
    connection so an in-memory database is visible from every thread.

    Args:
        database_url: Database URL (read from the environment if None)
        pool_size: Number of connections to keep in the pool
        max_overflow: Connections allowed beyond pool_size
        pool_pre_ping: Test connections before use to detect stale ones

    Returns:
        Configured SQLAlchemy engine
    """
    if database_url is None:
        database_url = get_database_url()

    url = make_url(database_url)

    if url.get_backend_name() == 'sqlite':
        return create_engine(
            url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )

    engine = create_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_recycle=3600,
    )

    @event.listens_for(engine, 'do_connect')
    def provide_credential(dialect, conn_rec, cargs, cparams):
        """Supply the database password at connect time."""
        password = os.getenv('ANALYTICS_DATABASE_PASSWORD')
        if password:
            cparams['password'] = password

    return engine


# Global engine and session factory (lazy-initialized)
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    """Get or create the global engine instance.

    Raises:
        DatabaseNotConfiguredError: If the analytics database is not configured
    """
    global _engine
    if _engine is None:
        _engine = create_analytics_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory bound to the global engine.

    Usage:
        SessionFactory = get_session_factory()
        with SessionFactory() as session:
            session.query(UsageEvent).count()
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_factory


def reset_engine() -> None:
    """Dispose of the global engine so the next call re-reads configuration."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def get_db_session() -> Generator[Session, None, None]:
    """Get database session for dependency injection.

    Yields:
        Database session; committed on success, rolled back on error

    Usage (FastAPI):
        @router.get("/events")
        async def list_events(db: Session = Depends(get_db_session)):
            ...
    """
    SessionFactory = get_session_factory()
    session = SessionFactory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_optional_db_session() -> Generator[Session | None, None, None]:
    """Like get_db_session, but yields None when the database is not configured."""
    if not is_database_configured():
        yield None
        return
    yield from get_db_session()
