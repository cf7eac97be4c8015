"""
Engine and session factory for the service database.

Production runs on MySQL through PyMySQL. SQLite URLs are accepted for local
runs; the Functions host calls handlers from worker threads, so SQLite
connections are opened with check_same_thread disabled.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from seriee_service.config import get_database_url

POOL_RECYCLE_SECONDS = 3600


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for a database URL.

    In-memory SQLite keeps a single shared connection so every session sees
    the same tables. Server databases get pre-ping and hourly recycling to
    survive idle disconnects between function invocations.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        options = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **options)

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=POOL_RECYCLE_SECONDS,
        echo=echo
    )


def create_session_factory(db_engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=db_engine)


DATABASE_URL = get_database_url()

if DATABASE_URL is None:
    raise ValueError("DATABASE_URL is not configured. Set the DATABASE_URL environment variable.")

engine = create_db_engine(DATABASE_URL)
SessionLocal = create_session_factory(engine)
