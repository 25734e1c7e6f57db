# app/database.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings
from app.core.errors import StoreError

logger = logging.getLogger(__name__)

settings = get_settings()

# ---------------------------------------------------------
# Supabase Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=1       : keep only 1 connection to the Supabase pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
#
# Supabase Session mode limits the number of clients. If each backend
# process opens many connections (SQLAlchemy default pool_size 5+),
# you can easily hit:
#   "MaxClientsInSessionMode: max clients reached"
#
# Non-Postgres URLs (e.g. sqlite for local runs) are used as-is.
# ---------------------------------------------------------


def _is_postgres(url: str) -> bool:
    return url.startswith(("postgres://", "postgresql://", "postgresql+"))


def build_database_url(url: str) -> str:
    """Append sslmode=require to Postgres URLs that do not set it."""
    if not _is_postgres(url) or "sslmode=" in url:
        return url
    if "?" in url:
        return url + "&sslmode=require"
    return url + "?sslmode=require"


db_url = build_database_url(settings.DATABASE_URL)

if _is_postgres(db_url):
    engine = create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )
else:
    engine = create_engine(db_url, echo=False)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session


@contextmanager
def store_errors(session: Session, action: str):
    """
    Translate database failures into StoreError.

    The session is rolled back so the request can still use it, and the
    original exception is logged in full; callers only see the generic
    StoreError message.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Store failure while %s", action)
        raise StoreError() from exc
