"""Database connection and session management."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from school_portal.core.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine for the collection store.

    Pool sizing only applies to server databases; SQLite keeps its own pool.
    """
    options = {"echo": False, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    options.update(kwargs)
    return create_engine(url, **options)


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to an engine."""
    return sessionmaker(
        bind=bind,
        class_=Session,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# Note: echo=False to disable SQL logging; use the store logger for debug logs
engine = build_engine(settings.DATABASE_URL)

SessionLocal = build_session_factory(engine)


def init_db(bind: Engine | None = None) -> None:
    """Create the collection store tables if they do not exist."""
    # Import models so their tables are registered on the metadata
    import school_portal.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Generator[Session, None, None]:
    """Provide a transactional session: commit on success, rollback on error."""
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
