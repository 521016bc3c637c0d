"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` (a local SQLite file by default) and provides
small helpers used by the application, scripts and tests.
"""

from sqlmodel import SQLModel, create_engine, Session, select
from .config import settings
from . import models


def make_engine(url: str):
    """Create an engine; SQLite connections are shared across request threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


engine = make_engine(settings.DATABASE_URL)


def create_db_and_tables(bind=None, default_categories=None):
    """Create database tables using SQLModel metadata and seed categories.

    Categories are read-only for the application, so an empty category
    table is filled from `settings.DEFAULT_CATEGORIES` on first start.
    Production deployments should rely on a proper migration tool
    (alembic) instead.
    """
    bind = bind if bind is not None else engine
    SQLModel.metadata.create_all(bind)
    names = settings.DEFAULT_CATEGORIES if default_categories is None else default_categories
    _seed_categories(bind, names)


def _seed_categories(bind, names):
    """Insert `names` as categories when the table is still empty."""
    if not names:
        return
    with Session(bind) as session:
        if session.exec(select(models.Category.id)).first() is not None:
            return
        for name in names:
            session.add(models.Category(name=name))
        session.commit()


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
