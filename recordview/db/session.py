from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recordview.core.config import settings


def make_engine(url: str | None = None) -> Engine:
    """Create an engine for the local preference database.

    In-memory SQLite shares a single connection so every session sees the
    same tables.
    """
    database_url = make_url(url or settings.PREFERENCES_DATABASE_URL)
    kwargs: dict = {}
    if database_url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
