from contextlib import contextmanager
from typing import Any, Dict

from reviewdesk.database.config import settings
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def _engine_options(url: str) -> Dict[str, Any]:
    # SQLite is used for local runs and the test suite; it can't take pool sizing
    if url.startswith("sqlite"):
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": 20,  # default 5
        "max_overflow": 30,  # default 10
        "pool_timeout": 60,  # default 30s
        "pool_pre_ping": True,  # Validate connections before use
        "pool_recycle": 3600,  # default 3600
    }


engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_options(SQLALCHEMY_DATABASE_URL))

SessionLocal: sessionmaker[Session] = sessionmaker(
    autocommit=False, autoflush=False, bind=engine
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope():
    """Session for background tasks, which run outside the request lifecycle."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # Imported for the side effect of registering every table on the metadata
    from reviewdesk.database import models

    models.Base.metadata.create_all(bind=engine)
