"""Database engine and session factory."""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from daily_tracker.config import settings


def make_engine(database_url: str):
    """Create an engine; SQLite connections are shared across threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


engine = make_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create all tables."""
    # Register models on the metadata
    import daily_tracker.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
