"""suggested_movies_service/models/database.py"""
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from suggested_movies_service.config import _get_int, get_database_url
from suggested_movies_service.models.base import Base


def engine_options(database_url: str, max_workers: int) -> dict:
    """
    Engine keyword arguments for the given URL.

    Store lookups run on up to max_workers threads, each with its own
    session, so the pool must hand out that many connections at once.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}, "echo": False}

    return {
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_size": max(5, max_workers),
        "max_overflow": 10,
        "echo": False,  # Set to True for SQL debugging
    }


# Get database URL
DATABASE_URL = get_database_url()

# Validate database URL is provided
if DATABASE_URL is None:
    raise ValueError("DATABASE_URL is not configured. Set the DATABASE_URL environment variable.")

engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL, _get_int("STORE_MAX_WORKERS", 8)))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Yield a session and close it when the caller is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=bind or engine)
