from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from core.config import DATABASE_URL, SQL_ECHO
from application_models import Base


def create_db_engine(url: str = DATABASE_URL, echo: bool = SQL_ECHO) -> Engine:
    # Store calls run in worker threads
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=echo, future=True, connect_args=connect_args)


# Defaults to a local SQLite file for dev; override via DATABASE_URL
engine = create_db_engine()


@lru_cache()
def get_session_factory():
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(bind: Engine = None) -> None:
    """Create the application tables if they do not exist."""
    Base.metadata.create_all(bind=bind or engine)
