import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from partybar import config  # noqa: F401  (loads .env before DATABASE_URL is read)

DATABASE_URL = os.environ.get("DATABASE_URL", "")

Base = declarative_base()


def build_engine(url: str = ""):
    """Create an engine for ``url``; an empty URL means the local SQLite file."""
    if not url:
        # Local fallback: an SQLite file in the working directory
        _db_path = os.path.join(os.getcwd(), "partybar.db")
        url = f"sqlite:///{_db_path}"
    # Render provides postgres:// but SQLAlchemy requires postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def build_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
