from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from .config import settings


def _connect_args(url: str) -> dict:
    # check_same_thread=False: SQLite connections are used from FastAPI worker threads
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def make_session_factory(url: str) -> sessionmaker:
    """Build an engine + session factory for the given database URL."""
    engine = create_engine(url, connect_args=_connect_args(url), pool_pre_ping=True)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# SessionLocal: the default way to talk to the database
SessionLocal = make_session_factory(settings.resolved_database_url)
engine = SessionLocal.kw["bind"]


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
