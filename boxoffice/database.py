"""SQLAlchemy engine, session factory and the request-scoped session dependency."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from boxoffice.config import settings


def engine_options(url: str) -> dict:
    """Bound every lock wait so a blocked booking fails instead of hanging."""
    timeout = settings.DB_LOCK_TIMEOUT_SECONDS
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    if url.startswith("postgresql"):
        millis = timeout * 1000
        return {
            "pool_pre_ping": True,
            "connect_args": {"options": f"-c lock_timeout={millis} -c statement_timeout={millis * 2}"},
        }
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Yield a session per request, closed when the request finishes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
