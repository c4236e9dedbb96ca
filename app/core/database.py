from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from . import config

connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency that yields a database session for one request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow():
    """Timezone-naive UTC timestamp with microsecond precision, used for created_at/updated_at."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
