"""Database configuration and session management."""
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from stridesync.config import settings

# Create SQLAlchemy engine
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
)

# Create SessionLocal class for database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()


def init_db(bind=None):
    """Initialize database by creating all tables."""
    # Import models so SQLAlchemy knows about them
    from stridesync.models import StoreEntry  # noqa: F401

    if bind is None:
        bind = engine
        if settings.DATABASE_URL.startswith("sqlite:///"):
            # Ensure database directory exists
            db_path = Path(settings.DATABASE_URL.replace("sqlite:///", ""))
            db_path.parent.mkdir(parents=True, exist_ok=True)

    Base.metadata.create_all(bind=bind)
