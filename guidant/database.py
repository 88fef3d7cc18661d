# guidant/database.py - Database Configuration
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from guidant.config import settings

# Database URL loaded from .env via guidant/config.py
DATABASE_URL = settings.DATABASE_URL


def _create_engine(url: str):
    """Build an engine whose connections never wait on the database unbounded."""
    if str(url).startswith("sqlite"):
        return create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.DB_LOCK_TIMEOUT_SECONDS,
            },
        )
    connect_args = {}
    if str(url).startswith("postgresql"):
        connect_args = {
            "connect_timeout": settings.DB_LOCK_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        }
    return create_engine(
        url,
        pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


engine = _create_engine(DATABASE_URL)

# Session maker
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
