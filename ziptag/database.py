"""Database configuration and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from ziptag.config import get_settings

settings = get_settings()


def make_engine(database_url: str, echo: bool = False):
    """Create an engine; SQLite connections are shared with the handler thread pool."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


# Create engine
engine = make_engine(settings.database_url, echo=settings.database_echo)

# Create session factory
SessionLocal = sessionmaker(
    engine,
    class_=Session,
    expire_on_commit=False,
    autoflush=False,
)

# Create base class for models
Base = declarative_base()


def init_db(bind=None) -> None:
    """Create all tables."""
    # Import models so they register on Base.metadata
    from ziptag import models  # noqa: F401

    Base.metadata.create_all(bind or engine)
