"""
Database configuration and session management.

The engine and session factory are built explicitly at startup and passed to
whoever needs them; nothing here connects at import time.
"""

import logging
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger("feedersync.database")

# Create SQLAlchemy Base
Base = declarative_base()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create the engine for the configured store"""
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are used from FastAPI's worker threads
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, echo=echo, future=True, connect_args=connect_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to the given engine"""
    return sessionmaker(bind=engine, autoflush=False, future=True)


def check_database_ready(engine: Engine) -> None:
    """Raise if the store cannot answer a trivial query"""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def init_database(engine: Engine) -> None:
    """Initialize database schema"""
    # Models register themselves on Base when imported
    import domain.models  # noqa: F401

    check_database_ready(engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def get_db_session(session_factory: sessionmaker):
    """Yield a session and make sure it is closed afterwards"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
