from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import StaticPool
import logging

logger = logging.getLogger(__name__)

# Base class for all database models
Base = declarative_base()

def build_engine(database_url: str) -> Engine:
    """
    Create the storage database engine.

    SQLite connections are shared across the request threadpool and the
    expiry watcher thread, so same-thread checking is disabled. An in-memory
    URL ("sqlite://") keeps a single connection so every session sees the
    same tables.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)

    return create_engine(
        database_url,
        echo=False,  # Set to True for SQL query logging
        pool_pre_ping=True,  # Test connections before using
    )

def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )

@contextmanager
def session_scope(session_factory: sessionmaker) -> Session:
    """
    Provide a transactional scope around a series of operations.

    Example:
        with session_scope(SessionLocal) as db:
            db.add(entry)
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()

def init_db(engine: Engine):
    """
    Initialize database tables.
    Call this once at application startup.
    """
    try:
        # Import all models to register them with Base
        from hrms_portal.models.storage import StorageEntry

        Base.metadata.create_all(bind=engine)
        logger.info("✅ Storage tables initialized successfully")
    except Exception as e:
        logger.error(f"❌ Failed to initialize storage: {str(e)}")
        raise
