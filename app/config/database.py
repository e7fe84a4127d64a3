"""Database configuration and connection setup"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from app.config.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    Server databases get a pooled engine. SQLite gets a busy timeout and
    every transaction is opened with BEGIN IMMEDIATE so that concurrent
    booking transactions are serialised by the database itself.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.DB_BUSY_TIMEOUT_SECONDS,
            },
            echo=False,
        )

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=False,
    )


# Create database engine with connection pooling
engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine = None):
    """Create all scheduling tables that do not exist yet"""
    from app.models import Base

    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info("Database tables created")


if __name__ == "__main__":
    create_tables()
