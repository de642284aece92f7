import logging
import os
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL, TRANSACTION_MAX_ATTEMPTS, TRANSACTION_RETRY_BACKOFF_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "20"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "30"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def _configure_sqlite(engine: Engine) -> None:
    """
    Make SQLite transactions take the write lock up front.

    pysqlite defers BEGIN until the first write, so two reservations could both
    read a free window before either writes. BEGIN IMMEDIATE serializes them.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _configure_slow_query_logging(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


def create_db_engine(url: str) -> Engine:
    """Create an engine for the given URL with the pool and locking setup it needs"""
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": POOL_TIMEOUT},
            echo=False,
        )
        _configure_sqlite(engine)
    else:
        engine = create_engine(
            url,
            pool_pre_ping=True,  # Test connections before using
            pool_recycle=POOL_RECYCLE,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            echo=False,
        )

    if ENABLE_QUERY_LOGGING:
        _configure_slow_query_logging(engine)

    return engine


try:
    engine = create_db_engine(DATABASE_URL)
    logger.info("✅ Database engine created successfully")
    logger.info(
        f"📊 Connection pool: size={POOL_SIZE}, max_overflow={MAX_OVERFLOW}, timeout={POOL_TIMEOUT}s"
    )
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    attempts: Optional[int] = None,
    on_exhausted: Optional[Callable[[], Exception]] = None,
) -> T:
    """
    Run ``work`` and commit it as one unit, retrying transient conflicts.

    ``work`` must re-read everything it decides on, since each attempt starts
    from a rolled-back session. Lock contention and unique-index races
    (IntegrityError/OperationalError) are retried with a linear backoff; any
    other exception rolls back and propagates unchanged.

    Args:
        db: Session to run the unit of work on
        work: Callable performing reads and writes, returning the result
        attempts: Maximum attempts, defaults to TRANSACTION_MAX_ATTEMPTS
        on_exhausted: Factory for the error raised when retries run out

    Returns:
        Whatever ``work`` returned on the committed attempt
    """
    max_attempts = attempts or TRANSACTION_MAX_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except (IntegrityError, OperationalError) as e:
            db.rollback()
            if attempt >= max_attempts:
                logger.warning(
                    f"⚠️ Transaction gave up after {attempt} attempts: {e.__class__.__name__}"
                )
                if on_exhausted is not None:
                    raise on_exhausted() from e
                raise
            logger.info(
                f"🔁 Transaction conflict on attempt {attempt}/{max_attempts}, retrying: "
                f"{e.__class__.__name__}"
            )
            time.sleep(TRANSACTION_RETRY_BACKOFF_SECONDS * attempt)
        except Exception:
            db.rollback()
            raise

    raise RuntimeError("unreachable")  # pragma: no cover
