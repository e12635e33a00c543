from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import event
import logging

from .config import settings
from .db import models  # noqa: F401  (registers tables on SQLModel.metadata)

logger = logging.getLogger(__name__)

# Choose engine options based on database scheme
db_url = settings.DATABASE_URL
engine_kwargs = {}

if db_url.startswith("sqlite"):
    # SQLite specific connect args
    engine_kwargs.update({
        "connect_args": {"check_same_thread": False}
    })
else:
    # Better resiliency for managed Postgres
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 5,
        "max_overflow": 10,
    })

engine = create_engine(db_url, echo=settings.DEBUG, **engine_kwargs)


def enable_sqlite_foreign_keys(target_engine) -> None:
    """SQLite ignores foreign keys unless each connection turns them on."""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)


def create_db_and_tables(target_engine=None):
    SQLModel.metadata.create_all(target_engine or engine)
    logger.info("Database tables ensured")


def get_session():
    with Session(engine) as session:
        yield session
