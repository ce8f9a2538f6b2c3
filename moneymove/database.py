"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - engine: The async database engine
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request
  - atomic(): Opens the all-or-nothing unit that money movement runs in

The session is the transaction context:
  Every writer in the money-movement core receives the AsyncSession as an
  explicit argument. There is no ambient or global transaction state; the
  unit of work is whatever atomic() opened on that session.

SQLite note:
  The sqlite3 driver normally decides on its own when to emit BEGIN, which
  breaks SAVEPOINT semantics. enable_sqlite_savepoints() takes that decision
  away from the driver so SQLAlchemy emits BEGIN itself, making nested units
  (begin_nested) behave like they do on PostgreSQL. The BEGIN is IMMEDIATE:
  a unit holds the database write lock from its first statement, so units
  touching the same account run one after another.
"""

from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from moneymove.config import settings


def enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    """Make SQLAlchemy, not the sqlite driver, own BEGIN on this engine."""
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    # IMMEDIATE takes the write lock up front, so concurrent writers queue on
    # the busy timeout instead of deadlocking on a SHARED -> RESERVED upgrade
    @event.listens_for(async_engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# echo=True in debug mode logs all SQL statements
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)
enable_sqlite_savepoints(engine)

# expire_on_commit=False prevents lazy-load errors after commit,
# which would otherwise trigger a synchronous DB call in async context.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    The session is committed on success and rolled back on any exception,
    then closed when the request completes.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def atomic(db: AsyncSession):
    """
    Run a block as one all-or-nothing unit on the given session.

    If the session has no transaction yet, a real transaction is opened and
    committed when the block exits. If the caller already holds a transaction,
    a SAVEPOINT is used instead so the caller keeps ownership of the outer
    commit. Either way an exception rolls back everything the block wrote.
    """
    if db.in_transaction():
        async with db.begin_nested():
            yield db
    else:
        async with db.begin():
            yield db
