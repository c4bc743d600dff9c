from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .settings import settings

T = TypeVar("T")

_engine_options = {"echo": settings.db_echo}
if settings.db_isolation_level:
    _engine_options["isolation_level"] = settings.db_isolation_level

engine = create_async_engine(settings.database_url, **_engine_options)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def run_in_transaction(
    session: AsyncSession, fn: Callable[[AsyncSession], Awaitable[T]]
) -> T:
    """
    Runs fn inside a single transaction on the given session.

    Commits once when fn returns and rolls back if fn (or the commit itself)
    raises. The session must not already be inside a transaction. The caller
    owns the session, so the connection goes back to the pool when the
    session context that produced it closes.
    """
    async with session.begin():
        return await fn(session)
