import asyncio
from typing import AsyncGenerator, Awaitable, TypeVar

from fastapi import Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from .errors import StorageFailure

T = TypeVar("T")

class Base(DeclarativeBase):
    pass

class Database:
    """Owns the process-wide connection pool.

    Built once in the application lifespan and disposed at shutdown; request
    handlers borrow sessions from it through ``get_db``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        self.sessionmaker = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def create_schema(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()

async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.db.sessionmaker() as session:
        yield session

async def bounded(operation: Awaitable[T], timeout: float) -> T:
    """Await a storage operation with a deadline.

    Timeouts and driver errors become StorageFailure. IntegrityError is
    re-raised untouched so callers can map constraint violations themselves.
    """
    try:
        return await asyncio.wait_for(operation, timeout)
    except asyncio.TimeoutError as e:
        raise StorageFailure(f"storage operation timed out after {timeout}s") from e
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        raise StorageFailure(str(e)) from e
