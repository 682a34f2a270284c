from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from config import is_sqlite_url, settings


class Base(DeclarativeBase):
    pass


def create_engine_for(database_url: str, echo: bool = False) -> AsyncEngine:
    """Async engine with SQLite-specific pooling when needed (in-memory DBs share one connection)."""
    kwargs = {"echo": echo}
    if is_sqlite_url(database_url):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_async_engine(database_url, **kwargs)


def session_factory_for(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine_for(settings.database_url, echo=settings.debug)
AsyncSessionLocal = session_factory_for(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    # Register tables on Base.metadata before create_all
    import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db(bind: AsyncEngine = engine) -> None:
    await bind.dispose()
