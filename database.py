from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import get_settings

Base = declarative_base()


def make_engine(database_url: str, **kwargs) -> AsyncEngine:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_async_engine(database_url, connect_args=connect_args, **kwargs)


def make_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(get_settings().database_url)
AsyncSessionLocal = make_sessionmaker(engine)


def get_store():
    # every store call opens its own session so sibling fetches can run concurrently
    from crud.store import EntityStore
    return EntityStore(AsyncSessionLocal)


async def init_db(bind: AsyncEngine | None = None):
    import models  # noqa: F401  registers the tables on Base.metadata
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
