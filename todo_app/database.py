"""
Database engine, session factory and table bootstrap for the todo store
"""
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from todo_app.config import get_settings

settings = get_settings()

# Base class for models
Base = declarative_base()


def to_async_url(url: str) -> str:
    """Map a sync database URL onto its async driver (asyncpg / aiosqlite)"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL.

    In-memory SQLite gets a single shared connection so every session sees
    the same tables; file SQLite skips pool sizing, which it doesn't support.
    """
    async_url = to_async_url(url)
    kwargs = {"echo": echo, "future": True}

    if async_url.startswith("sqlite"):
        if ":memory:" in async_url:
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = 20
        kwargs["max_overflow"] = 10

    return create_async_engine(async_url, **kwargs)


async def create_tables(bind: AsyncEngine) -> None:
    """Create users/todos tables if missing"""
    import todo_app.models  # noqa: F401 - registers User and TodoItem on Base

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db() -> AsyncSession:
    """Dependency for getting database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
