from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from bloom_host.core.config import settings


DATABASE_URL = settings.DATABASE_URL

_engine_kwargs = {"echo": settings.DATABASE_ECHO, "future": True}
if not DATABASE_URL.startswith("sqlite"):
    # Pool settings for a hosted Postgres behind a pooler
    _engine_kwargs.update(
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=300,
        pool_pre_ping=True,
    )

async_engine = create_async_engine(DATABASE_URL, **_engine_kwargs)

AsyncSessionLocal = sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# Base class for our ORM models.
Base = declarative_base()


async def init_db() -> None:
    """Create any missing tables."""
    import bloom_host.models  # noqa: F401  registers the models on Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependency for FastAPI (via Depends)
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yields a DB session for FastAPI dependency injection.
    Automatically handles commit/rollback.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

