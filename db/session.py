"""
db/session.py — Audit Database Connection
===========================================
Async SQLAlchemy engine for the operator audit trail.
The ledger is the only source of land state. This database only remembers
who asked for what and which transaction it produced.

Called by main.py on startup via init_db(); routes use get_db() as a dependency.
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from config import settings
import logging

logger = logging.getLogger("landledger.db")

# Convert standard postgres:// URL to async postgresql+asyncpg://
DATABASE_URL = settings.DATABASE_URL.replace(
    "postgresql://", "postgresql+asyncpg://"
)

_engine_options = {"echo": settings.DEBUG}   # logs all SQL in debug mode
if ":memory:" not in DATABASE_URL:
    _engine_options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )

engine = create_async_engine(DATABASE_URL, **_engine_options)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for audit tables."""
    pass


async def init_db():
    """Create the audit tables on startup if they don't exist."""
    from db.models import AuditLog  # noqa — import triggers table registration
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Audit tables created / verified.")


async def close_db():
    """Release pooled connections on shutdown."""
    await engine.dispose()


async def get_db():
    """
    FastAPI dependency — yields a DB session per request and commits on success.

        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
