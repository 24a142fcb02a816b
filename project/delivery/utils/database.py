# delivery/utils/database.py

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from delivery.config import settings

# ────────────── Base for models ──────────────
Base = declarative_base()

# ────────────── Async engine ──────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False  # True to print SQL
)

# ────────────── Async session ──────────────
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# ────────────── Initialisation ──────────────
async def init_db():
    """
    Creates every table that does not exist yet.
    Models are imported here so their tables are registered on Base.metadata.
    """
    from delivery.models import order, driver, notification  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db():
    """Drops every table. Used by the test suite between cases."""
    from delivery.models import order, driver, notification  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
