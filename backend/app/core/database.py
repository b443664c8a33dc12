"""
Async database engine, session factory, and ORM base.

Everything the portal persists lives in one JSONB table (see
app.models.document); routers never touch sessions directly; they go
through the DocumentStore, which opens one session per request.

The engine is created eagerly but connects lazily, so the in-memory
backend (STORE_BACKEND=memory) never needs a reachable Postgres.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

# ── Engine ──────────────────────────────────────────────────
# echo mirrors DEBUG; pre-ping drops connections the server closed
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# ── Session factory ─────────────────────────────────────────
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── ORM Base ────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Declarative base; Alembic reads its metadata."""


async def ping_database() -> None:
    """Round-trip a trivial query. Raises whatever the driver raises."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
