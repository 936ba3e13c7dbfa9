"""
RecipeShare Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
How:   One pooled async engine per process; one AsyncSession per request
       that commits on success and rolls back on any error.
Who:   Route handlers (via Depends(get_db_session)), the health check,
       Alembic (via Base.metadata), and the app lifespan.

Connection Pooling:
    pool_size / max_overflow come from settings (defaults 10 + 10).
    pool_pre_ping validates connections before use.
    pool_recycle=3600 recycles connections every hour.
"""

import logging
from contextlib import contextmanager
from typing import Any, AsyncGenerator, Iterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import DatabaseError

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    echo=settings.log_level == "DEBUG",
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: response models are built from ORM objects after
# the request transaction has been committed.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every table (users, auth_sessions, profiles, categories, recipes,
    recipe_ratings, recipe_favorites) registers on this metadata, which
    Alembic reads for --autogenerate.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (services run their queries on it)
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/recipes")
        async def list_recipes(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Error Translation ─────────────────────────────────────────────────────
@contextmanager
def database_errors(message: str, **context: Any) -> Iterator[None]:
    """
    Translate SQLAlchemy failures inside the block into DatabaseError.

    Application exceptions (NotFoundError, PermissionDeniedError, ...) pass
    through untouched. Usage in a service:

        with database_errors("Could not load the recipe.", recipe_id=str(recipe_id)):
            result = await db.execute(...)
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("%s (%s: %s) context=%s", message, type(e).__name__, str(e), context)
        raise DatabaseError(
            message=message,
            context={**context, "error_type": type(e).__name__},
        ) from e


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping_database() -> None:
    """Run SELECT 1 on a pooled connection; raises if the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database() -> None:
    """
    What:  Blocks startup until the database answers, with exponential backoff.
    When:  Called once from the lifespan handler.
    Raises the last connection error once settings.db_connect_attempts is
    exhausted; the lifespan logs it and keeps serving /health.
    """
    retrying = retry(
        stop=stop_after_attempt(settings.db_connect_attempts),
        wait=wait_exponential_jitter(initial=1, max=settings.db_connect_max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    await retrying(ping_database)()
    logger.info("Database connection established")


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
