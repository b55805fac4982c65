"""Async database session, engine and the transaction runner."""
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.core.errors import TransientBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Mask password in logs (show only host/db part)
_db_display = settings.DATABASE_URL.split("@")[-1].split("?")[0] if "@" in settings.DATABASE_URL else settings.DATABASE_URL.split("://")[0]
logger.info("Database URL: ...@%s", _db_display)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # aiosqlite connections must not outlive the event loop that opened them
        return {"poolclass": NullPool}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "connect_args": {"timeout": 10},
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)


class Base(DeclarativeBase):
    pass


async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def run_transaction(
    db: AsyncSession,
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    max_attempts: int | None = None,
) -> T:
    """Run ``work`` and commit it as one transaction.

    ``work`` must do all of its reads inside the callback: on a write conflict
    (unique-key race, serialization failure, deadlock) the transaction is rolled back
    and ``work`` runs again from scratch against fresh rows. Any other exception rolls
    back and propagates unchanged. Running out of attempts raises ``TransientBackend``.
    """
    attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            result = await work(db)
            await db.commit()
            return result
        except (IntegrityError, OperationalError) as exc:
            await db.rollback()
            if attempt == attempts:
                logger.error("Transaction failed after %d attempts: %s", attempts, exc)
                raise TransientBackend() from exc
            logger.info("Transaction conflict (attempt %d/%d), retrying: %s", attempt, attempts, exc.orig)
        except BaseException:
            await db.rollback()
            raise
    raise TransientBackend()


async def get_for_update(db: AsyncSession, model: type[T], key) -> T | None:
    """Load a row fresh from the database and lock it for the rest of the transaction."""
    return await db.get(model, key, populate_existing=True, with_for_update=True)
