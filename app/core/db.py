import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.errors import (
    DomainError,
    DuplicateRecordError,
    SlotIntegrityError,
    TransactionAbortError,
    new_correlation_id,
)
from app.models.booking import ACTIVE_SLOT_INDEX

logger = logging.getLogger(__name__)


def to_async_url(database_url: str) -> str:
    """Switch postgresql:// to asyncpg and strip psycopg-only params like sslmode/channel_binding."""
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres"):
        return database_url
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse(
        ("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment)
    )


def _engine_options(url: str) -> dict[str, Any]:
    if not url.startswith("postgresql+asyncpg"):
        return {}
    options: dict[str, Any] = {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}
    if settings.database_ssl:
        options["connect_args"] = {"ssl": True}  # asyncpg uses this instead of sslmode
    return options


async_database_url = to_async_url(settings.database_url)

engine = create_async_engine(
    async_database_url,
    echo=settings.env == "development",
    **_engine_options(async_database_url),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _is_slot_violation(error: IntegrityError) -> bool:
    # PostgreSQL names the index; SQLite names the indexed columns
    message = str(error.orig)
    return ACTIVE_SLOT_INDEX in message or "booking_sessions.slot_id" in message


@asynccontextmanager
async def atomic(session: AsyncSession, operation: str) -> AsyncGenerator[AsyncSession, None]:
    """Run a multi-step mutation as one unit: everything is flushed, or nothing is kept.

    Domain errors pass through unchanged. A violation of the active session
    slot index becomes a SlotIntegrityError, any other integrity violation a
    DuplicateRecordError, and any other failure a TransactionAbortError.
    """
    try:
        yield session
        await session.flush()
    except DomainError:
        await session.rollback()
        raise
    except IntegrityError as e:
        await session.rollback()
        logger.warning("%s: uniqueness constraint violated: %s", operation, e.orig)
        if _is_slot_violation(e):
            raise SlotIntegrityError() from e
        raise DuplicateRecordError(
            f"Could not {operation}: a conflicting record already exists.", operation=operation
        ) from e
    except Exception as e:
        await session.rollback()
        correlation_id = new_correlation_id()
        logger.exception("%s aborted (correlation id %s): %s", operation, correlation_id, e)
        raise TransactionAbortError(operation, correlation_id) from e

