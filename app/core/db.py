from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import settings


def _async_database_url(url: str) -> tuple[str, dict]:
    """Map a plain postgresql:// URL onto asyncpg; other URLs (sqlite+aiosqlite) pass through.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so they are
    stripped and SSL is enabled via connect_args instead.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("postgresql", "postgres", "postgresql+asyncpg"):
        return url, {}
    query = parse_qs(parsed.query, keep_blank_values=True)
    wants_ssl = query.pop("sslmode", ["disable"])[0] not in ("disable", "allow")
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    async_url = urlunparse(
        ("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment)
    )
    return async_url, {"ssl": True} if wants_ssl else {}


def make_engine(url: str) -> AsyncEngine:
    async_url, connect_args = _async_database_url(url)
    kwargs: dict = {"echo": settings.env == "development", "connect_args": connect_args}
    if async_url.startswith("postgresql"):
        kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
    return create_async_engine(async_url, **kwargs)


def make_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = make_engine(settings.database_url)
async_session_maker = make_session_maker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    # Register tables on the metadata
    import app.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
