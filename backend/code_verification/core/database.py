"""Async database engine and session management.

The engine is built once from settings. get_db() yields one session per
unit of work; a verify call runs inside it so its row lock is held until
the commit.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from code_verification.core.config import Settings, settings


def build_engine(app_settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database.

    Args:
        app_settings: Settings providing the URL and pool sizing.

    Returns:
        AsyncEngine with pre-ping enabled.
    """
    return create_async_engine(
        app_settings.database_url,
        echo=app_settings.database_echo,
        pool_size=app_settings.database_pool_size,
        max_overflow=app_settings.database_max_overflow,
        pool_pre_ping=True,
    )


engine = build_engine(settings)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session, committing when the caller finishes cleanly.

    Any exception raised by the caller rolls the transaction back (releasing
    row locks without persisting partial state) and is re-raised.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        else:
            await session.commit()
