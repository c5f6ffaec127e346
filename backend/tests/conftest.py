"""Shared pytest fixtures.

Engine fixtures run on the in-memory store with a controllable clock.
Database fixtures use a separate PostgreSQL test database and skip when
PostgreSQL is not reachable.
"""

import socket
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from code_verification.core.config import settings
from code_verification.models.base import Base
from code_verification.services.mock_event_sink import RecordingEventSink
from code_verification.services.verification_config import CodeVerificationConfig
from code_verification.services.verification_engine import VerificationEngine
from code_verification.services.verification_store import (
    InMemoryVerificationCodeStore,
)

# Use separate test database
TEST_DATABASE_URL = settings.database_url.replace(
    settings.database_name, f"{settings.database_name}_test"
)

# Fixed instant so expiry arithmetic is deterministic
FROZEN_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


class FrozenClock:
    """Callable clock that only moves when told to.

    Attributes:
        now: Current instant returned by calls.
    """

    def __init__(self, now: datetime = FROZEN_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward."""
        self.now += timedelta(seconds=seconds)


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on port 5432, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("127.0.0.1", 5432))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available.

    Called by fixtures that require database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            "PostgreSQL not available on port 5432. "
            "Start database with: docker compose up -d"
        )


# =============================================================================
# Engine fixtures (no database)
# =============================================================================


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at FROZEN_NOW."""
    return FrozenClock()


@pytest.fixture
def config() -> CodeVerificationConfig:
    """Configuration used across engine tests."""
    return CodeVerificationConfig(code_length=6, expires_in_seconds=600, max_attempts=3)


@pytest.fixture
def store(clock: FrozenClock) -> InMemoryVerificationCodeStore:
    """Fresh in-memory store sharing the test clock."""
    return InMemoryVerificationCodeStore(clock=clock)


@pytest.fixture
def sink() -> RecordingEventSink:
    """Sink capturing every lifecycle event."""
    return RecordingEventSink()


@pytest.fixture
def engine(
    store: InMemoryVerificationCodeStore,
    sink: RecordingEventSink,
    config: CodeVerificationConfig,
    clock: FrozenClock,
) -> VerificationEngine:
    """Engine over the in-memory store and recording sink."""
    return VerificationEngine(store, sink, config, clock=clock)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory for tests that need several concurrent sessions."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
