"""Tests for engine and event sink factory functions."""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from code_verification.core.config import Settings
from code_verification.services import factory
from code_verification.services.factory import (
    build_event_sink,
    create_verification_engine,
    get_event_sink,
    reset_event_sink,
)
from code_verification.services.mock_event_sink import RecordingEventSink
from code_verification.services.verification_config import CodeVerificationConfig
from code_verification.services.verification_events import (
    EmailCodeSink,
    FanoutEventSink,
    LoggingEventSink,
)
from code_verification.services.verification_store import SqlVerificationCodeStore


@pytest.fixture(autouse=True)
def _reset_sink() -> Generator[None, None, None]:
    reset_event_sink()
    yield
    reset_event_sink()


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestBuildEventSink:
    """Sink composition from settings."""

    def test_logging_only_by_default(self) -> None:
        """Email delivery off: only the logging sink."""
        sink = build_event_sink(_settings())
        assert isinstance(sink, FanoutEventSink)
        assert [type(s) for s in sink._sinks] == [LoggingEventSink]

    def test_email_sink_added_when_enabled(self) -> None:
        """Email delivery on: logging then email."""
        sink = build_event_sink(_settings(email_delivery_enabled=True))
        assert [type(s) for s in sink._sinks] == [LoggingEventSink, EmailCodeSink]


class TestEventSinkSingleton:
    def test_get_returns_same_instance(self) -> None:
        assert get_event_sink() is get_event_sink()

    def test_reset_builds_new_instance(self) -> None:
        first = get_event_sink()
        reset_event_sink()
        assert get_event_sink() is not first


class TestCreateVerificationEngine:
    """Engine wiring."""

    def test_uses_sql_store_bound_to_session(self) -> None:
        """The engine persists through the given session."""
        db = AsyncMock()
        engine = create_verification_engine(db, sink=RecordingEventSink())

        assert isinstance(engine._store, SqlVerificationCodeStore)
        assert engine._store._db is db

    def test_config_defaults_to_settings(self) -> None:
        """Without an explicit config, values come from settings."""
        app_settings = _settings(
            code_verification_code_length=8,
            code_verification_expires_in=120,
            code_verification_max_attempts=5,
        )
        with patch.object(factory, "settings", app_settings):
            engine = create_verification_engine(AsyncMock(), sink=RecordingEventSink())

        assert engine.config == CodeVerificationConfig(
            code_length=8, expires_in_seconds=120, max_attempts=5
        )

    def test_explicit_config_and_sink(self) -> None:
        """Passed config and sink are used as-is."""
        config = CodeVerificationConfig(max_attempts=1)
        sink = RecordingEventSink()
        engine = create_verification_engine(AsyncMock(), sink=sink, config=config)

        assert engine.config is config
        assert engine._sink is sink

    def test_sink_defaults_to_singleton(self) -> None:
        """Without a sink the process-wide sink is used."""
        marker = MagicMock()
        with patch.object(factory, "get_event_sink", return_value=marker):
            engine = create_verification_engine(AsyncMock())
        assert engine._sink is marker
