"""Factory functions wiring the engine to settings, a session and a sink.

The process-wide sink is a lazily built singleton; callers can always pass
their own sink instead.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from code_verification.core.config import Settings, settings
from code_verification.services.verification_config import CodeVerificationConfig
from code_verification.services.verification_engine import VerificationEngine
from code_verification.services.verification_events import (
    EmailCodeSink,
    FanoutEventSink,
    LoggingEventSink,
    VerificationEventSink,
)
from code_verification.services.verification_store import SqlVerificationCodeStore

_event_sink: VerificationEventSink | None = None


def build_event_sink(app_settings: Settings | None = None) -> VerificationEventSink:
    """Build the default sink: structured logging, plus email when enabled.

    Args:
        app_settings: Settings to read. Defaults to the module settings.

    Returns:
        A FanoutEventSink over the enabled sinks.
    """
    app_settings = app_settings or settings
    sinks: list[VerificationEventSink] = [LoggingEventSink()]
    if app_settings.email_delivery_enabled:
        sinks.append(EmailCodeSink())
    return FanoutEventSink(sinks)


def get_event_sink() -> VerificationEventSink:
    """Get or create the process-wide event sink singleton.

    Returns:
        VerificationEventSink built from settings on first call.
    """
    global _event_sink

    if _event_sink is None:
        _event_sink = build_event_sink()

    return _event_sink


def reset_event_sink() -> None:
    """Reset the event sink singleton.

    Used in tests to ensure isolation between test cases.
    """
    global _event_sink
    _event_sink = None


def create_verification_engine(
    db: AsyncSession,
    *,
    sink: VerificationEventSink | None = None,
    config: CodeVerificationConfig | None = None,
) -> VerificationEngine:
    """Create an engine bound to one database session.

    Sinks run inside the session's transaction. With email delivery enabled
    the code is sent before the caller commits (see EmailCodeSink).

    Args:
        db: Async database session; the caller commits.
        sink: Event sink. Defaults to the process-wide sink.
        config: Configuration. Defaults to values from settings.

    Returns:
        VerificationEngine using a SqlVerificationCodeStore.

    Raises:
        ConfigurationError: If the settings hold invalid values.
    """
    return VerificationEngine(
        SqlVerificationCodeStore(db),
        sink or get_event_sink(),
        config or CodeVerificationConfig.from_settings(settings),
    )
