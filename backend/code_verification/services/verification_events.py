"""Lifecycle events for verification codes and the sinks that receive them.

The engine awaits ``sink.notify(kind, record)`` after the record is
persisted. Sinks react to the event (deliver the code, audit, metrics);
whatever they raise is logged by the engine and never undoes persistence.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum

import structlog

from code_verification.core.email import send_verification_code_email
from code_verification.models.verification_code import VerificationCode

logger = logging.getLogger(__name__)


class VerificationEventKind(str, Enum):
    """Lifecycle transitions of a verification code.

    Values:
        ISSUED: A new code was created.
        VERIFIED: The code was matched (fires once per record).
        REVOKED: Attempts exceeded the maximum (fires once per record).
    """

    ISSUED = "issued"
    VERIFIED = "verified"
    REVOKED = "revoked"


class VerificationEventSink(ABC):
    """Receiver of verification code lifecycle events."""

    @abstractmethod
    async def notify(self, kind: VerificationEventKind, record: VerificationCode) -> None:
        """Handle one event.

        Args:
            kind: Which transition happened.
            record: The record as persisted after the transition.
        """
        ...


class NullEventSink(VerificationEventSink):
    """Sink that ignores every event."""

    async def notify(self, kind: VerificationEventKind, record: VerificationCode) -> None:
        return None


class LoggingEventSink(VerificationEventSink):
    """Writes one structured log line per event. The code is never logged."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger()

    async def notify(self, kind: VerificationEventKind, record: VerificationCode) -> None:
        self._logger.info(
            f"verification_code_{kind.value}",
            verification_code_id=record.id,
            purpose=record.purpose,
            user_id=record.user_id,
            attempts=record.attempts,
            expires_at=record.expires_at.isoformat(),
        )


class FanoutEventSink(VerificationEventSink):
    """Dispatches each event to several sinks in order.

    A failing sink is logged and skipped; the remaining sinks still run.

    Args:
        sinks: Sinks to notify.
    """

    def __init__(self, sinks: Sequence[VerificationEventSink]) -> None:
        self._sinks = list(sinks)

    async def notify(self, kind: VerificationEventKind, record: VerificationCode) -> None:
        for sink in self._sinks:
            try:
                await sink.notify(kind, record)
            except Exception:
                logger.warning(
                    "Event sink %s failed for %s event (id=%s)",
                    type(sink).__name__,
                    kind.value,
                    record.id,
                    exc_info=True,
                )


CodeSender = Callable[..., Awaitable[None]]


def _is_email_address(receiver: str) -> bool:
    local, sep, domain = receiver.partition("@")
    return bool(sep and local and "." in domain)


class EmailCodeSink(VerificationEventSink):
    """Emails the code to the receiver when it is issued.

    Only ``ISSUED`` events for receivers that look like email addresses are
    delivered; everything else is ignored.

    The engine notifies sinks after the record is flushed but before the
    caller commits. If the commit then fails, the email has already gone out
    for a row that no longer exists, and the Resend request (up to its 10 s
    timeout) runs while the session still holds its pooled connection.
    Callers that need delivery strictly after commit should leave this sink
    out of the engine and send from the committed record instead.

    Args:
        sender: Coroutine called with ``to_email``, ``code``, ``purpose`` and
            ``expires_at`` keywords. Defaults to the Resend sender.
    """

    def __init__(self, sender: CodeSender | None = None) -> None:
        self._sender = sender or send_verification_code_email

    async def notify(self, kind: VerificationEventKind, record: VerificationCode) -> None:
        if kind is not VerificationEventKind.ISSUED:
            return
        if not _is_email_address(record.receiver):
            logger.debug(
                "Skipping email delivery for non-email receiver (id=%s)", record.id
            )
            return
        await self._sender(
            to_email=record.receiver,
            code=record.code,
            purpose=record.purpose,
            expires_at=record.expires_at,
        )
