"""Recording event sink for testing.

Captures every notification so tests can assert which lifecycle events
fired, how often, and with which record.
"""

from dataclasses import dataclass

from code_verification.models.verification_code import VerificationCode
from code_verification.services.verification_events import (
    VerificationEventKind,
    VerificationEventSink,
)


@dataclass(frozen=True)
class RecordedEvent:
    """One captured notification.

    Attributes:
        kind: Event kind.
        record: Record passed with the event.
        attempts: Value of ``record.attempts`` when the event fired.
    """

    kind: VerificationEventKind
    record: VerificationCode
    attempts: int


class RecordingEventSink(VerificationEventSink):
    """Sink that stores every event it receives.

    Attributes:
        events: Captured events, oldest first.
    """

    def __init__(self) -> None:
        self.events: list[RecordedEvent] = []

    async def notify(self, kind: VerificationEventKind, record: VerificationCode) -> None:
        self.events.append(RecordedEvent(kind=kind, record=record, attempts=record.attempts))

    @property
    def kinds(self) -> list[VerificationEventKind]:
        """Kinds of all captured events, oldest first."""
        return [e.kind for e in self.events]

    def count(self, kind: VerificationEventKind) -> int:
        """Number of captured events of one kind."""
        return sum(1 for e in self.events if e.kind is kind)

    def assert_fired_once(self, kind: VerificationEventKind) -> RecordedEvent:
        """Test helper to verify an event fired exactly once.

        Args:
            kind: Expected event kind.

        Returns:
            The single matching event.

        Raises:
            AssertionError: If the event fired zero or several times.
        """
        matches = [e for e in self.events if e.kind is kind]
        if len(matches) != 1:
            raise AssertionError(
                f"Expected exactly one {kind.value} event, got {len(matches)}. "
                f"Events: {[k.value for k in self.kinds]}"
            )
        return matches[0]

    def reset(self) -> None:
        """Forget captured events."""
        self.events.clear()
