"""Verification engine: issues codes and verifies submitted ones.

State machine for one verify call, against the latest record for
(receiver, purpose, user_id):

    missing | verified | revoked | expired  -> False, nothing written
    otherwise attempts += 1, then
        attempts > max_attempts             -> revoke, REVOKED event, False
        submitted code == stored code       -> verify, VERIFIED event, True
        else                                -> False

The attempt-limit check runs before the comparison, so the call that pushes
attempts past the limit is consumed and revokes even with the right code.
With max_attempts=3 the 4th call revokes.

Every outcome other than a match is a plain False, including a user_id
that is neither None nor an int. Only store failures raise (StoreError).
"""

import hmac
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from code_verification.core.errors import ValidationError
from code_verification.models.verification_code import (
    PURPOSE_MAX_LENGTH,
    RECEIVER_MAX_LENGTH,
    VerificationCode,
)
from code_verification.services.code_generator import CodeGenerator
from code_verification.services.verification_config import CodeVerificationConfig
from code_verification.services.verification_events import (
    VerificationEventKind,
    VerificationEventSink,
)
from code_verification.services.verification_store import VerificationCodeStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _validate_label(field: str, value: object, max_length: int) -> str:
    """Check a receiver/purpose argument.

    Raises:
        ValidationError: If not a non-blank string of at most max_length chars.
    """
    if not isinstance(value, str):
        raise ValidationError(field, f"{field} must be a string")
    if not value.strip():
        raise ValidationError(field, f"{field} cannot be empty")
    if len(value) > max_length:
        raise ValidationError(
            field, f"{field} exceeds maximum length of {max_length} characters"
        )
    return value


def _validate_user_id(user_id: object) -> int | None:
    if user_id is None:
        return None
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise ValidationError("user_id", "user_id must be an integer or None")
    if user_id < 0:
        raise ValidationError("user_id", "user_id cannot be negative")
    return user_id


def _codes_match(stored: str, submitted: object) -> bool:
    """Exact, case-sensitive comparison in constant time."""
    if not isinstance(submitted, str):
        return False
    return hmac.compare_digest(stored.encode("utf-8"), submitted.encode("utf-8"))


class VerificationEngine:
    """Issues verification codes and verifies submitted ones.

    Args:
        store: Persistent store for verification code records.
        sink: Receiver of issued/verified/revoked events.
        config: Code length, lifetime and attempt limit.
        generator: Code generator. Defaults to one using config.code_length.
        clock: Source of the current time. Defaults to UTC now.

    Raises:
        ConfigurationError: If the generator cannot be built from config.
    """

    def __init__(
        self,
        store: VerificationCodeStore,
        sink: VerificationEventSink,
        config: CodeVerificationConfig,
        *,
        generator: CodeGenerator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._sink = sink
        self._config = config
        self._generator = generator or CodeGenerator(config.code_length)
        self._clock = clock or _utc_now

    @property
    def config(self) -> CodeVerificationConfig:
        """Configuration the engine was built with."""
        return self._config

    def _now(self) -> datetime:
        """Current time from the clock as aware UTC. Naive values are taken as UTC."""
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return now.astimezone(UTC)

    async def issue(
        self,
        receiver: str,
        purpose: str,
        user_id: int | None = None,
    ) -> VerificationCode:
        """Issue a new code for a receiver and purpose.

        Earlier outstanding codes for the same triple are left untouched;
        only the newest one can be verified.

        Args:
            receiver: Code destination (email, phone number, ...).
            purpose: Verification flow the code belongs to.
            user_id: Owning user, or None for a guest.

        Returns:
            The created record (attempts=0, neither verified nor revoked).

        Raises:
            ValidationError: If an argument is empty, too long or negative.
            StoreError: If the record cannot be created.
        """
        receiver = _validate_label("receiver", receiver, RECEIVER_MAX_LENGTH)
        purpose = _validate_label("purpose", purpose, PURPOSE_MAX_LENGTH)
        user_id = _validate_user_id(user_id)

        now = self._now()
        record = await self._store.create(
            receiver=receiver,
            purpose=purpose,
            user_id=user_id,
            code=self._generator.generate(),
            expires_at=self._generator.compute_expiry(
                now, self._config.expires_in_seconds
            ),
        )
        logger.info(
            "Issued verification code (id=%s, purpose=%s, guest=%s)",
            record.id,
            purpose,
            user_id is None,
        )

        await self._emit(VerificationEventKind.ISSUED, record)
        return record

    async def verify(
        self,
        receiver: str,
        purpose: str,
        user_id: int | None,
        code: str,
    ) -> bool:
        """Verify a submitted code against the latest issued one.

        Args:
            receiver: Code destination the code was issued to.
            purpose: Verification flow the code belongs to.
            user_id: Owning user, or None for a guest.
            code: Submitted code. Compared case-sensitively.

        Returns:
            True only if this call matched the code and marked it verified.

        Raises:
            StoreError: If the record cannot be read or saved.
        """
        if user_id is not None and (
            not isinstance(user_id, int) or isinstance(user_id, bool)
        ):
            logger.debug("Rejected non-integer user_id (purpose=%s)", purpose)
            return False

        record = await self._store.find_latest(receiver, purpose, user_id)
        if record is None:
            logger.debug("No verification code found (purpose=%s)", purpose)
            return False

        now = self._now()
        if record.is_verified or record.is_revoked:
            logger.debug("Verification code %s is already terminal", record.id)
            return False
        if record.is_expired(now):
            logger.debug("Verification code %s has expired", record.id)
            return False

        record.attempts += 1
        event: VerificationEventKind | None = None

        if record.attempts > self._config.max_attempts:
            record.is_revoked = True
            record.revoked_at = now
            event = VerificationEventKind.REVOKED
        elif _codes_match(record.code, code):
            record.is_verified = True
            record.verified_at = now
            event = VerificationEventKind.VERIFIED

        await self._store.save(record)

        if event is VerificationEventKind.REVOKED:
            logger.info(
                "Revoked verification code %s after %s attempts",
                record.id,
                record.attempts,
            )
        elif event is VerificationEventKind.VERIFIED:
            logger.info(
                "Verified code %s on attempt %s", record.id, record.attempts
            )
        else:
            logger.info(
                "Verification code mismatch (id=%s, attempt %s of %s)",
                record.id,
                record.attempts,
                self._config.max_attempts,
            )

        if event is not None:
            await self._emit(event, record)

        return bool(record.is_verified)

    async def _emit(self, kind: VerificationEventKind, record: VerificationCode) -> None:
        """Notify the sink. Failures are logged; persistence already happened."""
        try:
            await self._sink.notify(kind, record)
        except Exception:
            logger.warning(
                "Event sink failed for %s event (id=%s)",
                kind.value,
                record.id,
                exc_info=True,
            )
