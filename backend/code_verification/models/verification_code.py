"""Verification code model - one-time codes issued to a receiver.

One row per issued code. Rows for the same (receiver, purpose, user_id)
accumulate; only the most recently created one is eligible for verification.
Rows are never deleted by this package.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from code_verification.models.base import Base, TimestampMixin

# Column widths, shared with input validation and the code generator
RECEIVER_MAX_LENGTH = 100
PURPOSE_MAX_LENGTH = 100
CODE_MAX_LENGTH = 20


class VerificationCode(Base, TimestampMixin):
    """A one-time verification code.

    Attributes:
        id: Auto-incrementing identifier assigned on insert.
        receiver: Destination of the code (email, phone number, ...).
        purpose: Verification flow, e.g. ``"login"`` or ``"password_reset"``.
        user_id: Owning user, or None for a guest request.
        code: Secret value to match.
        expires_at: Instant after which the code can no longer be verified.
        attempts: Verification attempts that reached the matching stage.
        is_verified: True once the code was matched.
        verified_at: When the code was matched.
        is_revoked: True once attempts exceeded the configured maximum.
        revoked_at: When the code was revoked.
    """

    __tablename__ = "verification_codes"

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=True,
    )
    receiver: Mapped[str] = mapped_column(
        String(RECEIVER_MAX_LENGTH),
        nullable=False,
    )
    purpose: Mapped[str] = mapped_column(
        String(PURPOSE_MAX_LENGTH),
        nullable=False,
    )
    # NULL is the guest sentinel; 0 is an ordinary user id
    user_id: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
    )
    code: Mapped[str] = mapped_column(
        String(CODE_MAX_LENGTH),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_revoked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("idx_verification_codes_receiver_purpose", "receiver", "purpose"),
        CheckConstraint(
            "attempts >= 0",
            name="ck_verification_codes_attempts",
        ),
        CheckConstraint(
            "user_id >= 0 OR user_id IS NULL",
            name="ck_verification_codes_user_id",
        ),
        CheckConstraint(
            "NOT (is_verified AND is_revoked)",
            name="ck_verification_codes_single_terminal",
        ),
    )

    @property
    def is_terminal(self) -> bool:
        """Check if the code was verified or revoked.

        Returns:
            True if no further verification can change this record.
        """
        return bool(self.is_verified or self.is_revoked)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the code has expired.

        Args:
            now: Reference instant. Defaults to the current UTC time.

        Returns:
            True if ``now`` is at or past ``expires_at``.
        """
        if now is None:
            now = datetime.now(UTC)
        return now >= self.expires_at

    def __repr__(self) -> str:
        # Never include the code itself
        return (
            f"<VerificationCode id={self.id} purpose={self.purpose!r} "
            f"attempts={self.attempts} verified={self.is_verified} "
            f"revoked={self.is_revoked}>"
        )
