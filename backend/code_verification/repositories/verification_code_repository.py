"""Repository for VerificationCode persistence.

Provides database access for the verification_codes table. Lookup is always
"latest row for (receiver, purpose, user_id)"; older rows are never
considered.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from code_verification.models.verification_code import VerificationCode


class VerificationCodeRepository:
    """Stateless repository for VerificationCode table operations.

    All methods are static with no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_latest(
        db: AsyncSession,
        *,
        receiver: str,
        purpose: str,
        user_id: int | None,
        for_update: bool = False,
    ) -> VerificationCode | None:
        """Fetch the most recently created code for a receiver/purpose/user.

        ``created_at`` is the transaction start time in Postgres, so rows
        issued in the same transaction are ordered by id.

        Args:
            db: Async database session.
            receiver: Code destination.
            purpose: Verification purpose.
            user_id: Owning user, or None to match guest rows (``IS NULL``).
            for_update: Lock the returned row until the transaction ends.

        Returns:
            Latest VerificationCode if any, None otherwise.
        """
        user_clause = (
            VerificationCode.user_id.is_(None)
            if user_id is None
            else VerificationCode.user_id == user_id
        )
        stmt = (
            select(VerificationCode)
            .where(
                VerificationCode.receiver == receiver,
                VerificationCode.purpose == purpose,
                user_clause,
            )
            .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
            .limit(1)
        )
        if for_update:
            # Re-read attributes of an instance already in the identity map,
            # otherwise a waiter would see the pre-lock state.
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        receiver: str,
        purpose: str,
        user_id: int | None,
        code: str,
        expires_at: datetime,
    ) -> VerificationCode:
        """Store a newly issued code.

        Args:
            db: Async database session.
            receiver: Code destination.
            purpose: Verification purpose.
            user_id: Owning user, or None for a guest.
            code: Plain code value.
            expires_at: Absolute expiry.

        Returns:
            Created VerificationCode with database-generated fields populated.
        """
        record = VerificationCode(
            receiver=receiver,
            purpose=purpose,
            user_id=user_id,
            code=code,
            expires_at=expires_at,
            attempts=0,
            is_verified=False,
            is_revoked=False,
        )
        db.add(record)
        await db.flush()
        await db.refresh(record)
        return record

    @staticmethod
    async def save(db: AsyncSession, record: VerificationCode) -> VerificationCode:
        """Flush pending changes of a code (attempts, terminal flags).

        Args:
            db: Async database session.
            record: Mutated VerificationCode.

        Returns:
            The same record with server-managed fields refreshed.
        """
        db.add(record)
        await db.flush()
        await db.refresh(record)
        return record
