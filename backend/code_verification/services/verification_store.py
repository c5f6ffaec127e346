"""Persistent store port for verification codes, with SQL and in-memory adapters.

The engine only talks to ``VerificationCodeStore``. The guest sentinel is
``user_id=None`` in every method; 0 is a regular user id.
"""

import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from code_verification.core.errors import StoreError
from code_verification.models.verification_code import VerificationCode
from code_verification.repositories.verification_code_repository import (
    VerificationCodeRepository,
)

logger = logging.getLogger(__name__)


class VerificationCodeStore(ABC):
    """Abstract store for verification code records.

    Implementations raise StoreError for infrastructure failures. A missing
    record is ``None``, not an error.
    """

    @abstractmethod
    async def find_latest(
        self, receiver: str, purpose: str, user_id: int | None
    ) -> VerificationCode | None:
        """Return the most recently created record for the triple.

        Implementations must guarantee that concurrent callers cannot both
        mutate the returned record before it is saved.

        Args:
            receiver: Code destination.
            purpose: Verification purpose.
            user_id: Owning user, or None for a guest.

        Returns:
            Latest record, or None if none was ever issued.
        """
        ...

    @abstractmethod
    async def create(
        self,
        *,
        receiver: str,
        purpose: str,
        user_id: int | None,
        code: str,
        expires_at: datetime,
    ) -> VerificationCode:
        """Persist a new record with zero attempts and no terminal flag.

        Returns:
            The created record with its id assigned.
        """
        ...

    @abstractmethod
    async def save(self, record: VerificationCode) -> None:
        """Persist attempts and flag changes of a record."""
        ...


class SqlVerificationCodeStore(VerificationCodeStore):
    """Store backed by the verification_codes table.

    Bound to one session; the caller owns the transaction. ``find_latest``
    takes a row lock (SELECT ... FOR UPDATE) that is held until commit, so
    verify calls on the same record serialize.

    Args:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_latest(
        self, receiver: str, purpose: str, user_id: int | None
    ) -> VerificationCode | None:
        try:
            return await VerificationCodeRepository.get_latest(
                self._db,
                receiver=receiver,
                purpose=purpose,
                user_id=user_id,
                for_update=True,
            )
        except SQLAlchemyError as exc:
            logger.error("Verification code lookup failed: %s", exc)
            raise StoreError("find_latest") from exc

    async def create(
        self,
        *,
        receiver: str,
        purpose: str,
        user_id: int | None,
        code: str,
        expires_at: datetime,
    ) -> VerificationCode:
        try:
            return await VerificationCodeRepository.create(
                self._db,
                receiver=receiver,
                purpose=purpose,
                user_id=user_id,
                code=code,
                expires_at=expires_at,
            )
        except SQLAlchemyError as exc:
            logger.error("Verification code insert failed: %s", exc)
            raise StoreError("create") from exc

    async def save(self, record: VerificationCode) -> None:
        try:
            await VerificationCodeRepository.save(self._db, record)
        except SQLAlchemyError as exc:
            logger.error("Verification code update failed (id=%s): %s", record.id, exc)
            raise StoreError("save") from exc


class InMemoryVerificationCodeStore(VerificationCodeStore):
    """In-memory store for local runs and tests.

    Safe for async/await usage on a single event loop: no method awaits
    between reading and writing, so a verify call cannot interleave with
    another. Not safe for multi-threaded access.

    Args:
        clock: Source of ``created_at``/``updated_at``. Defaults to UTC now.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._records: list[VerificationCode] = []
        self._ids = itertools.count(1)
        self._clock = clock or (lambda: datetime.now(UTC))
        self.save_count = 0

    async def find_latest(
        self, receiver: str, purpose: str, user_id: int | None
    ) -> VerificationCode | None:
        matches = [
            r
            for r in self._records
            if r.receiver == receiver and r.purpose == purpose and r.user_id == user_id
        ]
        if not matches:
            return None
        return max(matches, key=lambda r: (r.created_at, r.id))

    async def create(
        self,
        *,
        receiver: str,
        purpose: str,
        user_id: int | None,
        code: str,
        expires_at: datetime,
    ) -> VerificationCode:
        now = self._clock()
        record = VerificationCode(
            id=next(self._ids),
            receiver=receiver,
            purpose=purpose,
            user_id=user_id,
            code=code,
            expires_at=expires_at,
            attempts=0,
            is_verified=False,
            verified_at=None,
            is_revoked=False,
            revoked_at=None,
            created_at=now,
            updated_at=now,
        )
        self._records.append(record)
        return record

    async def save(self, record: VerificationCode) -> None:
        if record not in self._records:
            raise StoreError("save", f"Unknown verification code id={record.id}")
        record.updated_at = self._clock()
        self.save_count += 1

    def all(self) -> list[VerificationCode]:
        """Return every stored record in insertion order."""
        return list(self._records)

    def clear(self) -> None:
        """Remove all records."""
        self._records.clear()
