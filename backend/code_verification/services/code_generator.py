"""Verification code and expiry generation.

Codes are uppercase alphanumeric strings drawn with ``secrets.choice``.
"""

import secrets
import string
from datetime import UTC, datetime, timedelta

from code_verification.services.verification_config import (
    DEFAULT_CODE_LENGTH,
    validate_code_length,
)

CODE_ALPHABET = string.ascii_uppercase + string.digits


class CodeGenerator:
    """Produces random codes and their absolute expiry.

    Args:
        code_length: Characters per code (1..20).

    Raises:
        ConfigurationError: If code_length is out of bounds.
    """

    def __init__(self, code_length: int = DEFAULT_CODE_LENGTH) -> None:
        self._code_length = validate_code_length(code_length)

    @property
    def code_length(self) -> int:
        """Configured characters per code."""
        return self._code_length

    def generate(self, code_length: int | None = None) -> str:
        """Generate a new code.

        Args:
            code_length: Optional override of the configured length,
                validated the same way.

        Returns:
            Uppercase alphanumeric code of exactly the requested length.

        Raises:
            ConfigurationError: If the override is out of bounds.
        """
        length = (
            self._code_length
            if code_length is None
            else validate_code_length(code_length)
        )
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))

    @staticmethod
    def compute_expiry(now: datetime, expires_in_seconds: int) -> datetime:
        """Compute the absolute expiry of a code issued at ``now``.

        Args:
            now: Issue instant. Naive values are taken as UTC.
            expires_in_seconds: Code lifetime.

        Returns:
            Timezone-aware UTC expiry.
        """
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return (now + timedelta(seconds=expires_in_seconds)).astimezone(UTC)
