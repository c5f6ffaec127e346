"""Verification code configuration.

Immutable settings handed to the engine and generator at construction time.
Invalid values fail fast with ConfigurationError.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from code_verification.core.errors import ConfigurationError
from code_verification.models.verification_code import CODE_MAX_LENGTH

if TYPE_CHECKING:
    from code_verification.core.config import Settings

DEFAULT_CODE_LENGTH = 6
DEFAULT_EXPIRES_IN_SECONDS = 300
DEFAULT_MAX_ATTEMPTS = 3


def validate_code_length(code_length: object) -> int:
    """Check that a code length fits the code column.

    Args:
        code_length: Candidate length.

    Returns:
        The length, unchanged.

    Raises:
        ConfigurationError: If not an int in ``1..CODE_MAX_LENGTH``.
    """
    # bool is an int subclass; True is not a length
    if not isinstance(code_length, int) or isinstance(code_length, bool):
        msg = f"code_length must be an integer, got {type(code_length).__name__}"
        raise ConfigurationError(msg)
    if not 1 <= code_length <= CODE_MAX_LENGTH:
        msg = f"code_length must be between 1 and {CODE_MAX_LENGTH}, got {code_length}"
        raise ConfigurationError(msg)
    return code_length


@dataclass(frozen=True)
class CodeVerificationConfig:
    """Configuration for issuing and verifying codes.

    Attributes:
        code_length: Characters per generated code (1..20).
        expires_in_seconds: Lifetime of an issued code. Must be positive.
        max_attempts: Attempts allowed before the next one revokes the code.
            With 3, attempts 1-3 may match and the 4th revokes.
    """

    code_length: int = DEFAULT_CODE_LENGTH
    expires_in_seconds: int = DEFAULT_EXPIRES_IN_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        validate_code_length(self.code_length)

        if not isinstance(self.expires_in_seconds, int) or isinstance(
            self.expires_in_seconds, bool
        ):
            msg = "expires_in_seconds must be an integer"
            raise ConfigurationError(msg)
        if self.expires_in_seconds <= 0:
            msg = f"expires_in_seconds must be positive, got {self.expires_in_seconds}"
            raise ConfigurationError(msg)

        if not isinstance(self.max_attempts, int) or isinstance(
            self.max_attempts, bool
        ):
            msg = "max_attempts must be an integer"
            raise ConfigurationError(msg)
        if self.max_attempts < 0:
            msg = f"max_attempts cannot be negative, got {self.max_attempts}"
            raise ConfigurationError(msg)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CodeVerificationConfig":
        """Build configuration from environment-backed application settings.

        Args:
            settings: Application settings.

        Returns:
            Validated CodeVerificationConfig.

        Raises:
            ConfigurationError: If any setting is out of bounds.
        """
        return cls(
            code_length=settings.code_verification_code_length,
            expires_in_seconds=settings.code_verification_expires_in,
            max_attempts=settings.code_verification_max_attempts,
        )
