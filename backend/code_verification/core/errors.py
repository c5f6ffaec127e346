"""Error taxonomy for code verification.

Only configuration, input and infrastructure problems are exceptions.
A code that fails to verify (unknown, expired, already used, revoked or
wrong) is a plain ``False`` from ``VerificationEngine.verify``.
"""

__all__ = [
    "INVALID_CODE_MESSAGE",
    "CodeVerificationError",
    "ConfigurationError",
    "ValidationError",
    "StoreError",
]

# Uniform user-facing text for every failed verification. Callers should not
# reveal which check failed (enumeration defense).
INVALID_CODE_MESSAGE = "Invalid or expired verification code"


class CodeVerificationError(Exception):
    """Base class for all code verification errors.

    Callers can catch every error raised by this package with a single
    handler.
    """

    pass


class ConfigurationError(CodeVerificationError):
    """Invalid construction parameters.

    Raised when an engine, generator or config is built, never per call.
    Not recoverable without fixing the configuration.
    """

    pass


class ValidationError(CodeVerificationError):
    """Invalid arguments passed to ``issue``.

    Attributes:
        field: Name of the offending argument.
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ValidationError.

        Args:
            field: Name of the offending argument.
            message: Human-readable description.
        """
        super().__init__(message)
        self.field = field


class StoreError(CodeVerificationError):
    """Persistent store read or write failed.

    Infrastructure failure, distinct from a failed verification. The caller
    decides whether to retry.

    Attributes:
        operation: Store operation that failed (find_latest, create, save).
    """

    def __init__(self, operation: str, message: str | None = None) -> None:
        """Initialize StoreError.

        Args:
            operation: Store operation that failed.
            message: Optional description. Defaults to a generic message.
        """
        super().__init__(message or f"Verification code store {operation} failed")
        self.operation = operation
