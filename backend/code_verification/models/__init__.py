"""SQLAlchemy ORM models for code verification.

Models are exported from this module for convenient imports:
    from code_verification.models import Base, VerificationCode

- base.py: Base, TimestampMixin
- verification_code.py: VerificationCode
"""

from code_verification.models.base import Base, TimestampMixin
from code_verification.models.verification_code import VerificationCode

__all__ = [
    "Base",
    "TimestampMixin",
    "VerificationCode",
]
