"""Email delivery of verification codes via the Resend API.

Plain-text message with the code and its expiry. Delivery is best effort:
failures are logged, never raised, so an issued code stays persisted.
"""

import logging
from datetime import UTC, datetime

import httpx

from code_verification.core.config import settings

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0


def _format_subject(purpose: str) -> str:
    """Build a subject line from a purpose slug (``password_reset`` -> ``Password reset``)."""
    label = purpose.replace("_", " ").replace("-", " ").strip()
    if not label:
        return "Your verification code"
    return f"{label[0].upper()}{label[1:]} verification code"


async def send_verification_code_email(
    *,
    to_email: str,
    code: str,
    purpose: str,
    expires_at: datetime,
) -> None:
    """Send a verification code email via Resend.

    Args:
        to_email: Recipient email address.
        code: Plain verification code.
        purpose: Verification purpose, used in the subject line.
        expires_at: Absolute expiry of the code.
    """
    remaining = int((expires_at - datetime.now(UTC)).total_seconds())
    minutes = max(1, remaining // 60)

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                _RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.resend_api_key.get_secret_value()}",
                },
                json={
                    "from": settings.email_from,
                    "to": to_email,
                    "subject": _format_subject(purpose),
                    "text": (
                        f"Your verification code is: {code}\n\n"
                        f"This code expires in {minutes} minute(s). "
                        "If you didn't request this, you can safely ignore this email."
                    ),
                },
                timeout=_RESEND_TIMEOUT,
            )
            resp.raise_for_status()
    except Exception:
        logger.warning("Failed to send verification code email", exc_info=True)
