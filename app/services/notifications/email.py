"""Email delivery service using SendGrid."""

from dataclasses import dataclass
from typing import Optional
import httpx

from app.config import get_settings

settings = get_settings()

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailDeliveryError(Exception):
    """Exception raised when email delivery cannot be attempted."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class EmailResult:
    """Result of an email send operation."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
    plain_content: str,
    high_priority: bool = False,
) -> EmailResult:
    """Send a transactional email to the business owner.

    Args:
        to_email: Recipient address
        subject: Subject line
        html_content: HTML body
        plain_content: Plain-text alternative
        high_priority: Mark the message urgent (low-rating alerts)

    Returns:
        EmailResult with success status and message ID or error

    Raises:
        EmailDeliveryError: If SendGrid is not configured
    """
    if not settings.SENDGRID_API_KEY:
        raise EmailDeliveryError("SendGrid API key not configured")

    headers = {}
    if high_priority:
        headers.update({"X-Priority": "1", "Importance": "high"})

    # SendGrid API payload
    payload = {
        "personalizations": [
            {
                "to": [{"email": to_email}],
                "subject": subject,
            }
        ],
        "from": {
            "email": settings.FROM_EMAIL,
            "name": settings.FROM_NAME,
        },
        "content": [
            {"type": "text/plain", "value": plain_content},
            {"type": "text/html", "value": html_content},
        ],
        "tracking_settings": {
            "click_tracking": {"enable": False},
            "open_tracking": {"enable": False},
        },
    }
    if headers:
        payload["headers"] = headers

    async with httpx.AsyncClient() as client:
        try:
            response = await client.post(
                SENDGRID_SEND_URL,
                json=payload,
                headers={
                    "Authorization": f"Bearer {settings.SENDGRID_API_KEY}",
                    "Content-Type": "application/json",
                },
                timeout=30.0,
            )

            if response.status_code in (200, 201, 202):
                # SendGrid returns message ID in X-Message-Id header
                message_id = response.headers.get("X-Message-Id", "")
                return EmailResult(success=True, message_id=message_id)
            else:
                return EmailResult(
                    success=False,
                    error=f"SendGrid error ({response.status_code}): {response.text}",
                )
        except httpx.RequestError as e:
            return EmailResult(success=False, error=f"Network error: {str(e)}")
