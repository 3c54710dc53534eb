"""Owner notifications.

This package provides:
- SendGrid e-mail transport
- Message composers for new reviews, low-rating alerts and weekly digests
- A dispatcher that logs every delivery attempt
- The weekly digest scheduler
"""

from app.services.notifications.email import (
    send_email,
    EmailDeliveryError,
    EmailResult,
)
from app.services.notifications.messages import (
    Message,
    DigestData,
    DigestReview,
    build_new_review_notice,
    build_low_rating_alert,
    build_weekly_digest,
    is_low_rating,
)
from app.services.notifications.dispatcher import NotificationDispatcher
from app.services.notifications.digest import collect_digest_data, send_weekly_digest

__all__ = [
    # Transport
    "send_email",
    "EmailDeliveryError",
    "EmailResult",
    # Messages
    "Message",
    "DigestData",
    "DigestReview",
    "build_new_review_notice",
    "build_low_rating_alert",
    "build_weekly_digest",
    "is_low_rating",
    # Dispatch
    "NotificationDispatcher",
    "collect_digest_data",
    "send_weekly_digest",
]
