"""E-mail delivery log model."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utc_now


class EmailKind(str, enum.Enum):
    """Notification message kinds."""

    NEW_REVIEW = "new_review"
    LOW_RATING_ALERT = "low_rating_alert"
    WEEKLY_DIGEST = "weekly_digest"


class EmailPriority(str, enum.Enum):
    NORMAL = "normal"
    HIGH = "high"


class EmailStatus(str, enum.Enum):
    """Delivery status of a send attempt."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class EmailLog(Base):
    """One notification send attempt and its outcome."""

    __tablename__ = "email_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    to_email: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[EmailKind] = mapped_column(
        Enum(EmailKind, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    priority: Mapped[EmailPriority] = mapped_column(
        Enum(EmailPriority, values_callable=lambda x: [e.value for e in x]),
        default=EmailPriority.NORMAL,
        nullable=False,
    )
    status: Mapped[EmailStatus] = mapped_column(
        Enum(EmailStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    provider_message_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
