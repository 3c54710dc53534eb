"""Append-only analytics event model."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, JSONType, new_uuid, utc_now


class MetricType(str, enum.Enum):
    """Analytics event type enumeration."""

    REVIEW_SUBMITTED = "review_submitted"
    INTERNAL_FEEDBACK = "internal_feedback"
    LINK_CLICK = "link_click"
    GOOGLE_REDIRECT = "google_redirect"
    QR_GENERATED = "qr_generated"
    SHARE_CREATED = "share_created"


class AnalyticsEvent(Base):
    """One recorded user or system action.

    The metadata bag is free-form; conventional keys per type:

    - review_submitted: review_id, rating, is_public, source, user_agent, referrer
    - internal_feedback: review_id, issue_category, detailed_feedback,
      contact_email, contact_phone, allow_follow_up, submitted_at,
      user_agent, ip_address
    - link_click: link_type, source, user_agent, referrer, timestamp
    """

    __tablename__ = "analytics_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    metric_type: Mapped[MetricType] = mapped_column(
        Enum(MetricType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    value: Mapped[float] = mapped_column(Float, default=1, nullable=False)
    # "metadata" is reserved on declarative classes
    event_metadata: Mapped[dict] = mapped_column(
        "metadata", JSONType, default=dict, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
