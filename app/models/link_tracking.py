"""Share and QR link tracking model."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, JSONType, utc_now

# Legacy multi-tenant scope; constant in single-business mode
DEFAULT_BUSINESS_ID = "default"


class LinkType(str, enum.Enum):
    """Kind of shared review link."""

    DIRECT = "direct"
    QR_CODE = "qr_code"
    SOCIAL = "social"
    EMAIL = "email"


class LinkTracking(Base):
    """Record of a generated or shared review link."""

    __tablename__ = "link_tracking"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_id: Mapped[str] = mapped_column(
        String(36), default=DEFAULT_BUSINESS_ID, nullable=False
    )
    link_type: Mapped[LinkType] = mapped_column(
        Enum(LinkType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    link_url: Mapped[str] = mapped_column(Text, nullable=False)
    link_metadata: Mapped[dict] = mapped_column(
        "metadata", JSONType, default=dict, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
