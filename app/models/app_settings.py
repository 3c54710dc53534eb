"""Singleton application settings model."""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin

SINGLETON_ID = 1


class SingletonViolation(Exception):
    """Raised when something attempts to create a second settings row."""


class AppSettings(Base, TimestampMixin):
    """Business branding and the external review redirect target."""

    __tablename__ = "app_settings"
    __table_args__ = (
        CheckConstraint(f"id = {SINGLETON_ID}", name="app_settings_singleton"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SINGLETON_ID)

    # Branding
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    brand_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    welcome_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thank_you_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Routing
    google_business_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Notifications
    notification_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notify_new_reviews: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_low_ratings: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    weekly_digest: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


@event.listens_for(AppSettings, "before_insert")
def _guard_singleton(mapper, connection, target: AppSettings) -> None:
    if target.id is None:
        target.id = SINGLETON_ID
    if target.id != SINGLETON_ID:
        raise SingletonViolation(
            f"app_settings is a singleton; refusing to insert id={target.id}"
        )
