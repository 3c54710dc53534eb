"""App settings schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import (
    COLOR_PATTERN,
    blank_to_none,
    normalize_email,
    normalize_url,
)


class AppSettingsUpdate(BaseModel):
    """Partial settings update; only keys present in the body are written.

    Empty strings are stored as ``null`` so an URL field can be cleared.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=500)
    brand_color: Optional[str] = None
    welcome_message: Optional[str] = Field(None, max_length=500)
    thank_you_message: Optional[str] = Field(None, max_length=500)
    google_business_url: Optional[str] = Field(None, max_length=500)
    notification_email: Optional[str] = Field(None, max_length=255)
    notify_new_reviews: Optional[bool] = None
    notify_low_ratings: Optional[bool] = None
    weekly_digest: Optional[bool] = None

    @field_validator(
        "description",
        "logo_url",
        "brand_color",
        "welcome_message",
        "thank_you_message",
        "google_business_url",
        "notification_email",
        mode="before",
    )
    @classmethod
    def _blank_is_absent(cls, value):
        return blank_to_none(value)

    @field_validator("logo_url")
    @classmethod
    def _check_logo_url(cls, value: Optional[str]) -> Optional[str]:
        # Uploaded logos are served from a root-relative path
        return normalize_url(value, allow_relative=True)

    @field_validator("google_business_url")
    @classmethod
    def _check_redirect_url(cls, value: Optional[str]) -> Optional[str]:
        return normalize_url(value)

    @field_validator("brand_color")
    @classmethod
    def _check_color(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not COLOR_PATTERN.match(value):
            raise ValueError("Brand color must be a hex color like #1a2b3c")
        return value

    @field_validator("notification_email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        return normalize_email(value)

    @field_validator("notify_new_reviews", "notify_low_ratings", "weekly_digest")
    @classmethod
    def _flags_not_null(cls, value: Optional[bool]) -> bool:
        if value is None:
            raise ValueError("Notification flags cannot be null")
        return value


class AppSettingsDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str]
    description: Optional[str]
    logo_url: Optional[str]
    brand_color: Optional[str]
    welcome_message: Optional[str]
    thank_you_message: Optional[str]
    google_business_url: Optional[str]
    notification_email: Optional[str]
    notify_new_reviews: bool
    notify_low_ratings: bool
    weekly_digest: bool
    updated_at: datetime


class AppSettingsResponse(BaseModel):
    success: bool = True
    configured: bool
    settings: Optional[AppSettingsDetail]


class PublicBranding(BaseModel):
    """Settings subset safe to expose to the public review form."""

    name: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    brand_color: Optional[str] = None
    welcome_message: Optional[str] = None
    thank_you_message: Optional[str] = None
    redirect_configured: bool = False


class PublicBrandingResponse(BaseModel):
    success: bool = True
    settings: PublicBranding


class LogoUploadResponse(BaseModel):
    success: bool = True
    logo_url: str
