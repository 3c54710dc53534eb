"""Sharing and QR code schemas."""

import enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SharePlatform(str, enum.Enum):
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    SMS = "sms"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"


class QRGenerateRequest(BaseModel):
    """Public QR code request for the review page."""

    model_config = ConfigDict(extra="ignore")

    size: Literal["small", "medium", "large"] = "medium"
    include_tracking: bool = True


class QRGenerateResponse(BaseModel):
    success: bool = True
    qr_code: str
    url: str
    business_name: Optional[str]
    size: str


class QRCodeRequest(BaseModel):
    """Dashboard QR code request with explicit pixel size and format."""

    model_config = ConfigDict(extra="ignore")

    size: int = Field(300, ge=100, le=1000)
    include_logo: bool = False
    format: Literal["png", "svg", "base64"] = "png"


class QRCodeDetail(BaseModel):
    data: str
    url: str
    business_name: Optional[str]
    format: str
    size: int


class QRCodeResponse(BaseModel):
    success: bool = True
    qr_code: QRCodeDetail


class ShareRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    custom_message: Optional[str] = Field(None, max_length=500)


class ShareDetail(BaseModel):
    platform: SharePlatform
    url: str
    message: str
    business_name: Optional[str]


class ShareResponse(BaseModel):
    success: bool = True
    share: ShareDetail
