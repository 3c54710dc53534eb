"""Private feedback schemas."""

import enum
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import blank_to_none, normalize_email, normalize_phone


class IssueCategory(str, enum.Enum):
    """What went wrong, as picked on the feedback form."""

    SERVICE_QUALITY = "service_quality"
    STAFF_BEHAVIOR = "staff_behavior"
    CLEANLINESS = "cleanliness"
    WAIT_TIME = "wait_time"
    PRICING = "pricing"
    PRODUCT_QUALITY = "product_quality"
    COMMUNICATION = "communication"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class FeedbackCreate(BaseModel):
    """Detailed follow-up collected after a low rating."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    review_id: Optional[str] = None
    issue_category: IssueCategory
    detailed_feedback: str = Field(..., min_length=10, max_length=5000)
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    allow_follow_up: bool

    @field_validator("review_id", "contact_email", "contact_phone", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        return blank_to_none(value)

    @field_validator("review_id")
    @classmethod
    def _check_review_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            return str(uuid.UUID(value))
        except ValueError:
            raise ValueError("Invalid review ID")

    @field_validator("contact_email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        return normalize_email(value)

    @field_validator("contact_phone")
    @classmethod
    def _check_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value)


class FeedbackReceipt(BaseModel):
    id: str
    submitted_at: datetime


class FeedbackCreateResponse(BaseModel):
    success: bool = True
    feedback: FeedbackReceipt


class FeedbackRecord(BaseModel):
    """Stored feedback as shown in the dashboard."""

    id: str
    created_at: datetime
    review_id: Optional[str] = None
    issue_category: Optional[str] = None
    detailed_feedback: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    allow_follow_up: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class FeedbackList(BaseModel):
    success: bool = True
    feedback: list[FeedbackRecord]
    total: int
