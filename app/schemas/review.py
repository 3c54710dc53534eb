"""Review schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import blank_to_none, normalize_phone, reject_bool


class ReviewCreate(BaseModel):
    """Public review submission.

    Extra keys are dropped, so clients cannot smuggle in ``is_public``.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_phone: Optional[str] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator("customer_phone", "comment", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        return blank_to_none(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _rating_is_not_bool(cls, value):
        return reject_bool(value)

    @field_validator("customer_phone")
    @classmethod
    def _check_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value)


class ReviewUpdate(BaseModel):
    """Owner edits to an existing review."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    customer_name: Optional[str] = Field(None, min_length=1, max_length=100)
    customer_phone: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator("customer_phone", "comment", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        return blank_to_none(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _rating_is_not_bool(cls, value):
        return reject_bool(value)

    @field_validator("customer_phone")
    @classmethod
    def _check_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value)


class ReviewSummary(BaseModel):
    """Minimal review view returned to the public form."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    rating: int
    is_public: bool


class ReviewDetail(ReviewSummary):
    """Full review record for the dashboard."""

    customer_name: str
    customer_phone: Optional[str]
    comment: Optional[str]
    created_at: datetime
    updated_at: datetime


class RoutingInfo(BaseModel):
    """Where the customer should be sent after submitting."""

    destination: Optional[Literal["external", "internal"]] = None
    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None


class ReviewCreateResponse(BaseModel):
    success: bool = True
    review: ReviewSummary
    routing: RoutingInfo


class ReviewResponse(BaseModel):
    success: bool = True
    review: ReviewDetail


class ReviewList(BaseModel):
    """Paginated review list."""

    success: bool = True
    reviews: list[ReviewDetail]
    total: int
    page: int
    per_page: int
    pages: int
