"""Analytics schemas."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.link_tracking import LinkType


class LinkClickCreate(BaseModel):
    """Public link-click beacon sent by the review page."""

    model_config = ConfigDict(extra="ignore")

    link_type: str = Field(..., min_length=1, max_length=50)
    source: Optional[str] = Field(None, max_length=100)
    user_agent: Optional[str] = Field(None, max_length=500)
    referrer: Optional[str] = Field(None, max_length=1000)
    metadata: dict[str, Any] = Field(default_factory=dict)


class RatingBucket(BaseModel):
    rating: int
    count: int
    percentage: float


class OverviewMetrics(BaseModel):
    total_reviews: int
    positive_reviews: int
    internal_feedback: int
    conversion_rate: float


class DailyTrend(BaseModel):
    date: str
    count: int
    positive_count: int
    negative_count: int


class AnalyticsOverview(BaseModel):
    """Dashboard overview for a period."""

    success: bool = True
    period: int
    metrics: OverviewMetrics
    trends: list[DailyTrend]
    rating_distribution: dict[int, int]


class DailyRating(BaseModel):
    date: str
    reviews: int
    average_rating: float


class ReviewMetrics(BaseModel):
    total_reviews: int
    average_rating: float
    positive_reviews: int
    rating_distribution: list[RatingBucket]
    daily_trends: list[DailyRating]
    period: int


class ReviewMetricsResponse(BaseModel):
    success: bool = True
    metrics: ReviewMetrics


class TrendPoint(BaseModel):
    period: str
    reviews: int
    average_rating: float
    rating_distribution: list[RatingBucket]


class TrendSummary(BaseModel):
    total_reviews: int
    review_growth: float
    period: int
    granularity: Literal["day", "week", "month"]


class Trends(BaseModel):
    data: list[TrendPoint]
    summary: TrendSummary


class TrendsResponse(BaseModel):
    success: bool = True
    trends: Trends


class DailyCount(BaseModel):
    date: str
    count: int


class LinkStats(BaseModel):
    total_clicks: int
    by_source: dict[str, int]
    by_type: dict[str, int]
    daily_clicks: list[DailyCount]


class LinkStatsResponse(BaseModel):
    success: bool = True
    analytics: LinkStats


class LinkTrackingCreate(BaseModel):
    """Dashboard-side record of a distributed review link."""

    model_config = ConfigDict(extra="ignore")

    link_type: LinkType
    link_url: str = Field(..., pattern=r"^https?://\S+$", max_length=2000)
    metadata: dict[str, Any] = Field(default_factory=dict)


class LinkTrackingStats(BaseModel):
    total: int
    by_type: dict[str, int]
    recent: list[dict[str, Any]]


class LinkTrackingStatsResponse(BaseModel):
    success: bool = True
    tracking: LinkTrackingStats
