"""Analytics and dashboard endpoints."""

from datetime import datetime, timezone
from io import StringIO
from typing import Literal, Optional
import csv

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_analytics_recorder, get_current_user, get_db
from app.schemas.analytics import (
    AnalyticsOverview,
    LinkClickCreate,
    LinkStatsResponse,
    ReviewMetricsResponse,
    TrendsResponse,
)
from app.services.analytics import AnalyticsRecorder, AnalyticsService, summarize_ratings
from app.services.rate_limiter import rate_limit

router = APIRouter()

track_limit = rate_limit("analytics:track", limit=60, window_seconds=60)

EXPORT_COLUMNS = [
    "id",
    "customer_name",
    "customer_phone",
    "rating",
    "comment",
    "is_public",
    "created_at",
]


@router.post("/link-tracking", dependencies=[Depends(track_limit)])
async def track_link_click(
    payload: LinkClickCreate,
    request: Request,
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
) -> dict:
    """Record a click on a distributed review link.

    Public beacon: a lost event is logged, never reported to the caller.
    """
    await recorder.record_link_click(
        link_type=payload.link_type,
        source=payload.source,
        user_agent=payload.user_agent or request.headers.get("user-agent"),
        referrer=payload.referrer or request.headers.get("referer"),
        extra=payload.metadata,
    )
    return {"success": True}


@router.get("/link-tracking", response_model=LinkStatsResponse)
async def get_link_stats(
    period: int = Query(30, ge=1, le=365, description="Look-back window in days"),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> LinkStatsResponse:
    """Click totals by source and type, plus a daily series."""
    stats = await AnalyticsService(db).link_stats(period)
    return LinkStatsResponse(analytics=stats)


@router.get("", response_model=AnalyticsOverview)
async def get_overview(
    period: int = Query(30, ge=1, le=365, description="Look-back window in days"),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> AnalyticsOverview:
    """Get dashboard overview metrics."""
    return AnalyticsOverview(**await AnalyticsService(db).overview(period))


@router.get("/metrics", response_model=ReviewMetricsResponse)
async def get_review_metrics(
    period: int = Query(30, ge=1, le=365, description="Look-back window in days"),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> ReviewMetricsResponse:
    """Average rating, distribution and last-7-day averages."""
    return ReviewMetricsResponse(metrics=await AnalyticsService(db).metrics(period))


@router.get("/trends", response_model=TrendsResponse)
async def get_trends(
    period: int = Query(30, ge=1, le=365, description="Look-back window in days"),
    granularity: Literal["day", "week", "month"] = Query("day"),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> TrendsResponse:
    """Review counts and averages grouped by day, week (Sunday start) or month."""
    return TrendsResponse(trends=await AnalyticsService(db).trends(period, granularity))


@router.get("/export")
async def export_reviews(
    format: Literal["csv", "json"] = Query("csv"),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
):
    """Export reviews as a CSV download or JSON with a summary."""
    reviews = await AnalyticsService(db).export_rows(start_date, end_date)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")

    if format == "csv":
        buffer = StringIO()
        writer = csv.writer(buffer)
        writer.writerow(EXPORT_COLUMNS)
        for review in reviews:
            writer.writerow(
                [
                    review.id,
                    review.customer_name,
                    review.customer_phone or "",
                    review.rating,
                    review.comment or "",
                    "yes" if review.is_public else "no",
                    review.created_at.isoformat(),
                ]
            )
        return Response(
            content=buffer.getvalue(),
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="reviews-{stamp}.csv"'
            },
        )

    summary = summarize_ratings(r.rating for r in reviews)
    return {
        "success": True,
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "summary": {
            "total_reviews": summary.total,
            "average_rating": summary.average,
            "positive_reviews": summary.positive,
            "negative_reviews": summary.negative,
            "rating_distribution": summary.distribution,
        },
        "reviews": [
            {
                "id": r.id,
                "customer_name": r.customer_name,
                "customer_phone": r.customer_phone,
                "rating": r.rating,
                "comment": r.comment,
                "is_public": r.is_public,
                "created_at": r.created_at.isoformat(),
            }
            for r in reviews
        ],
    }
