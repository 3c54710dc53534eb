"""Review submission and management endpoints."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    get_analytics_recorder,
    get_current_user,
    get_db,
    get_notification_dispatcher,
    request_context,
)
from app.core.exceptions import ConfigurationMissing
from app.schemas.review import (
    ReviewCreate,
    ReviewCreateResponse,
    ReviewDetail,
    ReviewList,
    ReviewResponse,
    ReviewSummary,
    ReviewUpdate,
    RoutingInfo,
)
from app.services.analytics import AnalyticsRecorder
from app.services.app_settings import SettingsStore
from app.services.notifications import NotificationDispatcher
from app.services.rate_limiter import rate_limit
from app.services.reviews import ReviewService
from app.services.routing import decide_route

router = APIRouter()

submit_limit = rate_limit("reviews:post", limit=10, window_seconds=60)


@router.post(
    "",
    response_model=ReviewCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(submit_limit)],
)
async def submit_review(
    payload: ReviewCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ReviewCreateResponse:
    """Store a public review and tell the client where to send the customer.

    A missing redirect URL for a high rating is reported in
    ``routing.error``; the review itself is still stored.
    """
    review = await ReviewService(db, recorder).submit(payload, request_context(request))
    background_tasks.add_task(dispatcher.notify_review_created, review)

    redirect_url = await SettingsStore(db).redirect_url()
    try:
        decision = decide_route(review.rating, review.id, redirect_url)
        routing = RoutingInfo(
            destination=decision.destination,
            url=decision.url,
            message=decision.message,
        )
    except ConfigurationMissing as e:
        routing = RoutingInfo(error=e.message)

    return ReviewCreateResponse(review=ReviewSummary.model_validate(review), routing=routing)


@router.get("", response_model=ReviewList)
async def list_reviews(
    rating: Optional[int] = Query(None, ge=1, le=5),
    is_public: Optional[bool] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> ReviewList:
    """List reviews, newest first."""
    reviews, total = await ReviewService(db).list_reviews(page, per_page, rating, is_public)
    return ReviewList(
        reviews=[ReviewDetail.model_validate(r) for r in reviews],
        total=total,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page,
    )


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(
    review_id: str,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> ReviewResponse:
    review = await ReviewService(db).get(review_id)
    return ReviewResponse(review=ReviewDetail.model_validate(review))


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    update: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> ReviewResponse:
    """Edit a review. Visibility is re-derived from the rating."""
    review = await ReviewService(db).update(review_id, update)
    return ReviewResponse(review=ReviewDetail.model_validate(review))


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> dict:
    await ReviewService(db).delete(review_id)
    return {"success": True, "message": "Review deleted successfully"}
