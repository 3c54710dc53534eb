"""Private feedback endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.schemas.feedback import (
    FeedbackCreate,
    FeedbackCreateResponse,
    FeedbackList,
    FeedbackReceipt,
)
from app.services.feedback import FeedbackService
from app.services.rate_limiter import client_identifier, rate_limit

router = APIRouter()

feedback_limit = rate_limit(
    "feedback:post",
    limit=5,
    window_seconds=60,
    message="Too many feedback submissions. Please try again later.",
)


@router.post(
    "",
    response_model=FeedbackCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(feedback_limit)],
)
async def submit_feedback(
    payload: FeedbackCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> FeedbackCreateResponse:
    """Store detailed feedback following a low rating."""
    feedback = await FeedbackService(db).submit(
        payload,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_identifier(request),
    )
    return FeedbackCreateResponse(
        feedback=FeedbackReceipt(id=feedback.id, submitted_at=feedback.created_at)
    )


@router.get("", response_model=FeedbackList)
async def list_feedback(
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> FeedbackList:
    """List private feedback, newest first."""
    records, total = await FeedbackService(db).list_feedback(limit)
    return FeedbackList(feedback=records, total=total)
