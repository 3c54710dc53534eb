"""Private feedback stored as ``internal_feedback`` analytics events."""

from datetime import datetime, timezone
from typing import Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UpstreamFailure
from app.models.analytics import AnalyticsEvent, MetricType
from app.schemas.feedback import FeedbackCreate, FeedbackRecord

logger = logging.getLogger(__name__)


class FeedbackService:
    """Write and read detailed feedback records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(
        self,
        payload: FeedbackCreate,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AnalyticsEvent:
        """Persist feedback. Unlike other analytics events this write must succeed.

        ``review_id`` is a lookup key only; it is not required to exist.

        Raises:
            UpstreamFailure: If the record could not be saved
        """
        submitted_at = datetime.now(timezone.utc)
        feedback = AnalyticsEvent(
            metric_type=MetricType.INTERNAL_FEEDBACK,
            value=1,
            event_metadata={
                "review_id": payload.review_id,
                "issue_category": payload.issue_category.value,
                "detailed_feedback": payload.detailed_feedback,
                "contact_email": payload.contact_email,
                "contact_phone": payload.contact_phone,
                "allow_follow_up": payload.allow_follow_up,
                "submitted_at": submitted_at.isoformat(),
                "user_agent": user_agent,
                "ip_address": ip_address,
            },
            created_at=submitted_at,
        )
        self.db.add(feedback)
        try:
            await self.db.commit()
            await self.db.refresh(feedback)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Feedback submission error: {e}", exc_info=True)
            raise UpstreamFailure("Failed to save feedback. Please try again.")

        logger.info(
            f"Stored feedback {feedback.id} ({payload.issue_category.value}, "
            f"review={payload.review_id or '-'})"
        )
        return feedback

    async def list_feedback(self, limit: int = 100) -> tuple[list[FeedbackRecord], int]:
        """Newest feedback first, flattened from event metadata."""
        base = select(AnalyticsEvent).where(
            AnalyticsEvent.metric_type == MetricType.INTERNAL_FEEDBACK
        )
        total = (
            await self.db.execute(select(func.count()).select_from(base.subquery()))
        ).scalar() or 0

        result = await self.db.execute(
            base.order_by(AnalyticsEvent.created_at.desc()).limit(limit)
        )
        records = []
        for event in result.scalars().all():
            metadata = event.event_metadata if isinstance(event.event_metadata, dict) else {}
            records.append(
                FeedbackRecord(
                    id=event.id,
                    created_at=event.created_at,
                    review_id=metadata.get("review_id"),
                    issue_category=metadata.get("issue_category"),
                    detailed_feedback=metadata.get("detailed_feedback"),
                    contact_email=metadata.get("contact_email"),
                    contact_phone=metadata.get("contact_phone"),
                    allow_follow_up=bool(metadata.get("allow_follow_up")),
                    metadata=metadata,
                )
            )
        return records, total
