"""Review submission and management."""

from typing import Any, Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundOrNotOwned, UpstreamFailure
from app.models.analytics import MetricType
from app.models.review import Review
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.services.analytics import AnalyticsRecorder
from app.services.routing import is_public_rating

logger = logging.getLogger(__name__)


class ReviewService:
    """Persist reviews and emit their correlated analytics events."""

    def __init__(self, db: AsyncSession, recorder: Optional[AnalyticsRecorder] = None):
        """Initialize service.

        Args:
            db: Async database session for the primary write
            recorder: Analytics recorder; events are skipped when None
        """
        self.db = db
        self.recorder = recorder

    async def submit(
        self,
        payload: ReviewCreate,
        context: Optional[dict[str, Any]] = None,
    ) -> Review:
        """Store a public review, then record ``review_submitted``.

        The review insert is the transaction of record. The analytics event
        is written afterwards and its failure does not affect the result.

        Args:
            payload: Validated review submission
            context: Request details for the analytics event
                (source, user_agent, referrer)

        Returns:
            The persisted review

        Raises:
            UpstreamFailure: If the review could not be saved
        """
        review = Review(
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
            rating=payload.rating,
            comment=payload.comment,
            is_public=is_public_rating(payload.rating),
        )
        self.db.add(review)
        try:
            await self.db.commit()
            await self.db.refresh(review)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Review insert failed: {e}", exc_info=True)
            raise UpstreamFailure("Failed to save review. Please try again.")

        logger.info(f"Stored review {review.id} (rating={review.rating}, public={review.is_public})")

        if self.recorder is not None:
            metadata = {
                "review_id": review.id,
                "rating": review.rating,
                "is_public": review.is_public,
            }
            metadata.update({k: v for k, v in (context or {}).items() if v is not None})
            await self.recorder.record(MetricType.REVIEW_SUBMITTED, metadata=metadata)

        return review

    async def list_reviews(
        self,
        page: int = 1,
        per_page: int = 50,
        rating: Optional[int] = None,
        is_public: Optional[bool] = None,
    ) -> tuple[list[Review], int]:
        """Newest-first page of reviews and the total matching count."""
        query = select(Review)
        if rating is not None:
            query = query.where(Review.rating == rating)
        if is_public is not None:
            query = query.where(Review.is_public == is_public)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(Review.created_at.desc())
        query = query.offset((page - 1) * per_page).limit(per_page)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get(self, review_id: str) -> Review:
        review = await self.db.get(Review, review_id)
        if review is None:
            raise NotFoundOrNotOwned("Review not found")
        return review

    async def update(self, review_id: str, update: ReviewUpdate) -> Review:
        """Apply owner edits; visibility follows the (possibly new) rating."""
        review = await self.get(review_id)
        for field_name, value in update.model_dump(exclude_unset=True).items():
            if field_name in ("customer_name", "rating") and value is None:
                continue
            setattr(review, field_name, value)
        review.is_public = is_public_rating(review.rating)

        try:
            await self.db.commit()
            await self.db.refresh(review)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Review update failed for {review_id}: {e}", exc_info=True)
            raise UpstreamFailure("Failed to update review")
        return review

    async def delete(self, review_id: str) -> None:
        review = await self.get(review_id)
        try:
            await self.db.delete(review)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Review delete failed for {review_id}: {e}", exc_info=True)
            raise UpstreamFailure("Failed to delete review")
        logger.info(f"Deleted review {review_id}")
