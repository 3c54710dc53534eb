"""Weekly digest composition and delivery."""

from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.models.analytics import AnalyticsEvent, MetricType
from app.models.app_settings import SINGLETON_ID, AppSettings
from app.models.review import Review
from app.services.analytics import summarize_ratings
from app.services.notifications.dispatcher import NotificationDispatcher
from app.services.notifications.messages import (
    DigestData,
    DigestReview,
    LOW_RATING_THRESHOLD,
    build_weekly_digest,
)

logger = logging.getLogger(__name__)
settings = get_settings()

DIGEST_DAYS = 7
RECENT_REVIEW_LIMIT = 5


async def collect_digest_data(db: AsyncSession, business_name: str) -> DigestData:
    """Gather totals and the latest reviews for the past week."""
    since = datetime.now(timezone.utc) - timedelta(days=DIGEST_DAYS)

    all_time = (
        await db.execute(select(func.avg(Review.rating), func.count(Review.id)))
    ).one()

    result = await db.execute(select(Review.rating).where(Review.created_at >= since))
    week = summarize_ratings(row[0] for row in result.all())

    internal_feedback = (
        await db.execute(
            select(func.count(AnalyticsEvent.id)).where(
                AnalyticsEvent.metric_type == MetricType.INTERNAL_FEEDBACK,
                AnalyticsEvent.created_at >= since,
            )
        )
    ).scalar() or 0

    result = await db.execute(
        select(Review)
        .where(Review.created_at >= since)
        .order_by(Review.created_at.desc())
        .limit(RECENT_REVIEW_LIMIT)
    )
    recent = [
        DigestReview(customer_name=r.customer_name, rating=r.rating, comment=r.comment)
        for r in result.scalars().all()
    ]

    return DigestData(
        business_name=business_name,
        total_reviews=all_time[1] or 0,
        average_rating=float(all_time[0]) if all_time[0] is not None else 0.0,
        new_reviews=week.total,
        low_rating_reviews=sum(
            count for rating, count in week.distribution.items()
            if rating <= LOW_RATING_THRESHOLD
        ),
        internal_feedback=internal_feedback,
        report_url=f"{settings.base_url}/api/v1/analytics?period={DIGEST_DAYS}",
        recent_reviews=recent,
    )


async def send_weekly_digest(
    session_factory: async_sessionmaker[AsyncSession],
    dispatcher: Optional[NotificationDispatcher] = None,
) -> bool:
    """Send the weekly summary if the owner opted in.

    Returns:
        True if a digest was accepted by the provider
    """
    async with session_factory() as db:
        app_settings = await db.get(AppSettings, SINGLETON_ID)
        if app_settings is None or not app_settings.weekly_digest:
            logger.debug("Weekly digest disabled")
            return False
        if not app_settings.notification_email:
            logger.warning("Weekly digest enabled but no notification email configured")
            return False

        data = await collect_digest_data(db, app_settings.name or settings.APP_NAME)
        recipient = app_settings.notification_email

    dispatcher = dispatcher or NotificationDispatcher(session_factory)
    sent = await dispatcher.send_message(recipient, build_weekly_digest(data))
    logger.info(f"Weekly digest {'sent' if sent else 'not sent'} ({data.new_reviews} new reviews)")
    return sent
