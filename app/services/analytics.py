"""Analytics event recording and dashboard aggregation."""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Literal, Optional, Sequence
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.analytics import AnalyticsEvent, MetricType
from app.models.review import Review
from app.services.routing import is_public_rating

logger = logging.getLogger(__name__)

RATINGS = (1, 2, 3, 4, 5)

Granularity = Literal["day", "week", "month"]


class AnalyticsRecorder:
    """Best-effort, append-only event writer.

    Each event is written in its own session and transaction, after the
    primary write has committed. Failures are logged and dropped: a lost
    analytics event must never fail the action that triggered it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        metric_type: MetricType,
        value: float = 1,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[str]:
        """Insert one event.

        Returns:
            The new event id, or None if the write failed
        """
        try:
            async with self._session_factory() as session:
                analytics_event = AnalyticsEvent(
                    metric_type=metric_type,
                    value=value,
                    event_metadata=dict(metadata or {}),
                )
                session.add(analytics_event)
                await session.commit()
                return analytics_event.id
        except Exception:
            logger.exception(f"Failed to record {metric_type.value} analytics event")
            return None

    async def record_link_click(
        self,
        link_type: str,
        source: Optional[str] = None,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> Optional[str]:
        metadata: dict[str, Any] = dict(extra or {})
        metadata.update(
            link_type=link_type,
            source=source,
            user_agent=user_agent,
            referrer=referrer,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        return await self.record(MetricType.LINK_CLICK, metadata=metadata)


# Pure aggregation helpers


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _average(values: Sequence[int]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


@dataclass
class RatingSummary:
    """Counts and averages for a set of ratings; all zero when empty."""

    total: int = 0
    average: float = 0.0
    positive: int = 0
    negative: int = 0
    distribution: dict[int, int] = field(default_factory=lambda: {r: 0 for r in RATINGS})

    @property
    def conversion_rate(self) -> float:
        """Share of reviews routed to the public platform, in percent."""
        return _percent(self.positive, self.total)

    def percentage(self, rating: int) -> float:
        return _percent(self.distribution.get(rating, 0), self.total)

    def buckets(self) -> list[dict[str, Any]]:
        return [
            {"rating": r, "count": self.distribution[r], "percentage": self.percentage(r)}
            for r in RATINGS
        ]


def summarize_ratings(ratings: Iterable[int]) -> RatingSummary:
    """Summarize ratings: average, positive (>=4) count and distribution."""
    values = list(ratings)
    counts = Counter(values)
    positive = sum(1 for r in values if is_public_rating(r))
    return RatingSummary(
        total=len(values),
        average=_average(values),
        positive=positive,
        negative=len(values) - positive,
        distribution={r: counts.get(r, 0) for r in RATINGS},
    )


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def bucket_key(value: datetime, granularity: Granularity) -> str:
    """Period label a timestamp falls into.

    Weeks start on Sunday and are labelled by their start date.
    """
    day = as_utc(value).date()
    if granularity == "week":
        week_start = day - timedelta(days=(day.weekday() + 1) % 7)
        return week_start.isoformat()
    if granularity == "month":
        return f"{day.year:04d}-{day.month:02d}"
    return day.isoformat()


def last_n_days(days: int, today: Optional[date] = None) -> list[str]:
    """ISO dates for the last ``days`` days, oldest first, ending today."""
    today = today or datetime.now(timezone.utc).date()
    return [(today - timedelta(days=i)).isoformat() for i in range(days - 1, -1, -1)]


def daily_review_counts(
    rows: Iterable[tuple[int, datetime]], days: int, today: Optional[date] = None
) -> list[dict[str, Any]]:
    """Per-day total/positive/negative counts, including empty days."""
    per_day: dict[str, list[int]] = defaultdict(list)
    for rating, created_at in rows:
        per_day[bucket_key(created_at, "day")].append(rating)

    series = []
    for day in last_n_days(days, today):
        ratings = per_day.get(day, [])
        positive = sum(1 for r in ratings if is_public_rating(r))
        series.append(
            {
                "date": day,
                "count": len(ratings),
                "positive_count": positive,
                "negative_count": len(ratings) - positive,
            }
        )
    return series


def daily_average_ratings(
    rows: Iterable[tuple[int, datetime]], days: int = 7, today: Optional[date] = None
) -> list[dict[str, Any]]:
    per_day: dict[str, list[int]] = defaultdict(list)
    for rating, created_at in rows:
        per_day[bucket_key(created_at, "day")].append(rating)
    return [
        {
            "date": day,
            "reviews": len(per_day.get(day, [])),
            "average_rating": _average(per_day.get(day, [])),
        }
        for day in last_n_days(days, today)
    ]


def build_trends(
    rows: Iterable[tuple[int, datetime]], granularity: Granularity
) -> list[dict[str, Any]]:
    """Group ratings into day/week/month periods, oldest first."""
    grouped: dict[str, list[int]] = defaultdict(list)
    for rating, created_at in rows:
        grouped[bucket_key(created_at, granularity)].append(rating)

    trends = []
    for period in sorted(grouped):
        summary = summarize_ratings(grouped[period])
        trends.append(
            {
                "period": period,
                "reviews": summary.total,
                "average_rating": summary.average,
                "rating_distribution": summary.buckets(),
            }
        )
    return trends


def growth_rate(trends: Sequence[dict[str, Any]]) -> float:
    """Percent change of the latest period against the one before it."""
    if len(trends) < 2:
        return 0.0
    previous = trends[-2]["reviews"]
    latest = trends[-1]["reviews"]
    if not previous:
        return 0.0
    return round((latest - previous) / previous * 100, 2)


def link_click_stats(
    events: Iterable[tuple[dict[str, Any], datetime]], days: int, today: Optional[date] = None
) -> dict[str, Any]:
    """Tally link clicks by source, link type and day.

    Metadata is free-form, so missing keys fall back to ``"unknown"``.
    """
    by_source: Counter = Counter()
    by_type: Counter = Counter()
    per_day: Counter = Counter()
    total = 0
    for metadata, created_at in events:
        metadata = metadata if isinstance(metadata, dict) else {}
        by_source[str(metadata.get("source") or "unknown")] += 1
        by_type[str(metadata.get("link_type") or "unknown")] += 1
        per_day[bucket_key(created_at, "day")] += 1
        total += 1

    return {
        "total_clicks": total,
        "by_source": dict(by_source),
        "by_type": dict(by_type),
        "daily_clicks": [
            {"date": day, "count": per_day.get(day, 0)} for day in last_n_days(days, today)
        ],
    }


class AnalyticsService:
    """Read-side aggregation queries for the dashboard."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def period_start(days: int) -> datetime:
        return datetime.now(timezone.utc) - timedelta(days=days)

    async def _review_rows(self, days: int) -> list[tuple[int, datetime]]:
        result = await self.db.execute(
            select(Review.rating, Review.created_at).where(
                Review.created_at >= self.period_start(days)
            )
        )
        return [(row[0], row[1]) for row in result.all()]

    async def _count_events(self, metric_type: MetricType, days: int) -> int:
        return (
            await self.db.execute(
                select(func.count(AnalyticsEvent.id)).where(
                    AnalyticsEvent.metric_type == metric_type,
                    AnalyticsEvent.created_at >= self.period_start(days),
                )
            )
        ).scalar() or 0

    async def overview(self, days: int) -> dict[str, Any]:
        """Headline numbers, daily trend and rating distribution."""
        rows = await self._review_rows(days)
        summary = summarize_ratings(r for r, _ in rows)
        internal_feedback = await self._count_events(MetricType.INTERNAL_FEEDBACK, days)

        return {
            "period": days,
            "metrics": {
                "total_reviews": summary.total,
                "positive_reviews": summary.positive,
                "internal_feedback": internal_feedback,
                "conversion_rate": summary.conversion_rate,
            },
            "trends": daily_review_counts(rows, days),
            "rating_distribution": summary.distribution,
        }

    async def metrics(self, days: int) -> dict[str, Any]:
        """Average rating and distribution, computed in SQL."""
        stats = (
            await self.db.execute(
                select(func.avg(Review.rating), func.count(Review.id)).where(
                    Review.created_at >= self.period_start(days)
                )
            )
        ).one()
        total = stats[1] or 0

        result = await self.db.execute(
            select(Review.rating, func.count())
            .where(Review.created_at >= self.period_start(days))
            .group_by(Review.rating)
        )
        counts = {row[0]: row[1] for row in result.all()}
        summary = RatingSummary(
            total=total,
            average=round(float(stats[0]), 2) if stats[0] is not None else 0.0,
            positive=sum(c for r, c in counts.items() if is_public_rating(r)),
            negative=sum(c for r, c in counts.items() if not is_public_rating(r)),
            distribution={r: counts.get(r, 0) for r in RATINGS},
        )

        recent = await self._review_rows(min(days, 7))
        return {
            "total_reviews": summary.total,
            "average_rating": summary.average,
            "positive_reviews": summary.positive,
            "rating_distribution": summary.buckets(),
            "daily_trends": daily_average_ratings(recent, 7),
            "period": days,
        }

    async def trends(self, days: int, granularity: Granularity) -> dict[str, Any]:
        rows = await self._review_rows(days)
        data = build_trends(rows, granularity)
        return {
            "data": data,
            "summary": {
                "total_reviews": len(rows),
                "review_growth": growth_rate(data),
                "period": days,
                "granularity": granularity,
            },
        }

    async def link_stats(self, days: int) -> dict[str, Any]:
        result = await self.db.execute(
            select(AnalyticsEvent.event_metadata, AnalyticsEvent.created_at).where(
                AnalyticsEvent.metric_type == MetricType.LINK_CLICK,
                AnalyticsEvent.created_at >= self.period_start(days),
            )
        )
        return link_click_stats(((row[0], row[1]) for row in result.all()), days)

    async def export_rows(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Review]:
        query = select(Review).order_by(Review.created_at.desc())
        if start:
            query = query.where(Review.created_at >= start)
        if end:
            query = query.where(Review.created_at <= end)
        result = await self.db.execute(query)
        return list(result.scalars().all())
