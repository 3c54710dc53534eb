import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from app.models import AnalyticsEvent, EmailKind, EmailLog, EmailPriority, EmailStatus, MetricType, Review
from app.services.notifications import (
    EmailDeliveryError,
    EmailResult,
    NotificationDispatcher,
    build_low_rating_alert,
    build_new_review_notice,
    collect_digest_data,
    send_email,
    send_weekly_digest,
)
from app.services.notifications.scheduler import (
    is_scheduler_running,
    start_scheduler,
    stop_scheduler,
)


class FakeTransport:
    """Records messages instead of calling SendGrid."""

    def __init__(self, result=None, error=None) -> None:
        self.sent = []
        self.result = result or EmailResult(success=True, message_id="msg-1")
        self.error = error

    async def __call__(self, to_email, subject, html_content, plain_content, high_priority=False):
        if self.error:
            raise self.error
        self.sent.append(
            {"to": to_email, "subject": subject, "html": html_content, "high_priority": high_priority}
        )
        return self.result


def _email_logs(session_factory):
    async def _query():
        async with session_factory() as session:
            result = await session.execute(select(EmailLog).order_by(EmailLog.id))
            return list(result.scalars().all())

    return asyncio.run(_query())


def _review(rating: int, comment=None) -> Review:
    return Review(
        id="4b3f1c2e-8a4d-4c1e-9f2a-0d6b5e7c8a91",
        customer_name="Ana <script>",
        rating=rating,
        comment=comment,
        is_public=rating >= 4,
    )


def test_low_rating_alert_is_high_priority() -> None:
    message = build_low_rating_alert("Bistro", "Ana", 1, "Cold food", "https://x/r/1")

    assert message.kind == EmailKind.LOW_RATING_ALERT
    assert message.priority == EmailPriority.HIGH
    assert "Low Rating Alert" in message.subject


def test_messages_escape_customer_input() -> None:
    message = build_new_review_notice("Bistro", "<b>Ana</b>", 5, "<img src=x>", "https://x/r/1")

    assert "<b>Ana</b>" not in message.html_body
    assert "&lt;b&gt;Ana&lt;/b&gt;" in message.html_body
    assert "<img src=x>" not in message.html_body
    assert "<b>Ana</b>" in message.text_body


def test_send_logs_successful_delivery(session_factory) -> None:
    transport = FakeTransport()
    dispatcher = NotificationDispatcher(session_factory, transport=transport)

    sent = asyncio.run(dispatcher.send("owner@example.com", "Hello", "<p>Hi</p>", "Hi"))

    assert sent is True
    logs = _email_logs(session_factory)
    assert [(log.status, log.provider_message_id) for log in logs] == [(EmailStatus.SENT, "msg-1")]


def test_send_never_raises(session_factory) -> None:
    dispatcher = NotificationDispatcher(session_factory, transport=FakeTransport(error=RuntimeError("boom")))

    assert asyncio.run(dispatcher.send("owner@example.com", "Hello", "<p>Hi</p>", "Hi")) is False

    log = _email_logs(session_factory)[0]
    assert log.status == EmailStatus.FAILED
    assert log.error == "boom"


def test_unconfigured_transport_is_skipped(session_factory) -> None:
    dispatcher = NotificationDispatcher(
        session_factory, transport=FakeTransport(error=EmailDeliveryError("SendGrid API key not configured"))
    )

    asyncio.run(dispatcher.send("owner@example.com", "Hello", "<p>Hi</p>", "Hi"))

    assert _email_logs(session_factory)[0].status == EmailStatus.SKIPPED


def test_provider_rejection_is_failed(session_factory) -> None:
    transport = FakeTransport(result=EmailResult(success=False, error="SendGrid API error: 400"))
    dispatcher = NotificationDispatcher(session_factory, transport=transport)

    assert asyncio.run(dispatcher.send("owner@example.com", "Hello", "<p>Hi</p>", "Hi")) is False
    assert _email_logs(session_factory)[0].status == EmailStatus.FAILED


def test_send_email_requires_api_key() -> None:
    with pytest.raises(EmailDeliveryError, match="not configured"):
        asyncio.run(send_email("owner@example.com", "Hello", "<p>Hi</p>", "Hi"))


def test_review_notices_follow_settings(session_factory, configure_settings) -> None:
    transport = FakeTransport()
    dispatcher = NotificationDispatcher(session_factory, transport=transport)

    # No notification email: nothing is sent
    assert asyncio.run(dispatcher.notify_review_created(_review(1))) == []

    configure_settings(name="Bistro", notification_email="owner@example.com")
    kinds = asyncio.run(dispatcher.notify_review_created(_review(1, "Cold")))

    assert kinds == [EmailKind.NEW_REVIEW, EmailKind.LOW_RATING_ALERT]
    assert transport.sent[1]["high_priority"] is True
    assert "/api/v1/reviews/4b3f1c2e-8a4d-4c1e-9f2a-0d6b5e7c8a91" in transport.sent[0]["html"]


def test_rating_three_gets_no_alert(session_factory, configure_settings) -> None:
    configure_settings(notification_email="owner@example.com")
    dispatcher = NotificationDispatcher(session_factory, transport=FakeTransport())

    assert asyncio.run(dispatcher.notify_review_created(_review(3))) == [EmailKind.NEW_REVIEW]


def test_notification_flags_disable_messages(session_factory, configure_settings) -> None:
    configure_settings(
        notification_email="owner@example.com",
        notify_new_reviews=False,
        notify_low_ratings=False,
    )
    transport = FakeTransport()
    dispatcher = NotificationDispatcher(session_factory, transport=transport)

    assert asyncio.run(dispatcher.notify_review_created(_review(1))) == []
    assert transport.sent == []


def _seed_week(session_factory) -> None:
    now = datetime.now(timezone.utc)

    async def _insert() -> None:
        async with session_factory() as session:
            for rating in (5, 4, 1):
                session.add(Review(customer_name="Guest", rating=rating, is_public=rating >= 4, created_at=now))
            session.add(
                Review(customer_name="Old", rating=2, is_public=False, created_at=now - timedelta(days=30))
            )
            session.add(AnalyticsEvent(metric_type=MetricType.INTERNAL_FEEDBACK, event_metadata={}))
            await session.commit()

    asyncio.run(_insert())


def test_collect_digest_data(session_factory) -> None:
    _seed_week(session_factory)

    async def _collect():
        async with session_factory() as session:
            return await collect_digest_data(session, "Bistro")

    data = asyncio.run(_collect())

    assert data.total_reviews == 4
    assert data.average_rating == 3.0
    assert data.new_reviews == 3
    assert data.low_rating_reviews == 1
    assert data.internal_feedback == 1
    assert len(data.recent_reviews) == 3


def test_weekly_digest_respects_opt_in(session_factory, configure_settings) -> None:
    _seed_week(session_factory)
    transport = FakeTransport()
    dispatcher = NotificationDispatcher(session_factory, transport=transport)

    configure_settings(notification_email="owner@example.com", weekly_digest=False)
    assert asyncio.run(send_weekly_digest(session_factory, dispatcher)) is False

    configure_settings(weekly_digest=True)
    assert asyncio.run(send_weekly_digest(session_factory, dispatcher)) is True
    assert transport.sent[0]["subject"].startswith("Weekly Review Summary")
    assert _email_logs(session_factory)[0].kind == EmailKind.WEEKLY_DIGEST


def test_scheduler_start_and_stop() -> None:
    async def _run() -> None:
        start_scheduler()
        assert is_scheduler_running()
        stop_scheduler()

    asyncio.run(_run())
    assert not is_scheduler_running()
