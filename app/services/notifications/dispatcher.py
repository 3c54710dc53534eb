"""Send notifications and log every attempt."""

from typing import Awaitable, Callable, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.models.app_settings import SINGLETON_ID, AppSettings
from app.models.email_log import EmailKind, EmailLog, EmailPriority, EmailStatus
from app.models.review import Review
from app.services.notifications.email import EmailDeliveryError, EmailResult, send_email
from app.services.notifications.messages import (
    Message,
    build_low_rating_alert,
    build_new_review_notice,
    is_low_rating,
)

logger = logging.getLogger(__name__)
settings = get_settings()

Transport = Callable[..., Awaitable[EmailResult]]


class NotificationDispatcher:
    """Deliver notification e-mails without ever blocking the caller.

    Each attempt is written to ``email_logs`` with its delivery status.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        transport: Optional[Transport] = None,
    ) -> None:
        self._session_factory = session_factory
        self._transport = transport or send_email

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        kind: EmailKind = EmailKind.NEW_REVIEW,
        priority: EmailPriority = EmailPriority.NORMAL,
    ) -> bool:
        """Send one message.

        Returns:
            True if the provider accepted the message
        """
        error: Optional[str] = None
        message_id: Optional[str] = None
        try:
            result = await self._transport(
                to,
                subject,
                html_body,
                text_body,
                high_priority=priority == EmailPriority.HIGH,
            )
            status = EmailStatus.SENT if result.success else EmailStatus.FAILED
            error = result.error
            message_id = result.message_id
            if not result.success:
                logger.warning(f"Email '{subject}' to {to} failed: {error}")
        except EmailDeliveryError as e:
            status = EmailStatus.SKIPPED
            error = e.message
            logger.info(f"Email '{subject}' not sent: {e.message}")
        except Exception as e:
            status = EmailStatus.FAILED
            error = str(e)
            logger.error(f"Email '{subject}' to {to} failed: {e}", exc_info=True)

        await self._log(to, subject, kind, priority, status, error, message_id)
        return status == EmailStatus.SENT

    async def send_message(self, to: str, message: Message) -> bool:
        return await self.send(
            to,
            message.subject,
            message.html_body,
            message.text_body,
            kind=message.kind,
            priority=message.priority,
        )

    async def _log(
        self,
        to: str,
        subject: str,
        kind: EmailKind,
        priority: EmailPriority,
        status: EmailStatus,
        error: Optional[str],
        message_id: Optional[str],
    ) -> None:
        try:
            async with self._session_factory() as session:
                session.add(
                    EmailLog(
                        to_email=to,
                        subject=subject[:255],
                        kind=kind,
                        priority=priority,
                        status=status,
                        error=error,
                        provider_message_id=message_id,
                    )
                )
                await session.commit()
        except Exception:
            logger.exception(f"Failed to log email delivery for '{subject}'")

    async def notify_review_created(self, review: Review) -> list[EmailKind]:
        """Send the new-review notice and, for ratings <= 2, a low-rating alert.

        Returns:
            Kinds of messages that were accepted by the provider
        """
        try:
            async with self._session_factory() as session:
                app_settings = await session.get(AppSettings, SINGLETON_ID)
        except Exception:
            logger.exception("Could not load notification settings")
            return []

        if app_settings is None or not app_settings.notification_email:
            logger.debug("No notification email configured; skipping review notices")
            return []

        business_name = app_settings.name or settings.APP_NAME
        review_url = f"{settings.base_url}/api/v1/reviews/{review.id}"
        sent: list[EmailKind] = []

        if app_settings.notify_new_reviews:
            message = build_new_review_notice(
                business_name, review.customer_name, review.rating, review.comment, review_url
            )
            if await self.send_message(app_settings.notification_email, message):
                sent.append(message.kind)

        if app_settings.notify_low_ratings and is_low_rating(review.rating):
            message = build_low_rating_alert(
                business_name, review.customer_name, review.rating, review.comment, review_url
            )
            if await self.send_message(app_settings.notification_email, message):
                sent.append(message.kind)

        return sent
