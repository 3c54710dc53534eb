"""Database models package."""

from app.models.base import Base
from app.models.operator import Operator
from app.models.review import Review
from app.models.analytics import AnalyticsEvent, MetricType
from app.models.app_settings import AppSettings, SINGLETON_ID, SingletonViolation
from app.models.link_tracking import LinkTracking, LinkType, DEFAULT_BUSINESS_ID
from app.models.email_log import EmailLog, EmailKind, EmailPriority, EmailStatus

__all__ = [
    "Base",
    "Operator",
    "Review",
    "AnalyticsEvent",
    "MetricType",
    "AppSettings",
    "SINGLETON_ID",
    "SingletonViolation",
    "LinkTracking",
    "LinkType",
    "DEFAULT_BUSINESS_ID",
    "EmailLog",
    "EmailKind",
    "EmailPriority",
    "EmailStatus",
]
