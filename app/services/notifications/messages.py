"""Notification message composers (subject, HTML and plain text)."""

from dataclasses import dataclass, field
from html import escape
from typing import Optional

from app.models.email_log import EmailKind, EmailPriority

LOW_RATING_THRESHOLD = 2


@dataclass
class Message:
    """A composed notification ready for the dispatcher."""

    kind: EmailKind
    subject: str
    html_body: str
    text_body: str
    priority: EmailPriority = EmailPriority.NORMAL


@dataclass
class DigestReview:
    customer_name: str
    rating: int
    comment: Optional[str] = None


@dataclass
class DigestData:
    """Numbers for the weekly summary."""

    business_name: str
    total_reviews: int
    average_rating: float
    new_reviews: int
    low_rating_reviews: int
    internal_feedback: int
    report_url: str
    recent_reviews: list[DigestReview] = field(default_factory=list)


def is_low_rating(rating: int) -> bool:
    """Ratings of 1 and 2 trigger a priority alert."""
    return rating <= LOW_RATING_THRESHOLD


def stars(rating: int) -> str:
    return "★" * rating + "☆" * (5 - rating)


def _wrap_html(title: str, header_color: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(title)}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #f4f4f4; font-family: Arial, sans-serif; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px; background-color: #ffffff;">
        <div style="background: {header_color}; padding: 20px; border-radius: 8px; margin-bottom: 20px;">
            <h2 style="margin: 0;">{escape(title)}</h2>
        </div>
        {body}
        <p style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #e9ecef; font-size: 12px; color: #6c757d;">
            Sent by your review management system. Notification preferences can be changed from the dashboard settings.
        </p>
    </div>
</body>
</html>"""


def build_new_review_notice(
    business_name: str,
    customer_name: str,
    rating: int,
    comment: Optional[str],
    review_url: str,
) -> Message:
    """Notice for every new review."""
    subject = f"New {rating}-Star Review for {business_name}"

    comment_html = (
        f'<p style="font-style: italic;">"{escape(comment)}"</p>' if comment else ""
    )
    body = f"""
        <p><strong>{escape(customer_name)}</strong> left a review:</p>
        <p style="font-size: 20px; color: #f39c12;">{stars(rating)} ({rating}/5)</p>
        {comment_html}
        <p><a href="{escape(review_url)}">View in dashboard</a></p>"""

    text = f"""New {rating}-star review for {business_name}

Customer: {customer_name}
Rating: {rating}/5
{f'Comment: "{comment}"' if comment else ''}

View in dashboard: {review_url}
"""
    return Message(
        kind=EmailKind.NEW_REVIEW,
        subject=subject,
        html_body=_wrap_html(subject, "#e8f5e9", body),
        text_body=text,
    )


def build_low_rating_alert(
    business_name: str,
    customer_name: str,
    rating: int,
    comment: Optional[str],
    review_url: str,
) -> Message:
    """Priority alert for ratings of 2 or less."""
    subject = f"Low Rating Alert: {rating}-Star Review for {business_name}"

    comment_html = (
        f'<p style="font-style: italic;">"{escape(comment)}"</p>' if comment else ""
    )
    body = f"""
        <p><strong>{escape(customer_name)}</strong> rated their experience
        <span style="color: #c0392b; font-weight: bold;">{rating}/5</span>.</p>
        {comment_html}
        <p>The customer was routed to the private feedback form. Following up quickly
        is the best way to recover the relationship.</p>
        <p><a href="{escape(review_url)}">Review details</a></p>"""

    text = f"""LOW RATING ALERT for {business_name}

Customer: {customer_name}
Rating: {rating}/5
{f'Comment: "{comment}"' if comment else ''}

Review details: {review_url}
"""
    return Message(
        kind=EmailKind.LOW_RATING_ALERT,
        subject=subject,
        html_body=_wrap_html(subject, "#fdecea", body),
        text_body=text,
        priority=EmailPriority.HIGH,
    )


def build_weekly_digest(data: DigestData) -> Message:
    """Weekly summary of reviews and feedback."""
    subject = f"Weekly Review Summary for {data.business_name}"

    reviews_html = "".join(
        f"""
        <div style="border: 1px solid #e9ecef; padding: 10px; border-radius: 8px; margin: 8px 0;">
            <strong>{escape(r.customer_name)}</strong> - <span style="color: #f39c12;">{stars(r.rating)}</span>
            {f'<p>{escape(r.comment)}</p>' if r.comment else ''}
        </div>"""
        for r in data.recent_reviews
    )
    body = f"""
        <table role="presentation" width="100%" cellspacing="0" cellpadding="8">
            <tr><td>Total reviews</td><td><strong>{data.total_reviews}</strong></td></tr>
            <tr><td>Average rating</td><td><strong>{data.average_rating:.1f}</strong></td></tr>
            <tr><td>New this week</td><td><strong>{data.new_reviews}</strong></td></tr>
            <tr><td>Low ratings</td><td><strong>{data.low_rating_reviews}</strong></td></tr>
            <tr><td>Private feedback</td><td><strong>{data.internal_feedback}</strong></td></tr>
        </table>
        {'<h3>Recent Reviews</h3>' + reviews_html if data.recent_reviews else ''}
        <p><a href="{escape(data.report_url)}">View full report</a></p>"""

    recent_text = "\n".join(
        f"- {r.customer_name}: {r.rating}/5" + (f' "{r.comment}"' if r.comment else "")
        for r in data.recent_reviews
    )
    text = f"""Weekly Review Summary for {data.business_name}

Total Reviews: {data.total_reviews}
Average Rating: {data.average_rating:.1f}/5
New Reviews This Week: {data.new_reviews}
Low Rating Reviews: {data.low_rating_reviews}
Private Feedback: {data.internal_feedback}
{f'''
Recent Reviews:
{recent_text}
''' if recent_text else ''}
View full report: {data.report_url}
"""
    return Message(
        kind=EmailKind.WEEKLY_DIGEST,
        subject=subject,
        html_body=_wrap_html(subject, "#e3f2fd", body),
        text_body=text,
    )
