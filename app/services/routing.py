"""Rating-based routing: who goes to the public review platform."""

from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import urlencode

from app.core.exceptions import ConfigurationMissing

PUBLIC_RATING_THRESHOLD = 4

FEEDBACK_PATH = "/feedback"

MISSING_REDIRECT_MESSAGE = (
    "Google Business Profile URL is not configured. "
    "Please contact the business owner."
)


@dataclass(frozen=True)
class RoutingDecision:
    """Where to send a customer after their review is stored."""

    destination: Literal["external", "internal"]
    url: str
    message: str
    is_public: bool


def is_public_rating(rating: int) -> bool:
    """Ratings of 4 and 5 are published; 1-3 stay private."""
    return rating >= PUBLIC_RATING_THRESHOLD


def feedback_url(review_id: Optional[str]) -> str:
    """Internal feedback route carrying the review id as correlation token."""
    if not review_id:
        return FEEDBACK_PATH
    return f"{FEEDBACK_PATH}?{urlencode({'review_id': review_id})}"


def decide_route(
    rating: int,
    review_id: Optional[str],
    redirect_url: Optional[str],
) -> RoutingDecision:
    """Decide the post-submission destination for a stored review.

    Args:
        rating: Validated rating in 1..5
        review_id: Id of the review just created
        redirect_url: Configured external review platform URL, if any

    Returns:
        RoutingDecision for the client to follow

    Raises:
        ConfigurationMissing: High rating but no redirect target configured.
            The customer must not be sent to a blank or default URL.
    """
    if is_public_rating(rating):
        target = (redirect_url or "").strip()
        if not target:
            raise ConfigurationMissing(MISSING_REDIRECT_MESSAGE)
        return RoutingDecision(
            destination="external",
            url=target,
            message="Thank you! Redirecting you to share your review publicly...",
            is_public=True,
        )

    return RoutingDecision(
        destination="internal",
        url=feedback_url(review_id),
        message="Thank you for your feedback. Please tell us how we can improve...",
        is_public=False,
    )
