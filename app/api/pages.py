"""Public review funnel HTML routes."""

from pathlib import Path
from typing import Any, Optional
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    get_analytics_recorder,
    get_db,
    get_notification_dispatcher,
    request_context,
)
from app.config import get_settings
from app.core.exceptions import AppError, RateLimitExceeded
from app.schemas.feedback import FeedbackCreate, IssueCategory
from app.schemas.review import ReviewCreate
from app.services.analytics import AnalyticsRecorder
from app.services.app_settings import SettingsStore
from app.services.feedback import FeedbackService
from app.services.funnel import ReviewFunnel
from app.services.notifications import NotificationDispatcher
from app.services.rate_limiter import (
    FixedWindowRateLimiter,
    client_identifier,
    enforce_rate_limit,
    get_rate_limiter,
)
from app.services.reviews import ReviewService
from app.services.routing import decide_route

router = pages_router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


def validation_message(exc: ValidationError) -> str:
    """First validation error as a single readable line."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    label = field.replace("_", " ").capitalize() if field else "Input"
    return f"{label}: {error['msg']}"


def _form_values(form) -> dict[str, Any]:
    return {key: value for key, value in form.items() if isinstance(value, str)}


@router.get("/", include_in_schema=False)
async def root() -> Response:
    return RedirectResponse(url="/review")


@router.get("/review", response_class=HTMLResponse)
async def review_page(
    request: Request,
    source: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Review form."""
    branding = await SettingsStore(db).public_branding()
    return templates.TemplateResponse(
        request,
        "review.html",
        {"branding": branding, "values": {"source": source or ""}, "error": None},
    )


@router.post("/review", response_class=HTMLResponse)
async def submit_review_form(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> Response:
    """Store the review, then show the redirecting page.

    Errors re-render the form with the entered values and no redirect.
    """
    values = _form_values(await request.form())
    funnel = ReviewFunnel()
    funnel.submit()
    status_code = status.HTTP_400_BAD_REQUEST
    headers: dict[str, str] = {}

    try:
        enforce_rate_limit(limiter, request, "reviews:post", 10, 60)
        payload = ReviewCreate.model_validate(values)

        context = request_context(request)
        context["source"] = values.get("source") or context["source"]
        review = await ReviewService(db, recorder).submit(payload, context)
        background_tasks.add_task(dispatcher.notify_review_created, review)

        redirect_url = await SettingsStore(db).redirect_url()
        funnel.succeed(decide_route(review.rating, review.id, redirect_url))
    except ValidationError as e:
        funnel.fail(validation_message(e))
    except RateLimitExceeded as e:
        status_code = e.status_code
        headers["Retry-After"] = str(e.retry_after)
        funnel.fail(e.message)
    except AppError as e:
        status_code = e.status_code
        funnel.fail(e.message)

    if funnel.error:
        logger.info(f"Review form rejected: {funnel.error}")
        branding = await SettingsStore(db).public_branding()
        return templates.TemplateResponse(
            request,
            "review.html",
            {"branding": branding, "values": values, "error": funnel.error},
            status_code=status_code,
            headers=headers,
        )

    message = funnel.decision.message
    target = funnel.redirect()
    return templates.TemplateResponse(
        request,
        "redirecting.html",
        {
            "message": message,
            "target": target,
            "external": funnel.decision.destination == "external",
            "delay": settings.REDIRECT_DELAY_SECONDS,
        },
    )


@router.get("/feedback", response_class=HTMLResponse)
async def feedback_page(
    request: Request,
    review_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Detailed feedback form following a low rating."""
    branding = await SettingsStore(db).public_branding()
    return templates.TemplateResponse(
        request,
        "feedback.html",
        {
            "branding": branding,
            "categories": list(IssueCategory),
            "values": {"review_id": review_id or ""},
            "error": None,
        },
    )


@router.post("/feedback", response_class=HTMLResponse)
async def submit_feedback_form(
    request: Request,
    db: AsyncSession = Depends(get_db),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> Response:
    values = _form_values(await request.form())
    data = dict(values, allow_follow_up=values.get("allow_follow_up") in ("on", "true", "1"))
    status_code = status.HTTP_400_BAD_REQUEST

    try:
        enforce_rate_limit(
            limiter,
            request,
            "feedback:post",
            5,
            60,
            "Too many feedback submissions. Please try again later.",
        )
        payload = FeedbackCreate.model_validate(data)
        await FeedbackService(db).submit(
            payload,
            user_agent=request.headers.get("user-agent"),
            ip_address=client_identifier(request),
        )
    except ValidationError as e:
        error = validation_message(e)
    except AppError as e:
        status_code = e.status_code
        error = e.message
    else:
        branding = await SettingsStore(db).public_branding()
        return templates.TemplateResponse(
            request, "feedback_thanks.html", {"branding": branding}
        )

    branding = await SettingsStore(db).public_branding()
    return templates.TemplateResponse(
        request,
        "feedback.html",
        {
            "branding": branding,
            "categories": list(IssueCategory),
            "values": values,
            "error": error,
        },
        status_code=status_code,
    )
