"""QR code, share link and link tracking endpoints."""

from datetime import datetime, timedelta, timezone
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_analytics_recorder, get_current_user, get_db
from app.models.analytics import MetricType
from app.models.link_tracking import LinkType
from app.schemas.analytics import LinkTrackingCreate, LinkTrackingStatsResponse
from app.schemas.sharing import (
    QRCodeDetail,
    QRCodeRequest,
    QRCodeResponse,
    QRGenerateRequest,
    QRGenerateResponse,
    ShareDetail,
    SharePlatform,
    ShareRequest,
    ShareResponse,
)
from app.services.analytics import AnalyticsRecorder
from app.services.app_settings import SettingsStore
from app.services.rate_limiter import rate_limit
from app.services.sharing import (
    QR_SIZES,
    LinkTrackingService,
    build_share_url,
    default_share_message,
    generate_qr,
    link_type_for_platform,
    review_url,
)

router = APIRouter()
logger = logging.getLogger(__name__)

qr_limit = rate_limit("qr:post", limit=20, window_seconds=60)


async def _business_name(db: AsyncSession):
    app_settings = await SettingsStore(db).get()
    return app_settings.name if app_settings else None


@router.post(
    "/qr-generate",
    response_model=QRGenerateResponse,
    dependencies=[Depends(qr_limit)],
)
async def qr_generate(
    payload: QRGenerateRequest,
    db: AsyncSession = Depends(get_db),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
) -> QRGenerateResponse:
    """Public QR code for the review page."""
    url = review_url(LinkType.QR_CODE.value if payload.include_tracking else None)
    size_px = QR_SIZES[payload.size]
    qr_code = generate_qr(url, size_px, "png")

    await LinkTrackingService(db).track_quietly(
        LinkType.QR_CODE, url, {"size": payload.size, "source": "public"}
    )
    await recorder.record(MetricType.QR_GENERATED, metadata={"size": size_px})

    return QRGenerateResponse(
        qr_code=qr_code,
        url=url,
        business_name=await _business_name(db),
        size=payload.size,
    )


@router.post("/sharing/qr-code", response_model=QRCodeResponse)
async def create_qr_code(
    payload: QRCodeRequest,
    db: AsyncSession = Depends(get_db),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
    _: str = Depends(get_current_user),
) -> QRCodeResponse:
    """Owner QR code with a pixel size and output format."""
    url = review_url()
    data = generate_qr(url, payload.size, payload.format)

    await LinkTrackingService(db).track_quietly(
        LinkType.QR_CODE,
        url,
        {
            "size": payload.size,
            "format": payload.format,
            "include_logo": payload.include_logo,
        },
    )
    await recorder.record(
        MetricType.QR_GENERATED,
        metadata={"size": payload.size, "format": payload.format},
    )

    return QRCodeResponse(
        qr_code=QRCodeDetail(
            data=data,
            url=url,
            business_name=await _business_name(db),
            format=payload.format,
            size=payload.size,
        )
    )


@router.post("/share/{platform}", response_model=ShareResponse)
async def create_share_link(
    platform: SharePlatform,
    payload: ShareRequest,
    db: AsyncSession = Depends(get_db),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
    _: str = Depends(get_current_user),
) -> ShareResponse:
    """Build a platform share link for the review page."""
    business_name = await _business_name(db)
    url = review_url(platform.value)
    message = payload.custom_message or default_share_message(business_name, url)
    share_url = build_share_url(platform, message, url, business_name)

    await LinkTrackingService(db).track_quietly(
        link_type_for_platform(platform),
        share_url,
        {
            "platform": platform.value,
            "review_url": url,
            "share_message": message,
            "custom_message": bool(payload.custom_message),
        },
    )
    await recorder.record(MetricType.SHARE_CREATED, metadata={"platform": platform.value})
    logger.info(f"Created {platform.value} share link")

    return ShareResponse(
        share=ShareDetail(
            platform=platform,
            url=share_url,
            message=message,
            business_name=business_name,
        )
    )


@router.post("/sharing/link-tracking")
async def create_link_tracking(
    payload: LinkTrackingCreate,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> dict:
    """Record a review link distributed outside the app."""
    record = await LinkTrackingService(db).track(
        payload.link_type, payload.link_url, payload.metadata
    )
    return {"success": True, "id": record.id}


@router.get("/sharing/link-tracking", response_model=LinkTrackingStatsResponse)
async def get_link_tracking(
    period: int = Query(30, ge=1, le=365, description="Look-back window in days"),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> LinkTrackingStatsResponse:
    """Tracked links by type, with the most recent records."""
    since = datetime.now(timezone.utc) - timedelta(days=period)
    stats = await LinkTrackingService(db).stats(since)
    return LinkTrackingStatsResponse(tracking=stats)
