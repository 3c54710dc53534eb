"""Review link sharing: share URLs, QR codes, sitemap and robots.txt."""

import base64
from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Optional
from urllib.parse import quote, urlencode
import logging

import qrcode
import qrcode.image.svg
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import UpstreamFailure
from app.models.link_tracking import DEFAULT_BUSINESS_ID, LinkTracking, LinkType
from app.schemas.sharing import SharePlatform

logger = logging.getLogger(__name__)
settings = get_settings()

REVIEW_PATH = "/review"

QR_SIZES = {
    "small": 128,
    "medium": 256,
    "large": 512,
}
QR_BORDER = 2


def review_url(source: Optional[str] = None, base_url: Optional[str] = None) -> str:
    """Public review form URL, optionally tagged with a traffic source."""
    url = f"{(base_url or settings.base_url)}{REVIEW_PATH}"
    if source:
        url = f"{url}?{urlencode({'source': source})}"
    return url


def default_share_message(business_name: Optional[str], url: str) -> str:
    name = business_name or "us"
    return f"Please share your experience with {name}: {url}"


def build_share_url(
    platform: SharePlatform,
    message: str,
    url: str,
    business_name: Optional[str] = None,
) -> str:
    """Platform-specific share link for a review URL."""
    encoded_message = quote(message, safe="")
    encoded_url = quote(url, safe="")

    if platform == SharePlatform.WHATSAPP:
        return f"https://wa.me/?text={encoded_message}"
    if platform == SharePlatform.EMAIL:
        subject = quote(f"Share your experience with {business_name or 'us'}", safe="")
        return f"mailto:?subject={subject}&body={encoded_message}"
    if platform == SharePlatform.SMS:
        return f"sms:?body={encoded_message}"
    if platform == SharePlatform.FACEBOOK:
        return f"https://www.facebook.com/sharer/sharer.php?u={encoded_url}"
    if platform == SharePlatform.TWITTER:
        return f"https://twitter.com/intent/tweet?text={encoded_message}"
    if platform == SharePlatform.LINKEDIN:
        return f"https://www.linkedin.com/sharing/share-offsite/?url={encoded_url}"
    raise ValueError(f"Unsupported platform: {platform}")


def link_type_for_platform(platform: SharePlatform) -> LinkType:
    return LinkType.EMAIL if platform == SharePlatform.EMAIL else LinkType.SOCIAL


def _make_qr(data: str, size_px: int) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        border=QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    # Pick the box size that gets closest to the requested pixel width
    qr.box_size = max(1, size_px // (qr.modules_count + 2 * QR_BORDER))
    return qr


def generate_qr_png(data: str, size_px: int) -> bytes:
    """Render a QR code as PNG bytes."""
    img = _make_qr(data, size_px).make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_qr_data_url(data: str, size_px: int) -> str:
    """Render a QR code as a ``data:image/png;base64`` URL."""
    encoded = base64.b64encode(generate_qr_png(data, size_px)).decode()
    return f"data:image/png;base64,{encoded}"


def generate_qr_svg(data: str, size_px: int) -> str:
    img = _make_qr(data, size_px).make_image(image_factory=qrcode.image.svg.SvgPathImage)
    svg = img.to_string()
    return svg.decode("utf-8") if isinstance(svg, bytes) else svg


def generate_qr(data: str, size_px: int, fmt: str = "png") -> str:
    """QR code in the requested format (png/base64 -> data URL, svg -> markup)."""
    if fmt == "svg":
        return generate_qr_svg(data, size_px)
    return generate_qr_data_url(data, size_px)


def build_sitemap(base_url: str, lastmod: Optional[datetime] = None) -> str:
    """Sitemap XML for the public pages."""
    now = datetime.now(timezone.utc).isoformat()
    review_lastmod = (lastmod or datetime.now(timezone.utc)).isoformat()
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url>
    <loc>{base_url}</loc>
    <lastmod>{now}</lastmod>
    <changefreq>daily</changefreq>
    <priority>1.0</priority>
  </url>
  <url>
    <loc>{base_url}{REVIEW_PATH}</loc>
    <lastmod>{review_lastmod}</lastmod>
    <changefreq>weekly</changefreq>
    <priority>0.8</priority>
  </url>
</urlset>"""


def build_robots(base_url: str) -> str:
    return f"""User-agent: *
Allow: /
Disallow: /dashboard/
Disallow: /api/
Disallow: /admin/

Sitemap: {base_url}/sitemap.xml"""


class LinkTrackingService:
    """Store and summarize distributed review links."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def track(
        self,
        link_type: LinkType,
        link_url: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> LinkTracking:
        record = LinkTracking(
            business_id=DEFAULT_BUSINESS_ID,
            link_type=link_type,
            link_url=link_url,
            link_metadata=dict(metadata or {}),
        )
        self.db.add(record)
        try:
            await self.db.commit()
            await self.db.refresh(record)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Link tracking insert failed: {e}", exc_info=True)
            raise UpstreamFailure("Failed to record link")
        return record

    async def track_quietly(
        self,
        link_type: LinkType,
        link_url: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[LinkTracking]:
        """Like :meth:`track`, but a failed insert is logged and dropped.

        Used where tracking is a side effect of generating a QR code or
        share link, which must still be returned.
        """
        try:
            return await self.track(link_type, link_url, metadata)
        except UpstreamFailure:
            return None

    async def stats(self, since: datetime, recent_limit: int = 20) -> dict[str, Any]:
        result = await self.db.execute(
            select(LinkTracking.link_type, func.count())
            .where(LinkTracking.created_at >= since)
            .group_by(LinkTracking.link_type)
        )
        by_type = {row[0].value: row[1] for row in result.all()}

        result = await self.db.execute(
            select(LinkTracking)
            .where(LinkTracking.created_at >= since)
            .order_by(LinkTracking.created_at.desc())
            .limit(recent_limit)
        )
        recent = [
            {
                "id": record.id,
                "link_type": record.link_type.value,
                "link_url": record.link_url,
                "metadata": record.link_metadata,
                "created_at": record.created_at.isoformat(),
            }
            for record in result.scalars().all()
        ]
        return {"total": sum(by_type.values()), "by_type": by_type, "recent": recent}
