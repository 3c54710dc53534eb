"""App settings and logo upload endpoints."""

from pathlib import Path
import logging
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.config import get_settings
from app.schemas.app_settings import (
    AppSettingsDetail,
    AppSettingsResponse,
    AppSettingsUpdate,
    LogoUploadResponse,
    PublicBrandingResponse,
)
from app.services.app_settings import SettingsStore
from app.services.rate_limiter import rate_limit

router = APIRouter()
upload_router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()

LOGO_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/svg+xml": ".svg",
}

logo_limit = rate_limit("upload:logo", limit=10, window_seconds=60)


def _response(app_settings) -> AppSettingsResponse:
    if app_settings is None:
        return AppSettingsResponse(configured=False, settings=None)
    return AppSettingsResponse(
        configured=True, settings=AppSettingsDetail.model_validate(app_settings)
    )


@router.get("", response_model=AppSettingsResponse)
async def get_app_settings(
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> AppSettingsResponse:
    """Get the singleton settings (``configured: false`` before first save)."""
    return _response(await SettingsStore(db).get())


@router.put("", response_model=AppSettingsResponse)
async def update_app_settings(
    update: AppSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> AppSettingsResponse:
    """Upsert the singleton settings with the fields present in the body."""
    return _response(await SettingsStore(db).upsert(update))


@router.get("/public", response_model=PublicBrandingResponse)
async def get_public_settings(
    db: AsyncSession = Depends(get_db),
) -> PublicBrandingResponse:
    """Branding for the public review form."""
    return PublicBrandingResponse(settings=await SettingsStore(db).public_branding())


@upload_router.post(
    "/logo",
    response_model=LogoUploadResponse,
    dependencies=[Depends(logo_limit)],
)
async def upload_logo(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_current_user),
) -> LogoUploadResponse:
    """Store a logo image and point the settings at it."""
    extension = LOGO_TYPES.get(file.content_type or "")
    if extension is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Logo must be a PNG, JPEG, WEBP, GIF or SVG image",
        )

    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Logo must be smaller than {settings.MAX_UPLOAD_SIZE_MB} MB",
        )
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    logo_dir = Path(settings.UPLOAD_DIR) / "logos"
    logo_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{extension}"
    (logo_dir / filename).write_bytes(content)
    logger.info(f"Stored logo {filename} ({len(content)} bytes)")

    logo_url = f"/uploads/logos/{filename}"
    await SettingsStore(db).upsert(AppSettingsUpdate(logo_url=logo_url))
    return LogoUploadResponse(logo_url=logo_url)
