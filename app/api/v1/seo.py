"""Sitemap and robots.txt endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.config import get_settings
from app.services.app_settings import SettingsStore
from app.services.sharing import build_robots, build_sitemap

router = APIRouter()
public_router = APIRouter()
settings = get_settings()


async def sitemap(db: AsyncSession = Depends(get_db)) -> Response:
    app_settings = await SettingsStore(db).get()
    lastmod = app_settings.updated_at if app_settings else None
    return Response(
        content=build_sitemap(settings.base_url, lastmod),
        media_type="application/xml",
        headers={"Cache-Control": "public, max-age=86400"},
    )


async def robots() -> PlainTextResponse:
    return PlainTextResponse(
        build_robots(settings.base_url),
        headers={"Cache-Control": "public, max-age=86400"},
    )


router.add_api_route("/sitemap", sitemap, methods=["GET"], include_in_schema=False)
router.add_api_route("/robots", robots, methods=["GET"], include_in_schema=False)
public_router.add_api_route("/sitemap.xml", sitemap, methods=["GET"], include_in_schema=False)
public_router.add_api_route("/robots.txt", robots, methods=["GET"], include_in_schema=False)
