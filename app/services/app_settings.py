"""Access layer for the singleton settings row."""

from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UpstreamFailure
from app.models.app_settings import SINGLETON_ID, AppSettings
from app.schemas.app_settings import AppSettingsUpdate, PublicBranding

logger = logging.getLogger(__name__)


class SettingsStore:
    """Read and upsert the one ``app_settings`` row.

    All writes go through :meth:`upsert`, which only ever targets
    ``SINGLETON_ID``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self) -> Optional[AppSettings]:
        """Return the settings row, or None when not configured yet."""
        return await self.db.get(AppSettings, SINGLETON_ID)

    async def upsert(self, update: AppSettingsUpdate) -> AppSettings:
        """Apply the explicitly provided fields onto the singleton.

        If a concurrent request created the row first, the insert fails on
        the primary key and the values are applied to that row instead.
        """
        values = update.model_dump(exclude_unset=True)
        try:
            try:
                app_settings = await self._apply(values)
            except IntegrityError:
                await self.db.rollback()
                logger.info("App settings created concurrently; updating instead")
                app_settings = await self._apply(values)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save app settings: {e}", exc_info=True)
            raise UpstreamFailure("Failed to update app settings")

        logger.info(f"Updated app settings fields: {sorted(values)}")
        return app_settings

    async def _apply(self, values: dict) -> AppSettings:
        app_settings = await self.get()
        if app_settings is None:
            app_settings = AppSettings(id=SINGLETON_ID)
            self.db.add(app_settings)
            logger.info("Creating app settings")

        for field_name, value in values.items():
            setattr(app_settings, field_name, value)

        await self.db.commit()
        await self.db.refresh(app_settings)
        return app_settings

    async def redirect_url(self) -> Optional[str]:
        """External review platform URL, or None when not configured."""
        app_settings = await self.get()
        if app_settings is None or not app_settings.google_business_url:
            return None
        return app_settings.google_business_url

    async def public_branding(self) -> PublicBranding:
        app_settings = await self.get()
        if app_settings is None:
            return PublicBranding()
        return PublicBranding(
            name=app_settings.name,
            description=app_settings.description,
            logo_url=app_settings.logo_url,
            brand_color=app_settings.brand_color,
            welcome_message=app_settings.welcome_message,
            thank_you_message=app_settings.thank_you_message,
            redirect_configured=bool(app_settings.google_business_url),
        )
