import asyncio
from pathlib import Path

import pytest
from sqlalchemy import func, select

from app.config import get_settings
from app.models import SINGLETON_ID, AppSettings, SingletonViolation
from app.schemas.app_settings import AppSettingsUpdate
from app.services.app_settings import SettingsStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _row_count(session_factory) -> int:
    async def _count() -> int:
        async with session_factory() as session:
            return (await session.execute(select(func.count(AppSettings.id)))).scalar()

    return asyncio.run(_count())


def test_get_before_configuration(client, auth_headers) -> None:
    response = client.get("/api/v1/app-settings", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "configured": False, "settings": None}


def test_settings_require_auth(client) -> None:
    assert client.get("/api/v1/app-settings").status_code == 401
    assert client.put("/api/v1/app-settings", json={"name": "X"}).status_code == 401


def test_put_then_get_round_trip(client, auth_headers, session_factory) -> None:
    payload = {
        "name": "Corner Bistro",
        "brand_color": "#1a2b3c",
        "google_business_url": "https://g.page/r/corner/review",
        "notification_email": "owner@example.com",
        "weekly_digest": True,
    }

    response = client.put("/api/v1/app-settings", json=payload, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["configured"] is True

    stored = client.get("/api/v1/app-settings", headers=auth_headers).json()["settings"]
    for key, value in payload.items():
        assert stored[key] == value
    assert stored["notify_new_reviews"] is True
    assert _row_count(session_factory) == 1


def test_partial_update_keeps_other_fields(client, auth_headers, session_factory) -> None:
    client.put(
        "/api/v1/app-settings",
        json={"name": "Corner Bistro", "google_business_url": "https://g.page/r/x"},
        headers=auth_headers,
    )
    response = client.put(
        "/api/v1/app-settings", json={"welcome_message": "Hi there"}, headers=auth_headers
    )

    stored = response.json()["settings"]
    assert stored["name"] == "Corner Bistro"
    assert stored["google_business_url"] == "https://g.page/r/x"
    assert stored["welcome_message"] == "Hi there"
    assert _row_count(session_factory) == 1


def test_empty_string_clears_url(client, auth_headers) -> None:
    client.put(
        "/api/v1/app-settings",
        json={"google_business_url": "https://g.page/r/x"},
        headers=auth_headers,
    )
    response = client.put(
        "/api/v1/app-settings", json={"google_business_url": ""}, headers=auth_headers
    )

    assert response.json()["settings"]["google_business_url"] is None


def test_invalid_settings_are_rejected(client, auth_headers) -> None:
    response = client.put(
        "/api/v1/app-settings",
        json={"google_business_url": "not a url", "brand_color": "red"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    fields = {d["field"] for d in response.json()["details"]}
    assert fields == {"google_business_url", "brand_color"}


def test_public_branding(client, configure_settings) -> None:
    response = client.get("/api/v1/app-settings/public")
    assert response.json()["settings"]["redirect_configured"] is False

    configure_settings(
        name="Corner Bistro",
        google_business_url="https://g.page/r/x",
        notification_email="owner@example.com",
    )
    settings = client.get("/api/v1/app-settings/public").json()["settings"]

    assert settings["name"] == "Corner Bistro"
    assert settings["redirect_configured"] is True
    assert "notification_email" not in settings
    assert "google_business_url" not in settings


def test_second_settings_row_is_refused(session_factory) -> None:
    async def _insert_second() -> None:
        async with session_factory() as session:
            session.add(AppSettings(id=2, name="Imposter"))
            await session.commit()

    with pytest.raises(SingletonViolation):
        asyncio.run(_insert_second())


def test_store_upsert_creates_then_updates(session_factory) -> None:
    async def _run():
        async with session_factory() as session:
            store = SettingsStore(session)
            await store.upsert(AppSettingsUpdate(name="First"))
            await store.upsert(AppSettingsUpdate(name="Second"))
            return await store.get(), await store.redirect_url()

    app_settings, redirect_url = asyncio.run(_run())

    assert app_settings.name == "Second"
    assert redirect_url is None
    assert _row_count(session_factory) == 1


def test_store_upsert_after_concurrent_create(session_factory) -> None:
    class LateStore(SettingsStore):
        """Sees no row on its first read, while another session creates it."""

        stale = True

        async def get(self):
            if self.stale:
                self.stale = False
                async with session_factory() as other:
                    other.add(AppSettings(id=SINGLETON_ID, name="Other request"))
                    await other.commit()
                return None
            return await super().get()

    async def _run():
        async with session_factory() as session:
            return await LateStore(session).upsert(
                AppSettingsUpdate(name="Corner Bistro", brand_color="#aa3300")
            )

    app_settings = asyncio.run(_run())

    assert app_settings.name == "Corner Bistro"
    assert app_settings.brand_color == "#aa3300"
    assert _row_count(session_factory) == 1


def test_logo_upload(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/upload/logo",
        files={"file": ("logo.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    logo_url = response.json()["logo_url"]
    assert logo_url.startswith("/uploads/logos/") and logo_url.endswith(".png")

    stored = Path(get_settings().UPLOAD_DIR) / "logos" / logo_url.rsplit("/", 1)[1]
    assert stored.read_bytes() == PNG_BYTES

    settings = client.get("/api/v1/app-settings", headers=auth_headers).json()["settings"]
    assert settings["logo_url"] == logo_url
    assert client.get(logo_url).status_code == 200


def test_logo_upload_rejects_other_types(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/upload/logo",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_logo_upload_requires_auth(client) -> None:
    response = client.post(
        "/api/v1/upload/logo", files={"file": ("logo.png", PNG_BYTES, "image/png")}
    )
    assert response.status_code == 401
