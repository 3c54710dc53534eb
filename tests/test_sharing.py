import base64
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import LinkTracking
from app.schemas.sharing import SharePlatform
from app.services.sharing import (
    build_robots,
    build_share_url,
    build_sitemap,
    generate_qr,
    review_url,
)

BASE_URL = "https://reviews.example.com"


def test_review_url_uses_configured_base() -> None:
    assert review_url() == f"{BASE_URL}/review"
    assert review_url("qr_code") == f"{BASE_URL}/review?source=qr_code"


@pytest.mark.parametrize(
    "platform,prefix",
    [
        (SharePlatform.WHATSAPP, "https://wa.me/?text="),
        (SharePlatform.EMAIL, "mailto:?subject="),
        (SharePlatform.SMS, "sms:?body="),
        (SharePlatform.FACEBOOK, "https://www.facebook.com/sharer/sharer.php?u="),
        (SharePlatform.TWITTER, "https://twitter.com/intent/tweet?text="),
        (SharePlatform.LINKEDIN, "https://www.linkedin.com/sharing/share-offsite/?url="),
    ],
)
def test_share_url_per_platform(platform, prefix) -> None:
    url = build_share_url(platform, "Rate us & win", f"{BASE_URL}/review", "Bistro")

    assert url.startswith(prefix)
    assert " " not in url


def test_facebook_share_carries_review_url() -> None:
    url = build_share_url(SharePlatform.FACEBOOK, "ignored", f"{BASE_URL}/review?source=social")

    assert parse_qs(urlparse(url).query)["u"] == [f"{BASE_URL}/review?source=social"]


def test_qr_png_data_url() -> None:
    data = generate_qr(f"{BASE_URL}/review", 256, "png")

    assert data.startswith("data:image/png;base64,")
    assert base64.b64decode(data.split(",", 1)[1]).startswith(b"\x89PNG")


def test_qr_svg() -> None:
    assert "<svg" in generate_qr(f"{BASE_URL}/review", 300, "svg")


def test_sitemap_and_robots() -> None:
    sitemap = build_sitemap(BASE_URL, datetime(2024, 3, 14, tzinfo=timezone.utc))

    assert f"<loc>{BASE_URL}/review</loc>" in sitemap
    assert "2024-03-14" in sitemap
    assert f"Sitemap: {BASE_URL}/sitemap.xml" in build_robots(BASE_URL)
    assert "Disallow: /api/" in build_robots(BASE_URL)


def test_public_qr_generate(client, auth_headers) -> None:
    response = client.post("/api/v1/qr-generate", json={"size": "small"})

    assert response.status_code == 200
    body = response.json()
    assert body["qr_code"].startswith("data:image/png;base64,")
    assert body["url"] == f"{BASE_URL}/review?source=qr_code"
    assert body["size"] == "small"

    tracking = client.get("/api/v1/sharing/link-tracking", headers=auth_headers).json()
    assert tracking["tracking"]["by_type"] == {"qr_code": 1}


def test_public_qr_generate_without_tracking(client) -> None:
    response = client.post("/api/v1/qr-generate", json={"include_tracking": False})
    assert response.json()["url"] == f"{BASE_URL}/review"


def test_public_qr_generate_is_rate_limited(client) -> None:
    for _ in range(20):
        assert client.post("/api/v1/qr-generate", json={}).status_code == 200

    assert client.post("/api/v1/qr-generate", json={}).status_code == 429


def test_owner_qr_code(client, auth_headers, configure_settings) -> None:
    configure_settings(name="Corner Bistro")

    response = client.post(
        "/api/v1/sharing/qr-code",
        json={"size": 400, "format": "svg"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    qr = response.json()["qr_code"]
    assert "<svg" in qr["data"]
    assert qr["business_name"] == "Corner Bistro"
    assert qr["size"] == 400


def test_owner_qr_code_validates_size(client, auth_headers) -> None:
    response = client.post("/api/v1/sharing/qr-code", json={"size": 50}, headers=auth_headers)
    assert response.status_code == 400


def test_share_link(client, auth_headers, configure_settings) -> None:
    configure_settings(name="Corner Bistro")

    response = client.post("/api/v1/share/whatsapp", json={}, headers=auth_headers)

    assert response.status_code == 200
    share = response.json()["share"]
    assert share["platform"] == "whatsapp"
    assert share["url"].startswith("https://wa.me/?text=")
    assert "Corner Bistro" in share["message"]
    assert f"{BASE_URL}/review?source=whatsapp" in share["message"]

    tracking = client.get("/api/v1/sharing/link-tracking", headers=auth_headers).json()
    assert tracking["tracking"]["by_type"] == {"social": 1}


def test_share_link_custom_message_and_unknown_platform(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/share/email", json={"custom_message": "Tell us!"}, headers=auth_headers
    )
    assert response.json()["share"]["message"] == "Tell us!"

    assert client.post("/api/v1/share/myspace", json={}, headers=auth_headers).status_code == 400


def test_manual_link_tracking(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/sharing/link-tracking",
        json={"link_type": "direct", "link_url": f"{BASE_URL}/review", "metadata": {"where": "receipt"}},
        headers=auth_headers,
    )
    assert response.status_code == 200

    recent = client.get("/api/v1/sharing/link-tracking", headers=auth_headers).json()["tracking"]["recent"]
    assert recent[0]["metadata"] == {"where": "receipt"}

    bad = client.post(
        "/api/v1/sharing/link-tracking",
        json={"link_type": "direct", "link_url": "javascript:alert(1)"},
        headers=auth_headers,
    )
    assert bad.status_code == 400


def test_sharing_requires_auth(client) -> None:
    assert client.post("/api/v1/sharing/qr-code", json={}).status_code == 401
    assert client.post("/api/v1/share/sms", json={}).status_code == 401


@pytest.mark.parametrize("path", ["/sitemap.xml", "/api/v1/sitemap"])
def test_sitemap_routes(client, path) -> None:
    response = client.get(path)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert f"{BASE_URL}/review" in response.text


@pytest.mark.parametrize("path", ["/robots.txt", "/api/v1/robots"])
def test_robots_routes(client, path) -> None:
    response = client.get(path)

    assert response.status_code == 200
    assert response.text.startswith("User-agent: *")


@pytest.fixture
def failing_link_tracking(monkeypatch):
    """Make every commit that inserts a link_tracking row fail."""
    original_commit = AsyncSession.commit

    async def _commit(self):
        if any(isinstance(obj, LinkTracking) for obj in self.new):
            raise OperationalError("INSERT INTO link_tracking", {}, Exception("disk I/O error"))
        return await original_commit(self)

    monkeypatch.setattr(AsyncSession, "commit", _commit)


def test_qr_generate_survives_tracking_failure(client, failing_link_tracking) -> None:
    response = client.post("/api/v1/qr-generate", json={"size": "small"})

    assert response.status_code == 200
    assert response.json()["qr_code"].startswith("data:image/png;base64,")


def test_owner_qr_and_share_survive_tracking_failure(
    client, auth_headers, failing_link_tracking
) -> None:
    qr = client.post("/api/v1/sharing/qr-code", json={"format": "svg"}, headers=auth_headers)
    share = client.post("/api/v1/share/sms", json={}, headers=auth_headers)

    assert qr.status_code == 200
    assert "<svg" in qr.json()["qr_code"]["data"]
    assert share.status_code == 200
    assert share.json()["share"]["url"].startswith("sms:?body=")

    tracking = client.get("/api/v1/sharing/link-tracking", headers=auth_headers).json()
    assert tracking["tracking"]["total"] == 0


def test_manual_link_tracking_reports_failure(client, auth_headers, failing_link_tracking) -> None:
    response = client.post(
        "/api/v1/sharing/link-tracking",
        json={"link_type": "direct", "link_url": f"{BASE_URL}/review"},
        headers=auth_headers,
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to record link"}


def test_share_tracking_keeps_distributed_link(client, auth_headers) -> None:
    share = client.post(
        "/api/v1/share/twitter", json={"custom_message": "Tell us how we did"}, headers=auth_headers
    ).json()["share"]

    [record] = client.get("/api/v1/sharing/link-tracking", headers=auth_headers).json()["tracking"]["recent"]

    assert record["link_url"] == share["url"]
    assert record["metadata"]["share_message"] == "Tell us how we did"
    assert record["metadata"]["review_url"] == f"{BASE_URL}/review?source=twitter"
