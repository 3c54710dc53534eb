REVIEW_ID = "4b3f1c2e-8a4d-4c1e-9f2a-0d6b5e7c8a91"


def _payload(**overrides) -> dict:
    data = {
        "review_id": REVIEW_ID,
        "issue_category": "service_quality",
        "detailed_feedback": "The soup was cold and nobody checked on us.",
        "contact_email": "guest@example.com",
        "allow_follow_up": True,
    }
    data.update(overrides)
    return data


def test_submit_feedback(client) -> None:
    response = client.post(
        "/api/v1/feedback",
        json=_payload(),
        headers={"User-Agent": "pytest-browser", "X-Forwarded-For": "203.0.113.9"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["feedback"]["id"]
    assert body["feedback"]["submitted_at"]


def test_feedback_review_id_need_not_exist(client) -> None:
    response = client.post(
        "/api/v1/feedback",
        json=_payload(review_id="00000000-0000-4000-8000-000000000000"),
    )
    assert response.status_code == 201


def test_invalid_feedback_is_rejected(client) -> None:
    response = client.post("/api/v1/feedback", json=_payload(detailed_feedback="too short"))

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "detailed_feedback"


def test_feedback_rate_limit(client) -> None:
    for _ in range(5):
        assert client.post("/api/v1/feedback", json=_payload()).status_code == 201

    response = client.post("/api/v1/feedback", json=_payload())

    assert response.status_code == 429
    assert response.json()["error"] == "Too many feedback submissions. Please try again later."
    assert int(response.headers["Retry-After"]) >= 1


def test_list_feedback_flattens_metadata(client, auth_headers) -> None:
    client.post(
        "/api/v1/feedback",
        json=_payload(),
        headers={"User-Agent": "pytest-browser", "X-Forwarded-For": "203.0.113.9"},
    )
    client.post(
        "/api/v1/feedback",
        json=_payload(issue_category="pricing", review_id=None, allow_follow_up=False),
    )

    response = client.get("/api/v1/feedback", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    categories = {record["issue_category"] for record in body["feedback"]}
    assert categories == {"service_quality", "pricing"}
    first = next(r for r in body["feedback"] if r["issue_category"] == "service_quality")
    assert first["review_id"] == REVIEW_ID
    assert first["contact_email"] == "guest@example.com"
    assert first["allow_follow_up"] is True
    assert first["metadata"]["ip_address"] == "203.0.113.9"
    assert first["metadata"]["user_agent"] == "pytest-browser"


def test_list_feedback_requires_auth(client) -> None:
    assert client.get("/api/v1/feedback").status_code == 401
