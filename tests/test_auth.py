def test_login_sets_token_and_cookie(client, operator) -> None:
    response = client.post(
        "/api/v1/auth/login",
        data={"username": "owner", "password": "correct-horse"},
    )

    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert "access_token" in response.cookies

    me = client.get("/api/v1/auth/me")
    assert me.status_code == 200
    assert me.json()["username"] == "owner"
    assert me.json()["last_login"] is not None


def test_login_rejects_wrong_password(client, operator) -> None:
    response = client.post(
        "/api/v1/auth/login",
        data={"username": "owner", "password": "wrong"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Incorrect username or password"


def test_bearer_token(client, auth_headers) -> None:
    assert client.get("/api/v1/auth/me", headers=auth_headers).json()["email"] == "owner@example.com"


def test_invalid_token(client, operator) -> None:
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


def test_logout_clears_cookie(client, operator) -> None:
    client.post("/api/v1/auth/login", data={"username": "owner", "password": "correct-horse"})

    assert client.post("/api/v1/auth/logout").status_code == 200
    assert client.get("/api/v1/auth/me").status_code == 401


def test_health(client) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"
    assert response.json()["status"] == "healthy"


def _login(client, password: str):
    return client.post(
        "/api/v1/auth/login",
        data={"username": "owner", "password": password},
    )


def test_change_password(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "correct-horse",
            "new_password": "battery-staple",
            "confirm_password": "battery-staple",
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert _login(client, "correct-horse").status_code == 401
    assert _login(client, "battery-staple").status_code == 200


def test_change_password_rejects_wrong_current_password(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "wrong",
            "new_password": "battery-staple",
            "confirm_password": "battery-staple",
        },
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Current password is incorrect"
    assert _login(client, "correct-horse").status_code == 200


def test_change_password_validates_new_password(client, auth_headers) -> None:
    mismatch = client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "correct-horse",
            "new_password": "battery-staple",
            "confirm_password": "battery-stapler",
        },
        headers=auth_headers,
    )
    too_short = client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "correct-horse",
            "new_password": "short",
            "confirm_password": "short",
        },
        headers=auth_headers,
    )

    assert mismatch.status_code == 400
    assert too_short.status_code == 400
    assert too_short.json()["details"][0]["field"] == "new_password"
    assert _login(client, "correct-horse").status_code == 200


def test_change_password_requires_auth(client, operator) -> None:
    response = client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "correct-horse",
            "new_password": "battery-staple",
            "confirm_password": "battery-staple",
        },
    )
    assert response.status_code == 401
