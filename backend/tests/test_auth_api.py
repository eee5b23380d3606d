"""API tests for authentication, plus app-level behaviour (health, headers)."""

from conftest import PASSWORD

BASE = "/api/v1/auth"


async def _login(client, user_name="admin@northwind.com", password=PASSWORD):
    return await client.post(f"{BASE}/login", json={"UserName": user_name, "Password": password})


async def test_login(client):
    resp = await _login(client)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["expiresIn"] == 24 * 3600
    assert data["user"] == {"PKID": 1, "UserName": "admin@northwind.com", "admin": 1}

    me = await client.get(f"{BASE}/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["user"]["UserName"] == "admin@northwind.com"


async def test_login_is_case_insensitive(client):
    resp = await _login(client, user_name="Admin@northwind.com")
    assert resp.status_code == 200


async def test_login_rejects_bad_credentials(client):
    for user_name, password in (("admin@northwind.com", "wrong1"), ("ghost@northwind.com", PASSWORD)):
        resp = await _login(client, user_name, password)
        assert resp.status_code == 401
        error = resp.json()["error"]
        assert error["code"] == "HTTP_401"
        assert error["message"] == "Invalid credentials"


async def test_account_locks_after_repeated_failures(client):
    for _ in range(5):
        assert (await _login(client, password="wrong1")).status_code == 401
    resp = await _login(client)
    assert resp.status_code == 429


async def test_login_rate_limit(client):
    for _ in range(10):
        await _login(client, user_name="ghost@northwind.com")
    resp = await _login(client)
    assert resp.status_code == 429


async def test_register(client):
    resp = await client.post(
        f"{BASE}/register",
        json={"UserName": "new@northwind.com", "Password": "abc123", "admin": 1},
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["user"]["admin"] == 0
    assert data["token"]

    assert (await _login(client, "new@northwind.com", "abc123")).status_code == 200


async def test_register_duplicate(client):
    resp = await client.post(
        f"{BASE}/register", json={"UserName": "CLERK@northwind.com", "Password": "abc123"}
    )
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "DUPLICATE_KEY"
    assert error["message"] == "User already exists"


async def test_register_validates_input(client):
    for body in (
        {"UserName": "not-an-email", "Password": "abc123"},
        {"UserName": "weak@northwind.com", "Password": "abcdef"},
        {"UserName": "short@northwind.com", "Password": "a1"},
    ):
        resp = await client.post(f"{BASE}/register", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_me_requires_token(client):
    resp = await client.get(f"{BASE}/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Access token required"


async def test_me(client, user_headers):
    resp = await client.get(f"{BASE}/me", headers=user_headers)
    assert resp.json()["data"]["user"] == {
        "PKID": 2,
        "UserName": "clerk@northwind.com",
        "admin": 0,
    }


async def test_logout(client, user_headers):
    resp = await client.post(f"{BASE}/logout", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True


async def test_change_password(client, user_headers):
    resp = await client.put(
        f"{BASE}/change-password",
        json={"currentPassword": "nope", "newPassword": "n3wpass"},
        headers=user_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Current password is incorrect"

    resp = await client.put(
        f"{BASE}/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "n3wpass"},
        headers=user_headers,
    )
    assert resp.status_code == 200
    assert (await _login(client, "clerk@northwind.com", "n3wpass")).status_code == 200
    assert (await _login(client, "clerk@northwind.com", PASSWORD)).status_code == 401


# ── App ──────────────────────────────────────────────────────────────

async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["database"]["status"] == "ok"


async def test_response_headers(client):
    resp = await client.get("/api/v1/categories", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Response-Time" in resp.headers


async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/api/v1/widgets")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "HTTP_404"
