from datetime import timedelta

from app.core.security import create_access_token, create_refresh_token


async def test_register_returns_tokens_and_profile(api_client):
    resp = await api_client.post(
        "/api/auth/register",
        json={"username": "carol", "email": "carol@example.com", "password": "password123"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["tokenType"] == "bearer"
    assert body["accessToken"] and body["refreshToken"]
    assert body["user"]["username"] == "carol"
    assert body["user"]["email"] == "carol@example.com"
    assert "passwordHash" not in body["user"]


async def test_register_rejects_duplicates(api_client, alice):
    resp = await api_client.post(
        "/api/auth/register",
        json={"username": "alice2", "email": "alice@example.com", "password": "password123"},
    )
    assert resp.status_code == 400
    resp = await api_client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": "password123"},
    )
    assert resp.status_code == 400


async def test_register_validates_body(api_client):
    resp = await api_client.post(
        "/api/auth/register",
        json={"username": "dave", "email": "not-an-email", "password": "short"},
    )
    assert resp.status_code == 422


async def test_login_marks_user_online(api_client, alice):
    resp = await api_client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["status"] == "online"
    assert user["lastSeen"] is not None


async def test_login_with_wrong_password(api_client, alice):
    resp = await api_client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-password"})
    assert resp.status_code == 401


async def test_me_requires_token(api_client):
    assert (await api_client.get("/api/auth/me")).status_code == 401


async def test_me_with_token(api_client, alice):
    resp = await api_client.get("/api/auth/me", headers=alice["headers"])
    assert resp.status_code == 200
    assert resp.json()["id"] == alice["id"]


async def test_me_with_expired_token(api_client, alice):
    token = create_access_token(alice["id"], expires_delta=timedelta(minutes=-1))
    resp = await api_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


async def test_refresh_token_is_not_an_access_token(api_client, alice):
    refresh = create_refresh_token(alice["id"])
    resp = await api_client.get("/api/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert resp.status_code == 401

    resp = await api_client.post("/api/auth/refresh", json={"refreshToken": refresh})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == alice["id"]


async def test_refresh_rejects_access_token(api_client, alice):
    resp = await api_client.post("/api/auth/refresh", json={"refreshToken": alice["token"]})
    assert resp.status_code == 401


async def test_logout_marks_user_offline(api_client, alice):
    resp = await api_client.post("/api/auth/logout", headers=alice["headers"])
    assert resp.status_code == 200
    me = (await api_client.get("/api/auth/me", headers=alice["headers"])).json()
    assert me["status"] == "offline"


async def test_logout_without_token_is_allowed(api_client):
    assert (await api_client.post("/api/auth/logout")).status_code == 200
