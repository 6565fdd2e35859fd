async def test_search_spans_users_communities_and_posts(api_client, alice, make_user, make_community):
    await make_user("gamer_gal")
    await make_community("Retro Gamers", "old consoles")
    await make_community("Bakers")
    await api_client.post("/api/posts", json={"content": "new high score", "tags": ["gaming"]}, headers=alice["headers"])
    await api_client.post("/api/posts", json={"content": "sourdough"}, headers=alice["headers"])

    resp = await api_client.get("/api/search", params={"q": "GAM"})
    assert resp.status_code == 200
    body = resp.json()
    assert [u["username"] for u in body["users"]] == ["gamer_gal"]
    assert [c["name"] for c in body["communities"]] == ["Retro Gamers"]
    assert [p["content"] for p in body["posts"]] == ["new high score"]


async def test_search_requires_query(api_client):
    assert (await api_client.get("/api/search")).status_code == 400
    assert (await api_client.get("/api/search", params={"q": "  "})).status_code == 400


async def test_notifications_flow(api_client, alice, bob):
    await api_client.post(f"/api/users/{alice['id']}/follow", headers=bob["headers"])
    post = (await api_client.post("/api/posts", json={"content": "hi"}, headers=alice["headers"])).json()
    await api_client.post(f"/api/posts/{post['id']}/like", headers=bob["headers"])

    notifications = (await api_client.get("/api/notifications", headers=alice["headers"])).json()
    assert [n["type"] for n in notifications] == ["like", "follow"]
    assert notifications[0]["targetPostId"] == post["id"]
    assert (await api_client.get("/api/notifications/unread-count", headers=alice["headers"])).json() == {"count": 2}

    resp = await api_client.patch(f"/api/notifications/{notifications[0]['id']}/read", headers=alice["headers"])
    assert resp.status_code == 200
    assert (await api_client.get("/api/notifications/unread-count", headers=alice["headers"])).json() == {"count": 1}

    # another user's notification is not found
    resp = await api_client.patch(f"/api/notifications/{notifications[1]['id']}/read", headers=bob["headers"])
    assert resp.status_code == 404

    resp = await api_client.post("/api/notifications/mark-all-read", headers=alice["headers"])
    assert resp.json() == {"marked": 1}
    assert (await api_client.get("/api/notifications/unread-count", headers=alice["headers"])).json() == {"count": 0}


async def test_notifications_require_auth(api_client):
    assert (await api_client.get("/api/notifications")).status_code == 401


async def test_operational_endpoints(api_client):
    assert (await api_client.get("/health")).json()["status"] == "ok"
    assert (await api_client.get("/ready")).json() == {"status": "ok", "database": "connected"}
    assert (await api_client.get("/")).json()["api"] == "/api"


def test_push_hook_only_logs(caplog):
    from app.workers.notifications import send_push_notification

    with caplog.at_level("DEBUG", logger="app.workers.notifications"):
        result = send_push_notification.delay("3", "verser", "alice liked your post")

    assert result.get() is None
    assert "alice liked your post" in caplog.text
