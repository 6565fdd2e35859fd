import json


async def test_create_and_list_conversations(api_client, alice):
    resp = await api_client.post("/api/conversations", json={"name": "general", "type": "group"}, headers=alice["headers"])
    assert resp.status_code == 201
    assert resp.json()["name"] == "general"

    listed = (await api_client.get("/api/conversations")).json()
    assert [c["name"] for c in listed] == ["general"]


async def test_create_conversation_requires_auth(api_client):
    resp = await api_client.post("/api/conversations", json={"name": "general"})
    assert resp.status_code == 401


async def test_messages_are_listed_oldest_first_with_author(api_client, alice, bob, make_conversation):
    cid = await make_conversation()
    for who, text in ((alice, "one"), (bob, "two"), (alice, "three")):
        resp = await api_client.post(
            "/api/messages",
            json={"conversationId": cid, "content": text},
            headers=who["headers"],
        )
        assert resp.status_code == 201

    messages = (await api_client.get(f"/api/conversations/{cid}/messages")).json()
    assert [m["content"] for m in messages] == ["one", "two", "three"]
    assert [m["user"]["username"] for m in messages] == ["alice", "bob", "alice"]


async def test_post_message_requires_auth(api_client, make_conversation):
    cid = await make_conversation()
    resp = await api_client.post("/api/messages", json={"conversationId": cid, "userId": 1, "content": "hi"})
    assert resp.status_code == 401


async def test_post_message_as_someone_else_is_forbidden(api_client, alice, bob, make_conversation):
    cid = await make_conversation()
    resp = await api_client.post(
        "/api/messages",
        json={"conversationId": cid, "userId": bob["id"], "content": "hi"},
        headers=alice["headers"],
    )
    assert resp.status_code == 403


async def test_post_message_to_missing_conversation(api_client, alice):
    resp = await api_client.post("/api/messages", json={"conversationId": 999, "content": "hi"}, headers=alice["headers"])
    assert resp.status_code == 404


async def test_empty_message_is_rejected(api_client, alice, make_conversation):
    cid = await make_conversation()
    resp = await api_client.post("/api/messages", json={"conversationId": cid, "content": ""}, headers=alice["headers"])
    assert resp.status_code == 422


async def test_message_is_published_after_commit(api_client, alice, make_conversation, relay_socket):
    cid = await make_conversation()
    socket = relay_socket

    resp = await api_client.post(
        "/api/conversations/messages",
        json={"conversationId": cid, "userId": alice["id"], "content": "hi"},
        headers=alice["headers"],
    )
    assert resp.status_code == 201

    [envelope] = [json.loads(s) for s in socket.sent]
    assert envelope["type"] == "new_message"
    assert envelope["message"] == resp.json()
    assert envelope["user"]["id"] == alice["id"]


async def test_chat_request_flow(api_client, alice, bob, relay_socket):
    socket = relay_socket

    resp = await api_client.post(
        "/api/conversations/chat-requests",
        json={"receiverId": bob["id"], "content": "hey bob"},
        headers=alice["headers"],
    )
    assert resp.status_code == 201
    request_id = resp.json()["id"]

    pending = (await api_client.get("/api/conversations/chat-requests", headers=bob["headers"])).json()
    assert [r["id"] for r in pending] == [request_id]
    assert pending[0]["sender"]["username"] == "alice"
    assert (await api_client.get("/api/conversations/chat-requests", headers=alice["headers"])).json() == []

    accepted = await api_client.post(f"/api/conversations/chat-requests/{request_id}/accept", headers=bob["headers"])
    assert accepted.status_code == 200
    cid = accepted.json()["conversationId"]

    messages = (await api_client.get(f"/api/conversations/{cid}/messages")).json()
    assert [(m["userId"], m["content"]) for m in messages] == [(alice["id"], "hey bob")]
    assert json.loads(socket.sent[-1])["type"] == "new_message"

    again = await api_client.post(f"/api/conversations/chat-requests/{request_id}/accept", headers=bob["headers"])
    assert again.status_code == 400


async def test_chat_request_to_self(api_client, alice):
    resp = await api_client.post(
        "/api/conversations/chat-requests",
        json={"receiverId": alice["id"], "content": "me"},
        headers=alice["headers"],
    )
    assert resp.status_code == 400


async def test_reject_chat_request(api_client, alice, bob):
    resp = await api_client.post(
        "/api/conversations/chat-requests",
        json={"receiverId": bob["id"], "content": "hello"},
        headers=alice["headers"],
    )
    request_id = resp.json()["id"]

    # only the receiver can act on it
    assert (await api_client.post(f"/api/conversations/chat-requests/{request_id}/reject", headers=alice["headers"])).status_code == 404

    rejected = await api_client.post(f"/api/conversations/chat-requests/{request_id}/reject", headers=bob["headers"])
    assert rejected.json()["status"] == "rejected"
    assert (await api_client.get("/api/conversations/chat-requests", headers=bob["headers"])).json() == []
